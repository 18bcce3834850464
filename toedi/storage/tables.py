"""
SQLModel table definitions for activities and their derived data.

Child tables carry the generated id of their activity; user ids come from
the external authentication layer and are stored as plain integers.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Enum as SAEnum
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field

from ..models import HeartrateZone


class UTCTimestamp(TypeDecorator):
    """
    Timestamp stored as naive UTC and read back as aware UTC.

    Naive values on the way in are taken to be UTC already, as decoded FIT
    timestamps are.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class ActivityRow(SQLModel, table=True):
    """One uploaded activity."""

    __tablename__ = "activities"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    start_time: datetime = Field(index=True, sa_type=UTCTimestamp)
    end_time: datetime = Field(sa_type=UTCTimestamp)
    duration: float
    avg_heartrate: Optional[int] = Field(default=None)
    load: Optional[int] = Field(default=None)


class SessionRow(SQLModel, table=True):
    """Sport tagged segment of an activity."""

    __tablename__ = "sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    start_time: datetime = Field(sa_type=UTCTimestamp)
    end_time: datetime = Field(sa_type=UTCTimestamp)
    sport: Optional[str] = Field(default=None, max_length=64)
    distance: Optional[float] = Field(default=None)
    calories: Optional[int] = Field(default=None)
    average_heartrate: Optional[int] = Field(default=None)
    min_heartrate: Optional[int] = Field(default=None)
    max_heartrate: Optional[int] = Field(default=None)
    average_power: Optional[int] = Field(default=None)
    ascent: Optional[int] = Field(default=None)
    descent: Optional[int] = Field(default=None)
    average_speed: Optional[float] = Field(default=None)
    max_speed: Optional[float] = Field(default=None)


class LapRow(SQLModel, table=True):
    """Lap of an activity; lap_index keeps the file order."""

    __tablename__ = "laps"

    id: Optional[int] = Field(default=None, primary_key=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    lap_index: int
    start_time: datetime = Field(sa_type=UTCTimestamp)
    end_time: datetime = Field(sa_type=UTCTimestamp)
    sport: Optional[str] = Field(default=None, max_length=64)
    distance: Optional[float] = Field(default=None)
    calories: Optional[int] = Field(default=None)
    average_heartrate: Optional[int] = Field(default=None)
    min_heartrate: Optional[int] = Field(default=None)
    max_heartrate: Optional[int] = Field(default=None)
    average_power: Optional[int] = Field(default=None)
    ascent: Optional[int] = Field(default=None)
    descent: Optional[int] = Field(default=None)
    average_speed: Optional[float] = Field(default=None)
    max_speed: Optional[float] = Field(default=None)


class RecordRow(SQLModel, table=True):
    """Telemetry sample with coordinates in degrees."""

    __tablename__ = "records"

    id: Optional[int] = Field(default=None, primary_key=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    timestamp: datetime = Field(sa_type=UTCTimestamp)
    heartrate: Optional[int] = Field(default=None)
    distance: Optional[float] = Field(default=None)
    speed: Optional[float] = Field(default=None)
    altitude: Optional[float] = Field(default=None)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)


class SlopeSpeedRow(SQLModel, table=True):
    """Derived slope/speed/zone sample."""

    __tablename__ = "slope_speed"

    id: Optional[int] = Field(default=None, primary_key=True)
    activity_id: int = Field(foreign_key="activities.id", index=True)
    user_id: int = Field(index=True)
    start_time: datetime = Field(index=True, sa_type=UTCTimestamp)
    sport: Optional[str] = Field(default=None, max_length=64)
    slope: float
    average_speed: float
    heartrate_zone: HeartrateZone = Field(
        sa_column=Column(
            SAEnum(
                HeartrateZone,
                name="heartrate_zone",
                values_callable=lambda zones: [z.value for z in zones],
            ),
            nullable=False,
        )
    )


class UserPreferencesRow(SQLModel, table=True):
    """
    Append-only preference history.

    A row is valid in [start_time, end_time); NULL means open on that side.
    """

    __tablename__ = "user_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    start_time: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)
    end_time: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)
    aerobic_threshold: int
    anaerobic_threshold: int
    max_heartrate: int
    tau: float
    c: float
