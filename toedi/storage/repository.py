"""
Persistence of one ingested activity.

The activity row is inserted first to obtain its generated id; every child
collection is then written with one multi-row INSERT tagged with that id.
All statements run inside a single transaction: either the whole unit is
committed and the activity becomes Stored, or nothing is visible.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Sequence

import structlog
from sqlalchemy import func, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..exceptions import InsertError, insert_error
from ..models import Activity, Lap, Record, Session as SessionSummary, SlopeSpeed
from .connection import SessionFactory
from .tables import ActivityRow, LapRow, RecordRow, SessionRow, SlopeSpeedRow

logger = structlog.get_logger(__name__)


@dataclass
class IngestionUnit:
    """A fully derived activity and its child collections."""
    activity: Activity
    sessions: List[SessionSummary] = field(default_factory=list)
    laps: List[Lap] = field(default_factory=list)
    records: List[Record] = field(default_factory=list)
    slope_speeds: List[SlopeSpeed] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            'sessions': len(self.sessions),
            'laps': len(self.laps),
            'records': len(self.records),
            'slope_speed': len(self.slope_speeds),
        }


def _bulk_insert(db: Session, table: type, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        return
    db.connection().execute(insert(table), rows)


def insert_activity(db: Session, activity: Activity, user_id: int) -> int:
    """Insert the activity row and return its generated id."""
    if activity.is_stored:
        raise insert_error("activity is already stored", activity_id=activity.activity_id)
    row = ActivityRow(
        user_id=user_id,
        start_time=activity.start_time,
        end_time=activity.end_time,
        duration=activity.duration,
        avg_heartrate=activity.avg_heartrate,
        load=activity.load,
    )
    try:
        db.add(row)
        db.flush()
    except SQLAlchemyError as e:
        raise insert_error(f"Couldn't insert activity: {e}") from e
    if row.id is None:
        raise insert_error("Couldn't get inserted id")
    return row.id


def insert_records(db: Session, records: Sequence[Record], activity_id: int) -> None:
    rows = [dict(asdict(r), activity_id=activity_id) for r in records]
    try:
        _bulk_insert(db, RecordRow, rows)
    except SQLAlchemyError as e:
        raise insert_error(f"Couldn't insert records: {e}", activity_id=activity_id) from e


def insert_sessions(db: Session, sessions: Sequence[SessionSummary], activity_id: int) -> None:
    rows = [dict(asdict(s), activity_id=activity_id) for s in sessions]
    try:
        _bulk_insert(db, SessionRow, rows)
    except SQLAlchemyError as e:
        raise insert_error(f"Couldn't insert sessions: {e}", activity_id=activity_id) from e


def insert_laps(db: Session, laps: Sequence[Lap], activity_id: int) -> None:
    rows = [
        dict(asdict(lap), activity_id=activity_id, lap_index=index)
        for index, lap in enumerate(laps)
    ]
    try:
        _bulk_insert(db, LapRow, rows)
    except SQLAlchemyError as e:
        raise insert_error(f"Couldn't insert laps: {e}", activity_id=activity_id) from e


def insert_slope_speeds(db: Session, slope_speeds: Sequence[SlopeSpeed], activity_id: int) -> None:
    rows = [
        {
            'activity_id': activity_id,
            'user_id': s.user_id,
            'start_time': s.start_time,
            'sport': s.sport,
            'slope': s.slope,
            'average_speed': s.average_speed,
            'heartrate_zone': s.heartrate_zone,
        }
        for s in slope_speeds
    ]
    try:
        _bulk_insert(db, SlopeSpeedRow, rows)
    except SQLAlchemyError as e:
        raise insert_error(f"Couldn't insert slope speed: {e}", activity_id=activity_id) from e


class PersistenceCoordinator:
    """Writes one IngestionUnit as a single atomic transaction."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def persist(self, unit: IngestionUnit, user_id: int) -> Activity:
        """
        Store the unit and return the activity in the Stored state.

        Raises:
            InsertError: any statement or the commit failed; the transaction
                was rolled back and no id was assigned
        """
        db = self.session_factory()
        try:
            with db.begin():
                activity_id = insert_activity(db, unit.activity, user_id)
                insert_records(db, unit.records, activity_id)
                insert_sessions(db, unit.sessions, activity_id)
                insert_laps(db, unit.laps, activity_id)
                insert_slope_speeds(db, unit.slope_speeds, activity_id)
        except InsertError as e:
            logger.error("Activity transaction rolled back", user_id=user_id, error=e.message)
            raise
        except SQLAlchemyError as e:
            logger.error("Activity transaction failed", user_id=user_id, error=str(e))
            raise insert_error(f"Transaction failed, try again: {e}") from e
        finally:
            db.close()

        logger.info("Stored activity", activity_id=activity_id, user_id=user_id, **unit.counts())
        return unit.activity.mark_stored(activity_id, user_id)


def count_rows(db: Session, table: type, activity_id: int = None) -> int:
    """Number of rows in a table, optionally restricted to one activity."""
    statement = select(func.count()).select_from(table)
    if activity_id is not None:
        statement = statement.where(table.activity_id == activity_id)
    return db.exec(statement).one()


def slope_speed_summary(db: Session, user_id: int, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """
    Average speed per (slope, zone) of a user's samples with start_time in [start, end].
    """
    statement = (
        select(
            SlopeSpeedRow.slope,
            SlopeSpeedRow.heartrate_zone,
            func.avg(SlopeSpeedRow.average_speed).label("speed"),
        )
        .where(SlopeSpeedRow.user_id == user_id)
        .where(SlopeSpeedRow.start_time >= start)
        .where(SlopeSpeedRow.start_time <= end)
        .group_by(SlopeSpeedRow.slope, SlopeSpeedRow.heartrate_zone)
        .order_by(SlopeSpeedRow.slope, SlopeSpeedRow.heartrate_zone)
    )
    return [
        {'slope': row.slope, 'zone': row.heartrate_zone, 'speed': float(row.speed)}
        for row in db.exec(statement)
    ]
