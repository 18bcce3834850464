"""
Session and Lap - sport tagged segments of an activity
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class SegmentSummary:
    """Summary fields shared by sessions and laps"""
    start_time: datetime
    end_time: datetime
    sport: Optional[str] = None
    distance: Optional[float] = None
    calories: Optional[int] = None
    average_heartrate: Optional[int] = None
    min_heartrate: Optional[int] = None
    max_heartrate: Optional[int] = None
    average_power: Optional[int] = None
    ascent: Optional[int] = None
    descent: Optional[int] = None
    average_speed: Optional[float] = None
    max_speed: Optional[float] = None

    def contains(self, timestamp: datetime) -> bool:
        """True if timestamp lies in the half-open interval [start_time, end_time)"""
        return self.start_time <= timestamp < self.end_time


@dataclass
class Session(SegmentSummary):
    """Sport tagged segment of an activity"""


@dataclass
class Lap(SegmentSummary):
    """Finer grained segment of an activity, kept in file order"""
