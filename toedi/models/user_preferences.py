"""
User preferences - heart rate thresholds and the fitted load curve
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_AEROBIC_THRESHOLD = 155
DEFAULT_ANAEROBIC_THRESHOLD = 172
DEFAULT_MAX_HEARTRATE = 183
DEFAULT_TAU = 0.0809749
DEFAULT_C = 0.000002370473


@dataclass(frozen=True)
class UserPreferences:
    """
    One row of a user's append-only preference history.

    The row is valid in the window [start_time, end_time); a missing bound
    means the window is open on that side.
    """
    user_id: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    aerobic_threshold: int = DEFAULT_AEROBIC_THRESHOLD
    anaerobic_threshold: int = DEFAULT_ANAEROBIC_THRESHOLD
    max_heartrate: int = DEFAULT_MAX_HEARTRATE
    tau: float = DEFAULT_TAU
    c: float = DEFAULT_C

    @classmethod
    def default(cls, user_id: int = 0) -> "UserPreferences":
        return cls(user_id=user_id)

    def contains(self, timestamp: datetime) -> bool:
        """True if timestamp falls inside this row's validity window"""
        if self.start_time is not None and timestamp < self.start_time:
            return False
        if self.end_time is not None and timestamp >= self.end_time:
            return False
        return True
