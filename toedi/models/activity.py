"""
Activity - aggregate root of one uploaded file
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .base import EntryState, New, Stored


@dataclass
class Activity:
    """One complete recorded workout"""
    start_time: datetime
    end_time: datetime
    duration: float
    user_id: Optional[int] = None
    avg_heartrate: Optional[int] = None
    load: Optional[int] = None
    state: EntryState = field(default_factory=New)

    @property
    def activity_id(self) -> Optional[int]:
        """Generated id, only available once stored"""
        if isinstance(self.state, Stored):
            return self.state.activity_id
        return None

    @property
    def is_stored(self) -> bool:
        return self.state.is_stored

    def mark_stored(self, activity_id: int, user_id: int) -> "Activity":
        """Return a copy of this activity in the Stored state"""
        if self.is_stored:
            raise ValueError(f"activity already stored with id {self.activity_id}")
        return replace(self, user_id=user_id, state=Stored(activity_id=activity_id))
