"""
Shared model primitives: record kinds and the New/Stored entry state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Union


class RecordKind(Enum):
    """Decoded message kinds the ingestion pipeline turns into typed records"""
    ACTIVITY = "activity"
    SESSION = "session"
    LAP = "lap"
    RECORD = "record"

    @classmethod
    def from_message_name(cls, name: str) -> "RecordKind":
        """Map a decoder message name onto a kind, raising ValueError for anything else"""
        return cls(str(name).lower())


@dataclass(frozen=True)
class New:
    """Entry that has not been written to the store yet"""

    @property
    def is_stored(self) -> bool:
        return False


@dataclass(frozen=True)
class Stored:
    """Entry that was written and received its activity id"""
    activity_id: int

    @property
    def is_stored(self) -> bool:
        return True


# Invariant: an id exists if and only if the entry is Stored
EntryState = Union[New, Stored]
