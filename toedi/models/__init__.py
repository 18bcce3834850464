"""
Domain models for activities and their derived data
"""
from .base import RecordKind, New, Stored, EntryState
from .activity import Activity
from .session import SegmentSummary, Session, Lap
from .record import Record, int_to_coord
from .slope_speed import HeartrateZone, SlopeSpeed
from .user_preferences import UserPreferences

__all__ = [
    'RecordKind', 'New', 'Stored', 'EntryState',
    'Activity',
    'SegmentSummary', 'Session', 'Lap',
    'Record', 'int_to_coord',
    'HeartrateZone', 'SlopeSpeed',
    'UserPreferences',
]
