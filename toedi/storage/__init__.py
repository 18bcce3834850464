"""
Relational storage for activities, derived samples and user preferences
"""
from .connection import (
    SessionFactory, create_engine_from_config, create_session_factory, init_db,
    configure_engine, dispose_engine,
)
from .tables import (
    ActivityRow, SessionRow, LapRow, RecordRow, SlopeSpeedRow, UserPreferencesRow,
)
from .repository import (
    IngestionUnit, PersistenceCoordinator, count_rows, slope_speed_summary,
    insert_activity, insert_records, insert_sessions, insert_laps, insert_slope_speeds,
)
from .preferences import get_user_preferences, preference_history, update_user_preferences

__all__ = [
    'SessionFactory', 'create_engine_from_config', 'create_session_factory', 'init_db',
    'configure_engine', 'dispose_engine',
    'ActivityRow', 'SessionRow', 'LapRow', 'RecordRow', 'SlopeSpeedRow', 'UserPreferencesRow',
    'IngestionUnit', 'PersistenceCoordinator', 'count_rows', 'slope_speed_summary',
    'insert_activity', 'insert_records', 'insert_sessions', 'insert_laps', 'insert_slope_speeds',
    'get_user_preferences', 'preference_history', 'update_user_preferences',
]
