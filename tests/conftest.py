"""
Pytest configuration and fixtures for Toedi tests.

Every test gets a fresh in-memory SQLite database. Decoded FIT messages are
built as plain (name, field bag) pairs so no binary file is needed.
"""

from datetime import datetime, timedelta, timezone

import pytest

from toedi.config import CeleryConfig, DatabaseConfig, IngestionConfig, Settings
from toedi.models import UserPreferences
from toedi.storage import create_engine_from_config, create_session_factory, init_db

START = datetime(2023, 6, 1, 8, 0, 0, tzinfo=timezone.utc)
SEMICIRCLE_DEGREE = 2 ** 32 / 360.0


@pytest.fixture
def settings():
    """Settings for an in-memory database and an eager Celery app."""
    return Settings(
        environment="test",
        database=DatabaseConfig(url="sqlite://"),
        ingestion=IngestionConfig(slope_window_records=10),
        celery=CeleryConfig(
            broker_url="memory://",
            result_backend="cache+memory://",
            task_always_eager=True,
        ),
    )


@pytest.fixture
def engine(settings):
    """Fresh in-memory database with all tables created."""
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    """Session for assertions against the store."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def preferences():
    return UserPreferences.default(user_id=1)


def activity_message(start=START, duration=600.0, **extra):
    fields = {'timestamp': start, 'total_timer_time': duration}
    fields.update(extra)
    return ('activity', fields)


def session_message(start=START, end=None, sport='running', **extra):
    fields = {
        'start_time': start,
        'timestamp': end or start + timedelta(minutes=10),
        'sport': sport,
        'total_distance': 2000.0,
        'avg_heart_rate': 150,
        'max_heart_rate': 175,
    }
    fields.update(extra)
    return ('session', fields)


def lap_message(start=START, end=None, **extra):
    fields = {
        'start_time': start,
        'timestamp': end or start + timedelta(minutes=5),
        'total_distance': 1000.0,
    }
    fields.update(extra)
    return ('lap', fields)


def record_message(offset=0, heart_rate=150, distance=None, altitude=100.0, speed=3.0, **extra):
    fields = {
        'timestamp': START + timedelta(seconds=offset),
        'heart_rate': heart_rate,
        'enhanced_distance': float(offset * 3) if distance is None else distance,
        'enhanced_altitude': altitude,
        'enhanced_speed': speed,
        'position_lat': int(59.33 * SEMICIRCLE_DEGREE),
        'position_long': int(18.06 * SEMICIRCLE_DEGREE),
    }
    fields.update(extra)
    return ('record', fields)


def activity_messages(records=20, **activity_fields):
    """A complete, well formed activity with one session, two laps and uphill records."""
    messages = [
        ('file_id', {'manufacturer': 'garmin', 'type': 'activity'}),
        session_message(),
        lap_message(),
        lap_message(start=START + timedelta(minutes=5)),
    ]
    messages.extend(
        record_message(offset=i, altitude=100.0 + i * 0.3)
        for i in range(records)
    )
    messages.append(activity_message(**activity_fields))
    return messages
