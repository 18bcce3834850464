"""
Tests for the Celery tasks, run eagerly.
"""

import base64
from unittest.mock import patch

import pytest

from toedi.celery_app import create_celery_app, settings_for
from toedi.exceptions import ConfigurationError, FitError
from toedi.models import UserPreferences
from toedi.storage import (
    ActivityRow, configure_engine, count_rows, create_session_factory, dispose_engine,
    get_user_preferences, init_db,
)
from toedi.tasks import ingest_fit_file, update_preferences

from conftest import START, activity_messages


@pytest.fixture
def celery_app(settings):
    return create_celery_app(settings, configure_logging=False)


@pytest.fixture
def worker_db(settings):
    """The process-wide engine the tasks use, with tables created."""
    engine = configure_engine(settings.database)
    init_db(engine)
    session = create_session_factory(engine)()
    yield session
    session.close()
    dispose_engine()


class TestCeleryApp:
    """Test create_celery_app."""

    def test_configuration(self, celery_app, settings):
        assert celery_app.main == "toedi"
        assert celery_app.conf.task_always_eager is True
        assert celery_app.conf.task_serializer == "json"
        assert settings_for(celery_app) is settings

    def test_tasks_are_registered(self, celery_app):
        assert "toedi.tasks.ingest_fit_file" in celery_app.tasks
        assert "toedi.tasks.update_preferences" in celery_app.tasks


class TestEngineConfiguration:
    """Test the process-wide engine contract."""

    def test_same_url_returns_same_engine(self, settings, worker_db):
        engine = worker_db.get_bind()
        assert configure_engine(settings.database) is engine

    def test_dispose_allows_reconfiguration(self, settings):
        configure_engine(settings.database)
        dispose_engine()

        other = settings.database.model_copy(update={'url': "sqlite:///other.db"})
        try:
            assert str(configure_engine(other).url) == "sqlite:///other.db"
        finally:
            dispose_engine()

    def test_different_url_is_rejected(self, settings, worker_db):
        other = settings.database.model_copy(update={'url': "sqlite:///other.db"})
        with pytest.raises(ConfigurationError):
            configure_engine(other)


class TestIngestFitFile:
    """Test ingest_fit_file."""

    def test_ingests_upload(self, celery_app, worker_db):
        payload = base64.b64encode(b"fit bytes").decode()

        with patch("toedi.pipeline.decode_fit_bytes", return_value=activity_messages()):
            result = ingest_fit_file.delay(payload, 11).get()

        assert result['status'] == 'completed'
        assert result['activity_id'] is not None
        assert count_rows(worker_db, ActivityRow) == 1

    def test_failed_upload_returns_failed_result(self, celery_app, worker_db):
        payload = base64.b64encode(b"garbage").decode()

        result = ingest_fit_file.delay(payload, 11).get()

        assert result['status'] == 'failed'
        assert result['activity_id'] is None
        assert "Failed to read fit file" in result['message']
        assert count_rows(worker_db, ActivityRow) == 0

    def test_invalid_base64(self, celery_app, worker_db):
        result = ingest_fit_file.delay("not base64!", 11).get()

        assert result['status'] == 'failed'
        assert "Failed to read fit file" in result['message']


class TestUpdatePreferences:
    """Test update_preferences."""

    def test_stores_preferences(self, celery_app, worker_db):
        result = update_preferences.delay(11, 155, 172, 183).get()

        assert result['user_id'] == 11
        assert result['tau'] == pytest.approx(0.0809749, abs=1e-6)
        assert result['start_time'] is None
        assert get_user_preferences(worker_db, 11, START).aerobic_threshold == 155

    def test_fit_error_propagates(self, celery_app, worker_db):
        with pytest.raises(FitError):
            update_preferences.delay(11, 0, 155, 183).get()

        assert get_user_preferences(worker_db, 11, START) == UserPreferences.default(11)
