"""
Tests for the end-to-end ingestion pipeline.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlmodel import select

from toedi.exceptions import insert_error, parse_error
from toedi.pipeline import FitIngestionPipeline
from toedi.processors import ProcessingStatus
from toedi.storage import (
    ActivityRow, LapRow, RecordRow, SessionRow, SlopeSpeedRow, UserPreferencesRow, count_rows,
    update_user_preferences,
)

from conftest import START, activity_message, activity_messages, record_message


@pytest.fixture
def pipeline(settings, session_factory):
    return FitIngestionPipeline(settings, session_factory)


class TestProcessMessages:
    """Test FitIngestionPipeline.process_messages."""

    def test_success(self, pipeline, db):
        result = pipeline.process_messages(activity_messages(records=20), user_id=3)

        assert result.status is ProcessingStatus.COMPLETED
        assert result.succeeded
        assert result.activity_id is not None
        assert result.record_counts == {'sessions': 1, 'laps': 2, 'records': 20, 'slope_speed': 2}
        assert result.processing_time is not None

        row = db.exec(select(ActivityRow)).one()
        assert row.id == result.activity_id
        assert row.user_id == 3
        assert row.avg_heartrate == 150
        assert row.load is not None
        assert count_rows(db, RecordRow, row.id) == 20
        assert count_rows(db, SessionRow, row.id) == 1
        assert count_rows(db, LapRow, row.id) == 2

    def test_slope_samples_use_windows(self, pipeline, db):
        pipeline.process_messages(activity_messages(records=20), user_id=3)

        samples = db.exec(select(SlopeSpeedRow).order_by(SlopeSpeedRow.start_time)).all()
        assert len(samples) == 2
        assert all(s.user_id == 3 for s in samples)
        assert all(s.sport == 'running' for s in samples)
        assert samples[0].start_time == START
        assert samples[0].slope == 0.1

    def test_no_activity_writes_nothing(self, pipeline, db):
        result = pipeline.process_messages([record_message(offset=i) for i in range(5)], user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert result.activity_id is None
        assert "No activity found" in result.message
        assert count_rows(db, ActivityRow) == 0
        assert count_rows(db, RecordRow) == 0

    def test_two_activities_write_nothing(self, pipeline, db):
        result = pipeline.process_messages(activity_messages() + [activity_message()], user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert "more than one activity" in result.message
        assert count_rows(db, ActivityRow) == 0

    def test_skipped_records_are_reported(self, pipeline):
        messages = activity_messages(records=5)
        messages.insert(0, ('record', {'heart_rate': 100}))

        result = pipeline.process_messages(messages, user_id=3)

        assert result.succeeded
        assert result.skipped_records == 1
        assert result.record_counts['records'] == 5
        assert len(result.warnings) == 1

    def test_insert_failure_is_reported(self, pipeline, db):
        with patch("toedi.storage.repository.insert_records",
                   side_effect=insert_error("Couldn't insert records: locked")):
            result = pipeline.process_messages(activity_messages(), user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert "Couldn't insert records" in result.message
        assert count_rows(db, ActivityRow) == 0

    def test_unreadable_preferences_are_reported(self, pipeline, engine, db):
        UserPreferencesRow.__table__.drop(engine)

        result = pipeline.process_messages(activity_messages(), user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert result.activity_id is None
        assert "Couldn't read user preferences" in result.message
        assert count_rows(db, ActivityRow) == 0

    def test_naive_decoder_timestamps_are_stored_as_utc(self, pipeline, db):
        messages = [
            (name, {key: value.replace(tzinfo=None) if isinstance(value, datetime) else value
                    for key, value in fields.items()})
            for name, fields in activity_messages(records=20)
        ]

        result = pipeline.process_messages(messages, user_id=3)

        assert result.succeeded
        row = db.get(ActivityRow, result.activity_id)
        assert row.start_time == START
        assert row.start_time.tzinfo is timezone.utc
        sample = db.exec(select(SlopeSpeedRow).order_by(SlopeSpeedRow.start_time)).first()
        assert sample.start_time == START
        assert sample.sport == 'running'

    def test_load_uses_preferences_valid_at_start(self, settings, session_factory, db):
        default_result = FitIngestionPipeline(settings, session_factory).process_messages(
            activity_messages(records=20), user_id=3)
        with patch("toedi.storage.preferences.curve_fit", return_value=(0.1, 1e-5)):
            update_user_preferences(session_factory, 4, 140, 160, 190)
        custom_result = FitIngestionPipeline(settings, session_factory).process_messages(
            activity_messages(records=20), user_id=4)

        default_row = db.get(ActivityRow, default_result.activity_id)
        custom_row = db.get(ActivityRow, custom_result.activity_id)
        assert custom_row.load > default_row.load

    def test_heart_rate_free_activity(self, pipeline, db):
        messages = [record_message(offset=i, heart_rate=None) for i in range(5)]
        messages.append(activity_message())

        result = pipeline.process_messages(messages, user_id=3)

        assert result.succeeded
        row = db.get(ActivityRow, result.activity_id)
        assert row.avg_heartrate is None
        assert row.load is None
        assert result.record_counts['slope_speed'] == 0


class TestProcess:
    """Test FitIngestionPipeline.process with a mocked decoder."""

    def test_decoded_messages_are_ingested(self, pipeline):
        with patch("toedi.pipeline.decode_fit_bytes", return_value=activity_messages()) as decode:
            result = pipeline.process(b"fit bytes", user_id=3)

        decode.assert_called_once_with(b"fit bytes")
        assert result.succeeded

    def test_unreadable_file(self, pipeline, db):
        with patch("toedi.pipeline.decode_fit_bytes",
                   side_effect=parse_error("Failed to read fit file")):
            result = pipeline.process(b"garbage", user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert result.message == "Failed to read fit file"
        assert count_rows(db, ActivityRow) == 0

    def test_real_decoder_rejects_garbage(self, pipeline):
        result = pipeline.process(b"not a fit file at all", user_id=3)

        assert result.status is ProcessingStatus.FAILED
        assert "Failed to read fit file" in result.message
