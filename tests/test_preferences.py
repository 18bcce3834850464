"""
Tests for the time-scoped user preference history.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from toedi.exceptions import FitError, StoreError, fit_error
from toedi.models import UserPreferences
from toedi.storage import (
    UserPreferencesRow, count_rows, get_user_preferences, preference_history, update_user_preferences,
)

T0 = datetime(2023, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2023, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_fit():
    with patch("toedi.storage.preferences.curve_fit", return_value=(0.07, 1e-5)) as fit:
        yield fit


class TestGetUserPreferences:
    """Test get_user_preferences."""

    def test_defaults_without_rows(self, db):
        prefs = get_user_preferences(db, 5, T0)

        assert prefs == UserPreferences.default(5)
        assert prefs.aerobic_threshold == 155
        assert prefs.anaerobic_threshold == 172
        assert prefs.max_heartrate == 183
        assert prefs.tau == 0.0809749
        assert prefs.c == 0.000002370473

    def test_first_row_is_valid_for_all_time(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T1)

        for at in (T0, T1, T1 + timedelta(days=365)):
            prefs = get_user_preferences(db, 5, at)
            assert prefs.aerobic_threshold == 140
            assert prefs.tau == 0.07

    def test_other_users_are_not_affected(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T1)
        assert get_user_preferences(db, 6, T1) == UserPreferences.default(6)

    def test_lookup_respects_validity_windows(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)
        update_user_preferences(session_factory, 5, 150, 170, 190, now=T1)

        assert get_user_preferences(db, 5, T1 - timedelta(seconds=1)).aerobic_threshold == 140
        assert get_user_preferences(db, 5, T1).aerobic_threshold == 150
        assert get_user_preferences(db, 5, T1 + timedelta(days=1)).aerobic_threshold == 150

    def test_lookup_with_naive_utc_instant(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)
        update_user_preferences(session_factory, 5, 150, 170, 190, now=T1)

        naive = T1.replace(tzinfo=None)
        assert get_user_preferences(db, 5, naive - timedelta(seconds=1)).aerobic_threshold == 140
        assert get_user_preferences(db, 5, naive).aerobic_threshold == 150

    def test_unreadable_store(self, engine, db):
        UserPreferencesRow.__table__.drop(engine)

        with pytest.raises(StoreError, match="Couldn't read user preferences"):
            get_user_preferences(db, 5, T0)


class TestUpdateUserPreferences:
    """Test update_user_preferences."""

    def test_first_update_inserts_unbounded_row(self, session_factory, db, fixed_fit):
        stored = update_user_preferences(session_factory, 5, 140, 160, 190, now=T1)

        assert stored.start_time is None
        assert stored.end_time is None
        assert stored.tau == 0.07
        assert stored.c == 1e-5
        fixed_fit.assert_called_once_with(140, 160, 190)

    def test_second_update_closes_open_row(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)
        stored = update_user_preferences(session_factory, 5, 150, 170, 190, now=T1)

        history = preference_history(db, 5)
        assert len(history) == 2
        assert history[0].start_time is None
        assert history[0].end_time == T1
        assert history[1].start_time == T1
        assert history[1].end_time is None
        assert stored == history[1]

    def test_window_bounds_are_stored_as_utc(self, session_factory, db, fixed_fit):
        helsinki = timezone(timedelta(hours=3))
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)
        update_user_preferences(session_factory, 5, 150, 170, 190, now=T1.astimezone(helsinki))

        history = preference_history(db, 5)
        assert history[0].end_time == T1
        assert history[0].end_time.tzinfo is timezone.utc
        assert history[1].start_time == T1
        assert history[1].start_time.tzinfo is timezone.utc

    def test_default_now_is_aware_utc(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)
        stored = update_user_preferences(session_factory, 5, 150, 170, 190)

        assert stored.start_time.tzinfo is not None
        assert stored.start_time.utcoffset() == timedelta(0)
        assert preference_history(db, 5)[0].end_time == stored.start_time

    def test_exactly_one_open_row(self, session_factory, db, fixed_fit):
        for i, now in enumerate((T0, T1, T1 + timedelta(days=1))):
            update_user_preferences(session_factory, 5, 140 + i, 160 + i, 190, now=now)

        open_rows = [p for p in preference_history(db, 5) if p.end_time is None]
        assert len(open_rows) == 1
        assert open_rows[0].aerobic_threshold == 142

    def test_fit_error_leaves_store_untouched(self, session_factory, db, fixed_fit):
        update_user_preferences(session_factory, 5, 140, 160, 190, now=T0)

        fixed_fit.side_effect = fit_error("curve fit did not converge")
        with pytest.raises(FitError):
            update_user_preferences(session_factory, 5, 150, 170, 190, now=T1)

        history = preference_history(db, 5)
        assert len(history) == 1
        assert history[0].end_time is None
        assert get_user_preferences(db, 5, T1).aerobic_threshold == 140

    def test_invalid_thresholds_are_rejected(self, session_factory, db):
        with pytest.raises(FitError):
            update_user_preferences(session_factory, 5, 0, 160, 190, now=T0)
        assert count_rows(db, UserPreferencesRow) == 0

    def test_real_fit_is_stored(self, session_factory, db):
        stored = update_user_preferences(session_factory, 5, 155, 172, 183, now=T0)

        assert stored.tau == pytest.approx(0.0809749, abs=1e-6)
        assert get_user_preferences(db, 5, T0).tau == stored.tau
