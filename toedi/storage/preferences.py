"""
User preference history.

Preferences are never edited in place. An update closes the currently open
row and appends a new one, so every activity can be evaluated with the
thresholds that were valid when it was recorded.
"""

from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy import and_, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..analytics import curve_fit
from ..exceptions import insert_error, store_error
from ..models import UserPreferences
from .connection import SessionFactory
from .tables import UserPreferencesRow

logger = structlog.get_logger(__name__)


def _to_model(row: UserPreferencesRow) -> UserPreferences:
    return UserPreferences(
        user_id=row.user_id,
        start_time=row.start_time,
        end_time=row.end_time,
        aerobic_threshold=row.aerobic_threshold,
        anaerobic_threshold=row.anaerobic_threshold,
        max_heartrate=row.max_heartrate,
        tau=row.tau,
        c=row.c,
    )


def get_user_preferences(db: Session, user_id: int, at: datetime) -> UserPreferences:
    """
    Preferences of a user valid at the given instant.

    Picks the most recent row whose [start_time, end_time) window contains
    ``at``. Users without a matching row get the defaults.

    Raises:
        StoreError: the store could not be queried
    """
    statement = (
        select(UserPreferencesRow)
        .where(UserPreferencesRow.user_id == user_id)
        .where(or_(UserPreferencesRow.start_time.is_(None), UserPreferencesRow.start_time <= at))
        .where(or_(UserPreferencesRow.end_time.is_(None), UserPreferencesRow.end_time > at))
        .order_by(UserPreferencesRow.start_time.desc().nulls_last(), UserPreferencesRow.id.desc())
        .limit(1)
    )
    try:
        row = db.exec(statement).first()
    except SQLAlchemyError as e:
        logger.error("Failed to read preferences", user_id=user_id, error=str(e))
        raise store_error(f"Couldn't read user preferences: {e}", user_id=user_id) from e
    if row is None:
        logger.debug("No stored preferences, using defaults", user_id=user_id)
        return UserPreferences.default(user_id)
    return _to_model(row)


def preference_history(db: Session, user_id: int) -> List[UserPreferences]:
    """All stored preference rows of a user in insertion order."""
    statement = (
        select(UserPreferencesRow)
        .where(UserPreferencesRow.user_id == user_id)
        .order_by(UserPreferencesRow.id)
    )
    try:
        return [_to_model(row) for row in db.exec(statement)]
    except SQLAlchemyError as e:
        raise store_error(f"Couldn't read preference history: {e}", user_id=user_id) from e


def update_user_preferences(session_factory: SessionFactory, user_id: int, aerobic: int,
                            anaerobic: int, max_heartrate: int,
                            now: Optional[datetime] = None) -> UserPreferences:
    """
    Store new thresholds for a user together with a freshly fitted curve.

    The curve is fitted before anything is written; a FitError leaves the
    history untouched. If an open row exists it is closed at ``now`` and the
    new row starts at ``now``, both in one transaction. A user's first row
    is valid for all time.

    Concurrent updates for the same user are last-write-wins.

    Raises:
        FitError: the thresholds could not be fitted
        InsertError: the transaction failed
    """
    tau, c = curve_fit(aerobic, anaerobic, max_heartrate)
    now = now or datetime.now(timezone.utc)

    db = session_factory()
    try:
        with db.begin():
            open_row = db.exec(
                select(UserPreferencesRow.id)
                .where(UserPreferencesRow.user_id == user_id)
                .where(UserPreferencesRow.end_time.is_(None))
                .order_by(UserPreferencesRow.id.desc())
                .limit(1)
            ).first()

            start_time = None
            if open_row is not None:
                start_time = now
                db.connection().execute(
                    update(UserPreferencesRow)
                    .where(and_(UserPreferencesRow.user_id == user_id,
                                UserPreferencesRow.end_time.is_(None)))
                    .values(end_time=now)
                )

            row = UserPreferencesRow(
                user_id=user_id,
                start_time=start_time,
                end_time=None,
                aerobic_threshold=aerobic,
                anaerobic_threshold=anaerobic,
                max_heartrate=max_heartrate,
                tau=tau,
                c=c,
            )
            db.add(row)
            db.flush()
            stored = _to_model(row)
    except SQLAlchemyError as e:
        logger.error("Failed to update preferences", user_id=user_id, error=str(e))
        raise insert_error(f"Couldn't update user preferences: {e}", user_id=user_id) from e
    finally:
        db.close()

    logger.info("Updated user preferences", user_id=user_id, aerobic=aerobic,
                anaerobic=anaerobic, max_heartrate=max_heartrate, tau=tau, c=c)
    return stored
