"""
Celery tasks for Toedi.

Tasks are not retried: a failed transaction leaves nothing behind and the
caller resubmits the upload or the preferences update.
"""

import base64
import binascii
from typing import Any, Dict

from celery import shared_task

from .celery_app import settings_for
from .exceptions import parse_error
from .pipeline import FitIngestionPipeline
from .storage import SessionFactory, configure_engine, create_session_factory, update_user_preferences
from .utils.logging import get_task_logger


def _session_factory(task) -> SessionFactory:
    settings = settings_for(task.app)
    return create_session_factory(configure_engine(settings.database))


@shared_task(bind=True, name="toedi.tasks.ingest_fit_file", max_retries=0)
def ingest_fit_file(self, data_b64: str, user_id: int) -> Dict[str, Any]:
    """
    Ingest one uploaded FIT file.

    Args:
        data_b64: Base64 encoded file content
        user_id: Owner of the activity

    Returns:
        ProcessingResult as a dict
    """
    log = get_task_logger(self.name, self.request.id, user_id=user_id)
    settings = settings_for(self.app)
    pipeline = FitIngestionPipeline(settings, _session_factory(self))

    try:
        data = base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        result = pipeline.failed(parse_error("Failed to read fit file", reason=str(e)), user_id)
        return result.to_dict()

    log.info("Ingesting upload", size=len(data))
    result = pipeline.process(data, user_id)
    return result.to_dict()


@shared_task(bind=True, name="toedi.tasks.update_preferences", max_retries=0)
def update_preferences(self, user_id: int, aerobic: int, anaerobic: int,
                       max_heartrate: int) -> Dict[str, Any]:
    """
    Store new heart rate thresholds for a user.

    Raises:
        FitError: the thresholds could not be fitted; stored preferences are unchanged
    """
    log = get_task_logger(self.name, self.request.id, user_id=user_id)
    preferences = update_user_preferences(
        _session_factory(self), user_id, aerobic, anaerobic, max_heartrate
    )
    log.info("Preferences updated", tau=preferences.tau, c=preferences.c)
    return {
        'user_id': preferences.user_id,
        'aerobic_threshold': preferences.aerobic_threshold,
        'anaerobic_threshold': preferences.anaerobic_threshold,
        'max_heartrate': preferences.max_heartrate,
        'tau': preferences.tau,
        'c': preferences.c,
        'start_time': preferences.start_time.isoformat() if preferences.start_time else None,
    }
