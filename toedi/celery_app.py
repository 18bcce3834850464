"""
Celery application setup for Toedi.

The worker runs one task per uploaded file and one per preferences update.
The application is built from an explicit Settings object; the settings are
kept on the app configuration so tasks can reach them through ``self.app``.
"""

import logging

from celery import Celery
from celery.signals import (
    task_prerun,
    task_postrun,
    task_failure,
    worker_ready,
    worker_shutdown,
)

from .config import Settings
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

SETTINGS_KEY = "toedi_settings"


def create_celery_app(settings: Settings, configure_logging: bool = True) -> Celery:
    """
    Create and configure the Celery application.

    Args:
        settings: Application settings
        configure_logging: Install the toedi logging setup for this process

    Returns:
        Configured Celery application instance
    """
    app = Celery("toedi", include=["toedi.tasks"])
    app.conf.update(settings.get_celery_config())
    app.conf[SETTINGS_KEY] = settings

    if configure_logging:
        setup_logging(settings.logging)

    _register_signal_handlers()

    logger.info("Celery application initialized (eager=%s)", settings.celery.task_always_eager)
    return app


def settings_for(app: Celery) -> Settings:
    """Settings the given app was created with."""
    settings = app.conf.get(SETTINGS_KEY)
    if settings is None:
        raise RuntimeError("Celery app was not created with create_celery_app()")
    return settings


def _task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **kwds):
    logger.info("Task %s [%s] started", task.name, task_id)


def _task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None,
                          retval=None, state=None, **kwds):
    logger.info("Task %s [%s] finished with state %s", task.name, task_id, state)


def _task_failure_handler(sender=None, task_id=None, exception=None, traceback=None, einfo=None, **kwds):
    logger.error("Task %s [%s] failed: %s", sender.name, task_id, exception)


def _worker_ready_handler(sender=None, **kwds):
    logger.info("Worker %s is ready", sender.hostname)


def _worker_shutdown_handler(sender=None, **kwds):
    logger.info("Worker %s is shutting down", sender.hostname)


def _register_signal_handlers() -> None:
    """Connect the monitoring handlers once per process."""
    task_prerun.connect(_task_prerun_handler, dispatch_uid="toedi.task_prerun")
    task_postrun.connect(_task_postrun_handler, dispatch_uid="toedi.task_postrun")
    task_failure.connect(_task_failure_handler, dispatch_uid="toedi.task_failure")
    worker_ready.connect(_worker_ready_handler, dispatch_uid="toedi.worker_ready")
    worker_shutdown.connect(_worker_shutdown_handler, dispatch_uid="toedi.worker_shutdown")
