"""
Logging configuration and utilities for Toedi.

structlog events and plain stdlib records (celery, sqlalchemy) go through the
same handlers: stdlib logging owns handlers, levels and the optional rotating
file, structlog's ProcessorFormatter renders every record either for the
console or as one JSON object per line.

Logs go to stderr; stdout is left to command output such as ``toedi ingest``.
"""

import logging
import logging.config
from typing import Any, Dict, List, Optional

import structlog

from ..config import LoggingConfig

# Noisy third-party loggers and the level they are capped at
_LIBRARY_LEVELS = {
    'celery': 'WARNING',
    'kombu': 'WARNING',
    'sqlalchemy.engine': 'WARNING',
}


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(renderer: Any) -> Dict[str, Any]:
    return {
        '()': structlog.stdlib.ProcessorFormatter,
        'foreign_pre_chain': _shared_processors(),
        'processors': [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    }


def build_logging_config(config: LoggingConfig, console_colors: bool = True) -> Dict[str, Any]:
    """dictConfig mapping for the given logging settings."""
    level = config.level.upper()
    handlers = ['console']

    dict_config: Dict[str, Any] = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'console': _formatter(structlog.dev.ConsoleRenderer(colors=console_colors)),
            'json': _formatter(structlog.processors.JSONRenderer()),
            'plain': _formatter(structlog.dev.ConsoleRenderer(colors=False)),
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': config.format,
                'stream': 'ext://sys.stderr',
            },
        },
        'loggers': {},
    }

    if config.file:
        dict_config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': level,
            # JSON stays JSON on disk, console output drops the color codes
            'formatter': 'json' if config.format == 'json' else 'plain',
            'filename': config.file,
            'maxBytes': 10_000_000,
            'backupCount': 5,
        }
        handlers.append('file')

    dict_config['loggers']['toedi'] = {'level': level, 'handlers': handlers, 'propagate': False}
    for name, library_level in _LIBRARY_LEVELS.items():
        dict_config['loggers'][name] = {'level': library_level, 'handlers': handlers, 'propagate': False}
    dict_config['root'] = {'level': 'WARNING', 'handlers': handlers}
    return dict_config


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure stdlib logging and structlog for this process.

    Args:
        config: Logging section of the application settings
    """
    config = config or LoggingConfig()
    logging.config.dictConfig(build_logging_config(config))
    setup_structlog()


def setup_structlog() -> None:
    """Route structlog events into stdlib logging."""
    structlog.configure(
        processors=[structlog.stdlib.filter_by_level] + _shared_processors() + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_task_logger(task_name: str, task_id: Optional[str] = None, **context) -> structlog.stdlib.BoundLogger:
    """
    Structured logger bound to a Celery task.

    Args:
        task_name: Name of the task
        task_id: Celery request id, if known
        **context: Additional key/value pairs bound to every event
    """
    logger = structlog.get_logger(task_name)
    if task_id:
        context['task_id'] = task_id
    return logger.bind(**context) if context else logger
