"""
Toedi Utils Package
"""
from .logging import (
    build_logging_config,
    setup_logging,
    setup_structlog,
    get_task_logger,
)

__all__ = [
    'build_logging_config',
    'setup_logging',
    'setup_structlog',
    'get_task_logger',
]
