"""
Database connection utilities for Toedi.

Engines are created from an explicit DatabaseConfig. The pipeline receives
its session factory as an argument; only the Celery worker keeps a
process-wide engine, see configure_engine.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from ..config import DatabaseConfig
from ..exceptions import configuration_error
from . import tables  # noqa: F401  registers the table metadata

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

_engine: Optional[Engine] = None


def create_engine_from_config(config: DatabaseConfig) -> Engine:
    """Create an engine for the configured database URL."""
    url = config.url
    kwargs = {
        'echo': config.echo,
        'pool_pre_ping': config.pool_pre_ping,
    }
    if url.startswith("sqlite"):
        kwargs['connect_args'] = {'check_same_thread': False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs['poolclass'] = StaticPool
    else:
        kwargs['pool_recycle'] = 3600

    engine = create_engine(url, **kwargs)
    logger.info("Created database engine for %s", engine.url.render_as_string(hide_password=True))
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    SQLModel.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Session factory whose sessions keep loaded values usable after commit."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def configure_engine(config: DatabaseConfig) -> Engine:
    """
    Initialize the process-wide engine used by worker tasks.

    Calling it again with the same URL returns the existing engine; a
    different URL raises ConfigurationError until dispose_engine() runs.
    """
    global _engine

    if _engine is not None:
        if _engine.url != make_url(config.url):
            raise configuration_error(
                "database engine already configured with a different url",
                configured=_engine.url.render_as_string(hide_password=True),
            )
        return _engine

    _engine = create_engine_from_config(config)
    return _engine


def dispose_engine() -> None:
    """Dispose of the process-wide engine, allowing configure_engine() to run again."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
