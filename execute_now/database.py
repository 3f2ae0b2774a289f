"""
Execute Now - Database Engine.

SQLAlchemy engine and session factory for the request log.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import PersistenceConfig
from .models import Base


logger = logging.getLogger(__name__)


def create_engine_from_config(config: Optional[PersistenceConfig] = None) -> Engine:
    """
    Create SQLAlchemy engine.

    In-memory SQLite shares one connection so the schema survives
    across sessions.
    """
    config = config or PersistenceConfig()
    url = config.database_url

    if url.startswith("sqlite") and ":memory:" in url:
        engine = create_engine(
            url,
            echo=config.echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, echo=config.echo, pool_pre_ping=True)

    logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
    return engine


def init_database(engine: Engine) -> None:
    """Create all tables."""
    Base.metadata.create_all(engine)
    logger.info("Execute now tables created")


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Session context manager.

    Closes the session on exit; commits are done by the repository.
    """
    session = factory()
    try:
        yield session
    finally:
        session.close()
