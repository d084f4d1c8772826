"""Database session factory."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from common.config import DatabaseConfig
from common.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


def build_database_url(config: DatabaseConfig) -> URL:
    """Build the SQLAlchemy URL for an Oracle SID connection."""
    return URL.create(
        config.driver,
        username=config.user,
        password=config.password or None,
        host=config.host,
        port=config.port,
        database=config.sid,
    )


def create_db_engine(config: DatabaseConfig) -> Engine:
    """Create an engine holding a single connection for the whole run."""
    return create_engine(build_database_url(config), pool_size=1, max_overflow=0)


@contextmanager
def get_session(config: DatabaseConfig) -> Iterator[Session]:
    """Open a session and its connection, closing both on exit.

    Raises:
        DatabaseConnectionError: If the engine cannot be created or the
            connection cannot be opened.
    """
    logger.info(
        "Connecting to database... (User: %s, Host: %s, Port: %d)",
        config.user,
        config.host,
        config.port,
    )
    try:
        engine = create_db_engine(config)
    except SQLAlchemyError as exc:
        raise DatabaseConnectionError(f"Unable to create database engine: {exc}") from exc

    session = sessionmaker(bind=engine)()
    try:
        try:
            session.connection()
        except SQLAlchemyError as exc:
            raise DatabaseConnectionError(f"Unable to connect to database: {exc}") from exc
        logger.info("Connection to database has been opened")
        yield session
    finally:
        session.close()
        engine.dispose()
        logger.info("Connection to database has been closed")
