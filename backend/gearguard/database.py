"""
Database configuration and session management for GearGuard.
Uses MySQL in production and SQLite for local development and tests.

The engine is built by the application lifespan and kept on ``app.state``;
nothing here creates a connection pool at import time.
"""

import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from gearguard.config import Settings

logger = logging.getLogger(__name__)


# Base class for models
class Base(DeclarativeBase):
    pass


def create_db_engine(settings: Settings) -> Engine:
    """Build the connection pool described by the settings."""
    url = settings.database_url

    if url.startswith("sqlite"):
        # SQLite requires a specific connection argument
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DB_ECHO,
        )

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=0,            # Hard cap on concurrent connections
        pool_pre_ping=True,        # Safely recycle DB connections
        pool_recycle=3600,
        echo=settings.DB_ECHO,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.
    Ensures proper cleanup after request.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine):
    """
    Create all defined tables.
    Used in development and tests; production schemas come from migrations.
    """
    import gearguard.models  # noqa: F401  Import all ORM models
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
