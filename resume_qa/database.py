"""
Database configuration and session management.

This module sets up the SQLAlchemy engine and session factory used by the
local resume store. Any SQLAlchemy URL works; SQLite is the default.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings


def _build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for the configured URL.

    - pool_pre_ping: Verify connections are alive before using them
    - SQLite connections may be shared across the threadpool
    - in-memory SQLite keeps a single connection so every session sees one database
    """
    kwargs: dict = {"pool_pre_ping": True, "echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = 5
        kwargs["max_overflow"] = 10
    return create_engine(database_url, **kwargs)


_settings = get_settings()
engine = _build_engine(_settings.database_url, echo=_settings.sql_debug)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the resume table if it does not exist yet."""
    # Import models to ensure they are registered with Base
    from . import models_db  # noqa: F401

    Base.metadata.create_all(bind=engine)
