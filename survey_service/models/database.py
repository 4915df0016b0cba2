"""Database setup and session management using SQLAlchemy 2.0.

This module configures the database engine, session factory, and base class
for all ORM models using modern SQLAlchemy 2.0 patterns.

When DATABASE_URL is not set no engine is created; ``get_db`` then raises
``StoreNotConfiguredError`` and the routes show a static configuration
message instead.
"""

from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from survey_service.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models.

    Uses SQLAlchemy 2.0's DeclarativeBase for modern type-safe models.
    All models should inherit from this class.
    """
    pass


class StoreNotConfiguredError(RuntimeError):
    """Raised when a database session is requested without DATABASE_URL."""
    pass


def build_engine(database_url: str) -> Engine:
    """Create an engine with pooling options suited to the backend.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = get_settings()

    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
    }

    # SQLite doesn't support pool_size/max_overflow
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow

    return create_engine(database_url, **engine_kwargs)


settings = get_settings()

engine: Optional[Engine] = (
    build_engine(settings.database_url) if settings.is_store_configured else None
)

# Create session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Prevent lazy loading after commit
)


def init_db() -> None:
    """Create all tables that don't exist yet.

    Schema migrations are out of scope; tables are created on startup.
    """
    if engine is None:
        return

    # Import models so they register on Base.metadata
    from survey_service.models import question, report, response, user  # noqa: F401

    Base.metadata.create_all(engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency function for FastAPI to provide database sessions.

    Yields:
        Session: SQLAlchemy database session

    Raises:
        StoreNotConfiguredError: If DATABASE_URL is not configured

    Note:
        The session is automatically closed after the request completes,
        even if an exception occurs.
    """
    if engine is None:
        raise StoreNotConfiguredError("DATABASE_URL is not configured")

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
