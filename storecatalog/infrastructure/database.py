"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory.
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from storecatalog.infrastructure.config import settings

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create an async engine.

    Args:
        database_url: Database URL; defaults to ``settings.database_url``.
        kwargs: Extra ``create_async_engine`` arguments (e.g. ``poolclass``).

    Returns:
        Configured async engine.
    """
    kwargs.setdefault("echo", settings.debug)
    kwargs.setdefault("pool_pre_ping", True)
    engine = create_async_engine(database_url or settings.database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create database tables if they don't exist."""
    # Register row models on Base.metadata.
    from storecatalog.infrastructure import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

