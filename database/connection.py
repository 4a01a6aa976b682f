"""
Database Connection

Async SQLAlchemy engine and sessions for the peer review store: PostgreSQL
(asyncpg) when deployed, SQLite (aiosqlite) for local runs and tests.
"""

from typing import Any, AsyncIterator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine
)
from sqlalchemy.pool import NullPool, StaticPool

from config.logging_config import get_logger
from config.settings import settings


logger = get_logger("database.connection")

# Lazy initialization - don't create engine at module load
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def engine_options(database_url: str) -> dict[str, Any]:
    """Pool options for a database URL."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # Every new connection to :memory: would open a separate, empty database
        return {"poolclass": StaticPool}
    return {"poolclass": NullPool}


def get_engine() -> AsyncEngine:
    """Get or create the async engine for ``settings.database_url``."""
    global _engine

    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            **engine_options(settings.database_url)
        )
        logger.debug(f"Created engine for {make_url(settings.database_url).render_as_string()}")

    return _engine


def get_session_factory() -> async_sessionmaker:
    """Get or create the session factory bound to the engine."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    return _session_factory


@asynccontextmanager
async def get_db_context() -> AsyncIterator[AsyncSession]:
    """
    Session for the scoring and validation stores.

    The stores only read, so nothing is committed here; callers that write
    commit themselves.

    Usage:
        async with get_db_context() as db:
            service = ChecklistValidationService(DatabaseReviewStore(db))
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: Optional[AsyncEngine] = None):
    """
    Create the peer review tables.

    Note: In production, use migrations instead.
    """
    from database.models import Base

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Dispose of the engine; the next session creates a fresh one."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
