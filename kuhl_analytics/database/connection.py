"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session handling. ``get_db()`` is the
transaction boundary for everything that writes: the session commits when
the block exits cleanly and rolls back on any exception.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from kuhl_analytics.config import get_settings
from kuhl_analytics.database.models import Base
from kuhl_analytics.errors import StoreUnavailable

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_sessions: Optional[async_sessionmaker[AsyncSession]] = None

NOT_INITIALIZED = "Database not initialized. Call init_database() first."


def _engine_options(url: str, echo: bool) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive between sessions
        return {"echo": echo, "poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    # asyncpg pools its own connections
    return {"echo": echo, "poolclass": NullPool, "pool_pre_ping": True}


async def init_database(url: Optional[str] = None, create_tables: Optional[bool] = None) -> AsyncEngine:
    """
    Create the engine, check the connection and optionally create tables.

    Args:
        url: Database URL; defaults to the configured one
        create_tables: Create missing tables; defaults to POSTGRES_CREATE_TABLES

    Raises:
        StoreUnavailable: The database cannot be reached
    """
    global _engine, _sessions

    if _engine is not None:
        logger.warning("Database already initialized", dialect=_engine.dialect.name)
        return _engine

    db_settings = get_settings().database
    url = url or db_settings.async_url
    if create_tables is None:
        create_tables = db_settings.create_tables

    _engine = create_async_engine(url, **_engine_options(url, db_settings.echo))
    _sessions = async_sessionmaker(_engine, expire_on_commit=False, autoflush=False)

    try:
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database unreachable", error=str(e))
        await close_database()
        raise StoreUnavailable(f"Database unavailable: {e}") from e

    logger.info("Database ready", dialect=_engine.dialect.name, create_tables=create_tables)
    return _engine


async def close_database() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _sessions

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessions = None
    logger.info("Database engine disposed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise StoreUnavailable(NOT_INITIALIZED)
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session that commits on success and rolls back on any error.

    Example:
        async with get_db() as db:
            await RecordStore(db).delete_many(RecordType.SALES, scope)
            await RecordStore(db).create_many(RecordType.SALES, records)
    """
    if _sessions is None:
        raise StoreUnavailable(NOT_INITIALIZED)

    async with _sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning("Rolling back session", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


async def get_db_dependency() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Example:
        @router.get("/seasons")
        async def list_seasons(db: AsyncSession = Depends(get_db_dependency)):
            ...
    """
    async with get_db() as session:
        yield session


async def check_database_health() -> dict:
    """Round-trip a ``SELECT 1`` and report latency, or why it failed."""
    started = time.perf_counter()
    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
    except (StoreUnavailable, SQLAlchemyError, OSError) as e:
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "dialect": get_engine().dialect.name,
    }
