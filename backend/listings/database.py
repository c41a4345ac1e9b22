"""
Listings Backend — Database Engine & Session Management
=========================================================

What:  Async SQLAlchemy engine, session factory, and a scoped unit of work.
How:   One engine (and its connection pool) is created per process and
       disposed at shutdown. Requests get a bare session from
       `async_session_factory` and the store commits its own writes;
       `session_scope()` wraps scripted work in commit-or-rollback.
Who:   Used by the item store dependency and the health check.
When:  Engine is created at module import; sessions are created per request.

SQLite note:
    aiosqlite databases live in a single file and serialize writes with a
    file lock, so pool sizing options are only passed for server databases.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from listings.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool options for the configured backend; SQLite keeps driver defaults."""
    options: Dict[str, Any] = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after the unit of work commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object between the models, `create_tables()`
    and Alembic autogeneration.
    """
    pass


# ── Unit of Work ──────────────────────────────────────────────────────────
@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a transactional scope around a series of store operations.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the caller (the caller performs queries)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises
        5. Always: closes the session (returns the connection to the pool)

    Example usage:
        async with session_scope() as session:
            await session.execute(select(Item))
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise  # Re-raise so the global error handler can respond appropriately
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
def _ensure_sqlite_directory(database_url: str) -> None:
    """SQLite creates the database file but not its parent directory."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def create_tables() -> None:
    """
    What:  Creates every table registered on `Base.metadata` that is missing.
    When:  Application startup (when `db_create_tables` is enabled) and tests.
    """
    # Models must be imported so their tables register on the metadata
    from listings.models import item  # noqa: F401

    _ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured at %s", make_url(settings.database_url).render_as_string())


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
