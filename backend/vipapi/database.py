"""
VIP Travel API - Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency,
       and the connection readiness signal the asset store waits on.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Route handlers (sessions), the readiness middleware and the asset
       store (readiness), Alembic (Base metadata).
When:  Engine is created at module import; sessions are created per-request.

Readiness:
    The engine connects lazily, so "the database is up" is only known after
    a successful round trip. DatabaseConnection.connect() performs that round
    trip (SELECT 1) under a tenacity retry policy and flips `is_ready`. The
    asset store refuses to initialize its bucket until `is_ready` is true.
"""

import asyncio
import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from vipapi.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create the async engine for the configured URL.

    SQLite (used by the test suite) runs without a sized connection pool,
    so pool arguments are only passed to server databases.
    """
    kwargs = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(database_url, **kwargs)


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)

# expire_on_commit=False: the reconciliation service commits mid-request and
# keeps reading the committed document afterwards.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the document tables, the asset bucket
    tables, and Alembic.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits whatever the handler left uncommitted
        4. On error: rolls back uncommitted changes
        5. Always: closes the session (returns connection to pool)

    Services that must order a commit before a side effect (the image
    reconciliation protocol) commit explicitly; the trailing commit here is
    then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Readiness Signal ──────────────────────────────────────────────────────
class DatabaseConnection:
    """
    Tracks whether the engine has completed a successful round trip.

    connect() is idempotent and single-flight: concurrent first requests
    share one ping. Once ready it stays ready until mark_disconnected() is
    called (health check failure).
    """

    def __init__(self, db_engine: AsyncEngine):
        self._engine = db_engine
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def connect(self) -> None:
        """
        Ensure the database answered at least one query.

        Raises:
            OperationalError / DBAPIError / OSError from the driver once the
            retry attempts are exhausted.
        """
        if self._ready:
            return
        async with self._lock:
            if self._ready:
                return
            await self._ping()
            self._ready = True
            logger.info("Database connection ready")

    @retry(
        retry=retry_if_exception_type((OperationalError, DBAPIError, OSError)),
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential_jitter(
            initial=settings.db_connect_min_wait,
            max=settings.db_connect_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def mark_disconnected(self) -> None:
        """Force the next connect() to ping again."""
        if self._ready:
            logger.warning("Database connection marked as not ready")
        self._ready = False


# Process-wide readiness tracker for the application engine
db_connection = DatabaseConnection(engine)


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    db_connection.mark_disconnected()
    await engine.dispose()
