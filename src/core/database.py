"""Database connection and session management."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.core.config import get_settings
from src.core.retry import RetryPolicy, retry_async
from src.core.structured_logging import log_json

settings = get_settings()
logger = logging.getLogger(__name__)


def _async_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


# NullPool for test databases and for Celery workers, where each task runs
# its own event loop
engine = create_async_engine(
    _async_url(settings.database_url),
    echo=False,
    poolclass=NullPool if "test" in settings.database_url else None,
)

_slow_query_threshold_ms = float(os.getenv("SLOW_QUERY_MS", "0") or "0")
if _slow_query_threshold_ms > 0:

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ) -> None:
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return

        duration_ms = (time.perf_counter() - start) * 1000
        if duration_ms < _slow_query_threshold_ms:
            return

        stmt = str(statement)
        if len(stmt) > 2000:
            stmt = stmt[:1997] + "..."

        log_json(
            logger,
            logging.WARNING,
            "slow_query",
            duration_ms=round(duration_ms, 2),
            statement=stmt,
        )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def create_worker_sessionmaker() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Engine + session factory for one Celery task run (one event loop)."""
    worker_engine = create_async_engine(
        _async_url(settings.database_url),
        echo=False,
        poolclass=NullPool,
    )
    factory = async_sessionmaker(
        worker_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return worker_engine, factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """Get database session dependency.

    Yields:
        AsyncSession: Database session

    Usage:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def ping(target: AsyncEngine | None = None) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    async with (target or engine).connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(
    target: AsyncEngine | None = None,
    policy: RetryPolicy | None = None,
) -> None:
    """Block until the database answers, within a bounded number of attempts."""
    await retry_async(
        lambda: ping(target),
        policy or RetryPolicy(max_attempts=5, delays=(1.0, 2.0, 4.0, 8.0)),
        retry_on=(OSError, TimeoutError, DBAPIError),
        name="database_ping",
    )
