"""Async database access for the API, the alert engine and the scripts.

``init_db`` prepares the schema (debug only; production runs Alembic) and then
seeds the global default alert thresholds, so every entry point that starts
the database gets a populated threshold table.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nephrowatch.config import settings
from nephrowatch.models import Base

logger = logging.getLogger("nephrowatch.database")

MAX_RETRY_DELAY_SECONDS = 10.0


def _build_engine() -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
    )


engine = _build_engine()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def _session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back on any error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def _prepare_schema() -> None:
    async with engine.begin() as conn:
        if settings.debug:
            await conn.run_sync(Base.metadata.create_all)
        else:
            logger.info("Schema managed by Alembic; skipping create_all")


def _retry_delay(attempt: int) -> float:
    return min(settings.database_init_retry_delay_seconds * attempt, MAX_RETRY_DELAY_SECONDS)


async def bootstrap_thresholds() -> int:
    """Seed the global default thresholds that are missing. Returns rows created."""
    from nephrowatch.services.alerting.resolver import ensure_default_thresholds
    from nephrowatch.services.thresholds import SQLThresholdRepository

    async with _session_scope() as session:
        return await ensure_default_thresholds(SQLThresholdRepository(session))


async def init_db() -> None:
    """Wait for the database, prepare the schema, then seed default thresholds.

    Connection failures are retried with a linear backoff. A failed threshold
    bootstrap is logged only: the alert engine seeds again on its first pass.
    """
    total_attempts = settings.database_init_retries + 1
    for attempt in range(1, total_attempts + 1):
        try:
            await _prepare_schema()
            break
        except Exception as exc:
            if attempt >= total_attempts:
                logger.exception("Database initialization failed after %d attempts", attempt)
                raise
            delay = _retry_delay(attempt)
            logger.warning(
                "Database not ready (attempt %d/%d, %s); retrying in %.1fs",
                attempt,
                total_attempts,
                exc.__class__.__name__,
                delay,
            )
            await asyncio.sleep(delay)
    if attempt > 1:
        logger.info("Database ready after %d attempts", attempt)

    if not settings.seed_default_thresholds_on_startup:
        return
    try:
        created = await bootstrap_thresholds()
        logger.info("Threshold bootstrap complete (%d created)", created)
    except Exception:
        logger.exception("Failed to bootstrap default thresholds")


async def close_db() -> None:
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; the alert engine shares it with the route."""
    async with _session_scope() as session:
        yield session


@asynccontextmanager
async def get_db_context() -> AsyncIterator[AsyncSession]:
    """Session for work outside the request cycle (scripts, startup)."""
    async with _session_scope() as session:
        yield session
