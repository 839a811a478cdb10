from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from rolloutscorer.core.errors import BlockedError

logger = structlog.get_logger()


@asynccontextmanager
async def advisory_lock(engine: AsyncEngine, key: int) -> AsyncIterator[None]:
    """Hold a PostgreSQL session-level advisory lock for the duration of a run.

    The lock lives on a dedicated connection. Other dialects are not locked.
    """
    if engine.dialect.name != "postgresql":
        logger.info("run_lock_skipped", dialect=engine.dialect.name)
        yield
        return

    async with engine.connect() as conn:
        acquired = (
            await conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": key})
        ).scalar()
        if not acquired:
            raise BlockedError("Another scoring run holds the run lock", details={"key": key})

        logger.info("run_lock_acquired", key=key)
        try:
            yield
        finally:
            await conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
            logger.info("run_lock_released", key=key)
