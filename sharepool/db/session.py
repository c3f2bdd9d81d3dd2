"""
Async engine and unit-of-work sessions.

One session is one unit of work: it commits when the block (or request)
finishes and rolls back on any exception, which is what keeps a failed
quarterly run from leaving partial distribution rows behind.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from sharepool.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("postgresql+asyncpg"):
        # asyncpg prepared-statement cache breaks behind transaction poolers
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=not settings.is_production,
    connect_args=_connect_args(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Unit of work outside FastAPI (startup hooks, scripts).

        async with get_db_context() as db:
            await process_quarterly_distribution(db, "2024-Q1")
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning(f"Rolling back unit of work: {type(e).__name__}: {e}")
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one unit of work per request."""
    async with get_db_context() as session:
        yield session
