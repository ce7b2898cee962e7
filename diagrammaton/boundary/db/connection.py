"""
Database connection management.

One async engine per process, created lazily on first use so the app can
start (and serve /health) before the database is reachable. Request
handlers receive a session through `get_async_db`; background users such
as the database rate limit counter take the session factory directly.

Dependencies: sqlalchemy, diagrammaton.configs
System role: Database connection lifecycle management
"""

import logging
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from diagrammaton.configs import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Process-wide async engine built from DatabaseSettings.

    SQLite URLs get a plain engine; PostgreSQL gets the configured pool
    with pre-ping so connections dropped by the server are replaced.
    """
    db_config = get_settings().database

    if db_config.is_sqlite:
        return create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the shared engine.

    autoflush=False and expire_on_commit=False: services flush and commit
    explicitly, and returned ORM objects stay readable after commit.
    """
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def dispose_async_engine() -> None:
    """Close pooled connections, if an engine was ever created."""
    if get_async_engine.cache_info().currsize == 0:
        return
    await get_async_engine().dispose()
    get_async_session_factory.cache_clear()
    get_async_engine.cache_clear()
    logger.info("Database engine disposed")


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Usage:
        @router.post("/license/validate")
        async def validate(db: AsyncSession = Depends(get_async_db)):
            ...
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session
