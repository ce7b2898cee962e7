"""
Database-backed sliding window counter.

Shares rate limit state between worker processes through the
rate_limit_hits table. Each hit opens its own short transaction.

Dependencies: sqlalchemy, diagrammaton.boundary.db.CRUD
System role: SlidingWindowCounter backend for multi-process deployments
"""

from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from diagrammaton.boundary.db.base import utcnow
from diagrammaton.boundary.db.CRUD.rate_limit_crud import rate_limit_crud


class DatabaseSlidingWindowCounter:
    """SlidingWindowCounter storing one row per allowed request."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def hit(self, identifier: str, limit: int, window_seconds: float) -> bool:
        now = self._clock()
        cutoff = now - timedelta(seconds=window_seconds)

        async with self._session_factory() as session:
            await rate_limit_crud.delete_until(session, identifier, cutoff)
            used = await rate_limit_crud.count_since(session, identifier, cutoff)
            allowed = used < limit
            if allowed:
                await rate_limit_crud.create(session, identifier=identifier, hit_at=now)
            await session.commit()
        return allowed
