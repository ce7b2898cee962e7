"""
Rate limit hit CRUD operations.

Dependencies: sqlalchemy, diagrammaton.boundary.db.models
System role: Window queries for the database rate limit counter
"""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.boundary.db.CRUD.base_crud import BaseCRUD
from diagrammaton.boundary.db.models.rate_limit_hit_model import RateLimitHitModel


class RateLimitCRUD(BaseCRUD[RateLimitHitModel]):
    """CRUD operations for RateLimitHitModel."""

    def __init__(self) -> None:
        super().__init__(RateLimitHitModel)

    async def count_since(self, session: AsyncSession, identifier: str, since: datetime) -> int:
        """Number of hits for `identifier` strictly after `since`."""
        stmt = (
            select(func.count())
            .select_from(RateLimitHitModel)
            .where(RateLimitHitModel.identifier == identifier, RateLimitHitModel.hit_at > since)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_until(self, session: AsyncSession, identifier: str, until: datetime) -> int:
        """Delete hits for `identifier` at or before `until`; returns rows removed."""
        stmt = delete(RateLimitHitModel).where(
            RateLimitHitModel.identifier == identifier,
            RateLimitHitModel.hit_at <= until,
        )
        result = await session.execute(stmt)
        return result.rowcount


rate_limit_crud = RateLimitCRUD()
