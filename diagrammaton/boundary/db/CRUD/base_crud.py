"""
Base CRUD operations for SQLAlchemy models.

Entity CRUD classes inherit primary-key operations and the single-row
`get_one_by` lookup. Nothing here commits; callers own the transaction.

Dependencies: sqlalchemy, uuid
System role: Foundation for account, license and rate limit persistence
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic CRUD operations bound to one model class.

    Attributes:
        model: Mapped class the operations act on
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """
        Insert a row and flush it so generated columns are populated.

        Args:
            session: Async database session
            **values: Column values

        Returns:
            The new instance, refreshed from the database
        """
        instance = self.model(**values)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        return await session.get(self.model, id)

    async def get_one_by(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """
        Single row matching every column filter, or None.

        Raises:
            MultipleResultsFound: If the filters are not selective enough
        """
        stmt = select(self.model).filter_by(**filters)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_by_id(self, session: AsyncSession, id: UUID, **values: Any) -> ModelT | None:
        """
        Apply column updates to one row.

        Returns:
            The updated instance, or None when no row has this id
        """
        instance = await self.get_by_id(session, id)
        if instance is None:
            return None
        for column, value in values.items():
            setattr(instance, column, value)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """Delete one row; False when nothing matched."""
        result = await session.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def exists(self, session: AsyncSession, id: UUID) -> bool:
        result = await session.execute(select(self.model.id).where(self.model.id == id))
        return result.scalar_one_or_none() is not None
