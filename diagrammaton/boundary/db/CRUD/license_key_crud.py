"""
License key CRUD operations.

Dependencies: sqlalchemy, diagrammaton.boundary.db.models
System role: License key persistence operations
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.boundary.db.CRUD.base_crud import BaseCRUD
from diagrammaton.boundary.db.models.license_key_model import LicenseKeyModel


class LicenseKeyCRUD(BaseCRUD[LicenseKeyModel]):
    """
    CRUD operations for LicenseKeyModel.

    Extends BaseCRUD with lookups by key string and by owning user.
    """

    def __init__(self) -> None:
        super().__init__(LicenseKeyModel)

    async def get_by_key(self, session: AsyncSession, key: str) -> LicenseKeyModel | None:
        """
        Retrieve a license by its key string.

        Args:
            session: Async database session
            key: License key as sent by the client

        Returns:
            LicenseKeyModel if found, None otherwise
        """
        return await self.get_one_by(session, key=key)

    async def get_by_user_id(self, session: AsyncSession, user_id: UUID) -> LicenseKeyModel | None:
        """
        Retrieve the license owned by a user.

        Args:
            session: Async database session
            user_id: Owning user UUID

        Returns:
            LicenseKeyModel if the user has one, None otherwise
        """
        return await self.get_one_by(session, user_id=user_id)


license_key_crud = LicenseKeyCRUD()
