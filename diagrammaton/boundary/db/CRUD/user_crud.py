"""
User CRUD operations.

Dependencies: sqlalchemy, diagrammaton.boundary.db.models
System role: Account persistence operations
"""

from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.boundary.db.CRUD.base_crud import BaseCRUD
from diagrammaton.boundary.db.models.user_model import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel."""

    def __init__(self) -> None:
        super().__init__(UserModel)

    async def get_by_email(self, session: AsyncSession, email: str) -> UserModel | None:
        """
        Retrieve a user by sign-in email.

        Args:
            session: Async database session
            email: Email address

        Returns:
            UserModel if found, None otherwise
        """
        return await self.get_one_by(session, email=email)


user_crud = UserCRUD()
