"""
Identity resolver.

Maps a license key to the account behind it. Unknown, revoked and
expired keys all fail the same way; a key pointing at a missing account
is a data-integrity fault and fails as UserNotFound.

Dependencies: sqlalchemy, diagrammaton.boundary.db
System role: Read-only credential lookup for generation and model listing
"""

import logging
from datetime import datetime

from pydantic import SecretStr
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.boundary.db.base import as_utc, utcnow
from diagrammaton.boundary.db.CRUD import license_key_crud, user_crud
from diagrammaton.boundary.db.models import LicenseKeyModel, UserModel
from diagrammaton.core.exceptions import InvalidLicenseKeyError, UnexpectedError, UserNotFoundError
from diagrammaton.models.identity import LicensedIdentity

logger = logging.getLogger(__name__)


def is_license_active(license: LicenseKeyModel | None, now: datetime | None = None) -> bool:
    """Whether a license exists, is not revoked and has not expired."""
    if license is None or license.revoked:
        return False
    if license.expires_at is None:
        return True
    return as_utc(license.expires_at) > (now or utcnow())


def _secret(value: str | None) -> SecretStr | None:
    return SecretStr(value) if value else None


class IdentityResolver:
    """Resolves license keys against the account store."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve_identity(self, license_key: str) -> LicensedIdentity:
        """
        Look up the account for a license key.

        Args:
            license_key: Key as sent by the client

        Returns:
            LicensedIdentity: Account with its provider API keys

        Raises:
            InvalidLicenseKeyError: Key unknown, revoked or expired
            UserNotFoundError: Key references a missing account
            UnexpectedError: Account store unavailable
        """
        try:
            license = await license_key_crud.get_by_key(self.db, license_key)
            if not is_license_active(license):
                raise InvalidLicenseKeyError()
            user: UserModel | None = await user_crud.get_by_id(self.db, license.user_id)
        except SQLAlchemyError as exc:
            raise UnexpectedError(
                details={"collaborator": "identity_store", "error_type": type(exc).__name__}
            ) from exc

        if user is None:
            logger.error(
                "License key references a missing user",
                extra={"license_id": str(license.id), "user_id": str(license.user_id)},
            )
            raise UserNotFoundError(details={"user_id": str(license.user_id)})

        return LicensedIdentity(
            id=user.id,
            email=user.email,
            openai_api_key=_secret(user.openai_api_key),
            anthropic_api_key=_secret(user.anthropic_api_key),
        )
