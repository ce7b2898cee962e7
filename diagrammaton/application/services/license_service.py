"""
License and API key service.

Account-side operations behind the plugin: issuing, revoking and
validating license keys, and storing per-user provider API keys.

Dependencies: sqlalchemy, diagrammaton.boundary.db
System role: Licensing and credential management
"""

import base64
import binascii
import logging
import secrets
import string
from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.application.services.identity_service import is_license_active
from diagrammaton.boundary.db.base import utcnow
from diagrammaton.boundary.db.CRUD import license_key_crud, user_crud
from diagrammaton.boundary.db.models import UserModel
from diagrammaton.core.exceptions import InvalidApiKeyError, UserNotFoundError
from diagrammaton.models.generation import Provider

logger = logging.getLogger(__name__)

LICENSE_KEY_LENGTH = 18
LICENSE_KEY_ALPHABET = string.ascii_letters + string.digits + "_-"
LICENSE_VALIDITY = timedelta(days=365)


def new_license_key(length: int = LICENSE_KEY_LENGTH) -> str:
    """Random URL-safe license key."""
    return "".join(secrets.choice(LICENSE_KEY_ALPHABET) for _ in range(length))


class LicenseService:
    """Service for license keys and stored provider API keys."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_user(self, user_id: UUID) -> UserModel:
        user = await user_crud.get_by_id(self.db, user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": str(user_id)})
        return user

    async def generate_license_key(self, user_id: UUID) -> str:
        """
        Issue a fresh license key valid for one year.

        Replaces the user's existing key (and clears any revocation).

        Args:
            user_id: Owning user

        Returns:
            str: The new key

        Raises:
            UserNotFoundError: If the user does not exist
        """
        await self._get_user(user_id)
        key = new_license_key()
        expires_at = utcnow() + LICENSE_VALIDITY

        existing = await license_key_crud.get_by_user_id(self.db, user_id)
        if existing is not None:
            await license_key_crud.update_by_id(
                self.db, existing.id, key=key, expires_at=expires_at, revoked=False
            )
        else:
            await license_key_crud.create(self.db, key=key, user_id=user_id, expires_at=expires_at)
        await self.db.commit()

        logger.info("License key issued", extra={"user_id": str(user_id)})
        return key

    async def get_license_key(self, user_id: UUID) -> str | None:
        """Current key for a user, or None."""
        license = await license_key_crud.get_by_user_id(self.db, user_id)
        return license.key if license is not None else None

    async def revoke_license_key(self, user_id: UUID) -> bool:
        """
        Revoke the user's key.

        Returns:
            bool: False when the user has no key
        """
        license = await license_key_crud.get_by_user_id(self.db, user_id)
        if license is None:
            return False
        await license_key_crud.update_by_id(self.db, license.id, revoked=True)
        await self.db.commit()
        logger.info("License key revoked", extra={"user_id": str(user_id)})
        return True

    async def validate_license_key(self, encoded_key: str) -> bool:
        """
        Check a base64-encoded license key as sent by the plugin.

        Malformed input is reported as invalid, never raised.
        """
        try:
            key = base64.b64decode(encoded_key, validate=True).decode("utf-8").strip()
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return False
        if not key:
            return False
        license = await license_key_crud.get_by_key(self.db, key)
        return is_license_active(license)

    async def set_user_api_key(self, user_id: UUID, provider: Provider, api_key: str) -> str:
        """
        Store a provider API key for a user.

        Returns:
            str: Last four characters of the stored key

        Raises:
            InvalidApiKeyError: If the key is blank
            UserNotFoundError: If the user does not exist
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise InvalidApiKeyError("API key must be a non-empty string")

        user = await self._get_user(user_id)
        last_four = api_key[-4:]
        if provider is Provider.ANTHROPIC:
            fields = {"anthropic_api_key": api_key, "anthropic_api_key_last_four": last_four}
        else:
            fields = {"openai_api_key": api_key, "openai_api_key_last_four": last_four}
        await user_crud.update_by_id(self.db, user.id, **fields)
        await self.db.commit()

        logger.info("API key stored", extra={"user_id": str(user_id), "provider": provider.value})
        return last_four

    async def get_user_key_last_four(self, user_id: UUID, provider: Provider) -> str | None:
        """Last four characters of the stored key, for display."""
        user = await self._get_user(user_id)
        if provider is Provider.ANTHROPIC:
            return user.anthropic_api_key_last_four
        return user.openai_api_key_last_four
