"""
License key ORM model.

Dependencies: sqlalchemy, diagrammaton.boundary.db.base
System role: License key to user mapping with revocation and expiry
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from diagrammaton.boundary.db.base import Base, TimestampMixin, UUIDMixin


class LicenseKeyModel(UUIDMixin, TimestampMixin, Base):
    """
    License key granting access to generation for one user.

    Attributes:
        key: Opaque key string sent by the plugin
        user_id: Owning user (one key per user)
        revoked: Revoked keys are rejected like unknown keys
        expires_at: Expiry instant (UTC); None never expires
    """

    __tablename__ = "license_keys"

    key: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<LicenseKeyModel(id={self.id}, user_id={self.user_id}, revoked={self.revoked})>"
