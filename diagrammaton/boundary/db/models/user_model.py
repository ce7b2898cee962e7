"""
User ORM model.

Account record holding the per-user provider API keys. Only the last
four characters of each key are ever shown back to the user.

Dependencies: sqlalchemy, diagrammaton.boundary.db.base
System role: Owner of license keys and provider credentials
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from diagrammaton.boundary.db.base import Base, TimestampMixin, UUIDMixin


class UserModel(UUIDMixin, TimestampMixin, Base):
    """
    Account that owns a license key and provider API keys.

    Attributes:
        email: Unique sign-in email
        name: Display name
        openai_api_key: Stored OpenAI key, None when not registered
        openai_api_key_last_four: Last four characters for display
        anthropic_api_key: Stored Anthropic key, None when not registered
        anthropic_api_key_last_four: Last four characters for display
    """

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    openai_api_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    openai_api_key_last_four: Mapped[str | None] = mapped_column(String(4), nullable=True)
    anthropic_api_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    anthropic_api_key_last_four: Mapped[str | None] = mapped_column(String(4), nullable=True)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email})>"
