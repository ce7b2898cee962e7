"""
Rate limit hit ORM model.

One row per allowed request, used by the database sliding window
counter. Rows older than the window are deleted on the next hit.

Dependencies: sqlalchemy, diagrammaton.boundary.db.base
System role: Shared counter storage for multi-process rate limiting
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from diagrammaton.boundary.db.base import Base, UUIDMixin


class RateLimitHitModel(UUIDMixin, Base):
    """Timestamped request from one identifier."""

    __tablename__ = "rate_limit_hits"
    __table_args__ = (Index("ix_rate_limit_hits_identifier_hit_at", "identifier", "hit_at"),)

    identifier: Mapped[str] = mapped_column(String(255), nullable=False)
    hit_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
