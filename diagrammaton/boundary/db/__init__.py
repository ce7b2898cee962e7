"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(), dispose_async_engine(): Async connection management
  - UserModel, LicenseKeyModel, RateLimitHitModel: Persistent entities
  - user_crud, license_key_crud, rate_limit_crud: CRUD operation singletons
  - DatabaseSlidingWindowCounter: Shared rate limit counter

Dependencies: sqlalchemy, diagrammaton.configs
System role: Storage for accounts, license keys and rate limit windows
"""

from diagrammaton.boundary.db.base import Base, TimestampMixin, UUIDMixin
from diagrammaton.boundary.db.connection import (
    dispose_async_engine,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from diagrammaton.boundary.db.models import LicenseKeyModel, RateLimitHitModel, UserModel
from diagrammaton.boundary.db.CRUD import (
    BaseCRUD,
    LicenseKeyCRUD,
    RateLimitCRUD,
    UserCRUD,
    license_key_crud,
    rate_limit_crud,
    user_crud,
)
from diagrammaton.boundary.db.rate_limit_counter import DatabaseSlidingWindowCounter

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "dispose_async_engine",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "LicenseKeyModel",
    "RateLimitHitModel",
    "UserModel",
    # CRUD classes
    "BaseCRUD",
    "LicenseKeyCRUD",
    "RateLimitCRUD",
    "UserCRUD",
    # CRUD singletons
    "license_key_crud",
    "rate_limit_crud",
    "user_crud",
    "DatabaseSlidingWindowCounter",
]
