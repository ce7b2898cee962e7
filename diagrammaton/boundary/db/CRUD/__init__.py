"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from diagrammaton.boundary.db.CRUD import license_key_crud, user_crud

    license = await license_key_crud.get_by_key(db, key)
"""

from diagrammaton.boundary.db.CRUD.base_crud import BaseCRUD
from diagrammaton.boundary.db.CRUD.license_key_crud import LicenseKeyCRUD, license_key_crud
from diagrammaton.boundary.db.CRUD.rate_limit_crud import RateLimitCRUD, rate_limit_crud
from diagrammaton.boundary.db.CRUD.user_crud import UserCRUD, user_crud

__all__ = [
    "BaseCRUD",
    "LicenseKeyCRUD",
    "license_key_crud",
    "RateLimitCRUD",
    "rate_limit_crud",
    "UserCRUD",
    "user_crud",
]
