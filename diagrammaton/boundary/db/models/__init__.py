"""ORM models."""

from diagrammaton.boundary.db.models.license_key_model import LicenseKeyModel
from diagrammaton.boundary.db.models.rate_limit_hit_model import RateLimitHitModel
from diagrammaton.boundary.db.models.user_model import UserModel

__all__ = ["LicenseKeyModel", "RateLimitHitModel", "UserModel"]
