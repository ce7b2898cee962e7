"""Service orchestrators."""

from .generation_service import GenerationResult, GenerationService, StreamResult
from .identity_service import IdentityResolver
from .license_service import LicenseService
from .model_catalog_service import ModelCatalogService

__all__ = [
    "GenerationResult",
    "GenerationService",
    "IdentityResolver",
    "LicenseService",
    "ModelCatalogService",
    "StreamResult",
]
