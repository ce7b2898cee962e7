"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    ServiceCache,
    get_generation_service,
    get_license_service,
    get_model_catalog_service,
    get_service_cache,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "get_generation_service",
    "get_license_service",
    "get_model_catalog_service",
    "get_service_cache",
    "get_settings_dependency",
]
