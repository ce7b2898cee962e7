"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from diagrammaton.configs.base import BaseSettings
from diagrammaton.configs.database import DatabaseSettings
from diagrammaton.configs.generation import GenerationSettings
from diagrammaton.configs.model_catalog import ModelCatalogSettings
from diagrammaton.configs.rate_limit import RateLimitSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    generation: GenerationSettings = GenerationSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    model_catalog: ModelCatalogSettings = ModelCatalogSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from diagrammaton.configs import get_settings
        settings = get_settings()
    """
    return Settings()
