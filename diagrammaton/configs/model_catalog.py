"""
Model catalog configuration.

Dependencies: pydantic, pydantic_settings
System role: Cache lifetime and size of the per-user model listing
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from diagrammaton.configs.base import BaseSettings


class ModelCatalogSettings(BaseSettings):
    """Model listing configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MODEL_CATALOG_",
        case_sensitive=False,
        extra="ignore",
    )

    cache_ttl_seconds: float = Field(default=900.0, description="Per-identity cache lifetime")
    models_per_provider: int = Field(default=6, description="Newest models listed per provider")
