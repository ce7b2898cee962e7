"""
Rate limiter configuration.

Dependencies: pydantic, pydantic_settings
System role: Sliding window quota for generation requests
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from diagrammaton.configs.base import BaseSettings


class RateLimitSettings(BaseSettings):
    """Sliding window rate limit configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
        extra="ignore",
    )

    backend: Literal["memory", "database"] = Field(
        default="memory",
        description="Counter backend: process-local memory or the shared database",
    )
    max_requests: int = Field(default=2, description="Requests allowed per window")
    window_seconds: float = Field(default=5.0, description="Sliding window length in seconds")
