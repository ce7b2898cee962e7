"""
Dependency injection container.

Factory functions for FastAPI dependencies. Process-wide collaborators
(rate limiter, provider gateway, catalog cache) live in ServiceCache;
services holding a database session are built per request.

Dependencies: diagrammaton.configs, diagrammaton.application, diagrammaton.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from diagrammaton.application.services import (
    GenerationService,
    IdentityResolver,
    LicenseService,
    ModelCatalogService,
)
from diagrammaton.boundary.db import get_async_db
from diagrammaton.configs import Settings, get_settings
from diagrammaton.core.rate_limiter import RateLimiterGate
from diagrammaton.core.ttl_cache import TTLCache
from diagrammaton.models.model_catalog import ModelCatalogResponse


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._rate_limiter = None
        self._gateway = None
        self._validator = None
        self._model_cache = None

    @property
    def rate_limiter(self) -> RateLimiterGate:
        """Get cached rate limiter gate with the configured counter backend."""
        if self._rate_limiter is None:
            settings = get_settings().rate_limit
            if settings.backend == "database":
                from diagrammaton.boundary.db import (
                    DatabaseSlidingWindowCounter,
                    get_async_session_factory,
                )
                counter = DatabaseSlidingWindowCounter(get_async_session_factory())
            else:
                from diagrammaton.core.rate_limiter import InMemorySlidingWindowCounter
                counter = InMemorySlidingWindowCounter()
            self._rate_limiter = RateLimiterGate(
                counter,
                max_requests=settings.max_requests,
                window_seconds=settings.window_seconds,
            )
        return self._rate_limiter

    @property
    def gateway(self):
        """Get cached provider gateway."""
        if self._gateway is None:
            from diagrammaton.boundary.llm import ProviderGateway
            self._gateway = ProviderGateway(get_settings().generation)
        return self._gateway

    @property
    def validator(self):
        """Get cached diagram validator."""
        if self._validator is None:
            from diagrammaton.core.diagram_validator import DiagramValidator
            self._validator = DiagramValidator()
        return self._validator

    @property
    def model_cache(self) -> TTLCache[ModelCatalogResponse]:
        """Get cached model catalog TTL cache."""
        if self._model_cache is None:
            self._model_cache = TTLCache(ttl_seconds=get_settings().model_catalog.cache_ttl_seconds)
        return self._model_cache

    def clear(self) -> None:
        """Clear all cached instances."""
        self._rate_limiter = None
        self._gateway = None
        self._validator = None
        self._model_cache = None


# Global service cache
_service_cache = ServiceCache()

def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_generation_service(db: AsyncSession = Depends(get_async_db)) -> GenerationService:
    """
    Get generation service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        GenerationService: Service wired to the shared rate limiter and gateway
    """
    cache = get_service_cache()
    return GenerationService(
        identity_resolver=IdentityResolver(db=db),
        rate_limiter=cache.rate_limiter,
        gateway=cache.gateway,
        settings=get_settings().generation,
        validator=cache.validator,
    )


def get_model_catalog_service(db: AsyncSession = Depends(get_async_db)) -> ModelCatalogService:
    """
    Get model catalog service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        ModelCatalogService: Service sharing the process-wide catalog cache
    """
    cache = get_service_cache()
    return ModelCatalogService(
        identity_resolver=IdentityResolver(db=db),
        cache=cache.model_cache,
        settings=get_settings().model_catalog,
    )


def get_license_service(db: AsyncSession = Depends(get_async_db)) -> LicenseService:
    """
    Get license service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        LicenseService: License service instance
    """
    return LicenseService(db=db)
