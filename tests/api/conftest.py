"""
Fixtures for HTTP API tests.

Builds the application with service dependencies overridden, so no
database or provider is reached.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from diagrammaton.api.deps import (
    get_generation_service,
    get_license_service,
    get_model_catalog_service,
)
from diagrammaton.application.services.generation_service import GenerationService
from diagrammaton.boundary.llm.gateway import ProviderGateway
from diagrammaton.core.rate_limiter import InMemorySlidingWindowCounter, RateLimiterGate
from diagrammaton.main import create_app


@pytest.fixture
def provider_client_factory() -> MagicMock:
    return MagicMock()


@pytest.fixture
def generation_service(licensed_identity, provider_client_factory, generation_settings) -> GenerationService:
    resolver = MagicMock()
    resolver.resolve_identity = AsyncMock(return_value=licensed_identity)
    gateway = ProviderGateway(
        generation_settings,
        openai_client_factory=provider_client_factory,
        anthropic_client_factory=provider_client_factory,
    )
    rate_limiter = RateLimiterGate(InMemorySlidingWindowCounter(), max_requests=10, window_seconds=60.0)
    return GenerationService(resolver, rate_limiter, gateway, generation_settings)


@pytest.fixture
def catalog_service() -> MagicMock:
    service = MagicMock()
    service.list_models = AsyncMock()
    return service


@pytest.fixture
def license_service() -> MagicMock:
    service = MagicMock()
    service.validate_license_key = AsyncMock(return_value=True)
    return service


@pytest.fixture
def client(generation_service, catalog_service, license_service):
    """TestClient without lifespan, so settings-backed singletons stay cold."""
    app = create_app()
    app.dependency_overrides[get_generation_service] = lambda: generation_service
    app.dependency_overrides[get_model_catalog_service] = lambda: catalog_service
    app.dependency_overrides[get_license_service] = lambda: license_service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
