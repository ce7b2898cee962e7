"""
Test suite for GenerationService.

Drives the whole pipeline with a mocked identity resolver, the in-memory
rate limiter and fake provider clients.

System role: Verification of generation orchestration and error boundary
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from diagrammaton.application.services.generation_service import GenerationService
from diagrammaton.boundary.llm.gateway import ProviderGateway
from diagrammaton.core.exceptions import ErrorKind, InvalidLicenseKeyError
from diagrammaton.core.rate_limiter import InMemorySlidingWindowCounter, RateLimiterGate
from diagrammaton.models.identity import LicensedIdentity


def _body(description: str | None = "a login flow", license_key: str | None = "LICENSE-123", model=None) -> dict:
    data = {"diagramDescription": description, "licenseKey": license_key}
    if model is not None:
        data["model"] = model
    return {"action": "generate", "data": data}


@pytest.fixture
def identity_resolver(licensed_identity) -> MagicMock:
    resolver = MagicMock()
    resolver.resolve_identity = AsyncMock(return_value=licensed_identity)
    return resolver


@pytest.fixture
def rate_limiter() -> RateLimiterGate:
    return RateLimiterGate(InMemorySlidingWindowCounter(), max_requests=2, window_seconds=5.0)


@pytest.fixture
def client_factory() -> MagicMock:
    return MagicMock()


@pytest.fixture
def service(identity_resolver, rate_limiter, client_factory, generation_settings) -> GenerationService:
    gateway = ProviderGateway(
        generation_settings,
        openai_client_factory=client_factory,
        anthropic_client_factory=client_factory,
    )
    return GenerationService(identity_resolver, rate_limiter, gateway, generation_settings)


class TestGenerateDiagram:
    """Buffered pipeline."""

    @pytest.mark.asyncio
    async def test_returns_validated_diagram(self, fakes, service, client_factory, diagram_json) -> None:
        # Arrange
        client_factory.return_value = fakes.OpenAIClient(completions=[fakes.tool_call_completion(diagram_json)])

        # Act
        result = await service.generate_diagram(_body())

        # Assert
        assert result.error is None
        assert [step.from_node.shape.value for step in result.diagram.steps] == ["SQUARE"]
        client_factory.assert_called_once_with("sk-test-openai-123456")

    @pytest.mark.asyncio
    async def test_declined_response(self, fakes, service, client_factory) -> None:
        client_factory.return_value = fakes.OpenAIClient(
            completions=[fakes.tool_call_completion('{"steps": [], "message": "Try describing steps."}')]
        )

        result = await service.generate_diagram(_body())

        assert result.diagram.declined
        assert result.diagram.message == "Try describing steps."

    @pytest.mark.asyncio
    async def test_missing_license_key(self, service, identity_resolver, client_factory) -> None:
        result = await service.generate_diagram(_body(license_key=None))

        assert result.error.kind is ErrorKind.INVALID_LICENSE_KEY
        assert result.error.http_status == 400
        assert result.error.message == "License key is required"
        identity_resolver.resolve_identity.assert_not_called()
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_description(self, service, identity_resolver) -> None:
        result = await service.generate_diagram(_body(description="   "))

        assert result.error.kind is ErrorKind.NO_DESCRIPTION_PROVIDED
        identity_resolver.resolve_identity.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, [], "text", {"action": "explode", "data": {}}, {"data": {}}])
    async def test_malformed_body(self, service, body) -> None:
        result = await service.generate_diagram(body)

        assert result.error.kind is ErrorKind.NO_DESCRIPTION_PROVIDED
        assert result.error.http_status == 400

    @pytest.mark.asyncio
    async def test_rate_limit_denial_skips_identity_and_provider(
        self, fakes, service, identity_resolver, client_factory, diagram_json
    ) -> None:
        # Arrange
        client_factory.side_effect = lambda api_key: fakes.OpenAIClient(
            completions=[fakes.tool_call_completion(diagram_json)]
        )
        await service.generate_diagram(_body(), forwarded_for="5.6.7.8")
        await service.generate_diagram(_body(), forwarded_for="5.6.7.8")
        identity_resolver.resolve_identity.reset_mock()
        client_factory.reset_mock()

        # Act
        result = await service.generate_diagram(_body(), forwarded_for="5.6.7.8, 10.0.0.1")

        # Assert
        assert result.error.kind is ErrorKind.RATE_LIMIT_EXCEEDED
        assert result.error.http_status == 429
        identity_resolver.resolve_identity.assert_not_called()
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_license_from_resolver(self, service, identity_resolver, client_factory) -> None:
        identity_resolver.resolve_identity.side_effect = InvalidLicenseKeyError()

        result = await service.generate_diagram(_body())

        assert result.error.kind is ErrorKind.INVALID_LICENSE_KEY
        assert result.error.http_status == 401
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_provider_key_makes_no_call(self, service, client_factory) -> None:
        result = await service.generate_diagram(_body(model="anthropic:claude-sonnet-4-5:fast"))

        assert result.error.kind is ErrorKind.API_KEY_NOT_FOUND_FOR_USER
        assert result.error.message == "No Anthropic API key registered"
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_stored_key_counts_as_missing(self, service, identity_resolver, client_factory) -> None:
        identity_resolver.resolve_identity.return_value = LicensedIdentity(
            id=uuid.uuid4(), openai_api_key=SecretStr("   ")
        )

        result = await service.generate_diagram(_body())

        assert result.error.kind is ErrorKind.API_KEY_NOT_FOUND_FOR_USER
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_unparseable_output(self, fakes, service, client_factory) -> None:
        client_factory.return_value = fakes.OpenAIClient(completions=[fakes.text_completion("I cannot do that")])

        result = await service.generate_diagram(_body())

        assert result.error.kind is ErrorKind.UNABLE_TO_PARSE_RESPONSE
        assert result.error.http_status == 500

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, service, identity_resolver) -> None:
        identity_resolver.resolve_identity.side_effect = RuntimeError("db driver exploded")

        result = await service.generate_diagram(_body())

        assert result.error.kind is ErrorKind.UNEXPECTED
        assert "exploded" not in result.error.message
        assert result.error.log_context["error_type"] == "RuntimeError"


class TestOpenStream:
    """Streaming pipeline."""

    @pytest.mark.asyncio
    async def test_stream_is_primed_with_first_chunk(self, fakes, service, client_factory) -> None:
        # Arrange
        client = fakes.OpenAIClient(response_streams=[fakes.EventStream([
            fakes.event("response.output_text.delta", delta='{"steps":'),
            fakes.event("response.output_text.delta", delta="[]}"),
        ])])
        client_factory.return_value = client

        # Act
        result = await service.open_stream(_body())
        chunks = [chunk async for chunk in result.stream]

        # Assert
        assert result.error is None
        assert "".join(chunks) == '{"steps":[]}'
        assert client.closed

    @pytest.mark.asyncio
    async def test_failure_before_first_chunk_is_an_error_record(self, fakes, service, client_factory) -> None:
        client_factory.return_value = fakes.OpenAIClient(
            response_streams=[fakes.EventStream([fakes.event("error", code="x", message="boom")])],
            completions=[fakes.ChatStream([None])],
        )

        result = await service.open_stream(_body())

        assert result.stream is None
        assert result.error.kind is ErrorKind.PROVIDER_ERROR
        assert result.error.http_status == 502

    @pytest.mark.asyncio
    async def test_validation_errors_reported_before_streaming(self, service, client_factory) -> None:
        result = await service.open_stream(_body(license_key=""))

        assert result.error.message == "License key is required"
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_mid_stream_failure_propagates(self, fakes, service, client_factory) -> None:
        client_factory.return_value = fakes.OpenAIClient(response_streams=[fakes.EventStream([
            fakes.event("response.output_text.delta", delta='{"steps":'),
            fakes.event("error", code="x", message="boom"),
        ])])
        result = await service.open_stream(_body())
        received: list[str] = []

        with pytest.raises(Exception):
            async for chunk in result.stream:
                received.append(chunk)

        assert received == ['{"steps":']
