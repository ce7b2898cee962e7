"""
Test suite for ProviderGateway dispatch and fallback.

System role: Verification of protocol selection and the single fallback rule
"""

import httpx
import openai
import pytest
from pydantic import SecretStr

from diagrammaton.boundary.llm.gateway import ProviderGateway
from diagrammaton.core.budget import Deadline
from diagrammaton.core.exceptions import InvalidApiKeyError, ProviderError
from diagrammaton.core.prompts import build_messages
from diagrammaton.models.generation import (
    ModelSelection,
    OutputSource,
    Provider,
    ProviderCredentials,
    Variant,
)


@pytest.fixture
def messages():
    return build_messages("generate", {"diagramDescription": "checkout flow"})


@pytest.fixture
def openai_credentials() -> ProviderCredentials:
    return ProviderCredentials(provider=Provider.OPENAI, api_key=SecretStr("sk-openai"))


@pytest.fixture
def anthropic_credentials() -> ProviderCredentials:
    return ProviderCredentials(provider=Provider.ANTHROPIC, api_key=SecretStr("sk-ant"))


def _gateway(settings, openai_client=None, anthropic_client=None) -> ProviderGateway:
    return ProviderGateway(
        settings,
        openai_client_factory=lambda api_key: openai_client,
        anthropic_client_factory=lambda api_key: anthropic_client,
    )


async def _collect(chunks) -> list[str]:
    return [chunk async for chunk in chunks]


GPT5 = ModelSelection(provider=Provider.OPENAI, model="gpt-5", variant=Variant.FAST)


class TestStreamingDispatch:
    """Capability-driven protocol choice."""

    @pytest.mark.asyncio
    async def test_responses_streaming_for_gpt5(self, fakes, generation_settings, messages, openai_credentials) -> None:
        # Arrange
        stream = fakes.EventStream([fakes.event("response.output_text.delta", delta='{"steps":[]}')])
        client = fakes.OpenAIClient(response_streams=[stream])
        gateway = _gateway(generation_settings, openai_client=client)

        # Act
        chunks = await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        # Assert
        assert chunks == ['{"steps":[]}']
        assert client.responses_calls[0]["model"] == "gpt-5"
        assert client.create_calls == []
        assert client.closed

    @pytest.mark.asyncio
    async def test_chat_streaming_for_legacy_model(self, fakes, generation_settings, messages, openai_credentials) -> None:
        client = fakes.OpenAIClient(completions=[fakes.ChatStream(["{}"])])
        gateway = _gateway(generation_settings, openai_client=client)
        selection = ModelSelection(provider=Provider.OPENAI, model="gpt-4-turbo")

        chunks = await _collect(gateway.stream(selection, messages, openai_credentials, Deadline(5)))

        assert chunks == ["{}"]
        assert client.responses_calls == []
        assert client.create_calls[0]["model"] == "gpt-4-turbo"

    @pytest.mark.asyncio
    async def test_anthropic_streaming(self, fakes, generation_settings, messages, anthropic_credentials) -> None:
        client = fakes.AnthropicClient(streams=[fakes.EventStream([fakes.event("text", text="{}")])])
        gateway = _gateway(generation_settings, anthropic_client=client)
        selection = ModelSelection(provider=Provider.ANTHROPIC, model="claude-sonnet-4-5", variant=Variant.THINKING)

        chunks = await _collect(gateway.stream(selection, messages, anthropic_credentials, Deadline(5)))

        assert chunks == ["{}"]
        assert client.stream_calls[0]["thinking"]["type"] == "enabled"


class TestFallback:
    """One fallback to chat streaming on the fallback model."""

    @pytest.mark.asyncio
    async def test_stalled_responses_falls_back_once(
        self, fakes, generation_settings, messages, openai_credentials
    ) -> None:
        # Arrange
        stalled = fakes.EventStream([1.0, fakes.event("response.output_text.delta", delta="late")])
        client = fakes.OpenAIClient(
            response_streams=[stalled],
            completions=[fakes.ChatStream(['{"steps":', "[]}"])],
        )
        gateway = _gateway(generation_settings, openai_client=client)

        # Act
        chunks = await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        # Assert
        assert "".join(chunks) == '{"steps":[]}'
        assert len(client.create_calls) == 1
        assert client.create_calls[0]["model"] == generation_settings.fallback_model

    @pytest.mark.asyncio
    async def test_error_event_falls_back(self, fakes, generation_settings, messages, openai_credentials) -> None:
        failing = fakes.EventStream([fakes.event("response.failed", response=None)])
        client = fakes.OpenAIClient(response_streams=[failing], completions=[fakes.ChatStream(["{}"])])
        gateway = _gateway(generation_settings, openai_client=client)

        chunks = await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        assert chunks == ["{}"]

    @pytest.mark.asyncio
    async def test_incomplete_responses_falls_back(
        self, fakes, generation_settings, messages, openai_credentials
    ) -> None:
        # Arrange: stream ends without response.completed and without text
        incomplete = fakes.EventStream([fakes.event("response.incomplete")])
        client = fakes.OpenAIClient(
            response_streams=[incomplete],
            completions=[fakes.ChatStream(['{"steps":', "[]}"])],
        )
        gateway = _gateway(generation_settings, openai_client=client)

        # Act
        chunks = await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        # Assert
        assert chunks == ['{"steps":', "[]}"]
        assert len(client.create_calls) == 1
        assert client.create_calls[0]["model"] == generation_settings.fallback_model

    @pytest.mark.asyncio
    async def test_failing_fallback_is_not_retried(self, fakes, generation_settings, messages, openai_credentials) -> None:
        failing = fakes.EventStream([fakes.event("error", code="server_error", message="boom")])
        client = fakes.OpenAIClient(response_streams=[failing], completions=[fakes.ChatStream([None])])
        gateway = _gateway(generation_settings, openai_client=client)

        with pytest.raises(ProviderError):
            await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        assert len(client.create_calls) == 1

    @pytest.mark.asyncio
    async def test_no_fallback_after_text_was_delivered(
        self, fakes, generation_settings, messages, openai_credentials
    ) -> None:
        broken = fakes.EventStream([
            fakes.event("response.output_text.delta", delta='{"steps":'),
            fakes.event("error", code="server_error", message="boom"),
        ])
        client = fakes.OpenAIClient(response_streams=[broken])
        gateway = _gateway(generation_settings, openai_client=client)
        received: list[str] = []

        with pytest.raises(ProviderError):
            async for chunk in gateway.stream(GPT5, messages, openai_credentials, Deadline(5)):
                received.append(chunk)

        assert received == ['{"steps":']
        assert client.create_calls == []

    @pytest.mark.asyncio
    async def test_rejected_key_is_not_retried(self, fakes, generation_settings, messages, openai_credentials) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        auth_error = openai.AuthenticationError("bad key", response=httpx.Response(401, request=request), body=None)
        client = fakes.OpenAIClient(response_streams=[fakes.EventStream([auth_error])])
        gateway = _gateway(generation_settings, openai_client=client)

        with pytest.raises(InvalidApiKeyError):
            await _collect(gateway.stream(GPT5, messages, openai_credentials, Deadline(5)))

        assert client.create_calls == []


class TestBufferedComplete:
    """Buffered generation paths."""

    @pytest.mark.asyncio
    async def test_openai_uses_function_calling(
        self, fakes, generation_settings, messages, openai_credentials, diagram_json
    ) -> None:
        client = fakes.OpenAIClient(completions=[fakes.tool_call_completion(diagram_json)])
        gateway = _gateway(generation_settings, openai_client=client)

        output = await gateway.complete(GPT5, messages, openai_credentials, Deadline(5))

        assert output.source is OutputSource.FUNCTION_ARGUMENTS
        assert client.create_calls[0]["tools"][0]["type"] == "function"
        assert client.closed

    @pytest.mark.asyncio
    async def test_anthropic_collects_stream(self, fakes, generation_settings, messages, anthropic_credentials) -> None:
        stream = fakes.EventStream([fakes.event("text", text='{"steps":'), fakes.event("text", text="[]}")])
        client = fakes.AnthropicClient(streams=[stream])
        gateway = _gateway(generation_settings, anthropic_client=client)
        selection = ModelSelection(provider=Provider.ANTHROPIC, model="claude-3-5-haiku")

        output = await gateway.complete(selection, messages, anthropic_credentials, Deadline(5))

        assert output.text == '{"steps":[]}'
        assert output.source is OutputSource.STRUCTURED_TEXT
