"""
Provider gateway.

Single entry point for provider calls. The streaming protocol comes from
the static capability table:

- RESPONSES_STREAMING: OpenAI Responses API, degrading once to chat
  completions streaming on the fallback model if it fails before any
  text was delivered
- CHAT_STREAMING: OpenAI chat completions streaming on the selected model
- ANTHROPIC_STREAMING: Anthropic Messages streaming

Buffered calls use OpenAI function calling, or collect the Anthropic
stream. Clients are opened per call and closed when the call ends, so
a cancelled caller never leaves a provider request running.

Dependencies: openai, anthropic, diagrammaton.core, diagrammaton.configs
System role: Provider adapter layer facade used by the generation service
"""

import asyncio
from contextlib import aclosing
from typing import AsyncIterator

from diagrammaton.boundary.llm.anthropic_adapter import AnthropicStreamAdapter
from diagrammaton.boundary.llm.clients import (
    AnthropicClientFactory,
    OpenAIClientFactory,
    create_anthropic_client,
    create_openai_client,
)
from diagrammaton.boundary.llm.openai_adapter import (
    OpenAIChatStreamAdapter,
    OpenAIFunctionCallingAdapter,
    OpenAIResponsesStreamAdapter,
)
from diagrammaton.boundary.llm.trace import AdapterTrace
from diagrammaton.configs.generation import GenerationSettings
from diagrammaton.core.budget import Deadline
from diagrammaton.core.capabilities import ProviderCapability, capabilities_for
from diagrammaton.core.exceptions import GenerationTimeoutError, ProviderError
from diagrammaton.models.generation import (
    ChatMessage,
    ModelSelection,
    OutputSource,
    Provider,
    ProviderCredentials,
    RawModelOutput,
)

FUNCTION_CALLING_PATH = "function_calling"


class ProviderGateway:
    """Dispatches generation calls to the right adapter."""

    def __init__(
        self,
        settings: GenerationSettings,
        openai_client_factory: OpenAIClientFactory = create_openai_client,
        anthropic_client_factory: AnthropicClientFactory = create_anthropic_client,
    ) -> None:
        self.fallback_model = settings.fallback_model
        self._openai_client_factory = openai_client_factory
        self._anthropic_client_factory = anthropic_client_factory
        self._function_calling = OpenAIFunctionCallingAdapter(
            max_tokens=settings.function_call_max_tokens,
            temperature=settings.function_call_temperature,
        )
        self._responses = OpenAIResponsesStreamAdapter(
            first_byte_timeout=settings.first_byte_timeout_seconds,
        )
        self._chat = OpenAIChatStreamAdapter(max_tokens=settings.max_tokens)
        self._anthropic = AnthropicStreamAdapter(
            max_tokens=settings.max_tokens,
            thinking_budget_tokens=settings.thinking_budget_tokens,
            first_byte_timeout=settings.first_byte_timeout_seconds,
        )

    @staticmethod
    def capability_for(selection: ModelSelection) -> ProviderCapability:
        return capabilities_for(selection.provider, selection.model).streaming

    def _client(self, credentials: ProviderCredentials):
        api_key = credentials.api_key.get_secret_value()
        if credentials.provider is Provider.ANTHROPIC:
            return self._anthropic_client_factory(api_key)
        return self._openai_client_factory(api_key)

    async def complete(
        self,
        selection: ModelSelection,
        messages: list[ChatMessage],
        credentials: ProviderCredentials,
        deadline: Deadline,
    ) -> RawModelOutput:
        """
        Buffered generation.

        Returns:
            RawModelOutput: Candidate JSON text for the validator
        """
        if selection.provider is Provider.ANTHROPIC:
            trace = AdapterTrace(selection, ProviderCapability.ANTHROPIC_STREAMING.value, buffered=True)
        else:
            trace = AdapterTrace(selection, FUNCTION_CALLING_PATH, buffered=True)

        trace.dispatch()
        try:
            async with self._client(credentials) as client:
                if selection.provider is Provider.ANTHROPIC:
                    parts: list[str] = []
                    async with aclosing(self._anthropic.stream(client, selection, messages, deadline)) as chunks:
                        async for chunk in chunks:
                            trace.record_chunk(chunk)
                            parts.append(chunk)
                    output = RawModelOutput(text="".join(parts), source=OutputSource.STRUCTURED_TEXT)
                else:
                    output = await self._function_calling.complete(client, selection, messages, deadline)
                    trace.record_chunk(output.text)
        except (Exception, asyncio.CancelledError) as exc:
            trace.fail(exc)
            raise

        trace.complete()
        return output

    async def stream(
        self,
        selection: ModelSelection,
        messages: list[ChatMessage],
        credentials: ProviderCredentials,
        deadline: Deadline,
    ) -> AsyncIterator[str]:
        """
        Streamed generation; yields text chunks in provider order.

        Raises:
            ProviderError / InvalidApiKeyError: When the call (and any fallback) fails
        """
        capability = self.capability_for(selection)
        trace = AdapterTrace(selection, capability.value)
        trace.dispatch()

        try:
            async with self._client(credentials) as client:
                if capability is ProviderCapability.RESPONSES_STREAMING:
                    chunks = self._responses_with_fallback(client, selection, messages, deadline, trace)
                elif capability is ProviderCapability.CHAT_STREAMING:
                    chunks = self._relay(trace, self._chat.stream(client, selection.model, messages, deadline))
                else:
                    chunks = self._relay(trace, self._anthropic.stream(client, selection, messages, deadline))

                async with aclosing(chunks):
                    async for chunk in chunks:
                        yield chunk
        except (Exception, asyncio.CancelledError, GeneratorExit) as exc:
            trace.fail(exc)
            raise

        trace.complete()

    async def _relay(self, trace: AdapterTrace, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
        async with aclosing(chunks):
            async for chunk in chunks:
                trace.record_chunk(chunk)
                yield chunk

    async def _responses_with_fallback(
        self,
        client,
        selection: ModelSelection,
        messages: list[ChatMessage],
        deadline: Deadline,
        trace: AdapterTrace,
    ) -> AsyncIterator[str]:
        primary = self._relay(trace, self._responses.stream(client, selection, messages, deadline))
        try:
            async with aclosing(primary):
                async for chunk in primary:
                    yield chunk
            return
        except GenerationTimeoutError:
            raise
        except ProviderError as exc:
            # Tokens already delivered cannot be retracted
            if trace.chunks:
                raise
            cause = exc

        trace.begin_fallback(ProviderCapability.CHAT_STREAMING.value, cause)
        fallback = self._relay(trace, self._chat.stream(client, self.fallback_model, messages, deadline))
        async with aclosing(fallback):
            async for chunk in fallback:
                yield chunk
