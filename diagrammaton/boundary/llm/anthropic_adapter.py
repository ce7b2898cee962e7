"""
Anthropic streaming adapter.

Messages API streaming with extended thinking for the thinking variant.
Anthropic has no structured-output parameter here, so the schema travels
as an extra system instruction. Only text events reach the caller;
thinking deltas only keep the watchdog alive.

Dependencies: anthropic, diagrammaton.core
System role: Anthropic protocol handling for the provider gateway
"""

import asyncio
from typing import Any, AsyncIterator

import anthropic
from anthropic import AsyncAnthropic

from diagrammaton.boundary.llm.errors import provider_error_from
from diagrammaton.core.budget import Deadline, next_within
from diagrammaton.core.capabilities import anthropic_thinking_config
from diagrammaton.core.exceptions import (
    EmptyModelResponseError,
    GenerationTimeoutError,
    StreamStalledError,
)
from diagrammaton.core.prompts import schema_instructions
from diagrammaton.models.generation import ChatMessage, ChatRole, ModelSelection, Provider


def to_anthropic_input(messages: list[ChatMessage]) -> tuple[str, list[dict[str, str]]]:
    """Split messages into a joined system prompt and the user/assistant turns."""
    system = "\n\n".join(message.content for message in messages if message.role is ChatRole.SYSTEM)
    conversation = [
        {"role": message.role.value, "content": message.content}
        for message in messages
        if message.role is not ChatRole.SYSTEM
    ]
    return system, conversation


class AnthropicStreamAdapter:
    """Anthropic Messages streaming with an optional thinking budget."""

    def __init__(self, max_tokens: int, thinking_budget_tokens: int, first_byte_timeout: float) -> None:
        self.max_tokens = max_tokens
        self.thinking_budget_tokens = thinking_budget_tokens
        self.first_byte_timeout = first_byte_timeout

    def build_params(self, selection: ModelSelection, messages: list[ChatMessage]) -> dict[str, Any]:
        system, conversation = to_anthropic_input(messages)
        return {
            "model": selection.model,
            "max_tokens": self.max_tokens,
            "system": "\n\n".join(part for part in (system, schema_instructions()) if part),
            "messages": conversation,
            "thinking": anthropic_thinking_config(
                selection.variant, self.max_tokens, self.thinking_budget_tokens
            ),
        }

    async def stream(
        self,
        client: AsyncAnthropic,
        selection: ModelSelection,
        messages: list[ChatMessage],
        deadline: Deadline,
    ) -> AsyncIterator[str]:
        emitted = False
        try:
            async with client.messages.stream(**self.build_params(selection, messages)) as stream:
                events = stream.__aiter__()
                while True:
                    timeout = deadline.bound(None if emitted else self.first_byte_timeout)
                    try:
                        event = await next_within(events, timeout)
                    except StopAsyncIteration:
                        break
                    except asyncio.TimeoutError as exc:
                        if emitted or deadline.expired:
                            raise GenerationTimeoutError(details={"path": "anthropic_streaming"}) from exc
                        raise StreamStalledError(
                            details={"path": "anthropic_streaming", "timeout_s": self.first_byte_timeout}
                        ) from exc

                    if getattr(event, "type", None) == "text" and getattr(event, "text", ""):
                        emitted = True
                        yield event.text

                if not emitted:
                    try:
                        text = await stream.get_final_text()
                    except RuntimeError as exc:
                        # Raised when the final message holds no text block
                        raise EmptyModelResponseError(details={"path": "anthropic_streaming"}) from exc
                    if not text:
                        raise EmptyModelResponseError(details={"path": "anthropic_streaming"})
                    yield text
        except anthropic.APIError as exc:
            raise provider_error_from(exc, Provider.ANTHROPIC) from exc
