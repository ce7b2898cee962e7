"""
OpenAI adapters.

Three paths over the openai SDK:
- Function calling (buffered): chat completion with the output schema as a tool
- Responses streaming: preferred streaming path with a first-byte watchdog
- Chat completions streaming: legacy models and the fallback path

Each adapter yields plain text chunks (or one RawModelOutput) and raises
taxonomy errors only.

Dependencies: openai, diagrammaton.core
System role: OpenAI protocol handling for the provider gateway
"""

import asyncio
import logging
from typing import Any, AsyncIterator

import openai
from openai import AsyncOpenAI

from diagrammaton.boundary.llm.errors import provider_error_from
from diagrammaton.core.budget import Deadline, next_within
from diagrammaton.core.capabilities import capabilities_for, openai_reasoning_effort
from diagrammaton.core.exceptions import (
    EmptyModelResponseError,
    GenerationTimeoutError,
    GPTFailedToCallFunctionError,
    ProviderError,
    StreamStalledError,
)
from diagrammaton.core.prompts import SCHEMA_NAME, TOOL_NAME, output_schema, schema_instructions
from diagrammaton.core.prompts.output_schema import TOOL_DESCRIPTION
from diagrammaton.models.generation import (
    ChatMessage,
    ChatRole,
    ModelSelection,
    OutputSource,
    Provider,
    RawModelOutput,
)

logger = logging.getLogger(__name__)

FUNCTION_CALL_FINISH_REASONS = frozenset({"tool_calls", "function_call"})


def to_chat_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": message.role.value, "content": message.content} for message in messages]


def diagram_tool(strict: bool = True) -> dict[str, Any]:
    """Output schema bound as a callable function tool."""
    function: dict[str, Any] = {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "parameters": output_schema(),
    }
    if strict:
        function["strict"] = True
    return {"type": "function", "function": function}


def json_schema_response_format() -> dict[str, Any]:
    """Chat completions structured output format."""
    return {
        "type": "json_schema",
        "json_schema": {"name": SCHEMA_NAME, "schema": output_schema(), "strict": True},
    }


def responses_text_format(verbosity: str | None = None) -> dict[str, Any]:
    """Responses API `text` parameter carrying the output schema."""
    text: dict[str, Any] = {
        "format": {
            "type": "json_schema",
            "name": SCHEMA_NAME,
            "schema": output_schema(),
            "strict": True,
        }
    }
    if verbosity:
        text["verbosity"] = verbosity
    return text


def _tool_arguments(message: Any) -> str | None:
    for tool_call in getattr(message, "tool_calls", None) or []:
        function = getattr(tool_call, "function", None)
        if function is not None and function.name == TOOL_NAME:
            return function.arguments
    # Legacy `functions` API
    function_call = getattr(message, "function_call", None)
    if function_call is not None and getattr(function_call, "arguments", None):
        return function_call.arguments
    return None


class OpenAIFunctionCallingAdapter:
    """Buffered chat completion with the diagram schema as a tool."""

    def __init__(self, max_tokens: int, temperature: float) -> None:
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_params(self, selection: ModelSelection, messages: list[ChatMessage]) -> dict[str, Any]:
        capabilities = capabilities_for(Provider.OPENAI, selection.model)
        params: dict[str, Any] = {
            "model": selection.model,
            "messages": to_chat_messages(messages),
            "tools": [diagram_tool(strict=capabilities.supports_json_schema)],
            "tool_choice": "auto",
            "max_completion_tokens": self.max_tokens,
        }
        effort = openai_reasoning_effort(selection.model, selection.variant)
        if effort:
            params["reasoning_effort"] = effort
        else:
            params["temperature"] = self.temperature
        return params

    async def complete(
        self,
        client: AsyncOpenAI,
        selection: ModelSelection,
        messages: list[ChatMessage],
        deadline: Deadline,
    ) -> RawModelOutput:
        """
        Run the function-calling request.

        Returns:
            RawModelOutput: Tool arguments, or free text when the model answered
            without calling the tool

        Raises:
            GPTFailedToCallFunctionError: Neither tool arguments nor text came back
            GenerationTimeoutError: Request budget exhausted
            ProviderError / InvalidApiKeyError: SDK failure
        """
        try:
            completion = await asyncio.wait_for(
                client.chat.completions.create(**self.build_params(selection, messages)),
                timeout=deadline.bound(),
            )
        except asyncio.TimeoutError as exc:
            raise GenerationTimeoutError(details={"path": "function_calling"}) from exc
        except openai.APIError as exc:
            raise provider_error_from(exc, Provider.OPENAI) from exc

        if not completion.choices:
            raise GPTFailedToCallFunctionError(details={"reason": "no choices"})

        choice = completion.choices[0]
        arguments = _tool_arguments(choice.message)
        if arguments is not None:
            if choice.finish_reason not in FUNCTION_CALL_FINISH_REASONS:
                logger.info(
                    "Tool arguments returned with unusual finish reason",
                    extra={"finish_reason": choice.finish_reason},
                )
            return RawModelOutput(text=arguments, source=OutputSource.FUNCTION_ARGUMENTS)

        content = (choice.message.content or "").strip()
        if content:
            logger.info(
                "Model answered in text instead of calling the tool",
                extra={"finish_reason": choice.finish_reason, "content_length": len(content)},
            )
            return RawModelOutput(text=content, source=OutputSource.FREE_TEXT)

        raise GPTFailedToCallFunctionError(details={"finish_reason": choice.finish_reason})


def _failure_message(event: Any) -> str | None:
    response = getattr(event, "response", None)
    error = getattr(response, "error", None)
    return getattr(error, "message", None)


def _message_item_text(item: Any) -> str:
    if getattr(item, "type", None) != "message":
        return ""
    return "".join(
        getattr(part, "text", "") or ""
        for part in getattr(item, "content", None) or []
        if getattr(part, "type", None) == "output_text"
    )


class OpenAIResponsesStreamAdapter:
    """
    Responses API streaming.

    Until the first text arrives, every event must show up within
    `first_byte_timeout` seconds or the stream is aborted with
    StreamStalledError. `error` and `response.failed` events raise
    immediately.
    """

    def __init__(self, first_byte_timeout: float) -> None:
        self.first_byte_timeout = first_byte_timeout

    def build_params(self, selection: ModelSelection, messages: list[ChatMessage]) -> dict[str, Any]:
        capabilities = capabilities_for(Provider.OPENAI, selection.model)
        params: dict[str, Any] = {
            "model": selection.model,
            "input": to_chat_messages(messages),
            "text": responses_text_format("low" if capabilities.supports_verbosity else None),
            "store": False,
        }
        effort = openai_reasoning_effort(selection.model, selection.variant)
        if effort:
            params["reasoning"] = {"effort": effort}
        return params

    @staticmethod
    def event_text(event: Any, seen_output: bool) -> str:
        """
        Text carried by one stream event.

        Raises:
            ProviderError: For `error` and `response.failed` events
        """
        event_type = getattr(event, "type", None)
        if event_type == "response.output_text.delta":
            return getattr(event, "delta", "") or ""
        if event_type == "error":
            raise ProviderError(
                "OpenAI API error",
                details={
                    "event": event_type,
                    "code": getattr(event, "code", None),
                    "provider_message": getattr(event, "message", None),
                },
            )
        if event_type == "response.failed":
            raise ProviderError(
                "OpenAI API error",
                details={"event": event_type, "provider_message": _failure_message(event)},
            )
        if seen_output:
            return ""
        if event_type == "response.content_part.added":
            part = getattr(event, "part", None)
            if getattr(part, "type", None) == "output_text":
                return getattr(part, "text", "") or ""
        if event_type == "response.output_item.added":
            return _message_item_text(getattr(event, "item", None))
        return ""

    async def stream(
        self,
        client: AsyncOpenAI,
        selection: ModelSelection,
        messages: list[ChatMessage],
        deadline: Deadline,
    ) -> AsyncIterator[str]:
        seen_output = False
        try:
            async with client.responses.stream(**self.build_params(selection, messages)) as stream:
                events = stream.__aiter__()
                while True:
                    timeout = deadline.bound(None if seen_output else self.first_byte_timeout)
                    try:
                        event = await next_within(events, timeout)
                    except StopAsyncIteration:
                        break
                    except asyncio.TimeoutError as exc:
                        if seen_output or deadline.expired:
                            raise GenerationTimeoutError(details={"path": "responses_streaming"}) from exc
                        raise StreamStalledError(
                            details={"path": "responses_streaming", "timeout_s": self.first_byte_timeout}
                        ) from exc

                    text = self.event_text(event, seen_output)
                    if text:
                        seen_output = True
                        yield text

                if not seen_output:
                    try:
                        final = await stream.get_final_response()
                    except RuntimeError as exc:
                        # Raised when the stream ended without response.completed
                        raise EmptyModelResponseError(
                            details={"path": "responses_streaming", "reason": "incomplete"}
                        ) from exc
                    text = getattr(final, "output_text", "") or ""
                    if not text:
                        raise EmptyModelResponseError(details={"path": "responses_streaming"})
                    yield text
        except openai.APIError as exc:
            raise provider_error_from(exc, Provider.OPENAI) from exc


class OpenAIChatStreamAdapter:
    """Chat completions streaming, emitting `choices[0].delta.content`."""

    def __init__(self, max_tokens: int) -> None:
        self.max_tokens = max_tokens

    def build_params(self, model: str, messages: list[ChatMessage]) -> dict[str, Any]:
        capabilities = capabilities_for(Provider.OPENAI, model)
        params: dict[str, Any] = {
            "model": model,
            "stream": True,
            "max_completion_tokens": self.max_tokens,
        }
        if capabilities.supports_json_schema:
            params["messages"] = to_chat_messages(messages)
            params["response_format"] = json_schema_response_format()
        else:
            instructions = ChatMessage(role=ChatRole.SYSTEM, content=schema_instructions())
            params["messages"] = to_chat_messages([*messages, instructions])
        return params

    async def stream(
        self,
        client: AsyncOpenAI,
        model: str,
        messages: list[ChatMessage],
        deadline: Deadline,
    ) -> AsyncIterator[str]:
        try:
            try:
                stream = await asyncio.wait_for(
                    client.chat.completions.create(**self.build_params(model, messages)),
                    timeout=deadline.bound(),
                )
            except asyncio.TimeoutError as exc:
                raise GenerationTimeoutError(details={"path": "chat_streaming"}) from exc

            emitted = False
            try:
                chunks = stream.__aiter__()
                while True:
                    try:
                        chunk = await next_within(chunks, deadline.bound())
                    except StopAsyncIteration:
                        break
                    except asyncio.TimeoutError as exc:
                        raise GenerationTimeoutError(details={"path": "chat_streaming"}) from exc
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        emitted = True
                        yield delta
            finally:
                await stream.close()
        except openai.APIError as exc:
            raise provider_error_from(exc, Provider.OPENAI) from exc

        if not emitted:
            raise EmptyModelResponseError(details={"path": "chat_streaming"})
