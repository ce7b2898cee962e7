"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory database session, fake OpenAI/Anthropic SDK clients,
settings and identity fixtures
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
import uuid
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import SecretStr


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
    from sqlalchemy.pool import StaticPool
    from diagrammaton.boundary.db.base import Base
    import diagrammaton.boundary.db.models  # noqa: F401  (register tables)

    # Use SQLite in-memory database for tests
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session factory
    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create session for test
    async with async_session() as session:
        yield session
        await session.rollback()

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def generation_settings():
    """Generation settings with short timeouts for tests."""
    from diagrammaton.configs.generation import GenerationSettings

    return GenerationSettings(
        first_byte_timeout_seconds=0.2,
        request_budget_seconds=5.0,
        budget_warning_seconds=4.0,
        budget_warning_interval_seconds=1.0,
    )


@pytest.fixture
def licensed_identity():
    """Identity holding an OpenAI key only."""
    from diagrammaton.models.identity import LicensedIdentity

    return LicensedIdentity(
        id=uuid.uuid4(),
        email="user@example.com",
        openai_api_key=SecretStr("sk-test-openai-123456"),
        anthropic_api_key=None,
    )


# ---------------------------------------------------------------------------
# Fake provider SDK clients
# ---------------------------------------------------------------------------


def event(type: str, **fields: Any) -> SimpleNamespace:
    """Stream event shaped like the SDK's typed events."""
    return SimpleNamespace(type=type, **fields)


class FakeEventStream:
    """
    Stand-in for the SDK stream managers used with `async with`.

    Items may be events, exceptions (raised when reached) or floats
    (sleep that many seconds before continuing).

    The final-output helpers raise RuntimeError the way the SDKs do:
    `get_final_response` unless a `response.completed` event was streamed,
    `get_final_text` when the message holds no text block.
    """

    def __init__(self, items: list[Any], final_text: str = "", final_response: Any = None) -> None:
        self.items = items
        self.final_text = final_text
        self.final_response = final_response or SimpleNamespace(output_text=final_text)
        self.completed = False
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeEventStream":
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.exited = True

    async def _events(self):
        for item in self.items:
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, float):
                await asyncio.sleep(item)
                continue
            if getattr(item, "type", None) == "response.completed":
                self.completed = True
            yield item

    def __aiter__(self):
        return self._events()

    async def get_final_response(self) -> Any:
        if not self.completed:
            raise RuntimeError("Didn't receive a `response.completed` event.")
        return self.final_response

    async def get_final_text(self) -> str:
        if not self.final_text:
            raise RuntimeError(".get_final_text() as the final message did not contain any text content")
        return self.final_text


class FakeChatStream:
    """Awaited result of `chat.completions.create(stream=True)`."""

    def __init__(self, deltas: list[Any]) -> None:
        self.deltas = deltas
        self.closed = False

    async def _chunks(self):
        for delta in self.deltas:
            if isinstance(delta, BaseException):
                raise delta
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=delta))])

    def __aiter__(self):
        return self._chunks()

    async def close(self) -> None:
        self.closed = True


def tool_call_completion(arguments: str, name: str = "print_diagram") -> SimpleNamespace:
    """Chat completion whose first choice calls the diagram tool."""
    message = SimpleNamespace(
        content=None,
        tool_calls=[SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))],
        function_call=None,
    )
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="tool_calls")])


def text_completion(content: str | None) -> SimpleNamespace:
    """Chat completion answering in plain text."""
    message = SimpleNamespace(content=content, tool_calls=None, function_call=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])


class FakeOpenAIClient:
    """
    Minimal AsyncOpenAI double.

    `completions` feeds `chat.completions.create` in call order (an item may
    be an exception to raise); `response_streams` feeds `responses.stream`.
    """

    def __init__(
        self,
        completions: list[Any] | None = None,
        response_streams: list[FakeEventStream] | None = None,
        models: list[Any] | None = None,
        models_error: Exception | None = None,
    ) -> None:
        self._completions = list(completions or [])
        self._response_streams = list(response_streams or [])
        self._models = models or []
        self._models_error = models_error
        self.create_calls: list[dict[str, Any]] = []
        self.responses_calls: list[dict[str, Any]] = []
        self.closed = False
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        self.responses = SimpleNamespace(stream=self._responses_stream)
        self.models = SimpleNamespace(list=self._list_models)

    async def __aenter__(self) -> "FakeOpenAIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def _create(self, **params: Any) -> Any:
        self.create_calls.append(params)
        result = self._completions.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def _responses_stream(self, **params: Any) -> FakeEventStream:
        self.responses_calls.append(params)
        return self._response_streams.pop(0)

    async def _list_models(self) -> SimpleNamespace:
        if self._models_error is not None:
            raise self._models_error
        return SimpleNamespace(data=self._models)


class FakeAnthropicClient:
    """Minimal AsyncAnthropic double."""

    def __init__(
        self,
        streams: list[FakeEventStream] | None = None,
        models: list[Any] | None = None,
        models_error: Exception | None = None,
    ) -> None:
        self._streams = list(streams or [])
        self._models = models or []
        self._models_error = models_error
        self.stream_calls: list[dict[str, Any]] = []
        self.closed = False
        self.messages = SimpleNamespace(stream=self._stream)
        self.models = SimpleNamespace(list=self._list_models)

    async def __aenter__(self) -> "FakeAnthropicClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    def _stream(self, **params: Any) -> FakeEventStream:
        self.stream_calls.append(params)
        return self._streams.pop(0)

    async def _list_models(self) -> SimpleNamespace:
        if self._models_error is not None:
            raise self._models_error
        return SimpleNamespace(data=self._models)


@pytest.fixture
def fakes() -> SimpleNamespace:
    """Fake SDK building blocks, grouped for tests."""
    return SimpleNamespace(
        event=event,
        EventStream=FakeEventStream,
        ChatStream=FakeChatStream,
        OpenAIClient=FakeOpenAIClient,
        AnthropicClient=FakeAnthropicClient,
        tool_call_completion=tool_call_completion,
        text_completion=text_completion,
    )


@pytest.fixture
def diagram_json() -> str:
    """One-step SQUARE -> DIAMOND diagram as the model would return it."""
    return (
        '{"steps":[{"from":{"id":"a","label":"Start","shape":"SQUARE"},'
        '"link":{"label":"next","fromMagnet":"RIGHT","toMagnet":"LEFT"},'
        '"to":{"id":"b","label":"Decide","shape":"DIAMOND"}}],"message":null}'
    )
