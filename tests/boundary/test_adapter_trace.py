"""
Test suite for the provider adapter state machine.

System role: Verification of adapter lifecycle bookkeeping
"""

import pytest

from diagrammaton.boundary.llm.trace import AdapterState, AdapterTrace
from diagrammaton.core.exceptions import StreamStalledError
from diagrammaton.models.generation import ModelSelection, Provider, Variant


@pytest.fixture
def selection() -> ModelSelection:
    return ModelSelection(provider=Provider.OPENAI, model="gpt-5", variant=Variant.FAST)


class TestAdapterTrace:
    """State transitions."""

    def test_streaming_lifecycle(self, selection: ModelSelection) -> None:
        # Arrange
        trace = AdapterTrace(selection, "responses_streaming")

        # Act
        trace.dispatch()
        trace.record_chunk("{")
        trace.record_chunk("}")
        trace.complete()

        # Assert
        assert trace.history == [
            AdapterState.INIT,
            AdapterState.DISPATCHED,
            AdapterState.STREAMING,
            AdapterState.COMPLETED,
        ]
        assert trace.chunks == 2
        assert trace.first_byte_ms is not None

    def test_buffered_lifecycle(self, selection: ModelSelection) -> None:
        trace = AdapterTrace(selection, "function_calling", buffered=True)

        trace.dispatch()
        trace.record_chunk("{}")
        trace.complete()

        assert AdapterState.BUFFERED in trace.history

    def test_fallback_path(self, selection: ModelSelection) -> None:
        trace = AdapterTrace(selection, "responses_streaming")
        trace.dispatch()

        trace.begin_fallback("chat_streaming", StreamStalledError())
        trace.record_chunk("x")
        trace.complete()

        assert trace.fallback_used
        assert trace.path == "chat_streaming"
        assert trace.history[2:4] == [AdapterState.FAILED, AdapterState.FALLBACK_DISPATCHED]

    def test_invalid_transition_raises(self, selection: ModelSelection) -> None:
        trace = AdapterTrace(selection, "chat_streaming")

        with pytest.raises(RuntimeError):
            trace.complete()

    def test_fail_is_idempotent_on_failed(self, selection: ModelSelection) -> None:
        trace = AdapterTrace(selection, "chat_streaming")
        trace.dispatch()

        trace.fail(ValueError("x"))
        trace.fail(ValueError("y"))

        assert trace.state is AdapterState.FAILED
