"""
Per-call adapter state machine and structured logging.

Every provider call walks INIT -> DISPATCHED -> STREAMING|BUFFERED ->
COMPLETED|FAILED, with FAILED -> FALLBACK_DISPATCHED when the gateway
degrades to the secondary path. Entry, first byte and exit are logged
with the path taken and whether a fallback occurred.

Dependencies: logging (stdlib), diagrammaton.models
System role: Operational visibility into provider calls
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from diagrammaton.models.generation import ModelSelection

logger = logging.getLogger(__name__)


class AdapterState(str, Enum):
    INIT = "init"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    BUFFERED = "buffered"
    COMPLETED = "completed"
    FAILED = "failed"
    FALLBACK_DISPATCHED = "fallback_dispatched"


_TRANSITIONS: dict[AdapterState, frozenset[AdapterState]] = {
    AdapterState.INIT: frozenset({AdapterState.DISPATCHED, AdapterState.FAILED}),
    AdapterState.DISPATCHED: frozenset({
        AdapterState.STREAMING,
        AdapterState.BUFFERED,
        AdapterState.FAILED,
    }),
    AdapterState.STREAMING: frozenset({AdapterState.COMPLETED, AdapterState.FAILED}),
    AdapterState.BUFFERED: frozenset({AdapterState.COMPLETED, AdapterState.FAILED}),
    AdapterState.FAILED: frozenset({AdapterState.FALLBACK_DISPATCHED}),
    AdapterState.FALLBACK_DISPATCHED: frozenset({AdapterState.STREAMING, AdapterState.FAILED}),
    AdapterState.COMPLETED: frozenset(),
}


@dataclass
class AdapterTrace:
    """
    State and timing of one gateway call.

    Attributes:
        selection: Provider/model/variant requested
        path: Adapter path currently in use (capability value or 'function_calling')
        buffered: Whether output is collected rather than streamed to the caller
    """

    selection: ModelSelection
    path: str
    buffered: bool = False
    state: AdapterState = AdapterState.INIT
    history: list[AdapterState] = field(default_factory=lambda: [AdapterState.INIT])
    fallback_used: bool = False
    chunks: int = 0
    started_at: float = field(default_factory=time.perf_counter)
    first_byte_at: float | None = None

    def transition(self, state: AdapterState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid adapter transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _context(self) -> dict:
        return {
            "provider": self.selection.provider.value,
            "model": self.selection.model,
            "variant": self.selection.variant.value,
            "path": self.path,
            "state": self.state.value,
            "fallback_used": self.fallback_used,
        }

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started_at) * 1000, 2)

    @property
    def first_byte_ms(self) -> float | None:
        if self.first_byte_at is None:
            return None
        return round((self.first_byte_at - self.started_at) * 1000, 2)

    def dispatch(self) -> None:
        logger.info("Provider adapter entry", extra=self._context())
        self.transition(AdapterState.DISPATCHED)

    def record_chunk(self, chunk: str) -> None:
        """Count a chunk; the first one moves the call to STREAMING or BUFFERED."""
        self.chunks += 1
        if self.first_byte_at is not None:
            return
        self.first_byte_at = time.perf_counter()
        self.transition(AdapterState.BUFFERED if self.buffered else AdapterState.STREAMING)
        logger.info(
            "Provider first byte",
            extra={**self._context(), "first_byte_ms": self.first_byte_ms, "chunk_chars": len(chunk)},
        )

    def begin_fallback(self, path: str, cause: BaseException) -> None:
        self.transition(AdapterState.FAILED)
        logger.warning(
            "Primary provider path failed, falling back",
            extra={**self._context(), "fallback_path": path, "error_type": type(cause).__name__},
        )
        self.transition(AdapterState.FALLBACK_DISPATCHED)
        self.path = path
        self.fallback_used = True

    def complete(self) -> None:
        self.transition(AdapterState.COMPLETED)
        self._log_exit(logging.INFO, None)

    def fail(self, cause: BaseException) -> None:
        if self.state is not AdapterState.FAILED:
            self.transition(AdapterState.FAILED)
        self._log_exit(logging.WARNING, cause)

    def _log_exit(self, level: int, cause: BaseException | None) -> None:
        logger.log(
            level,
            "Provider adapter exit",
            extra={
                **self._context(),
                "elapsed_ms": self.elapsed_ms,
                "first_byte_ms": self.first_byte_ms,
                "chunks": self.chunks,
                "error_type": type(cause).__name__ if cause else None,
            },
        )
