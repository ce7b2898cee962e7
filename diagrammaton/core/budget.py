"""
Request time budget.

Deadline bounds every wait on a provider; BudgetMonitor logs periodic
warnings once a request gets close to its soft budget. Used by the
generation service and the streaming adapters.

Dependencies: asyncio (stdlib)
System role: Wall-clock control for generation requests
"""

import asyncio
import contextlib
import logging
import time
from typing import AsyncIterator, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """Soft end-to-end budget measured on a monotonic clock."""

    def __init__(self, budget_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.budget_seconds = budget_seconds
        self._clock = clock
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        return max(0.0, self.budget_seconds - self.elapsed)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def bound(self, timeout: float | None = None) -> float:
        """Shorter of `timeout` and the remaining budget."""
        remaining = self.remaining()
        return remaining if timeout is None else min(timeout, remaining)


async def next_within(iterator: AsyncIterator[T], timeout: float) -> T:
    """
    Await the next item of an async iterator with a timeout.

    Raises:
        StopAsyncIteration: When the iterator is exhausted
        asyncio.TimeoutError: When no item arrives within `timeout`
    """
    return await asyncio.wait_for(iterator.__anext__(), timeout=timeout)


class BudgetMonitor:
    """
    Background task logging 'approaching time budget' warnings.

    Starts warning after `warn_after` seconds of the deadline have elapsed
    and repeats every `interval` seconds until stopped or the deadline
    passes, at which point it logs once more and exits.
    """

    def __init__(
        self,
        deadline: Deadline,
        warn_after: float,
        interval: float,
        **context,
    ) -> None:
        self._deadline = deadline
        self._warn_after = warn_after
        self._interval = interval
        self._context = context
        self._task: asyncio.Task | None = None
        self.warnings_emitted = 0

    def start(self) -> "BudgetMonitor":
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        await asyncio.sleep(max(0.0, self._warn_after - self._deadline.elapsed))
        while not self._deadline.expired:
            self.warnings_emitted += 1
            logger.warning(
                "Request approaching time budget",
                extra={
                    "elapsed_s": round(self._deadline.elapsed, 2),
                    "remaining_s": round(self._deadline.remaining(), 2),
                    "budget_s": self._deadline.budget_seconds,
                    **self._context,
                },
            )
            await asyncio.sleep(min(self._interval, max(self._deadline.remaining(), 0.01)))
        logger.warning(
            "Request exceeded time budget",
            extra={"elapsed_s": round(self._deadline.elapsed, 2), **self._context},
        )

    async def __aenter__(self) -> "BudgetMonitor":
        return self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
