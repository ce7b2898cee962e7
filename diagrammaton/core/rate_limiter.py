"""
Rate limiter gate.

Sliding window quota per caller identifier, checked before any
credential lookup or provider call. Counting is delegated to a
SlidingWindowCounter backend: process memory here, or the shared
database (boundary.db.rate_limit_counter).

Dependencies: sqlalchemy (error wrapping), diagrammaton.core.exceptions
System role: Fast-fail abuse protection in front of the generation pipeline
"""

import logging
import time
from collections import deque
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from diagrammaton.core.exceptions import RateLimitExceededError, UnexpectedError
from diagrammaton.observability.log_utils import redact_secret

logger = logging.getLogger(__name__)


class SlidingWindowCounter(Protocol):
    """Backend contract: record a hit if the window still has room."""

    async def hit(self, identifier: str, limit: int, window_seconds: float) -> bool:
        """Return True and record the hit when allowed, False when exhausted."""
        ...


class InMemorySlidingWindowCounter:
    """Per-identifier deque of hit timestamps; single process only."""

    SWEEP_EVERY = 1000

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._calls = 0

    async def hit(self, identifier: str, limit: int, window_seconds: float) -> bool:
        now = self._clock()
        cutoff = now - window_seconds

        # Sweep before taking the bucket so this call's bucket stays registered
        self._calls += 1
        if self._calls % self.SWEEP_EVERY == 0:
            self._sweep(cutoff)

        bucket = self._hits.setdefault(identifier, deque())
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

        if len(bucket) >= limit:
            return False
        bucket.append(now)
        return True

    def _sweep(self, cutoff: float) -> None:
        stale = [key for key, bucket in self._hits.items() if not bucket or bucket[-1] <= cutoff]
        for key in stale:
            del self._hits[key]


def resolve_rate_limit_identifier(forwarded_for: str | None, license_key: str) -> str:
    """First X-Forwarded-For address when present, else the license key."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return license_key


class RateLimiterGate:
    """Allow/deny decision for a caller identifier."""

    def __init__(self, counter: SlidingWindowCounter, max_requests: int, window_seconds: float) -> None:
        self._counter = counter
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    async def check_rate_limit(self, identifier: str) -> None:
        """
        Record a request for `identifier`.

        Raises:
            RateLimitExceededError: If the window is exhausted
            UnexpectedError: If the counter backend fails
        """
        try:
            allowed = await self._counter.hit(identifier, self.max_requests, self.window_seconds)
        except SQLAlchemyError as exc:
            raise UnexpectedError(
                details={"collaborator": "rate_limiter", "error_type": type(exc).__name__}
            ) from exc

        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "identifier_hint": redact_secret(identifier),
                    "max_requests": self.max_requests,
                    "window_seconds": self.window_seconds,
                },
            )
            raise RateLimitExceededError(details={"identifier_hint": redact_secret(identifier)})
