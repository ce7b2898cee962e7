"""
FastAPI middleware for observability.

CorrelationMiddleware scopes a correlation id to each request and echoes
it back; RequestLoggingMiddleware emits one start and one finish event
per request. Streaming responses are logged when their headers are sent,
so `elapsed_ms` there is time to first byte.

Dependencies: fastapi, starlette, diagrammaton.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from diagrammaton.observability.correlation import (
    clear_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and timing for every request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        context = {
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else None,
        }
        logger.info(f"{route} started", extra=context)

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{route} raised",
                extra={**context, "elapsed_ms": _elapsed_ms(started), "error_type": type(e).__name__},
            )
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{route} -> {response.status_code}",
            extra={**context, "status_code": response.status_code, "elapsed_ms": _elapsed_ms(started)},
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Binds the request's correlation id, generating one when absent."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
