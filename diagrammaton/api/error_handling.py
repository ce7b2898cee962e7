"""
API error handling utilities.

Maps taxonomy failures onto the uniform `{type: "error", message}` body
with the status carried by each kind, and provides a decorator for
endpoints whose services raise instead of returning error records.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from diagrammaton.core.exceptions import (
    DiagrammatonError,
    ErrorRecord,
    to_error_record,
)

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])


def error_response(record: ErrorRecord) -> JSONResponse:
    """JSON response for an error record; log_context never leaves the server."""
    return JSONResponse(status_code=record.http_status, content=record.to_payload())


def handle_diagrammaton_errors(func: F) -> F:
    """
    Decorator to turn raised failures into uniform error responses.

    This centralizes:
    - Logging of errors with their context
    - Mapping each error kind to its HTTP status
    - Collapsing unknown exceptions to the generic unexpected error
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except DiagrammatonError as e:
            record = e.to_record()
            logger.warning(
                "Request failed",
                extra={"kind": record.kind.value, "http_status": record.http_status, "error_msg": str(e)},
            )
            return error_response(record)

        except Exception as e:
            logger.exception(
                "Unexpected failure in request handler",
                extra={"error_type": type(e).__name__},
            )
            return error_response(to_error_record(e))

    return wrapper  # type: ignore


async def diagrammaton_error_handler(request: Request, exc: DiagrammatonError) -> JSONResponse:
    """Fallback handler for taxonomy errors raised outside decorated endpoints."""
    record = exc.to_record()
    logger.warning(
        "Unhandled taxonomy error",
        extra={"path": request.url.path, "kind": record.kind.value, "error_msg": str(exc)},
    )
    return error_response(record)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: generic 500 in the uniform error shape."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=to_error_record(exc).to_payload(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on an application."""
    app.add_exception_handler(DiagrammatonError, diagrammaton_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
