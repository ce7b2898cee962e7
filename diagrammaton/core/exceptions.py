"""
Error taxonomy for the generation pipeline.

A closed set of failure kinds, each with a fixed HTTP status and public
message. Every failure raised inside the core is one of these; anything
else is collapsed to Unexpected at the boundary.

Dependencies: pydantic, diagrammaton.models.common
System role: Typed failures and their conversion into ErrorRecord values
"""

from enum import Enum
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, Field

from diagrammaton.models.common import ErrorResponse

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class ErrorKind(str, Enum):
    """Closed set of client-facing failure kinds."""

    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    NO_DESCRIPTION_PROVIDED = "NoDescriptionProvided"
    INVALID_LICENSE_KEY = "InvalidLicenseKey"
    USER_NOT_FOUND = "UserNotFound"
    API_KEY_NOT_FOUND_FOR_USER = "ApiKeyNotFoundForUser"
    INVALID_API_KEY = "InvalidApiKey"
    PROVIDER_ERROR = "ProviderError"
    UNABLE_TO_PARSE_RESPONSE = "UnableToParseResponse"
    GPT_FAILED_TO_CALL_FUNCTION = "GPTFailedToCallFunction"
    UNEXPECTED = "Unexpected"


class ErrorRecord(BaseModel):
    """Typed failure value handed to the HTTP boundary."""

    kind: ErrorKind = Field(description="Taxonomy kind")
    message: str = Field(description="Public, user-facing message")
    http_status: int = Field(description="HTTP status analog")
    log_context: dict[str, Any] = Field(
        default_factory=dict,
        description="Server-side context; never returned to the caller",
    )

    def to_payload(self) -> dict[str, str]:
        """Uniform client payload for any failure."""
        return ErrorResponse(message=self.message).model_dump()


class DiagrammatonError(Exception):
    """Base exception for all taxonomy failures."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    http_status: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = UNEXPECTED_ERROR_MESSAGE

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message

    def to_record(self) -> ErrorRecord:
        """Convert into the ErrorRecord handed to the boundary."""
        return ErrorRecord(
            kind=self.kind,
            message=self.message,
            http_status=int(self.http_status),
            log_context=dict(self.details),
        )


class RateLimitExceededError(DiagrammatonError):
    """Sliding window quota exhausted for the caller's identifier."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    http_status = HTTPStatus.TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded"


class NoDescriptionProvidedError(DiagrammatonError):
    """Request carried no usable description or modification payload."""

    kind = ErrorKind.NO_DESCRIPTION_PROVIDED
    http_status = HTTPStatus.BAD_REQUEST
    default_message = "No diagram description provided"


class InvalidLicenseKeyError(DiagrammatonError):
    """License key unknown, revoked or expired; callers cannot tell which."""

    kind = ErrorKind.INVALID_LICENSE_KEY
    http_status = HTTPStatus.UNAUTHORIZED
    default_message = "Invalid license key"


class MissingLicenseKeyError(InvalidLicenseKeyError):
    """Request did not include a license key at all."""

    http_status = HTTPStatus.BAD_REQUEST
    default_message = "License key is required"


class UserNotFoundError(DiagrammatonError):
    """License key references an account that no longer exists."""

    kind = ErrorKind.USER_NOT_FOUND
    http_status = HTTPStatus.UNAUTHORIZED
    default_message = "User not found"


class ApiKeyNotFoundForUserError(DiagrammatonError):
    """User has no stored API key for the selected provider."""

    kind = ErrorKind.API_KEY_NOT_FOUND_FOR_USER
    http_status = HTTPStatus.BAD_REQUEST
    default_message = "No OpenAI API key registered"


class InvalidApiKeyError(DiagrammatonError):
    """Provider rejected the user's API key, or the key is malformed."""

    kind = ErrorKind.INVALID_API_KEY
    http_status = HTTPStatus.BAD_REQUEST
    default_message = "Your API key was rejected by the model provider"


class ProviderError(DiagrammatonError):
    """Upstream model provider failed."""

    kind = ErrorKind.PROVIDER_ERROR
    http_status = HTTPStatus.BAD_GATEWAY
    default_message = "The model provider returned an error"


class StreamStalledError(ProviderError):
    """Stream accepted the connection but produced nothing before the watchdog fired."""

    default_message = "The model provider stopped responding"


class EmptyModelResponseError(ProviderError):
    """Provider call completed without producing any output text."""

    default_message = "The model provider returned an empty response"


class GenerationTimeoutError(ProviderError):
    """Overall request budget exhausted while waiting on the provider."""

    default_message = "The model took too long to respond"


class UnableToParseResponseError(DiagrammatonError):
    """Model output could not be turned into a valid diagram."""

    kind = ErrorKind.UNABLE_TO_PARSE_RESPONSE
    http_status = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Unable to parse model response"


class GPTFailedToCallFunctionError(DiagrammatonError):
    """Function-calling path returned neither tool arguments nor usable text."""

    kind = ErrorKind.GPT_FAILED_TO_CALL_FUNCTION
    http_status = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "GPT failed to utilize function_call"


class UnexpectedError(DiagrammatonError):
    """Anything outside the taxonomy, including collaborator faults."""


def to_error_record(exc: BaseException) -> ErrorRecord:
    """
    Convert any exception into an ErrorRecord.

    Taxonomy errors keep their kind and public message. Everything else
    becomes Unexpected with a generic message; the original type and text
    only go into log_context.

    Args:
        exc: Exception caught at an entry point boundary

    Returns:
        ErrorRecord: Value safe to hand to the HTTP layer
    """
    if isinstance(exc, DiagrammatonError):
        return exc.to_record()
    return ErrorRecord(
        kind=ErrorKind.UNEXPECTED,
        message=UNEXPECTED_ERROR_MESSAGE,
        http_status=int(HTTPStatus.INTERNAL_SERVER_ERROR),
        log_context={"error_type": type(exc).__name__, "error_msg": str(exc)},
    )
