"""
Provider SDK error translation.

Authentication failures become InvalidApiKey so the user gets an
actionable message; every other SDK error becomes ProviderError.

Dependencies: openai, anthropic, diagrammaton.core.exceptions
System role: Single mapping point from SDK exceptions to the taxonomy
"""

import anthropic
import openai

from diagrammaton.core.exceptions import (
    DiagrammatonError,
    GenerationTimeoutError,
    InvalidApiKeyError,
    ProviderError,
)
from diagrammaton.models.generation import Provider

_AUTH_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
    anthropic.AuthenticationError,
    anthropic.PermissionDeniedError,
)
_TIMEOUT_ERRORS = (openai.APITimeoutError, anthropic.APITimeoutError)


def provider_error_from(exc: Exception, provider: Provider) -> DiagrammatonError:
    """
    Translate a provider SDK exception.

    Args:
        exc: Exception raised by the openai or anthropic SDK
        provider: Provider that raised it

    Returns:
        DiagrammatonError: InvalidApiKeyError, GenerationTimeoutError or ProviderError
    """
    status_code = getattr(exc, "status_code", None)
    details = {
        "provider": provider.value,
        "error_type": type(exc).__name__,
        "status_code": status_code,
    }

    if isinstance(exc, _AUTH_ERRORS) or status_code == 401:
        return InvalidApiKeyError(
            f"Your {provider.display_name} API key was rejected",
            details=details,
        )
    if isinstance(exc, _TIMEOUT_ERRORS):
        return GenerationTimeoutError(details=details)

    provider_message = getattr(exc, "message", None) or str(exc)
    details["provider_message"] = provider_message[:300]
    return ProviderError(f"{provider.display_name} API error", details=details)
