"""
Logging utilities for safe structured logging.

Every value passed as log context goes through `redact_context`: keys that
name a credential are masked to their last four characters, everything
else is rendered as a bounded string. Provider keys and license keys
therefore never reach a log sink in full.

Dependencies: logging (stdlib), pydantic
System role: Logging helper functions
"""

import logging
from typing import Any

from pydantic import SecretStr

_SECRET_MARKERS = ("api_key", "apikey", "license_key", "licensekey", "secret", "token", "password")
MAX_LOG_VALUE_LENGTH = 500


def redact_secret(value: Any, visible: int = 4) -> str:
    """
    Mask a credential, keeping only its last few characters.

    Args:
        value: Raw secret (str or SecretStr)
        visible: Number of trailing characters left readable

    Returns:
        str: Masked value such as '****abcd', or 'None'
    """
    if value is None:
        return "None"
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    text = str(value)
    if len(text) <= visible:
        return "*" * len(text)
    return "****" + text[-visible:]


def is_secret_key(key: str) -> bool:
    """Whether a context key names a credential."""
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def safe_log_value(value: Any, max_length: int = MAX_LOG_VALUE_LENGTH) -> str:
    """
    Render a context value as a bounded string.

    Collections are summarized by size rather than dumped, SecretStr is
    masked, and long strings are cut at `max_length`.
    """
    if value is None:
        return "None"
    if isinstance(value, SecretStr):
        return redact_secret(value)
    if isinstance(value, (list, tuple, set)):
        rendered = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        rendered = f"dict({len(value)} keys)"
    else:
        try:
            rendered = value if isinstance(value, str) else str(value)
        except Exception as e:
            return f"<unable to log: {type(e).__name__}>"

    if len(rendered) > max_length:
        return f"{rendered[:max_length]}... (truncated, {len(rendered)} total)"
    return rendered


def redact_context(context: dict[str, Any]) -> dict[str, str]:
    """Log-safe copy of `context` for `extra=`, with credentials masked."""
    return {
        key: redact_secret(val) if is_secret_key(key) else safe_log_value(val)
        for key, val in context.items()
    }


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log `message` at `level` with redacted structured context.

    Usage:
        log_with_context(logger, logging.WARNING, "Generation failed", kind="ProviderError")
    """
    logger.log(level, message, extra=redact_context(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception at ERROR with its traceback and redacted context.

    `error_type` and `error_msg` are added from `exc`; they override any
    context keys of the same name.
    """
    safe_context = redact_context(context)
    safe_context["error_type"] = type(exc).__name__
    safe_context["error_msg"] = safe_log_value(str(exc))
    logger.error(message, exc_info=exc, extra=safe_context)
