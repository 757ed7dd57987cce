"""
Backend error classification.

Backend errors are black boxes that may expose a ``code`` string, a
``message`` string and a numeric ``status`` (or ``status_code``). Message
checks are case-insensitive substring matches.

- quota exhausted: resource-exhausted code, "quota"/"exceeded" in the
  message, or status 429
- resource exhausted: resource-exhausted code, or "resource"/"backoff"/
  "overload" in the message

The two checks are independent; either one forces the circuit open.
"""

from enum import Enum
from typing import Any, Optional

RESOURCE_EXHAUSTED_CODES = frozenset({"resource-exhausted", "RESOURCE_EXHAUSTED"})

QUOTA_MESSAGE_MARKERS = ("quota", "exceeded")
RESOURCE_MESSAGE_MARKERS = ("resource", "backoff", "overload")

HTTP_TOO_MANY_REQUESTS = 429


class FailureKind(str, Enum):
    """Classification of a downstream failure."""

    QUOTA_EXHAUSTED = "quota exhausted"
    RESOURCE_EXHAUSTED = "resource exhausted"
    GENERIC = "generic"


def _error_code(error: Any) -> Optional[str]:
    code = getattr(error, "code", None)
    return code if isinstance(code, str) else None


def _error_message(error: Any) -> str:
    message = getattr(error, "message", None)
    if not isinstance(message, str):
        message = str(error) if isinstance(error, BaseException) else ""
    return message.lower()


def _error_status(error: Any) -> Optional[int]:
    for attr in ("status", "status_code"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
    return None


def is_quota_exhausted(error: Any) -> bool:
    """Check if an error indicates quota exhaustion."""
    if error is None:
        return False
    if _error_code(error) in RESOURCE_EXHAUSTED_CODES:
        return True
    message = _error_message(error)
    if any(marker in message for marker in QUOTA_MESSAGE_MARKERS):
        return True
    return _error_status(error) == HTTP_TOO_MANY_REQUESTS


def is_resource_exhausted(error: Any) -> bool:
    """Check if an error indicates resource exhaustion."""
    if error is None:
        return False
    if _error_code(error) in RESOURCE_EXHAUSTED_CODES:
        return True
    message = _error_message(error)
    return any(marker in message for marker in RESOURCE_MESSAGE_MARKERS)


def classify_failure(error: Any) -> FailureKind:
    """
    Classify a downstream failure.

    Quota exhaustion takes precedence over resource exhaustion when both
    match.

    Args:
        error: The error raised by the wrapped operation

    Returns:
        FailureKind for the error
    """
    if is_quota_exhausted(error):
        return FailureKind.QUOTA_EXHAUSTED
    if is_resource_exhausted(error):
        return FailureKind.RESOURCE_EXHAUSTED
    return FailureKind.GENERIC
