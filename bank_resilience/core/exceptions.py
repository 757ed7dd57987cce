"""
Custom exceptions for the banking resilience layer.

This module provides the exception hierarchy raised by the circuit breaker,
the request throttle, the durable state store and the data gateway.
All exceptions inherit from ResilienceException and carry an error code
so the UI layer can decide how to render them.

Downstream failures are never wrapped: the resilience layer re-raises the
original error. Quota exhaustion and generic failures are classifications
(see resilience/classification.py), not exception types.
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for resilience layer exceptions.

    These codes give the UI a stable way to pick a banner or message
    without parsing exception text.
    """

    RESILIENCE_ERROR = "RESILIENCE_ERROR"
    CIRCUIT_BREAKER_OPEN = "CIRCUIT_BREAKER_OPEN"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    STATE_STORE_ERROR = "STATE_STORE_ERROR"
    EMERGENCY_MODE_ACTIVE = "EMERGENCY_MODE_ACTIVE"


# =============================================================================
# Base Exception
# =============================================================================


class ResilienceException(Exception):
    """
    Base exception for all resilience layer errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
        code: Alias of error_code's value, matching the ``code`` attribute
            that backend errors expose.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.RESILIENCE_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.code = str(getattr(error_code, "value", error_code))

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# CircuitOpenError
# =============================================================================


class CircuitOpenError(ResilienceException):
    """
    Raised when a call is fast-failed because the circuit breaker is OPEN.

    Never represents an actual downstream failure: the wrapped operation
    was not invoked.

    Attributes:
        remaining_seconds: Whole seconds until a trial call is allowed.
        circuit_name: Name of the breaker that rejected the call.
    """

    def __init__(
        self,
        remaining_seconds: int,
        circuit_name: str = "backend",
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the circuit open error.

        Args:
            remaining_seconds: Seconds left in the cooldown.
            circuit_name: Name of the circuit breaker.
            message: Override for the default message.
            **kwargs: Additional attributes.
        """
        if message is None:
            message = (
                f"Circuit breaker '{circuit_name}' is OPEN. "
                f"Please wait {remaining_seconds} seconds before retrying."
            )
        super().__init__(message, ErrorCode.CIRCUIT_BREAKER_OPEN, **kwargs)
        self.remaining_seconds = remaining_seconds
        self.circuit_name = circuit_name


# =============================================================================
# RateLimitExceededError
# =============================================================================


class RateLimitExceededError(ResilienceException):
    """
    Raised by the throttle pre-check when the window quota is consumed.

    The wrapped call is never attempted.

    Attributes:
        operation: Throttle key that exceeded its limit.
        limit: Maximum requests per window.
        retry_after: Seconds until the current window resets (if known).
    """

    def __init__(
        self,
        operation: str,
        limit: int | None = None,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the rate limit error.

        Args:
            operation: Throttle key.
            limit: The request limit that was exceeded (optional).
            retry_after: Seconds until the window resets (optional).
            **kwargs: Additional attributes.
        """
        message = f"Rate limit exceeded for {operation}. Please wait before retrying."
        super().__init__(message, ErrorCode.RATE_LIMIT_EXCEEDED, **kwargs)
        self.operation = operation
        self.limit = limit
        self.retry_after = retry_after


# =============================================================================
# StateStoreError
# =============================================================================


class StateStoreError(ResilienceException):
    """
    Raised when the durable state store cannot read, write or decode a record.

    Attributes:
        key: Store key involved in the failed operation (if known).
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, ErrorCode.STATE_STORE_ERROR, **kwargs)
        self.key = key


# =============================================================================
# EmergencyModeActiveError
# =============================================================================


class EmergencyModeActiveError(ResilienceException):
    """Raised when a write is attempted while emergency mode is active."""

    def __init__(self, operation: str, reason: str | None = None, **kwargs: Any) -> None:
        message = (
            f"{operation} is disabled during emergency mode. "
            "Please wait for backend connectivity to be restored."
        )
        super().__init__(message, ErrorCode.EMERGENCY_MODE_ACTIVE, **kwargs)
        self.operation = operation
        self.reason = reason
