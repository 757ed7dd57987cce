"""
Core module for the banking resilience layer.

This module contains configuration and the exception hierarchy.
"""

from bank_resilience.core.config import Settings, get_settings
from bank_resilience.core.exceptions import (
    CircuitOpenError,
    EmergencyModeActiveError,
    ErrorCode,
    RateLimitExceededError,
    ResilienceException,
    StateStoreError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "ResilienceException",
    "CircuitOpenError",
    "RateLimitExceededError",
    "StateStoreError",
    "EmergencyModeActiveError",
]
