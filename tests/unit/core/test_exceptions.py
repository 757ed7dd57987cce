"""
Unit tests for bank_resilience/core/exceptions.py - exception hierarchy.
"""

import pytest

from bank_resilience.core.exceptions import (
    CircuitOpenError,
    EmergencyModeActiveError,
    ErrorCode,
    RateLimitExceededError,
    ResilienceException,
    StateStoreError,
)


class TestResilienceException:
    def test_defaults(self):
        error = ResilienceException("something broke")

        assert str(error) == "something broke"
        assert error.message == "something broke"
        assert error.error_code == ErrorCode.RESILIENCE_ERROR
        assert error.code == "RESILIENCE_ERROR"

    def test_extra_attributes(self):
        error = ResilienceException("x", operation="get-accounts")
        assert error.operation == "get-accounts"

    def test_plain_string_code(self):
        assert ResilienceException("x", "CUSTOM").code == "CUSTOM"

    @pytest.mark.parametrize(
        "error",
        [
            CircuitOpenError(10),
            RateLimitExceededError("svc"),
            StateStoreError("redis down"),
            EmergencyModeActiveError("update"),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, ResilienceException)


class TestCircuitOpenError:
    def test_message_includes_remaining_seconds(self):
        error = CircuitOpenError(42, circuit_name="backend")

        assert error.remaining_seconds == 42
        assert error.circuit_name == "backend"
        assert "42 seconds" in error.message
        assert error.code == "CIRCUIT_BREAKER_OPEN"

    def test_custom_message(self):
        assert CircuitOpenError(0, message="busy").message == "busy"


class TestRateLimitExceededError:
    def test_fields(self):
        error = RateLimitExceededError("update-balance", limit=3, retry_after=12.5)

        assert error.operation == "update-balance"
        assert error.limit == 3
        assert error.retry_after == 12.5
        assert "update-balance" in error.message
        assert error.code == "RATE_LIMIT_EXCEEDED"


class TestStateStoreError:
    def test_key(self):
        error = StateStoreError("corrupt", key="circuit_state")
        assert error.key == "circuit_state"
        assert error.code == "STATE_STORE_ERROR"


class TestEmergencyModeActiveError:
    def test_fields(self):
        error = EmergencyModeActiveError("update-balance", reason="maintenance")

        assert error.operation == "update-balance"
        assert error.reason == "maintenance"
        assert "emergency mode" in error.message
        assert error.code == "EMERGENCY_MODE_ACTIVE"
