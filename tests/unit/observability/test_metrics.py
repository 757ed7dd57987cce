"""
Tests for Prometheus metrics.

This module tests:
- Resilience metrics recorded by the breaker, throttle and emergency mode
- Metrics exposition text and ASGI app
"""

from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from bank_resilience.core.exceptions import RateLimitExceededError
from bank_resilience.observability.metrics import generate_metrics, get_metrics_app
from bank_resilience.resilience.circuit_breaker import CircuitBreaker
from bank_resilience.resilience.metrics import (
    METRIC_CIRCUIT_STATE,
    METRIC_EMERGENCY_ACTIVE,
    record_emergency_mode,
)


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestCircuitMetrics:
    @pytest.mark.asyncio
    async def test_state_gauge_follows_transitions(self, clock, quota_error) -> None:
        breaker = CircuitBreaker(name="metrics-gauge", clock=clock)

        with pytest.raises(type(quota_error)):
            await breaker.execute(AsyncMock(side_effect=quota_error), "test")
        assert _sample(METRIC_CIRCUIT_STATE, {"circuit_name": "metrics-gauge"}) == 2

        await breaker.force_reset()
        assert _sample(METRIC_CIRCUIT_STATE, {"circuit_name": "metrics-gauge"}) == 0

    @pytest.mark.asyncio
    async def test_rejections_counted(self, clock, quota_error) -> None:
        breaker = CircuitBreaker(name="metrics-rejections", clock=clock)
        labels = {"circuit_name": "metrics-rejections"}
        before = _sample("bank_resilience_circuit_breaker_rejections_total", labels)

        with pytest.raises(type(quota_error)):
            await breaker.execute(AsyncMock(side_effect=quota_error), "test")
        for _ in range(2):
            with pytest.raises(Exception):
                await breaker.execute(AsyncMock(), "test")

        after = _sample("bank_resilience_circuit_breaker_rejections_total", labels)
        assert after - before == 2


class TestThrottleMetrics:
    @pytest.mark.asyncio
    async def test_rejection_counted(self, throttle) -> None:
        labels = {"operation": "metrics-throttle"}
        before = _sample("bank_resilience_throttle_rejections_total", labels)

        await throttle.with_throttling("metrics-throttle", AsyncMock(), max_requests=1)
        with pytest.raises(RateLimitExceededError):
            await throttle.with_throttling("metrics-throttle", AsyncMock(), max_requests=1)

        assert _sample("bank_resilience_throttle_rejections_total", labels) - before == 1


class TestEmergencyMetrics:
    def test_active_gauge(self) -> None:
        record_emergency_mode(True)
        assert _sample(METRIC_EMERGENCY_ACTIVE, {}) == 1
        record_emergency_mode(False)
        assert _sample(METRIC_EMERGENCY_ACTIVE, {}) == 0

    def test_restore_is_not_an_activation(self) -> None:
        before = _sample("bank_resilience_emergency_mode_activations_total", {})
        record_emergency_mode(True, restored=True)
        assert _sample("bank_resilience_emergency_mode_activations_total", {}) == before
        record_emergency_mode(False)


class TestExposition:
    def test_generate_metrics_contains_resilience_metrics(self) -> None:
        text = generate_metrics()
        assert "bank_resilience_emergency_mode_active" in text

    def test_metrics_app_is_callable(self) -> None:
        assert callable(get_metrics_app())
