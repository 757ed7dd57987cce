"""
Pytest configuration for the banking resilience test suite.

This configuration sets up:
- Test discovery paths
- Test markers for categorization
- Shared fixtures: fake Redis, controllable clock, settings, backend
  error factory, and pre-wired resilience components
"""

import sys
from pathlib import Path
from typing import Any, Optional

import fakeredis
import fakeredis.aioredis
import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from bank_resilience.core.config import Settings  # noqa: E402
from bank_resilience.resilience.circuit_breaker import CircuitBreaker  # noqa: E402
from bank_resilience.resilience.emergency_mode import EmergencyModeController  # noqa: E402
from bank_resilience.resilience.events import EventBus  # noqa: E402
from bank_resilience.resilience.throttle import RequestThrottle  # noqa: E402
from bank_resilience.storage.state_store import StateStore  # noqa: E402

START_TIME = 1_700_000_000.0


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Tests for individual components
    - integration: Tests for components wired together
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for wired components")


# =============================================================================
# Test Doubles
# =============================================================================


class FakeClock:
    """Manually advanced wall clock returning epoch seconds."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BackendError(Exception):
    """Backend failure exposing the optional code/message/status attributes."""

    def __init__(
        self,
        message: str = "internal error",
        code: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_redis():
    """
    Create a fake Redis client backed by its own server.

    Returns:
        FakeRedis: A fake Redis client with decode_responses=True
    """
    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep(clock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def backend_error():
    """Factory for backend errors: backend_error(message, code=..., status=...)."""

    def _make(message: str = "internal error", **kwargs: Any) -> BackendError:
        return BackendError(message, **kwargs)

    return _make


@pytest.fixture
def quota_error(backend_error) -> BackendError:
    return backend_error("Quota exceeded.", code="resource-exhausted", status=429)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults suitable for tests."""
    return Settings(
        service_name="bank-resilience-test",
        environment="development",
        redis_url="redis://localhost:6379",
        state_key_prefix="test:",
    )


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def state_store(fake_redis) -> StateStore:
    return StateStore(fake_redis, key_prefix="test:")


@pytest.fixture
def circuit_breaker(state_store, event_bus, clock) -> CircuitBreaker:
    """Breaker with the default threshold (3) and cooldown (300 s)."""
    return CircuitBreaker(store=state_store, event_bus=event_bus, clock=clock)


@pytest.fixture
def throttle(clock, recording_sleep) -> RequestThrottle:
    return RequestThrottle(clock=clock, sleep=recording_sleep)


@pytest.fixture
def emergency_mode(circuit_breaker, state_store, event_bus, clock) -> EmergencyModeController:
    return EmergencyModeController(
        circuit_breaker,
        store=state_store,
        event_bus=event_bus,
        clock=clock,
    )


@pytest.fixture
def recorded_events(event_bus) -> list[tuple[str, dict[str, Any]]]:
    """Every event emitted on the shared bus, in order."""
    from bank_resilience.resilience.events import (
        EVENT_EMERGENCY_ACTIVATED,
        EVENT_EMERGENCY_DEACTIVATED,
        EVENT_RESILIENCE_ERROR,
    )

    events: list[tuple[str, dict[str, Any]]] = []
    for name in (
        EVENT_RESILIENCE_ERROR,
        EVENT_EMERGENCY_ACTIVATED,
        EVENT_EMERGENCY_DEACTIVATED,
    ):
        event_bus.subscribe(name, lambda payload, name=name: events.append((name, payload)))
    return events
