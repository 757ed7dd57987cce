"""
Resilience layer composition.

Builds one instance of every component around a shared event bus and
state store, and owns their start-up/shutdown:

    start(): restore breaker state, restore emergency mode, attach the
        notification feed, start emergency monitoring
    stop(): stop monitoring, detach the feed
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from bank_resilience.core.config import Settings
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.circuit_breaker import CircuitBreaker
from bank_resilience.resilience.emergency_mode import (
    MANUAL_TOGGLE_REASON,
    EmergencyModeController,
    EmergencyModeStatus,
)
from bank_resilience.resilience.events import EventBus
from bank_resilience.resilience.gateway import ResilientDataGateway
from bank_resilience.resilience.notifications import ErrorNotificationFeed
from bank_resilience.resilience.status import get_system_status
from bank_resilience.resilience.throttle import RequestThrottle
from bank_resilience.storage.state_store import StateStore

logger = get_logger(__name__)


class ResilienceLayer:
    """
    Container for the circuit breaker, throttle, emergency mode, error feed
    and data gateway.

    Attributes:
        event_bus: Shared event bus
        store: Durable state store (None when running without Redis)
        circuit_breaker: Process-wide circuit breaker
        throttle: Per-operation request throttle
        emergency_mode: Emergency mode controller
        notifications: User-facing error banners
        gateway: Read/write entry point for data-access code
    """

    def __init__(
        self,
        event_bus: EventBus,
        circuit_breaker: CircuitBreaker,
        throttle: RequestThrottle,
        emergency_mode: EmergencyModeController,
        notifications: ErrorNotificationFeed,
        gateway: ResilientDataGateway,
        store: Optional[StateStore] = None,
    ) -> None:
        self.event_bus = event_bus
        self.store = store
        self.circuit_breaker = circuit_breaker
        self.throttle = throttle
        self.emergency_mode = emergency_mode
        self.notifications = notifications
        self.gateway = gateway
        self._started = False

    @classmethod
    def build(
        cls,
        settings: Settings,
        redis_client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "ResilienceLayer":
        """
        Wire every component from Settings.

        Args:
            settings: Application settings
            redis_client: redis.asyncio client; None disables persistence
            clock: Wall-clock source shared by all components
            sleep: Awaitable sleep used by the throttle

        Returns:
            A ResilienceLayer that has not been started yet
        """
        event_bus = EventBus()
        store = (
            StateStore(redis_client, key_prefix=settings.state_key_prefix)
            if redis_client is not None
            else None
        )
        circuit_breaker = CircuitBreaker.from_settings(
            settings, store=store, event_bus=event_bus, clock=clock
        )
        throttle = RequestThrottle.from_settings(settings, clock=clock, sleep=sleep)
        emergency_mode = EmergencyModeController.from_settings(
            settings,
            circuit_breaker,
            store=store,
            event_bus=event_bus,
            clock=clock,
        )
        notifications = ErrorNotificationFeed.from_settings(settings, clock=clock)
        gateway = ResilientDataGateway(
            circuit_breaker, throttle, emergency_mode, clock=clock
        )
        return cls(
            event_bus=event_bus,
            circuit_breaker=circuit_breaker,
            throttle=throttle,
            emergency_mode=emergency_mode,
            notifications=notifications,
            gateway=gateway,
            store=store,
        )

    @property
    def started(self) -> bool:
        return self._started

    async def start(self, monitor: bool = True) -> None:
        """
        Restore persisted state and begin monitoring.

        Args:
            monitor: Start the emergency mode background task
        """
        if self._started:
            return
        await self.circuit_breaker.restore_state()
        await self.emergency_mode.restore_state()
        self.notifications.attach(self.event_bus)
        if monitor:
            self.emergency_mode.start_monitoring()
        self._started = True
        logger.info(
            "resilience layer started",
            circuit_state=self.circuit_breaker.state.value,
            emergency_mode_active=self.emergency_mode.is_active,
        )

    async def stop(self) -> None:
        if not self._started:
            return
        await self.emergency_mode.stop_monitoring()
        self.notifications.detach()
        self._started = False
        logger.info("resilience layer stopped")

    # =========================================================================
    # Administration
    # =========================================================================

    async def force_reset(self) -> str:
        return await self.circuit_breaker.force_reset()

    async def toggle_emergency_mode(
        self, reason: str = MANUAL_TOGGLE_REASON
    ) -> EmergencyModeStatus:
        return await self.emergency_mode.toggle(reason)

    def get_status(self) -> dict[str, Any]:
        """Combined status of every component, JSON-ready."""
        circuit_status = self.circuit_breaker.get_status()
        emergency_status = self.emergency_mode.get_status()
        throttle_status = self.throttle.get_status()
        return {
            "overall": get_system_status(circuit_status, emergency_status).to_dict(),
            "circuit_breaker": circuit_status.to_dict(),
            "emergency_mode": emergency_status.to_dict(),
            "throttle": {
                "request_counts": throttle_status.request_counts,
                "rate_limit_windows": throttle_status.rate_limit_windows,
                "backoff_attempts": throttle_status.backoff_attempts,
            },
        }
