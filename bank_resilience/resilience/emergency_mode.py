"""
Emergency Mode Controller

A process-wide "use substitute data" flag for the UI, linked to circuit
breaker health:

    INACTIVE -> ACTIVE: activate(reason); no-op (with a warning) when
        already active. Persists the state and emits
        emergency_mode.activated.
    ACTIVE -> INACTIVE: deactivate(); no-op when already inactive (no
        event). Clears the persisted state and emits
        emergency_mode.deactivated.

A background task polls the circuit breaker every check interval. An open
circuit activates emergency mode; a closed circuit deactivates it only when
the activation came from the breaker (reason mentions "circuit breaker").
Manual activations stay until deactivated explicitly.

The persisted state is restored at start-up without any expiry check.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from bank_resilience.core.config import Settings
from bank_resilience.core.exceptions import StateStoreError
from bank_resilience.models.banking import (
    Account,
    FinancialSummary,
    Transaction,
    UserProfile,
)
from bank_resilience.models.records import EmergencyModeRecord
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience import substitute_data
from bank_resilience.resilience.circuit_breaker import CircuitBreaker
from bank_resilience.resilience.events import (
    EVENT_EMERGENCY_ACTIVATED,
    EVENT_EMERGENCY_DEACTIVATED,
    EventBus,
)
from bank_resilience.resilience.metrics import record_emergency_mode
from bank_resilience.storage.state_store import EMERGENCY_MODE_KEY, StateStore

logger = get_logger(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 30.0
DEFAULT_REASON = "Backend unavailable"
MANUAL_TOGGLE_REASON = "Manual toggle"
CIRCUIT_OPEN_REASON = "Backend circuit breaker is open"
CIRCUIT_REASON_MARKER = "circuit breaker"


@dataclass(frozen=True)
class EmergencyModeStatus:
    """
    Point-in-time view of emergency mode.

    Attributes:
        is_active: Whether substitute data is in use
        reason: Activation reason, or None
        activated_at: Activation time (UTC), or None
        duration_seconds: Seconds since activation (0 when inactive)
    """

    is_active: bool
    reason: Optional[str]
    activated_at: Optional[datetime]
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_active": self.is_active,
            "reason": self.reason,
            "activated_at": self.activated_at.isoformat() if self.activated_at else None,
            "duration_seconds": self.duration_seconds,
        }


class EmergencyModeController:
    """
    Emergency mode flag with circuit breaker monitoring.

    Example:
        >>> controller = EmergencyModeController(breaker, store=store, event_bus=bus)
        >>> await controller.restore_state()
        >>> controller.start_monitoring()
        >>> if controller.is_active:
        ...     accounts = controller.get_substitute_accounts()
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        store: Optional[StateStore] = None,
        event_bus: Optional[EventBus] = None,
        check_interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the controller.

        Args:
            circuit_breaker: Breaker whose status drives automatic activation
            store: Durable store for the active state (None disables persistence)
            event_bus: Bus receiving activation/deactivation events
            check_interval_seconds: Seconds between breaker polls
            clock: Wall-clock source returning epoch seconds
        """
        self._circuit_breaker = circuit_breaker
        self._store = store
        self._event_bus = event_bus
        self._check_interval_seconds = check_interval_seconds
        self._clock = clock

        self._is_active = False
        self._activation_reason: Optional[str] = None
        self._activated_at: Optional[datetime] = None
        self._monitor_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        circuit_breaker: CircuitBreaker,
        store: Optional[StateStore] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> "EmergencyModeController":
        """Create an EmergencyModeController configured from Settings."""
        return cls(
            circuit_breaker=circuit_breaker,
            store=store,
            event_bus=event_bus,
            check_interval_seconds=settings.emergency_check_interval_seconds,
            clock=clock,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def activation_reason(self) -> Optional[str]:
        return self._activation_reason

    @property
    def activated_at(self) -> Optional[datetime]:
        return self._activated_at

    @property
    def check_interval_seconds(self) -> float:
        return self._check_interval_seconds

    @property
    def is_monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    # =========================================================================
    # Transitions
    # =========================================================================

    async def activate(self, reason: str = DEFAULT_REASON) -> None:
        """
        Activate emergency mode.

        Args:
            reason: Why substitute data is being used
        """
        if self._is_active:
            logger.warning(
                "emergency mode already active",
                reason=self._activation_reason,
                requested_reason=reason,
            )
            return

        self._is_active = True
        self._activation_reason = reason
        self._activated_at = self._now()
        record_emergency_mode(True)

        logger.warning("emergency mode activated, serving substitute data", reason=reason)

        await self._persist()
        if self._event_bus is not None:
            self._event_bus.emit(
                EVENT_EMERGENCY_ACTIVATED,
                reason=reason,
                activated_at=self._activated_at,
            )

    async def deactivate(self) -> None:
        """Deactivate emergency mode."""
        if not self._is_active:
            logger.info("emergency mode already inactive")
            return

        self._is_active = False
        self._activation_reason = None
        self._activated_at = None
        record_emergency_mode(False)

        logger.info("emergency mode deactivated, backend connectivity restored")

        await self._clear()
        if self._event_bus is not None:
            self._event_bus.emit(EVENT_EMERGENCY_DEACTIVATED)

    async def toggle(self, reason: str = MANUAL_TOGGLE_REASON) -> EmergencyModeStatus:
        """
        Manual activation/deactivation.

        Returns:
            Status after the toggle
        """
        if self._is_active:
            await self.deactivate()
        else:
            await self.activate(reason)
        return self.get_status()

    def get_status(self) -> EmergencyModeStatus:
        duration = 0.0
        if self._activated_at is not None:
            duration = max(0.0, self._clock() - self._activated_at.timestamp())
        return EmergencyModeStatus(
            is_active=self._is_active,
            reason=self._activation_reason,
            activated_at=self._activated_at,
            duration_seconds=duration,
        )

    # =========================================================================
    # Monitoring
    # =========================================================================

    def _activated_by_circuit_breaker(self) -> bool:
        reason = self._activation_reason or ""
        return CIRCUIT_REASON_MARKER in reason.lower()

    async def check_circuit(self) -> None:
        """Run one monitoring tick against the circuit breaker."""
        circuit_status = self._circuit_breaker.get_status()

        if circuit_status.is_open and not self._is_active:
            await self.activate(CIRCUIT_OPEN_REASON)
        elif (
            not circuit_status.is_open
            and self._is_active
            and self._activated_by_circuit_breaker()
        ):
            await self.deactivate()

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self._check_interval_seconds)
            await self.check_circuit()

    def start_monitoring(self) -> None:
        """Start polling the circuit breaker in a background task."""
        if self.is_monitoring:
            return
        self._monitor_task = asyncio.create_task(self._monitor_loop())
        logger.info(
            "emergency mode monitoring started",
            check_interval_seconds=self._check_interval_seconds,
        )

    async def stop_monitoring(self) -> None:
        """Stop the background polling task."""
        if self._monitor_task is None:
            return
        self._monitor_task.cancel()
        try:
            await self._monitor_task
        except asyncio.CancelledError:
            pass
        self._monitor_task = None

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _persist(self) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(
                EMERGENCY_MODE_KEY,
                EmergencyModeRecord(
                    is_active=True,
                    reason=self._activation_reason,
                    activated_at=self._activated_at,
                ),
            )
        except StateStoreError as e:
            logger.error("failed to persist emergency mode", error=str(e))

    async def _clear(self) -> None:
        if self._store is None:
            return
        try:
            await self._store.delete(EMERGENCY_MODE_KEY)
        except StateStoreError as e:
            logger.error("failed to clear emergency mode", error=str(e))

    async def restore_state(self) -> None:
        """Restore a previously persisted activation; corrupt records are removed."""
        if self._store is None:
            return

        try:
            record = await self._store.load(EMERGENCY_MODE_KEY, EmergencyModeRecord)
        except StateStoreError as e:
            logger.error("failed to restore emergency mode state", error=str(e))
            await self._clear()
            return

        if record is None or not record.is_active:
            return

        self._is_active = True
        self._activation_reason = record.reason
        self._activated_at = record.activated_at
        record_emergency_mode(True, restored=True)
        logger.warning("restored emergency mode state", reason=record.reason)

    # =========================================================================
    # Substitute Data
    # =========================================================================

    def get_substitute_accounts(self) -> list[Account]:
        return substitute_data.get_substitute_accounts(self._now())

    def get_substitute_transactions(self, limit: int = 20) -> list[Transaction]:
        return substitute_data.get_substitute_transactions(limit, self._now())

    def get_substitute_user_profile(self) -> UserProfile:
        return substitute_data.get_substitute_user_profile(self._now())

    def get_substitute_financial_summary(self) -> FinancialSummary:
        return substitute_data.get_substitute_financial_summary(self._now())
