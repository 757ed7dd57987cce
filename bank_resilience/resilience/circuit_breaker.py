"""
Persistent Circuit Breaker

Wraps every remote data operation of the banking backend and stops calling
it once it starts failing, so a struggling backend is not hammered into
quota exhaustion.

State Machine:
    CLOSED: Normal operation, calls pass through. Failures increment the
        failure count; successes decrement it (floor 0).
    OPEN: Calls fail fast with CircuitOpenError, the operation is never
        invoked. Entered after `failure_threshold` failures, immediately on
        a quota/resource exhaustion error, or when a HALF_OPEN trial fails.
    HALF_OPEN: Entered on the first call after the reset timeout. Exactly
        one trial call is admitted; success closes the circuit, failure
        reopens it and restarts the cooldown.

Whenever the circuit opens, its state is written to the durable state
store; restore_state() reads it back at start-up unless the cooldown has
already elapsed. Every failure, including fast-fails, is emitted on the
event bus and re-raised to the caller.

State mutations are protected by an asyncio.Lock(); the lock is never held
while the wrapped operation runs.
"""

import asyncio
import math
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from bank_resilience.core.config import Settings
from bank_resilience.core.exceptions import CircuitOpenError, StateStoreError
from bank_resilience.models.records import CircuitStateRecord
from bank_resilience.observability.logging import get_logger, operation_context
from bank_resilience.resilience.classification import (
    FailureKind,
    classify_failure,
    is_quota_exhausted,
    is_resource_exhausted,
)
from bank_resilience.resilience.events import EVENT_RESILIENCE_ERROR, EventBus
from bank_resilience.resilience.metrics import (
    record_circuit_rejection,
    record_circuit_state_transition,
)
from bank_resilience.storage.state_store import (
    CIRCUIT_STATE_KEY,
    EMERGENCY_MODE_KEY,
    StateStore,
)

T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_RESET_TIMEOUT_SECONDS = 300.0

REASON_THRESHOLD = "failure threshold reached"
REASON_TRIAL_FAILED = "half-open trial failed"


class CircuitBreakerState(Enum):
    """
    State of a circuit breaker.

    States:
        CLOSED: Normal operation, all calls pass through
        OPEN: Circuit is tripped, calls fail immediately
        HALF_OPEN: One trial call is allowed through
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerStatus:
    """
    Point-in-time view of the breaker.

    Attributes:
        state: Current state
        failure_count: Current failure count
        last_failure_time: Epoch seconds of the last failure, or None
        is_open: Whether the circuit is OPEN
        time_until_reset: Seconds until a trial call is allowed (0 unless OPEN)
    """

    state: CircuitBreakerState
    failure_count: int
    last_failure_time: Optional[float]
    is_open: bool
    time_until_reset: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data


class CircuitBreaker:
    """
    Process-wide circuit breaker for backend data operations.

    Example:
        >>> breaker = CircuitBreaker(store=store, event_bus=bus)
        >>> await breaker.restore_state()
        >>> doc = await breaker.execute(lambda: fetch_user(uid), "get-user-document")

    Attributes:
        name: Identifier used in logs, metrics and error messages
        failure_threshold: Failures that force the circuit OPEN
        reset_timeout_seconds: Cooldown before a HALF_OPEN trial
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        event_bus: Optional[EventBus] = None,
        name: str = "backend",
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        reset_timeout_seconds: float = DEFAULT_RESET_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize CircuitBreaker.

        Args:
            store: Durable store for the OPEN state (None disables persistence)
            event_bus: Bus receiving resilience.error events
            name: Name for identification and metrics
            failure_threshold: Number of failures before opening
            reset_timeout_seconds: Seconds to wait before a trial call
            clock: Wall-clock source returning epoch seconds
        """
        self._store = store
        self._event_bus = event_bus
        self._name = name
        self._failure_threshold = failure_threshold
        self._reset_timeout_seconds = reset_timeout_seconds
        self._clock = clock

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._trial_in_flight = False

        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: Optional[StateStore] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> "CircuitBreaker":
        """Create a CircuitBreaker configured from Settings."""
        return cls(
            store=store,
            event_bus=event_bus,
            failure_threshold=settings.circuit_breaker_failure_threshold,
            reset_timeout_seconds=settings.circuit_breaker_reset_timeout_seconds,
            clock=clock,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        """Name of this circuit breaker."""
        return self._name

    @property
    def failure_threshold(self) -> int:
        """Number of failures required to open the circuit."""
        return self._failure_threshold

    @property
    def reset_timeout_seconds(self) -> float:
        """Seconds to wait before attempting recovery."""
        return self._reset_timeout_seconds

    @property
    def state(self) -> CircuitBreakerState:
        """Current state, without triggering the OPEN -> HALF_OPEN check."""
        return self._state

    @property
    def failure_count(self) -> int:
        """Current failure count."""
        return self._failure_count

    @property
    def last_failure_time(self) -> Optional[float]:
        """Epoch seconds of the most recent failure."""
        return self._last_failure_time

    # =========================================================================
    # Status
    # =========================================================================

    def _elapsed_since_failure(self) -> float:
        if self._last_failure_time is None:
            return 0.0
        return self._clock() - self._last_failure_time

    def _should_attempt_reset(self) -> bool:
        """Check if the cooldown has elapsed."""
        if self._last_failure_time is None:
            return False
        return self._elapsed_since_failure() >= self._reset_timeout_seconds

    def _time_until_reset(self) -> float:
        if self._state != CircuitBreakerState.OPEN or self._last_failure_time is None:
            return 0.0
        return max(0.0, self._reset_timeout_seconds - self._elapsed_since_failure())

    def get_status(self) -> CircuitBreakerStatus:
        """
        Get the current breaker status. Side-effect free.

        Returns:
            CircuitBreakerStatus snapshot
        """
        return CircuitBreakerStatus(
            state=self._state,
            failure_count=self._failure_count,
            last_failure_time=self._last_failure_time,
            is_open=self._state == CircuitBreakerState.OPEN,
            time_until_reset=self._time_until_reset(),
        )

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "backend-operation",
    ) -> T:
        """
        Execute a remote data operation through the circuit breaker.

        Args:
            operation: Zero-argument async callable
            operation_name: Label used for logging and events

        Returns:
            The result of the operation

        Raises:
            CircuitOpenError: If the circuit is open (operation not invoked)
            Exception: Any exception raised by the operation
        """
        with operation_context(operation_name):
            async with self._lock:
                if (
                    self._state == CircuitBreakerState.OPEN
                    and self._should_attempt_reset()
                ):
                    self._transition(CircuitBreakerState.HALF_OPEN)
                    logger.info("circuit breaker is now half-open, testing backend")

                rejection = self._admission_error()
                is_trial = (
                    rejection is None and self._state == CircuitBreakerState.HALF_OPEN
                )
                if is_trial:
                    self._trial_in_flight = True
                current_state = self._state

            if rejection is not None:
                record_circuit_rejection(self._name)
                self._report(rejection, operation_name)
                raise rejection

            logger.debug("executing operation", circuit_state=current_state.value)
            try:
                result = await operation()
            except Exception as e:
                await self._on_failure(e, operation_name, is_trial)
                raise
            except BaseException:
                if is_trial:
                    self._trial_in_flight = False
                raise

            await self._on_success(is_trial)
            return result

    def _admission_error(self) -> Optional[CircuitOpenError]:
        """Return the fast-fail error for the current state, if any."""
        if self._state == CircuitBreakerState.OPEN:
            remaining = math.ceil(self._time_until_reset())
            return CircuitOpenError(remaining, circuit_name=self._name)
        if self._state == CircuitBreakerState.HALF_OPEN and self._trial_in_flight:
            return CircuitOpenError(
                0,
                circuit_name=self._name,
                message=(
                    f"Circuit breaker '{self._name}' is HALF_OPEN and a trial "
                    "call is already in progress."
                ),
            )
        return None

    async def _on_success(self, is_trial: bool) -> None:
        async with self._lock:
            if is_trial:
                self._trial_in_flight = False
            if is_trial and self._state == CircuitBreakerState.HALF_OPEN:
                await self._reset_locked()
                logger.info("circuit breaker reset after successful trial")
            elif self._state == CircuitBreakerState.CLOSED:
                self._failure_count = max(0, self._failure_count - 1)

    async def _on_failure(
        self, error: Exception, operation_name: str, is_trial: bool
    ) -> None:
        kind = classify_failure(error)
        quota = is_quota_exhausted(error)
        resource = is_resource_exhausted(error)

        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()
            if is_trial:
                self._trial_in_flight = False

            logger.error(
                "backend operation failed",
                error=str(error),
                code=getattr(error, "code", None),
                failure_count=self._failure_count,
                is_quota_error=quota,
                is_resource_error=resource,
            )

            if (
                quota
                or resource
                or is_trial
                or self._failure_count >= self._failure_threshold
            ):
                await self._open_locked(self._open_reason(kind, is_trial))

        self._report(error, operation_name)

    # =========================================================================
    # Transitions
    # =========================================================================

    @staticmethod
    def _open_reason(kind: FailureKind, was_trial: bool) -> str:
        if kind != FailureKind.GENERIC:
            return kind.value
        return REASON_TRIAL_FAILED if was_trial else REASON_THRESHOLD

    def _transition(self, new_state: CircuitBreakerState) -> None:
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            record_circuit_state_transition(self._name, new_state.value, old_state.value)

    async def _open_locked(self, reason: str) -> None:
        self._transition(CircuitBreakerState.OPEN)
        logger.warning(
            "circuit breaker opened",
            reason=reason,
            reset_timeout_seconds=self._reset_timeout_seconds,
        )
        await self._persist(
            CircuitStateRecord(
                state=self._state.value,
                last_failure_time=self._last_failure_time,
                failure_count=self._failure_count,
                reason=reason,
            )
        )

    async def _reset_locked(self) -> None:
        self._transition(CircuitBreakerState.CLOSED)
        self._failure_count = 0
        self._last_failure_time = None
        self._trial_in_flight = False
        await self._clear(CIRCUIT_STATE_KEY)

    async def _persist(self, record: CircuitStateRecord) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(CIRCUIT_STATE_KEY, record)
        except StateStoreError as e:
            logger.error("failed to persist circuit state", error=str(e))

    async def _clear(self, key: str) -> None:
        if self._store is None:
            return
        try:
            await self._store.delete(key)
        except StateStoreError as e:
            logger.error("failed to clear persisted state", key=key, error=str(e))

    def _report(self, error: Exception, operation_name: str) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(
                EVENT_RESILIENCE_ERROR,
                error=error,
                operation_name=operation_name,
            )

    # =========================================================================
    # Persistence and Administration
    # =========================================================================

    async def restore_state(self) -> None:
        """
        Restore the persisted OPEN state at process start.

        The record is applied only while its cooldown is still running;
        expired or corrupt records are discarded and the circuit starts CLOSED.
        """
        if self._store is None:
            return

        try:
            record = await self._store.load(CIRCUIT_STATE_KEY, CircuitStateRecord)
            restored_state = (
                CircuitBreakerState(record.state) if record is not None else None
            )
        except (StateStoreError, ValueError) as e:
            logger.error("failed to restore circuit breaker state", error=str(e))
            async with self._lock:
                await self._reset_locked()
            return

        if record is None:
            return

        async with self._lock:
            if (
                record.last_failure_time is not None
                and self._clock() - record.last_failure_time < self._reset_timeout_seconds
            ):
                self._transition(restored_state)
                self._failure_count = record.failure_count
                self._last_failure_time = record.last_failure_time
                logger.warning(
                    "restored circuit breaker state",
                    circuit_state=self._state.value,
                    time_until_reset=math.ceil(self._time_until_reset()),
                )
            else:
                logger.info("discarding expired circuit breaker state")
                await self._reset_locked()

    async def force_reset(self) -> str:
        """
        Administrative override: return to CLOSED unconditionally.

        Also clears the persisted emergency mode record.

        Returns:
            Confirmation message
        """
        logger.info("force resetting circuit breaker")
        async with self._lock:
            await self._reset_locked()
        await self._clear(EMERGENCY_MODE_KEY)
        return "Circuit breaker force reset complete"
