"""
Resilient Data Gateway

The entry point data-access code uses to reach the banking backend.

Reads:
    fetch() serves substitute data while emergency mode is active, skips a
    call made within `min_interval_seconds` of the previous call for the
    same key, and otherwise runs the call through the circuit breaker.

Writes:
    write() refuses to run while emergency mode is active, and otherwise
    runs the call through the throttle (outer) and the circuit breaker
    (inner). Quota backoff is skipped once the breaker has opened, so the
    caller gets the backend error itself.
"""

import time
from typing import Awaitable, Callable, Optional, TypeVar

from bank_resilience.core.exceptions import EmergencyModeActiveError
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.circuit_breaker import CircuitBreaker
from bank_resilience.resilience.emergency_mode import EmergencyModeController
from bank_resilience.resilience.throttle import RequestThrottle

T = TypeVar("T")

logger = get_logger(__name__)


class ResilientDataGateway:
    """
    Routes backend reads and writes through the resilience layer.

    Example:
        >>> gateway = ResilientDataGateway(breaker, throttle, emergency)
        >>> accounts = await gateway.fetch(
        ...     "get-accounts", load_accounts, substitute=emergency.get_substitute_accounts
        ... )
        >>> await gateway.write(
        ...     "update-johnson_checking", save_balance, max_requests=3, window_seconds=60
        ... )
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        throttle: RequestThrottle,
        emergency_mode: EmergencyModeController,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._circuit_breaker = circuit_breaker
        self._throttle = throttle
        self._emergency_mode = emergency_mode
        self._clock = clock
        self._last_fetch: dict[str, float] = {}

    async def fetch(
        self,
        name: str,
        call: Callable[[], Awaitable[T]],
        substitute: Optional[Callable[[], T]] = None,
        min_interval_seconds: Optional[float] = None,
    ) -> Optional[T]:
        """
        Read from the backend.

        Args:
            name: Operation name, also the min-interval key
            call: Zero-argument async callable performing the read
            substitute: Returns the dataset served during emergency mode
            min_interval_seconds: Skip calls closer together than this

        Returns:
            The call's result, the substitute dataset, or None when the
            call was skipped (or no substitute exists in emergency mode)

        Raises:
            CircuitOpenError: If the circuit is open
            Exception: Any exception raised by the call
        """
        if self._emergency_mode.is_active:
            logger.info("emergency mode active, serving substitute data", operation=name)
            return substitute() if substitute is not None else None

        now = self._clock()
        if min_interval_seconds is not None:
            last = self._last_fetch.get(name)
            if last is not None and now - last < min_interval_seconds:
                logger.debug(
                    "skipping fetch, called too recently",
                    operation=name,
                    min_interval_seconds=min_interval_seconds,
                )
                return None
        self._last_fetch[name] = now

        return await self._circuit_breaker.execute(call, name)

    async def write(
        self,
        name: str,
        call: Callable[[], Awaitable[T]],
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
    ) -> T:
        """
        Write to the backend.

        Args:
            name: Operation name, also the throttle key
            call: Zero-argument async callable performing the write
            max_requests: Max writes per window
            window_seconds: Window length in seconds

        Returns:
            The call's result

        Raises:
            EmergencyModeActiveError: If emergency mode is active
            RateLimitExceededError: If the throttle window is exhausted
            CircuitOpenError: If the circuit is open
            Exception: Any exception raised by the call
        """
        if self._emergency_mode.is_active:
            raise EmergencyModeActiveError(
                name, reason=self._emergency_mode.activation_reason
            )

        return await self._throttle.with_throttling(
            name,
            lambda: self._circuit_breaker.execute(call, name),
            max_requests=max_requests,
            window_seconds=window_seconds,
            retry_if=lambda _: not self._circuit_breaker.get_status().is_open,
        )
