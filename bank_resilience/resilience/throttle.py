"""
Request Throttle

Limits call frequency per named operation, independently of the circuit
breaker, and applies exponential backoff to quota errors.

Pattern: Fixed window counter per operation key
- The window starts at the first check and resets once `window_seconds`
  have elapsed; a reset check returns "not throttled" immediately.
- Every attempt is recorded against the window, whatever its outcome.
- Quota errors bump a per-operation attempt counter that survives across
  calls until a success resets it; the delay is
  min(base * 2**(attempt - 1), max).

Counter updates never span an await, so the single event loop serialises
them: the pre-check and the first recorded attempt of a call run without
yielding, and interleaved calls to the same operation cannot over-admit.

Composing with the circuit breaker: throttle outside, breaker inside, so a
pre-check rejection never counts as a backend failure. A retry the breaker
fast-fails with CircuitOpenError ends the loop with the last backend error.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from bank_resilience.core.config import Settings
from bank_resilience.core.exceptions import CircuitOpenError, RateLimitExceededError
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.classification import is_quota_exhausted
from bank_resilience.resilience.metrics import (
    record_backoff_delay,
    record_throttle_rejection,
)

T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE_SECONDS = 1.0
DEFAULT_BACKOFF_MAX_SECONDS = 30.0


@dataclass
class ThrottleStatus:
    """
    Snapshot of the throttle maps, for debugging.

    Attributes:
        request_counts: Calls recorded in the current window per operation
        rate_limit_windows: Window start (epoch seconds) per operation
        backoff_attempts: Consecutive quota-error attempts per operation
    """

    request_counts: dict[str, int]
    rate_limit_windows: dict[str, float]
    backoff_attempts: dict[str, int]


class RequestThrottle:
    """
    In-memory per-operation throttle with quota backoff.

    Example:
        >>> throttle = RequestThrottle()
        >>> await throttle.with_throttling(
        ...     "update-johnson_checking", write_balance, max_requests=3, window_seconds=60
        ... )
    """

    def __init__(
        self,
        backoff_base_seconds: float = DEFAULT_BACKOFF_BASE_SECONDS,
        backoff_max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS,
        default_max_requests: int = DEFAULT_MAX_REQUESTS,
        default_window_seconds: float = DEFAULT_WINDOW_SECONDS,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the throttle.

        Args:
            backoff_base_seconds: First quota backoff delay
            backoff_max_seconds: Cap for the quota backoff delay
            default_max_requests: max_requests used when a call passes None
            default_window_seconds: window_seconds used when a call passes None
            default_max_retries: max_retries used when a call passes None
            clock: Time source returning seconds
            sleep: Awaitable sleep used between quota retries
        """
        self._backoff_base_seconds = backoff_base_seconds
        self._backoff_max_seconds = backoff_max_seconds
        self._default_max_requests = default_max_requests
        self._default_window_seconds = default_window_seconds
        self._default_max_retries = default_max_retries
        self._clock = clock
        self._sleep = sleep

        self._request_counts: dict[str, int] = {}
        self._rate_limit_windows: dict[str, float] = {}
        self._backoff_attempts: dict[str, int] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "RequestThrottle":
        """Create a RequestThrottle configured from Settings."""
        return cls(
            backoff_base_seconds=settings.backoff_base_seconds,
            backoff_max_seconds=settings.backoff_max_seconds,
            default_max_requests=settings.throttle_max_requests,
            default_window_seconds=settings.throttle_window_seconds,
            default_max_retries=settings.throttle_max_retries,
            clock=clock,
            sleep=sleep,
        )

    # =========================================================================
    # Window Counting
    # =========================================================================

    def should_throttle(
        self,
        operation: str,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
    ) -> bool:
        """
        Check if a call for `operation` must not proceed.

        Args:
            operation: Operation identifier
            max_requests: Max requests per window
            window_seconds: Window length in seconds

        Returns:
            True if the current window's quota is already consumed
        """
        if max_requests is None:
            max_requests = self._default_max_requests
        if window_seconds is None:
            window_seconds = self._default_window_seconds

        now = self._clock()
        window_start = self._rate_limit_windows.get(operation, now)
        request_count = self._request_counts.get(operation, 0)

        if now - window_start >= window_seconds:
            self._rate_limit_windows[operation] = now
            self._request_counts[operation] = 0
            return False

        # First sight of this operation opens its window
        self._rate_limit_windows.setdefault(operation, now)

        if request_count >= max_requests:
            logger.warning(
                "throttle limit reached",
                operation=operation,
                max_requests=max_requests,
                window_seconds=window_seconds,
            )
            return True

        return False

    def record_request(self, operation: str) -> None:
        """Record one call against the operation's window."""
        self._request_counts[operation] = self._request_counts.get(operation, 0) + 1

    def retry_after(self, operation: str, window_seconds: Optional[float] = None) -> float:
        """Seconds until the operation's current window resets."""
        if window_seconds is None:
            window_seconds = self._default_window_seconds
        window_start = self._rate_limit_windows.get(operation)
        if window_start is None:
            return 0.0
        return max(0.0, window_seconds - (self._clock() - window_start))

    # =========================================================================
    # Backoff
    # =========================================================================

    def get_backoff_delay(self, operation: str, error: Any) -> float:
        """
        Get the backoff delay for a failed call.

        Args:
            operation: Operation identifier
            error: The error raised by the call

        Returns:
            Delay in seconds; 0 unless the error is a quota error
        """
        if not is_quota_exhausted(error):
            return 0.0

        attempt = self._backoff_attempts.get(operation, 0) + 1
        self._backoff_attempts[operation] = attempt

        delay = min(
            self._backoff_base_seconds * (2 ** (attempt - 1)),
            self._backoff_max_seconds,
        )
        record_backoff_delay(operation, delay)
        logger.warning(
            "quota backoff",
            operation=operation,
            attempt=attempt,
            delay_seconds=delay,
        )
        return delay

    def reset_backoff(self, operation: str) -> None:
        """Reset backoff after a successful call."""
        self._backoff_attempts.pop(operation, None)

    # =========================================================================
    # Wrapper
    # =========================================================================

    async def with_throttling(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_if: Optional[Callable[[Exception], bool]] = None,
    ) -> T:
        """
        Run `call` under the operation's throttle, retrying quota errors.

        Args:
            operation: Operation identifier
            call: Zero-argument async callable
            max_requests: Max requests per window
            window_seconds: Window length in seconds
            max_retries: Maximum attempts
            retry_if: Extra check on a quota error before backing off;
                returning False raises the error immediately

        Returns:
            Result of the call

        Raises:
            RateLimitExceededError: If the window quota is consumed (call not invoked)
            Exception: The last error raised by the backend
        """
        if max_requests is None:
            max_requests = self._default_max_requests
        if window_seconds is None:
            window_seconds = self._default_window_seconds
        if max_retries is None:
            max_retries = self._default_max_retries
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        if self.should_throttle(operation, max_requests, window_seconds):
            record_throttle_rejection(operation)
            raise RateLimitExceededError(
                operation,
                limit=max_requests,
                retry_after=self.retry_after(operation, window_seconds),
            )

        last_error: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            self.record_request(operation)

            try:
                result = await call()
            except CircuitOpenError:
                # The retry never reached the backend
                if last_error is not None:
                    raise last_error
                raise
            except Exception as e:
                last_error = e
                delay = self.get_backoff_delay(operation, e)
                if (
                    delay > 0
                    and attempt < max_retries
                    and (retry_if is None or retry_if(e))
                ):
                    await self._sleep(delay)
                    continue
                break

            self.reset_backoff(operation)
            return result

        raise last_error

    def get_status(self) -> ThrottleStatus:
        """Get current throttle state for debugging."""
        return ThrottleStatus(
            request_counts=dict(self._request_counts),
            rate_limit_windows=dict(self._rate_limit_windows),
            backoff_attempts=dict(self._backoff_attempts),
        )
