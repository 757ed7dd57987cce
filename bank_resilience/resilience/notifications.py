"""
User-facing error banners fed by resilience.error events.

Rules:
- Quota errors become a "Service Temporarily Limited" banner; anything
  else becomes a "Service Error" banner carrying the error message.
- A quota banner is suppressed while another quota banner created within
  the dedup window is still visible.
- At most `max_visible` banners are kept; the oldest is dropped first.
- Banners expire `ttl_seconds` after creation and can be dismissed by id.

Expiry is evaluated lazily against the injected clock whenever the feed
is read or written.
"""

import itertools
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from bank_resilience.core.config import Settings
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.classification import is_quota_exhausted
from bank_resilience.resilience.events import EVENT_RESILIENCE_ERROR, EventBus

logger = get_logger(__name__)

QUOTA_TITLE = "Service Temporarily Limited"
QUOTA_MESSAGE = (
    "Service temporarily limited due to high usage. "
    "Please wait a moment and try again."
)
ERROR_TITLE = "Service Error"
DEFAULT_ERROR_MESSAGE = "An unexpected error occurred."


class NotificationType(str, Enum):
    QUOTA = "quota"
    ERROR = "error"


@dataclass(frozen=True)
class ErrorNotification:
    """
    A banner shown to the user.

    Attributes:
        id: Unique, increasing identifier
        type: quota or error
        title: Banner headline
        message: Banner body
        operation_name: Operation that failed, if known
        created_at: Creation time in epoch seconds
    """

    id: int
    type: NotificationType
    title: str
    message: str
    operation_name: Optional[str]
    created_at: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "operation_name": self.operation_name,
            "timestamp": datetime.fromtimestamp(
                self.created_at, tz=timezone.utc
            ).isoformat(),
        }


class ErrorNotificationFeed:
    """Bounded, self-expiring list of error banners."""

    def __init__(
        self,
        ttl_seconds: float = 10.0,
        dedup_window_seconds: float = 30.0,
        max_visible: int = 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._dedup_window_seconds = dedup_window_seconds
        self._max_visible = max_visible
        self._clock = clock
        self._notifications: list[ErrorNotification] = []
        self._ids = itertools.count(1)
        self._unsubscribe: Optional[Callable[[], None]] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> "ErrorNotificationFeed":
        """Create an ErrorNotificationFeed configured from Settings."""
        return cls(
            ttl_seconds=settings.notification_ttl_seconds,
            dedup_window_seconds=settings.notification_dedup_window_seconds,
            max_visible=settings.notification_max_visible,
            clock=clock,
        )

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe the feed to resilience.error events."""
        self.detach()
        self._unsubscribe = event_bus.subscribe(EVENT_RESILIENCE_ERROR, self._on_error)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_error(self, payload: dict[str, Any]) -> None:
        error = payload.get("error")
        if error is None:
            return
        self.notify(error, payload.get("operation_name"))

    def _prune(self, now: float) -> None:
        self._notifications = [
            n for n in self._notifications if now - n.created_at < self._ttl_seconds
        ]

    def notify(
        self,
        error: Any,
        operation_name: Optional[str] = None,
    ) -> Optional[ErrorNotification]:
        """
        Turn an error into a banner.

        Args:
            error: The failure to display
            operation_name: Operation that failed

        Returns:
            The new banner, or None if it was suppressed as a duplicate
        """
        now = self._clock()
        self._prune(now)

        if is_quota_exhausted(error):
            duplicate = any(
                n.type == NotificationType.QUOTA
                and now - n.created_at < self._dedup_window_seconds
                for n in self._notifications
            )
            if duplicate:
                logger.debug("suppressed duplicate quota notification")
                return None
            notification = ErrorNotification(
                id=next(self._ids),
                type=NotificationType.QUOTA,
                title=QUOTA_TITLE,
                message=QUOTA_MESSAGE,
                operation_name=operation_name,
                created_at=now,
            )
        else:
            message = getattr(error, "message", None)
            if not isinstance(message, str) or not message:
                message = str(error) or DEFAULT_ERROR_MESSAGE
            notification = ErrorNotification(
                id=next(self._ids),
                type=NotificationType.ERROR,
                title=ERROR_TITLE,
                message=message,
                operation_name=operation_name,
                created_at=now,
            )

        self._notifications.append(notification)
        if len(self._notifications) > self._max_visible:
            self._notifications = self._notifications[-self._max_visible:]
        return notification

    def visible(self) -> list[ErrorNotification]:
        """Banners currently shown, oldest first."""
        self._prune(self._clock())
        return list(self._notifications)

    def dismiss(self, notification_id: int) -> bool:
        """
        Remove a banner.

        Returns:
            True if a banner with that id was visible
        """
        before = len(self._notifications)
        self._notifications = [n for n in self._notifications if n.id != notification_id]
        return len(self._notifications) < before

    def clear(self) -> None:
        self._notifications = []
