"""
In-process event bus between the resilience layer and its observers.

Events:
    resilience.error: every failure reported by the circuit breaker,
        including fast-fails. Payload: ``error``, ``operation_name``.
    emergency_mode.activated: payload ``reason``, ``activated_at``.
    emergency_mode.deactivated: empty payload.

Handlers are plain callables invoked synchronously in subscription order.
A failing handler is logged and does not stop delivery to the others, and
never propagates into the code that emitted the event.
"""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

from bank_resilience.observability.logging import get_logger

logger = get_logger(__name__)

EVENT_RESILIENCE_ERROR = "resilience.error"
EVENT_EMERGENCY_ACTIVATED = "emergency_mode.activated"
EVENT_EMERGENCY_DEACTIVATED = "emergency_mode.deactivated"

EventHandler = Callable[[dict[str, Any]], None]


class EventBus:
    """
    Publish/subscribe registry keyed by event name.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(EVENT_RESILIENCE_ERROR, lambda payload: print(payload))
        >>> bus.emit(EVENT_RESILIENCE_ERROR, error=err, operation_name="get-accounts")
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for an event.

        Args:
            event_name: Event to listen for
            handler: Callable receiving the payload dict

        Returns:
            A function that removes the subscription
        """
        self._handlers[event_name].append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(event_name, handler)

        return unsubscribe

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_name: str) -> int:
        """Number of handlers subscribed to an event."""
        return len(self._handlers.get(event_name, []))

    def emit(self, event_name: str, **payload: Any) -> None:
        """
        Deliver an event to every subscribed handler.

        Args:
            event_name: Event being raised
            **payload: Event payload passed to handlers as a dict
        """
        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(dict(payload))
            except Exception as e:
                logger.warning(
                    "event handler failed",
                    event_name=event_name,
                    error=str(e),
                )
