"""
Resilience Package

Circuit breaker, request throttle and emergency mode for the banking
backend, plus the pieces built on them:
- error classification and the event bus
- user-facing error notifications and the overall status label
- the resilient data gateway and the ResilienceLayer that wires it all
"""

from bank_resilience.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerState,
    CircuitBreakerStatus,
)
from bank_resilience.resilience.classification import (
    FailureKind,
    classify_failure,
    is_quota_exhausted,
    is_resource_exhausted,
)
from bank_resilience.resilience.emergency_mode import (
    EmergencyModeController,
    EmergencyModeStatus,
)
from bank_resilience.resilience.events import (
    EVENT_EMERGENCY_ACTIVATED,
    EVENT_EMERGENCY_DEACTIVATED,
    EVENT_RESILIENCE_ERROR,
    EventBus,
)
from bank_resilience.resilience.gateway import ResilientDataGateway
from bank_resilience.resilience.layer import ResilienceLayer
from bank_resilience.resilience.notifications import (
    ErrorNotification,
    ErrorNotificationFeed,
    NotificationType,
)
from bank_resilience.resilience.status import StatusLevel, SystemStatus, get_system_status
from bank_resilience.resilience.throttle import RequestThrottle, ThrottleStatus

__all__ = [
    # Circuit breaker
    "CircuitBreaker",
    "CircuitBreakerState",
    "CircuitBreakerStatus",
    # Classification
    "FailureKind",
    "classify_failure",
    "is_quota_exhausted",
    "is_resource_exhausted",
    # Throttle
    "RequestThrottle",
    "ThrottleStatus",
    # Emergency mode
    "EmergencyModeController",
    "EmergencyModeStatus",
    # Events
    "EventBus",
    "EVENT_RESILIENCE_ERROR",
    "EVENT_EMERGENCY_ACTIVATED",
    "EVENT_EMERGENCY_DEACTIVATED",
    # Notifications and status
    "ErrorNotification",
    "ErrorNotificationFeed",
    "NotificationType",
    "StatusLevel",
    "SystemStatus",
    "get_system_status",
    # Composition
    "ResilientDataGateway",
    "ResilienceLayer",
]
