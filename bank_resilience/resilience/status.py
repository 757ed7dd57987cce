"""
Overall connectivity status shown to administrators.

Levels, in priority order:
    offline: circuit is open ("Backend Offline (Ns)")
    emergency: emergency mode is active ("Emergency Mode")
    warning: the breaker has recorded failures ("Backend Warning (N failures)")
    online: everything is healthy ("Backend Online")
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bank_resilience.resilience.circuit_breaker import CircuitBreakerStatus
from bank_resilience.resilience.emergency_mode import EmergencyModeStatus


class StatusLevel(str, Enum):
    OFFLINE = "offline"
    EMERGENCY = "emergency"
    WARNING = "warning"
    ONLINE = "online"


@dataclass(frozen=True)
class SystemStatus:
    level: StatusLevel
    label: str
    has_issues: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "label": self.label,
            "has_issues": self.has_issues,
        }


def get_system_status(
    circuit_status: CircuitBreakerStatus,
    emergency_status: EmergencyModeStatus,
) -> SystemStatus:
    """
    Derive the overall status from the breaker and emergency mode.

    Args:
        circuit_status: Current circuit breaker status
        emergency_status: Current emergency mode status

    Returns:
        SystemStatus with level and display label
    """
    if circuit_status.is_open:
        remaining = math.ceil(circuit_status.time_until_reset)
        return SystemStatus(StatusLevel.OFFLINE, f"Backend Offline ({remaining}s)", True)

    if emergency_status.is_active:
        return SystemStatus(StatusLevel.EMERGENCY, "Emergency Mode", True)

    if circuit_status.failure_count > 0:
        return SystemStatus(
            StatusLevel.WARNING,
            f"Backend Warning ({circuit_status.failure_count} failures)",
            True,
        )

    return SystemStatus(StatusLevel.ONLINE, "Backend Online", False)
