"""
Persisted State Records

Durable, human-readable JSON records written to the state store. Each
record is written on every state-changing transition and removed when the
owning component returns to its default state (CLOSED / INACTIVE).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class CircuitStateRecord(BaseModel):
    """
    Persisted circuit breaker state.

    Attributes:
        state: Breaker state at the time of writing ("open" in practice).
        last_failure_time: Epoch seconds of the most recent failure.
        failure_count: Failures recorded when the circuit opened.
        reason: Why the circuit opened (quota exhausted, resource exhausted,
            failure threshold reached).
    """

    state: str = Field(..., description="Circuit state value")
    last_failure_time: Optional[float] = Field(
        default=None, description="Epoch seconds of the last failure"
    )
    failure_count: int = Field(default=0, ge=0)
    reason: Optional[str] = Field(default=None)


class EmergencyModeRecord(BaseModel):
    """
    Persisted emergency mode state.

    Attributes:
        is_active: Whether emergency mode is active.
        reason: Activation reason.
        activated_at: When emergency mode was activated (UTC).
    """

    is_active: bool
    reason: Optional[str] = None
    activated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _active_requires_reason(self) -> "EmergencyModeRecord":
        if self.is_active and (self.reason is None or self.activated_at is None):
            raise ValueError("active emergency mode requires reason and activated_at")
        return self
