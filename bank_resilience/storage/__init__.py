"""Durable state storage for the resilience layer."""

from bank_resilience.storage.state_store import (
    CIRCUIT_STATE_KEY,
    EMERGENCY_MODE_KEY,
    StateStore,
)

__all__ = [
    "StateStore",
    "CIRCUIT_STATE_KEY",
    "EMERGENCY_MODE_KEY",
]
