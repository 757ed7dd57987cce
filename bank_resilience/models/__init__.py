"""
Models Package

- records: persisted circuit breaker / emergency mode state
- banking: substitute dataset shapes served during emergency mode
"""

from bank_resilience.models.banking import (
    Account,
    Address,
    FinancialSummary,
    Transaction,
    UserPreferences,
    UserProfile,
)
from bank_resilience.models.records import CircuitStateRecord, EmergencyModeRecord

__all__ = [
    # Records
    "CircuitStateRecord",
    "EmergencyModeRecord",
    # Banking
    "Account",
    "Address",
    "FinancialSummary",
    "Transaction",
    "UserPreferences",
    "UserProfile",
]
