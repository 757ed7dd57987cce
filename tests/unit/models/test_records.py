"""Tests for persisted state records and banking display models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from bank_resilience.models.banking import Account
from bank_resilience.models.records import CircuitStateRecord, EmergencyModeRecord


class TestCircuitStateRecord:
    def test_defaults(self):
        record = CircuitStateRecord(state="open")
        assert record.failure_count == 0
        assert record.last_failure_time is None

    def test_negative_failure_count_rejected(self):
        with pytest.raises(ValidationError):
            CircuitStateRecord(state="open", failure_count=-1)


class TestEmergencyModeRecord:
    def test_active_requires_reason_and_timestamp(self):
        with pytest.raises(ValidationError):
            EmergencyModeRecord(is_active=True, reason="maintenance")

    def test_inactive_record(self):
        record = EmergencyModeRecord(is_active=False)
        assert record.reason is None

    def test_json_round_trip(self):
        record = EmergencyModeRecord(
            is_active=True,
            reason="maintenance",
            activated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        assert EmergencyModeRecord.model_validate_json(record.model_dump_json()) == record


class TestBankingModels:
    def test_account_flagged_as_mock(self):
        account = Account(
            id="a1",
            account_name="Checking",
            account_number="****0001",
            balance=10.0,
            available_balance=10.0,
            account_type="checking",
            last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc),
            interest_rate=0.01,
            minimum_balance=0,
        )
        assert account.mock_data is True
        assert account.currency == "USD"
