"""
Tests for StateStore - Redis-backed record storage.

Pattern: FakeRepository for testing (fakeredis)
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from bank_resilience.core.exceptions import StateStoreError
from bank_resilience.models.records import CircuitStateRecord, EmergencyModeRecord
from bank_resilience.storage.state_store import (
    CIRCUIT_STATE_KEY,
    EMERGENCY_MODE_KEY,
    StateStore,
)


@pytest.fixture
def circuit_record() -> CircuitStateRecord:
    return CircuitStateRecord(
        state="open",
        last_failure_time=1_700_000_000.0,
        failure_count=3,
        reason="failure threshold reached",
    )


class TestSaveAndLoad:
    @pytest.mark.asyncio
    async def test_round_trip(self, state_store, circuit_record) -> None:
        await state_store.save(CIRCUIT_STATE_KEY, circuit_record)

        assert await state_store.load(CIRCUIT_STATE_KEY, CircuitStateRecord) == circuit_record

    @pytest.mark.asyncio
    async def test_stored_as_prefixed_json(self, state_store, fake_redis, circuit_record) -> None:
        await state_store.save(CIRCUIT_STATE_KEY, circuit_record)

        raw = await fake_redis.get("test:circuit_state")
        assert json.loads(raw)["failure_count"] == 3

    @pytest.mark.asyncio
    async def test_emergency_record(self, state_store) -> None:
        record = EmergencyModeRecord(
            is_active=True,
            reason="maintenance",
            activated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        await state_store.save(EMERGENCY_MODE_KEY, record)

        loaded = await state_store.load(EMERGENCY_MODE_KEY, EmergencyModeRecord)
        assert loaded.activated_at == record.activated_at

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, state_store) -> None:
        assert await state_store.load(CIRCUIT_STATE_KEY, CircuitStateRecord) is None

    @pytest.mark.asyncio
    async def test_corrupt_json_raises(self, state_store, fake_redis) -> None:
        await fake_redis.set("test:circuit_state", "not-json")

        with pytest.raises(StateStoreError) as exc_info:
            await state_store.load(CIRCUIT_STATE_KEY, CircuitStateRecord)
        assert exc_info.value.key == CIRCUIT_STATE_KEY

    @pytest.mark.asyncio
    async def test_invalid_record_raises(self, state_store, fake_redis) -> None:
        await fake_redis.set("test:circuit_state", '{"failure_count": -1}')

        with pytest.raises(StateStoreError):
            await state_store.load(CIRCUIT_STATE_KEY, CircuitStateRecord)


class TestDeleteAndExists:
    @pytest.mark.asyncio
    async def test_delete(self, state_store, circuit_record) -> None:
        await state_store.save(CIRCUIT_STATE_KEY, circuit_record)

        assert await state_store.exists(CIRCUIT_STATE_KEY) is True
        assert await state_store.delete(CIRCUIT_STATE_KEY) is True
        assert await state_store.exists(CIRCUIT_STATE_KEY) is False
        assert await state_store.delete(CIRCUIT_STATE_KEY) is False


class TestErrorWrapping:
    @pytest.mark.asyncio
    async def test_connection_errors_are_wrapped(self, circuit_record) -> None:
        redis_client = AsyncMock()
        redis_client.set.side_effect = ConnectionError("refused")
        redis_client.get.side_effect = ConnectionError("refused")
        redis_client.delete.side_effect = ConnectionError("refused")
        redis_client.exists.side_effect = ConnectionError("refused")
        store = StateStore(redis_client, key_prefix="test:")

        with pytest.raises(StateStoreError):
            await store.save(CIRCUIT_STATE_KEY, circuit_record)
        with pytest.raises(StateStoreError):
            await store.load(CIRCUIT_STATE_KEY, CircuitStateRecord)
        with pytest.raises(StateStoreError):
            await store.delete(CIRCUIT_STATE_KEY)
        with pytest.raises(StateStoreError):
            await store.exists(CIRCUIT_STATE_KEY)

    def test_default_prefix_from_settings(self) -> None:
        from bank_resilience.core.config import get_settings

        store = StateStore(AsyncMock())
        assert store._make_key("circuit_state") == f"{get_settings().state_key_prefix}circuit_state"
