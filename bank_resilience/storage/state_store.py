"""
State Store - Redis-backed durable key-value storage

Holds the persisted circuit breaker and emergency mode records so they
survive process restarts. Records are pydantic models stored as JSON under
``<key_prefix><key>``.

Pattern: Repository pattern
Pattern: Dependency injection for Redis client
"""

from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis

from bank_resilience.core.config import get_settings
from bank_resilience.core.exceptions import StateStoreError

RecordT = TypeVar("RecordT", bound=BaseModel)

CIRCUIT_STATE_KEY = "circuit_state"
EMERGENCY_MODE_KEY = "emergency_mode"


class StateStore:
    """
    Redis-based record storage.

    Attributes:
        _redis: The Redis client instance.
        _key_prefix: Prefix for Redis keys.

    Example:
        >>> import redis.asyncio as redis
        >>> store = StateStore(redis_client=redis.from_url("redis://localhost:6379"))
        >>> await store.save(CIRCUIT_STATE_KEY, record)
        >>> restored = await store.load(CIRCUIT_STATE_KEY, CircuitStateRecord)
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: Optional[str] = None,
    ) -> None:
        """
        Initialize StateStore with Redis client.

        Args:
            redis_client: Async Redis client instance.
            key_prefix: Prefix for all keys. Defaults to settings.state_key_prefix.
        """
        self._redis: Redis = redis_client
        if key_prefix is None:
            key_prefix = get_settings().state_key_prefix
        self._key_prefix: str = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def save(self, key: str, record: BaseModel) -> None:
        """
        Save a record as JSON.

        Raises:
            StateStoreError: If the write fails.
        """
        try:
            await self._redis.set(self._make_key(key), record.model_dump_json())
        except Exception as e:
            raise StateStoreError(f"Failed to save state {key}: {e}", key=key) from e

    async def load(self, key: str, model_cls: Type[RecordT]) -> Optional[RecordT]:
        """
        Load and validate a record.

        Returns:
            The record, or None if the key does not exist.

        Raises:
            StateStoreError: If the read fails or the stored JSON is invalid.
        """
        try:
            raw = await self._redis.get(self._make_key(key))
        except Exception as e:
            raise StateStoreError(f"Failed to load state {key}: {e}", key=key) from e

        if raw is None:
            return None

        try:
            return model_cls.model_validate_json(raw)
        except ValidationError as e:
            raise StateStoreError(f"Corrupt state record {key}: {e}", key=key) from e

    async def delete(self, key: str) -> bool:
        """
        Delete a record.

        Returns:
            True if the record was deleted, False if it didn't exist.

        Raises:
            StateStoreError: If the delete fails.
        """
        try:
            return await self._redis.delete(self._make_key(key)) > 0
        except Exception as e:
            raise StateStoreError(f"Failed to delete state {key}: {e}", key=key) from e

    async def exists(self, key: str) -> bool:
        """Check if a record exists."""
        try:
            return await self._redis.exists(self._make_key(key)) > 0
        except Exception as e:
            raise StateStoreError(
                f"Failed to check state existence {key}: {e}", key=key
            ) from e
