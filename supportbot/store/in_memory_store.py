"""In-memory key-value store for development and testing."""

import time
from fnmatch import fnmatchcase

from supportbot.core.logging import get_logger
from supportbot.store.factory import KeyValueStoreFactory

logger = get_logger(__name__)


@KeyValueStoreFactory.register("in_memory")
class InMemoryKeyValueStore:
    """Dictionary-based store for development/testing.

    Not persistent - data is lost on restart. Expired values are dropped on read.
    """

    def __init__(self):
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        logger.debug("in_memory_store_initialized")

    def _expired(self, key: str) -> bool:
        deadline = self._expires_at.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self._values.pop(key, None)
            self._expires_at.pop(key, None)
            return True
        return False

    async def get(self, key: str) -> str | None:
        if self._expired(key):
            return None
        return self._values.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self._values[key] = value
        if ttl_seconds:
            self._expires_at[key] = time.monotonic() + ttl_seconds
        else:
            self._expires_at.pop(key, None)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires_at.pop(key, None)
        self._hashes.pop(key, None)

    async def hset(self, key: str, field: str, value: str) -> None:
        self._hashes.setdefault(key, {})[field] = value

    async def hget(self, key: str, field: str) -> str | None:
        return self._hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self._hashes.get(key, {}))

    async def hdel(self, key: str, field: str) -> None:
        fields = self._hashes.get(key)
        if fields is None:
            return
        fields.pop(field, None)
        if not fields:
            del self._hashes[key]

    async def scan(self, pattern: str) -> list[str]:
        keys = [key for key in list(self._values) if not self._expired(key)]
        keys.extend(self._hashes)
        return [key for key in keys if fnmatchcase(key, pattern)]

    async def close(self) -> None:
        return None
