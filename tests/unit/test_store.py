"""Tests for key-value store backends."""

from types import SimpleNamespace

import pytest

from supportbot.core.config import StoreConfig
from supportbot.core.exceptions import ConfigurationError
from supportbot.store.factory import KeyValueStoreFactory
from supportbot.store.in_memory_store import InMemoryKeyValueStore
from supportbot.store.redis_store import RedisKeyValueStore


class TestKeyValueStoreFactory:
    """Test cases for the store factory."""

    def test_available_backends(self):
        """Test that both backends are registered."""
        backends = KeyValueStoreFactory.available_backends()
        assert "in_memory" in backends
        assert "redis" in backends

    def test_create_in_memory(self):
        store = KeyValueStoreFactory.create(StoreConfig(backend="in_memory"))
        assert isinstance(store, InMemoryKeyValueStore)

    def test_create_redis_is_lazy(self):
        """Test that creating the redis store does not connect."""
        store = KeyValueStoreFactory.create(StoreConfig(backend="redis", redis_url="redis://nowhere:6379/0"))
        assert isinstance(store, RedisKeyValueStore)
        assert store._client is None

    def test_unknown_backend_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            KeyValueStoreFactory.create(StoreConfig(backend="sqlite"))
        assert "Unknown store backend" in exc_info.value.message


class TestInMemoryKeyValueStore:
    """Test cases for the in-memory store."""

    @pytest.mark.asyncio
    async def test_get_set_delete(self, store):
        assert await store.get("missing") is None

        await store.set("key", "value")
        assert await store.get("key") == "value"

        await store.delete("key")
        assert await store.get("key") is None

    @pytest.mark.asyncio
    async def test_ttl_expires(self, store, monkeypatch):
        """Test that values with a TTL disappear after it elapses."""
        now = [1000.0]
        monkeypatch.setattr("supportbot.store.in_memory_store.time", SimpleNamespace(monotonic=lambda: now[0]))

        await store.set("short", "lived", ttl_seconds=10)
        await store.set("forever", "value")
        assert await store.get("short") == "lived"

        now[0] += 11
        assert await store.get("short") is None
        assert await store.get("forever") == "value"

    @pytest.mark.asyncio
    async def test_hash_operations(self, store):
        await store.hset("h", "a", "1")
        await store.hset("h", "b", "2")

        assert await store.hget("h", "a") == "1"
        assert await store.hgetall("h") == {"a": "1", "b": "2"}

        await store.hdel("h", "a")
        await store.hdel("h", "b")
        assert await store.hgetall("h") == {}
        assert await store.scan("h") == []

    @pytest.mark.asyncio
    async def test_scan_matches_strings_and_hashes(self, store):
        await store.set("support_channels:other", "x")
        await store.hset("support_channels:t1", "c1", "{}")
        await store.set("session:abc", "{}")

        keys = await store.scan("support_channels:*")
        assert sorted(keys) == ["support_channels:other", "support_channels:t1"]
