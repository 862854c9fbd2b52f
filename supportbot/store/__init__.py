"""Backing key-value store implementations."""

from supportbot.store.factory import KeyValueStoreFactory
from supportbot.store.in_memory_store import InMemoryKeyValueStore
from supportbot.store.redis_store import RedisKeyValueStore

__all__ = ["InMemoryKeyValueStore", "KeyValueStoreFactory", "RedisKeyValueStore"]
