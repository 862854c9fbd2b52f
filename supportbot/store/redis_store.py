"""Redis-backed key-value store for production."""

import redis.asyncio as redis
from redis.exceptions import RedisError

from supportbot.core.exceptions import StoreError
from supportbot.core.logging import get_logger
from supportbot.store.factory import KeyValueStoreFactory

logger = get_logger(__name__)

SCAN_COUNT = 100


@KeyValueStoreFactory.register("redis")
class RedisKeyValueStore:
    """Redis-backed store shared by every process instance.

    The client is created lazily on first use; Redis failures surface as StoreError.
    """

    def __init__(self, url: str):
        self.url = url
        self._client: redis.Redis | None = None

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
            logger.info("redis_client_created", url=self.url)
        return self._client

    async def get(self, key: str) -> str | None:
        client = await self._get_client()
        try:
            return await client.get(key)
        except RedisError as e:
            raise StoreError(f"Redis GET failed for {key}: {e}", operation="get") from e

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        client = await self._get_client()
        try:
            await client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StoreError(f"Redis SET failed for {key}: {e}", operation="set") from e

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(key)
        except RedisError as e:
            raise StoreError(f"Redis DEL failed for {key}: {e}", operation="delete") from e

    async def hset(self, key: str, field: str, value: str) -> None:
        client = await self._get_client()
        try:
            await client.hset(key, field, value)
        except RedisError as e:
            raise StoreError(f"Redis HSET failed for {key}: {e}", operation="hset") from e

    async def hget(self, key: str, field: str) -> str | None:
        client = await self._get_client()
        try:
            return await client.hget(key, field)
        except RedisError as e:
            raise StoreError(f"Redis HGET failed for {key}: {e}", operation="hget") from e

    async def hgetall(self, key: str) -> dict[str, str]:
        client = await self._get_client()
        try:
            return await client.hgetall(key)
        except RedisError as e:
            raise StoreError(f"Redis HGETALL failed for {key}: {e}", operation="hgetall") from e

    async def hdel(self, key: str, field: str) -> None:
        client = await self._get_client()
        try:
            await client.hdel(key, field)
        except RedisError as e:
            raise StoreError(f"Redis HDEL failed for {key}: {e}", operation="hdel") from e

    async def scan(self, pattern: str) -> list[str]:
        """List keys matching pattern using SCAN (never KEYS)."""
        client = await self._get_client()
        try:
            return [key async for key in client.scan_iter(match=pattern, count=SCAN_COUNT)]
        except RedisError as e:
            raise StoreError(f"Redis SCAN failed for {pattern}: {e}", operation="scan") from e

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_client_closed")
