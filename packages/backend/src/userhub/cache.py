"""Optional read-through cache for admin user reads.

Learn: Redis is optional. When USERHUB_REDIS_URL is empty or Redis is
unreachable the app gets a NullCache and simply reads the store every
time — same behaviour, more latency.

Every cache call is best-effort: a Redis error is logged and treated as
a miss. A broken cache must never fail a request.

The auth gate never reads from here. Account status is always read
from the store, so a deactivation takes effect on the very next request.
"""

import json
from typing import Any, Optional, Protocol

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()

KEY_PREFIX = "userhub:"
USERS_PATTERN = "users:*"


def user_key(user_id) -> str:
    return f"users:id:{user_id}"


def user_list_key(page: int, limit: int) -> str:
    return f"users:list:{page}:{limit}"


class Cache(Protocol):
    """Key → JSON value store with TTL."""

    async def connect(self) -> None:
        ...

    def is_available(self) -> bool:
        ...

    async def close(self) -> None:
        ...

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    async def invalidate(self, key_or_pattern: str) -> None:
        ...


class NullCache:
    """No cache configured: every get is a miss, writes are dropped."""

    async def connect(self) -> None:
        return None

    def is_available(self) -> bool:
        return False

    async def close(self) -> None:
        return None

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        return None

    async def invalidate(self, key_or_pattern: str) -> None:
        return None


class RedisCache:
    """Redis-backed cache. Values are stored as JSON under a userhub: prefix."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        self.url = url
        self._client = client

    async def connect(self) -> None:
        """Open the connection pool and verify it with a PING."""
        if self._client is None:
            self._client = aioredis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )
        await self._client.ping()

    def is_available(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Optional[Any]:
        if self._client is None:
            return None
        try:
            raw = await self._client.get(KEY_PREFIX + key)
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.warning("cache.get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if self._client is None:
            return
        try:
            await self._client.set(
                KEY_PREFIX + key, json.dumps(value, default=str), ex=ttl_seconds
            )
        except Exception as e:
            logger.warning("cache.set_failed", key=key, error=str(e))

    async def invalidate(self, key_or_pattern: str) -> None:
        """Delete one key, or every key matching a glob pattern."""
        if self._client is None:
            return
        try:
            if "*" in key_or_pattern:
                keys = [
                    k async for k in self._client.scan_iter(
                        match=KEY_PREFIX + key_or_pattern
                    )
                ]
                if keys:
                    await self._client.delete(*keys)
            else:
                await self._client.delete(KEY_PREFIX + key_or_pattern)
        except Exception as e:
            logger.warning("cache.invalidate_failed", key=key_or_pattern, error=str(e))


async def build_cache(redis_url: str) -> Cache:
    """Connect to Redis if configured, otherwise fall back to NullCache."""
    if not redis_url:
        logger.info("cache.disabled")
        return NullCache()
    cache = RedisCache(redis_url)
    try:
        await cache.connect()
    except Exception as e:
        logger.warning("cache.redis_unavailable", error=str(e))
        await cache.close()
        return NullCache()
    logger.info("cache.redis_connected", url=redis_url)
    return cache
