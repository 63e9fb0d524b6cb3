"""Result cache with Redis and in-memory fallback."""

import hashlib
import json
import logging
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)


def make_cache_key(prefix: str, payload: dict[str, Any]) -> str:
    """Stable key for a request payload (sorted-key JSON, sha256)."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode()).hexdigest()
    return f"{prefix}:{digest}"


class CacheService:
    """Unified cache interface supporting Redis or in-memory TTLCache."""

    def __init__(self, redis_client=None, ttl: int = 60, maxsize: int = 50):
        self._redis = redis_client
        self._ttl = ttl
        self._memory = TTLCache(maxsize=maxsize, ttl=ttl)
        self._using_redis = redis_client is not None
        self.hits = 0
        self.misses = 0

    @classmethod
    async def create(cls, redis_url: str, ttl: int = 60, maxsize: int = 50) -> "CacheService":
        """Factory method that tries Redis, falls back to in-memory."""
        if not redis_url:
            logger.info("Cache: no Redis URL configured, using in-memory TTLCache")
            return cls(redis_client=None, ttl=ttl, maxsize=maxsize)
        try:
            import redis.asyncio as aioredis

            client = aioredis.from_url(redis_url, decode_responses=True)
            await client.ping()
            logger.info("Cache: Connected to Redis")
            return cls(redis_client=client, ttl=ttl, maxsize=maxsize)
        except Exception as e:
            logger.warning("Cache: Redis unavailable (%s), using in-memory TTLCache", e)
            return cls(redis_client=None, ttl=ttl, maxsize=maxsize)

    async def get(self, key: str) -> Any | None:
        """Get cached value by key."""
        value = None
        if self._using_redis:
            try:
                raw = await self._redis.get(key)
                if raw is not None:
                    value = json.loads(raw)
            except Exception as e:
                logger.warning("Cache get error: %s", e)
        else:
            value = self._memory.get(key)

        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set cached value with optional custom TTL."""
        ttl = ttl or self._ttl
        if self._using_redis:
            try:
                await self._redis.setex(key, ttl, json.dumps(value, default=str))
            except Exception as e:
                logger.warning("Cache set error: %s", e)
        else:
            self._memory[key] = value

    async def close(self) -> None:
        """Close the cache connection."""
        if self._using_redis and self._redis:
            await self._redis.close()

    @property
    def is_redis(self) -> bool:
        return self._using_redis

    @property
    def size(self) -> int | None:
        return None if self._using_redis else len(self._memory)

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0
