# src/cache/redis_store.py — v1
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for sharing buckets between many consumers; Redis enforces the TTL.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from kitebuilds.cache.base_cache_store import BaseCacheStore, CacheStoreError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "kitebuilds:builds:"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for distributed deployments."""

    def __init__(self, redis_url: str, key_prefix: str = _KEY_PREFIX) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._redis = redis
        self._client = redis.Redis.from_url(redis_url)
        self._prefix = key_prefix

    async def get(self, key: str) -> bytes | None:
        """Retrieve payload by key."""
        try:
            return self._client.get(f"{self._prefix}{key}")
        except self._redis.RedisError as e:
            raise CacheStoreError(f"Failed to read cache entry {key}: {e}") from e

    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store a payload with a server-side expiry."""
        try:
            self._client.set(f"{self._prefix}{key}", value, px=int(ttl.total_seconds() * 1000))
        except self._redis.RedisError as e:
            raise CacheStoreError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a payload."""
        self._client.delete(f"{self._prefix}{key}")

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
