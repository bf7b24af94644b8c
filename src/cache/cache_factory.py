# src/cache/cache_factory.py — v1
"""Factory for cache store instantiation."""

from __future__ import annotations

from kitebuilds.cache.base_cache_store import BaseCacheStore
from kitebuilds.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend

    if backend == "memory":
        from kitebuilds.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore()

    if backend == "json":
        from kitebuilds.cache.json_store import JsonCacheStore
        cache_root = "~/.kitebuilds/cache" if settings is None else str(settings.cache_root)
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from kitebuilds.cache.sqlite_store import SqliteCacheStore
        cache_root = "~/.kitebuilds/cache" if settings is None else str(settings.cache_root)
        return SqliteCacheStore(db_path=f"{cache_root}/kitebuilds_cache.db")

    if backend == "redis":
        from kitebuilds.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(
            redis_url=settings.cache_redis_url,
            key_prefix=settings.cache_key_prefix,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
