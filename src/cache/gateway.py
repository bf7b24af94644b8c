# src/cache/gateway.py — v1
"""Read-through cache for one daily bucket of passed builds.

Lookup order:
  1. Cache store, keyed by ``"<startUnix>-<endUnix>"``.
  2. Remote query adapter (all pages), then write-through with the given TTL.

Staleness is governed only by the TTL the store enforces; a hit is served
as-is. Read failures and corrupt payloads count as misses. Write failures are
logged and ignored. Remote failures propagate.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from kitebuilds.buildkite.adapter import RemoteQueryAdapter
from kitebuilds.cache.base_cache_store import BaseCacheStore, CacheStoreError
from kitebuilds.cache.codec import CorruptPayloadError, cache_key, decode_builds, encode_builds
from kitebuilds.cache.models import BucketResult
from kitebuilds.core.models import Build, TimeInterval

logger = logging.getLogger(__name__)


class BucketCacheGateway:
    """Serves a bucket from cache, or fetches it remotely and caches it."""

    def __init__(self, store: BaseCacheStore, remote: RemoteQueryAdapter) -> None:
        self._store = store
        self._remote = remote

    async def fetch(self, interval: TimeInterval, ttl: timedelta) -> list[Build]:
        """All passed builds created within ``interval``."""
        result = await self.fetch_bucket(interval, ttl)
        return result.builds

    async def fetch_bucket(self, interval: TimeInterval, ttl: timedelta) -> BucketResult:
        key = cache_key(interval)

        cached = await self._read(key)
        if cached is not None:
            logger.debug("Cache hit for bucket %s (%d builds)", key, len(cached))
            return BucketResult(interval=interval, builds=cached, source="cache")

        logger.debug("Cache miss for bucket %s, querying remote", key)
        builds = await self._remote.query_interval(interval)
        written = await self._write(key, builds, ttl)
        return BucketResult(
            interval=interval, builds=builds, source="remote",
            ttl=ttl, cache_written=written,
        )

    async def _read(self, key: str) -> list[Build] | None:
        try:
            payload = await self._store.get(key)
        except CacheStoreError as e:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, e)
            return None
        if payload is None:
            return None

        try:
            return decode_builds(payload)
        except CorruptPayloadError as e:
            logger.warning("Corrupt cache payload for %s, refetching: %s", key, e)
            return None

    async def _write(self, key: str, builds: list[Build], ttl: timedelta) -> bool:
        payload = encode_builds(builds)
        try:
            await self._store.put(key, payload, ttl)
        except CacheStoreError as e:
            logger.warning("Cache write failed for %s, result not cached: %s", key, e)
            return False
        return True
