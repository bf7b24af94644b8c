# src/api/facade.py — v1
"""Public API facade: single entry point for listing builds.

Usage:
    from kitebuilds.api.facade import list_builds
    builds = await list_builds(since, predicate)
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from kitebuilds.api.lister import BuildLister
from kitebuilds.buildkite.adapter import RemoteQueryAdapter
from kitebuilds.cache.cache_factory import create_cache_store
from kitebuilds.cache.gateway import BucketCacheGateway
from kitebuilds.config.settings import ConfigurationError, Settings
from kitebuilds.core.models import Build
from kitebuilds.core.predicates import BuildPredicate
from kitebuilds.core.ttl import TtlPolicy

if TYPE_CHECKING:
    from kitebuilds.buildkite.base_client import BaseBuildSource
    from kitebuilds.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)


def create_build_source(settings: Settings) -> BaseBuildSource:
    """Buildkite REST client configured from settings."""
    from kitebuilds.buildkite.http_client import BuildkiteHttpClient

    if not settings.buildkite_api_token:
        raise ConfigurationError("BUILDKITE_API_TOKEN must be set to query Buildkite")
    return BuildkiteHttpClient(
        api_token=settings.buildkite_api_token,
        api_url=settings.buildkite_api_url,
        timeout_s=settings.buildkite_timeout_s,
    )


def create_lister(
    settings: Settings,
    cache_store: BaseCacheStore | None = None,
    source: BaseBuildSource | None = None,
    rng: random.Random | None = None,
) -> BuildLister:
    """Wire store, remote source, TTL policy and gateway into a BuildLister.

    Args:
        settings: Global settings (org, backends, TTL values).
        cache_store: Cache backend. Built from settings if None.
        source: Remote build source. Buildkite HTTP client if None.
        rng: Random source for TTL jitter (seed it for reproducible TTLs).

    Raises:
        ConfigurationError: If no organization is configured.
    """
    if not settings.buildkite_org:
        raise ConfigurationError("BUILDKITE_ORG must be set")

    store = cache_store if cache_store is not None else create_cache_store(settings)
    remote_source = source if source is not None else create_build_source(settings)
    remote = RemoteQueryAdapter(remote_source, settings.buildkite_org)
    gateway = BucketCacheGateway(store, remote)
    return BuildLister(
        gateway,
        org=settings.buildkite_org,
        ttl_policy=TtlPolicy.from_settings(settings, rng=rng),
    )


async def list_builds(
    since: datetime,
    predicate: BuildPredicate | Callable[[Build], bool] | None = None,
    settings: Settings | None = None,
    cache_store: BaseCacheStore | None = None,
    source: BaseBuildSource | None = None,
) -> list[Build]:
    """List passed builds created after ``since`` that satisfy ``predicate``.

    Resources created here (store, HTTP client) are released before
    returning; injected ones are left open for the caller.

    Raises:
        BuildListingError: If a bucket fetch fails (partial results attached).
        ConfigurationError: If settings are incomplete.
    """
    settings = settings or Settings()
    remote_source = source if source is not None else create_build_source(settings)
    store = cache_store if cache_store is not None else create_cache_store(settings)
    try:
        lister = create_lister(settings, cache_store=store, source=remote_source)
        return await lister.list_builds(since, predicate)
    finally:
        if source is None:
            await remote_source.aclose()
        if cache_store is None:
            store.close()
