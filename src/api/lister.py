# src/api/lister.py — v1
"""Build lister: passed builds created since an instant, via cached daily buckets.

Flow per call:
  1. ``now`` is captured once.
  2. Daily buckets covering ``[from_, now)`` are generated.
  3. Each bucket gets a TTL from the policy and is fetched through the
     bucket cache gateway, strictly one after another.
  4. Candidates are kept if ``from_ < created_at < now`` and the predicate
     accepts them. Bucket-then-page order is preserved.

A failing bucket stops the listing; later buckets are not attempted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable

from kitebuilds.cache.gateway import BucketCacheGateway
from kitebuilds.core.intervals import generate_daily_intervals
from kitebuilds.core.models import Build, TimeInterval
from kitebuilds.core.predicates import BuildPredicate, as_predicate
from kitebuilds.core.ttl import TtlPolicy
from kitebuilds.logging.context import clear_context, set_bucket_context, set_query_context

logger = logging.getLogger(__name__)


class BuildListingError(Exception):
    """A bucket fetch failed; carries the builds gathered before it."""

    def __init__(self, interval: TimeInterval, partial: list[Build], cause: Exception) -> None:
        self.interval = interval
        self.partial = partial
        super().__init__(
            f"Listing aborted at bucket {interval.cache_key} "
            f"after {len(partial)} builds: {cause}"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildLister:
    """Lists builds of one organization through the bucket cache."""

    def __init__(
        self,
        gateway: BucketCacheGateway,
        org: str = "",
        ttl_policy: TtlPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
        tz: tzinfo | None = None,
    ) -> None:
        self._gateway = gateway
        self._org = org
        self._ttl_policy = ttl_policy or TtlPolicy()
        self._clock = clock
        self._tz = tz

    async def list_builds(
        self,
        from_: datetime,
        predicate: BuildPredicate | Callable[[Build], bool] | None = None,
    ) -> list[Build]:
        """Return builds created strictly between ``from_`` and now.

        Args:
            from_: Exclusive lower bound on ``created_at``.
            predicate: Caller filter, called once per in-window candidate.

        Returns:
            Matching builds in bucket-then-page order.

        Raises:
            BuildListingError: If any bucket fetch fails. ``partial`` holds
                the builds accepted from earlier buckets; the original error
                is chained as ``__cause__``.
        """
        pred = as_predicate(predicate)
        to = self._clock()
        if from_.tzinfo is None:
            from_ = from_.astimezone()

        set_query_context(self._org)
        result: list[Build] = []
        try:
            for interval in generate_daily_intervals(from_, to, self._tz):
                set_bucket_context(interval.cache_key)
                logger.info(
                    "Querying bucket %s .. %s",
                    interval.start.isoformat(), interval.end.isoformat(),
                )
                ttl = self._ttl_policy.for_interval(interval, now=to)
                try:
                    builds = await self._gateway.fetch(interval, ttl)
                except Exception as e:
                    raise BuildListingError(interval, result, e) from e

                # Buckets are day-aligned supersets of the window.
                for build in builds:
                    if from_ < build.created_at < to and pred.predicate(build):
                        result.append(build)
            set_bucket_context(None)
            logger.info("Listed %d builds since %s", len(result), from_.isoformat())
        finally:
            clear_context()
        return result
