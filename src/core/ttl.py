# src/core/ttl.py — v1
"""Cache lifetime policy for daily build buckets.

Buckets that ended more than ``settled_after`` ago are assumed immutable and
cached for ``settled_base`` plus a random spread of whole hours, so that a
fleet of consumers does not expire every old bucket at the same moment.
Recent buckets may still receive completions and get a short lifetime.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from kitebuilds.core.models import TimeInterval

if TYPE_CHECKING:
    from kitebuilds.config.settings import Settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TtlPolicy:
    """Chooses the cache TTL for one bucket based on how old it is."""

    settled_after: timedelta = timedelta(hours=12)
    settled_base: timedelta = timedelta(days=60)
    jitter_hours: int = 7 * 24  # exclusive upper bound
    recent_ttl: timedelta = timedelta(minutes=10)
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def from_settings(cls, settings: Settings, rng: random.Random | None = None) -> TtlPolicy:
        return cls(
            settled_after=timedelta(hours=settings.ttl_settled_after_hours),
            settled_base=timedelta(days=settings.ttl_settled_base_days),
            jitter_hours=settings.ttl_jitter_hours,
            recent_ttl=timedelta(minutes=settings.ttl_recent_minutes),
            rng=rng or random.Random(),
        )

    def is_settled(self, interval: TimeInterval, now: datetime | None = None) -> bool:
        now = now or _utcnow()
        return now - interval.end > self.settled_after

    def for_interval(self, interval: TimeInterval, now: datetime | None = None) -> timedelta:
        """Return the TTL to store ``interval``'s bucket with.

        The jitter is drawn on every call, not fixed per key.
        """
        if self.is_settled(interval, now):
            spread = timedelta(hours=self.rng.randrange(self.jitter_hours))
            return self.settled_base + spread
        return self.recent_ttl
