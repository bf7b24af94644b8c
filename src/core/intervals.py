# src/core/intervals.py — v1
"""Daily bucket generation for cached build queries.

Buckets start at local midnight of the day containing ``from_`` and advance
in exact 24-hour steps. They are a superset of the requested window, so the
cache keys stay stable between calls with slightly different bounds; callers
filter by exact timestamp afterwards.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

from kitebuilds.core.models import TimeInterval

BUCKET_SPAN = timedelta(hours=24)


def local_midnight(instant: datetime, tz: tzinfo | None = None) -> datetime:
    """Midnight of ``instant``'s calendar day in ``tz`` (system local zone if None).

    Returned in UTC so that later arithmetic is absolute, not wall-clock.
    """
    local = instant.astimezone(tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    if tz is None:
        # Re-resolve the offset: a DST switch may lie between midnight and instant.
        midnight = midnight.replace(tzinfo=None).astimezone()
    return midnight.astimezone(timezone.utc)


def generate_daily_intervals(
    from_: datetime,
    to: datetime,
    tz: tzinfo | None = None,
) -> list[TimeInterval]:
    """Split ``[midnight(from_), to)`` into consecutive 24h buckets.

    The day containing ``from_`` is always returned, even when
    ``from_ >= to``. Generation stops at the first bucket whose start is not
    before ``to``, so the last bucket may end after ``to``.

    Args:
        from_: Lower bound (any instant; naive values are read as local time).
        to: Upper bound, typically "now".
        tz: Zone whose midnight aligns the buckets. Defaults to the system zone.

    Returns:
        Ordered, contiguous list of TimeInterval.
    """
    start = local_midnight(from_, tz)
    upper = to.astimezone(timezone.utc)

    intervals = [TimeInterval(start=start, end=start + BUCKET_SPAN)]
    start += BUCKET_SPAN
    while start < upper:
        intervals.append(TimeInterval(start=start, end=start + BUCKET_SPAN))
        start += BUCKET_SPAN
    return intervals
