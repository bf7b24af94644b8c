# src/buildkite/adapter.py — v1
"""Remote query adapter: all passed builds created in one bucket.

Walks every page of the listing for a bucket and converts each raw record
into a ``Build``. Errors from the source abort the walk and propagate.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from kitebuilds.buildkite.base_client import BaseBuildSource
from kitebuilds.buildkite.models import ITEMS_PER_PAGE, BuildListOptions
from kitebuilds.core.models import Build, Pipeline, TimeInterval

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    "id", "branch", "created_at", "scheduled_at", "started_at", "finished_at",
)


class RemoteContractError(Exception):
    """A remote record lacks a field that passed builds always carry."""


def build_from_record(record: dict[str, Any]) -> Build:
    """Map a raw API record to the internal Build.

    Passed builds are finished, so every timestamp is expected to be set.

    Raises:
        RemoteContractError: If a required field is missing or malformed.
    """
    missing = [f for f in _REQUIRED_FIELDS if record.get(f) is None]
    pipeline = record.get("pipeline") or {}
    if pipeline.get("name") is None:
        missing.append("pipeline.name")
    if missing:
        raise RemoteContractError(
            f"Build {record.get('id', '?')!r} is missing {', '.join(missing)}"
        )

    try:
        return Build(
            id=record["id"],
            pipeline=Pipeline(name=pipeline["name"]),
            branch=record["branch"],
            created_at=record["created_at"],
            scheduled_at=record["scheduled_at"],
            started_at=record["started_at"],
            finished_at=record["finished_at"],
        )
    except ValidationError as e:
        raise RemoteContractError(f"Build {record['id']!r} is malformed: {e}") from e


class RemoteQueryAdapter:
    """Lists passed builds of one organization, one bucket at a time."""

    def __init__(self, source: BaseBuildSource, org: str) -> None:
        self._source = source
        self._org = org

    @property
    def org(self) -> str:
        return self._org

    async def query_interval(self, interval: TimeInterval) -> list[Build]:
        """Return every passed build created within ``interval``, in page order."""
        options = BuildListOptions(
            page=1,
            per_page=ITEMS_PER_PAGE,
            created_from=interval.start,
            created_to=interval.end,
            state=["passed"],
        )

        result: list[Build] = []
        pages = 0
        while True:
            page = await self._source.list_builds_by_org(self._org, options)
            pages += 1
            result.extend(build_from_record(r) for r in page.records)

            if page.next_page is None or page.next_page <= 0:
                break
            options = options.next(page.next_page)

        logger.debug(
            "Fetched %d builds for %s in %d page(s)", len(result), interval.cache_key, pages,
        )
        return result
