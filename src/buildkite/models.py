# src/buildkite/models.py — v1
"""Remote listing types: BuildListOptions, BuildPage."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# Page size used for every listing call.
ITEMS_PER_PAGE = 100


class BuildListOptions(BaseModel):
    """Query for one page of ``GET /organizations/{org}/builds``."""

    page: int = 1
    per_page: int = ITEMS_PER_PAGE
    created_from: datetime | None = None
    created_to: datetime | None = None
    # Passed builds always carry every timestamp, finished_at included.
    state: list[str] = Field(default_factory=lambda: ["passed"])

    def next(self, page: int) -> BuildListOptions:
        return self.model_copy(update={"page": page})


class BuildPage(BaseModel):
    """One page of raw build records plus the pagination cursor."""

    records: list[dict[str, Any]] = Field(default_factory=list)
    next_page: int | None = None
    status_code: int = 200
    latency_ms: int = 0
