# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Field aliases follow the historical cache payload layout (``ID``,
``Pipeline.Name``, ``CreatedAt`` ...) so entries written by earlier
consumers of the same cache stay readable.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


# === BUILDS ===


class Pipeline(BaseModel):
    """Pipeline a build belongs to."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")


class Build(BaseModel):
    """Completed CI build, reduced to the fields the lister needs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # --- Identity ---
    id: str = Field(alias="ID")
    pipeline: Pipeline = Field(alias="Pipeline")
    branch: str = Field(alias="Branch")

    # --- Timestamps (all set for passed builds) ---
    scheduled_at: datetime = Field(alias="ScheduledAt")
    finished_at: datetime = Field(alias="FinishedAt")
    started_at: datetime = Field(alias="StartedAt")
    created_at: datetime = Field(alias="CreatedAt")

    @property
    def pipeline_name(self) -> str:
        return self.pipeline.name


# === BUCKETS ===


class TimeInterval(BaseModel):
    """Half-open window ``[start, end)`` used as one cache bucket."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeInterval:
        if self.end <= self.start:
            raise ValueError("interval end must be after its start")
        return self

    @property
    def cache_key(self) -> str:
        """``"<startUnix>-<endUnix>"``, stable across processes and languages."""
        return f"{int(self.start.timestamp())}-{int(self.end.timestamp())}"
