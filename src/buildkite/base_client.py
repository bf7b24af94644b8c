# src/buildkite/base_client.py — v1
"""Abstract remote build source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kitebuilds.buildkite.models import BuildListOptions, BuildPage


class BuildSourceError(Exception):
    """Transport or protocol failure while listing builds."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BaseBuildSource(ABC):
    """Paginated build listing capability of a CI service."""

    @abstractmethod
    async def list_builds_by_org(
        self, org: str, options: BuildListOptions
    ) -> BuildPage:
        """Return one page of builds for ``org`` matching ``options``.

        Raises:
            BuildSourceError: On any transport or HTTP failure.
        """

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""
