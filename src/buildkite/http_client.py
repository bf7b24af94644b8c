# src/buildkite/http_client.py — v1
"""Buildkite REST API client implementing BaseBuildSource.

Uses httpx. Pagination follows the RFC 5988 ``Link`` header returned by the
API; the ``page`` parameter of the ``rel="next"`` link becomes
``BuildPage.next_page``. No retries: callers see every failure.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from kitebuilds.buildkite.base_client import BaseBuildSource, BuildSourceError
from kitebuilds.buildkite.models import BuildListOptions, BuildPage
from kitebuilds.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.buildkite.com/v2"


def _format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _query_params(options: BuildListOptions) -> list[tuple[str, str | int]]:
    params: list[tuple[str, str | int]] = [
        ("page", options.page),
        ("per_page", options.per_page),
    ]
    if options.created_from is not None:
        params.append(("created_from", _format_time(options.created_from)))
    if options.created_to is not None:
        params.append(("created_to", _format_time(options.created_to)))
    for state in options.state:
        params.append(("state[]", state))
    return params


def _next_page(response: httpx.Response) -> int | None:
    link = response.links.get("next")
    if not link or "url" not in link:
        return None
    page = httpx.URL(link["url"]).params.get("page")
    try:
        return int(page) if page is not None else None
    except ValueError:
        return None


class BuildkiteHttpClient(BaseBuildSource):
    """Lists builds through ``GET /organizations/{org}/builds``."""

    def __init__(
        self,
        api_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token
        self._api_url = api_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self.__client: httpx.AsyncClient | None = None  # Lazy initialization

    @property
    def _client(self) -> httpx.AsyncClient:
        """Lazy-init the HTTP client (only on first API call)."""
        if self.__client is None:
            headers = {
                "Accept": "application/json",
                "User-Agent": f"kitebuilds/{__version__}",
            }
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"
            self.__client = httpx.AsyncClient(
                base_url=self._api_url,
                headers=headers,
                timeout=self._timeout_s,
                transport=self._transport,
            )
        return self.__client

    async def list_builds_by_org(
        self, org: str, options: BuildListOptions
    ) -> BuildPage:
        """Fetch one page of builds for ``org``."""
        start = time.monotonic()
        try:
            response = await self._client.get(
                f"/organizations/{org}/builds", params=_query_params(options)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BuildSourceError(
                f"Buildkite returned HTTP {e.response.status_code} for org {org!r} "
                f"(page {options.page})",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise BuildSourceError(
                f"Buildkite request failed for org {org!r} (page {options.page}): {e}"
            ) from e
        latency_ms = int((time.monotonic() - start) * 1000)

        try:
            records: Any = response.json()
        except ValueError as e:
            raise BuildSourceError(
                f"Buildkite returned invalid JSON for org {org!r} (page {options.page})",
                status_code=response.status_code,
            ) from e
        if not isinstance(records, list):
            raise BuildSourceError(
                f"Expected a JSON array of builds, got {type(records).__name__}",
                status_code=response.status_code,
            )

        page = BuildPage(
            records=records,
            next_page=_next_page(response),
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        logger.debug(
            "GET builds org=%s page=%d -> %d records, next=%s (%dms)",
            org, options.page, len(records), page.next_page, latency_ms,
        )
        return page

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self.__client is not None:
            await self.__client.aclose()
            self.__client = None
