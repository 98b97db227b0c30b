from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx

from release_tracker.domain.errors import UpstreamError, UpstreamRateLimitError
from release_tracker.domain.movie import CacheKey, CollectionKind, SortStrategy
from release_tracker.domain.release_dates import DEFAULT_REGION, release_window
from release_tracker.ports.upstream_catalog_client import UpstreamCatalogClient, UpstreamPage

logger = logging.getLogger(__name__)

# TMDB refuses page numbers above this
MAX_UPSTREAM_PAGES = 500

THEATRICAL_RELEASE_TYPES = "2|3"
HOME_RELEASE_TYPES = "4|5"


class TmdbCatalogClient(UpstreamCatalogClient):
    """
    TMDB ``/discover/movie`` adapter.

    Notes:
    - Only ``newest`` is ordered by date upstream; every other sort walks
      popularity order and is re-sorted locally once the collection is built
    - The release-date window is computed per call, so long-lived processes
      follow the calendar
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        region: str = DEFAULT_REGION,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._region = region
        self._today = today

    async def fetch_page(self, cache_key: CacheKey, page: int) -> UpstreamPage:
        payload = await self._get("/discover/movie", self.discover_params(cache_key, page))

        total_pages = min(int(payload.get("total_pages") or 0), MAX_UPSTREAM_PAGES)
        return UpstreamPage(
            page=int(payload.get("page") or page),
            total_pages=total_pages,
            items=list(payload.get("results") or []),
        )

    async def get_release_dates(self, movie_id: int) -> dict[str, Any]:
        """
        Raw ``/movie/{id}/release_dates`` payload.

        Raises:
            UpstreamError: If the lookup failed
        """
        return await self._get(f"/movie/{movie_id}/release_dates", {})

    def discover_params(self, cache_key: CacheKey, page: int) -> dict[str, Any]:
        start, end = release_window(cache_key.kind, self._today())

        params: dict[str, Any] = {
            "page": page,
            "region": self._region,
            "include_adult": "false",
            "sort_by": (
                "primary_release_date.desc"
                if cache_key.sort is SortStrategy.NEWEST
                else "popularity.desc"
            ),
        }

        if cache_key.kind is CollectionKind.UPCOMING:
            params["release_date.gte"] = start.isoformat()
            params["release_date.lte"] = end.isoformat()
            params["with_release_type"] = THEATRICAL_RELEASE_TYPES
        else:
            params["primary_release_date.gte"] = start.isoformat()
            params["primary_release_date.lte"] = end.isoformat()
            params["with_release_type"] = HOME_RELEASE_TYPES

        if cache_key.genre_id is not None:
            params["with_genres"] = cache_key.genre_id

        return params

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.get(path, params={**params, "api_key": self._api_key})
        except httpx.TimeoutException as exc:
            raise UpstreamError("Upstream request timed out", path=path) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Upstream request failed: {exc}", path=path) from exc

        if response.status_code == 429:
            raise UpstreamRateLimitError(
                retry_after=_retry_after(response.headers.get("Retry-After")),
                path=path,
            )
        if response.status_code >= 400:
            raise UpstreamError(
                f"Upstream answered {response.status_code}",
                status_code=response.status_code,
                path=path,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("Upstream returned invalid JSON", path=path) from exc


def _retry_after(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None
