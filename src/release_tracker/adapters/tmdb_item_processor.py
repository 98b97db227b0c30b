from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from typing import Any

from cachetools import TTLCache

from release_tracker.adapters.tmdb_catalog_client import TmdbCatalogClient
from release_tracker.domain.errors import UpstreamError
from release_tracker.domain.movie import CatalogItem, CollectionKind
from release_tracker.domain.release_dates import (
    DEFAULT_REGION,
    ReleaseData,
    build_catalog_item,
    parse_release_dates,
)
from release_tracker.ports.item_processor import ItemProcessor

logger = logging.getLogger(__name__)

RELEASE_CACHE_SIZE = 1000
RELEASE_CACHE_TTL = 60 * 60


class TmdbItemProcessor(ItemProcessor):
    """
    Enriches discover results with per-movie release dates.

    - Lookups run concurrently, bounded by ``concurrency``
    - Results are cached per movie id for an hour
    - A failed lookup degrades to "no release data"; the item is kept
    """

    def __init__(
        self,
        client: TmdbCatalogClient,
        region: str = DEFAULT_REGION,
        concurrency: int = 8,
        today: Callable[[], date] = date.today,
        cache: TTLCache[int, ReleaseData] | None = None,
    ) -> None:
        self._client = client
        self._region = region
        self._semaphore = asyncio.Semaphore(concurrency)
        self._today = today
        self._cache: TTLCache[int, ReleaseData] = (
            cache if cache is not None else TTLCache(maxsize=RELEASE_CACHE_SIZE, ttl=RELEASE_CACHE_TTL)
        )

    async def enrich(
        self, raw_items: Sequence[Mapping[str, Any]], kind: CollectionKind
    ) -> list[CatalogItem]:
        today = self._today()
        releases = await asyncio.gather(
            *(self._release_data(int(raw["id"])) for raw in raw_items)
        )
        return [
            build_catalog_item(raw, kind, today, release)
            for raw, release in zip(raw_items, releases)
        ]

    async def _release_data(self, movie_id: int) -> ReleaseData:
        cached = self._cache.get(movie_id)
        if cached is not None:
            return cached

        async with self._semaphore:
            try:
                payload = await self._client.get_release_dates(movie_id)
            except UpstreamError as exc:
                logger.warning(
                    "Release date lookup failed",
                    extra={"movie_id": movie_id, "error_code": exc.error_code},
                )
                # Not cached so the next pass retries
                return ReleaseData()

        release = parse_release_dates(payload, self._region)
        self._cache[movie_id] = release
        return release
