from __future__ import annotations

import asyncio
import math
from collections.abc import Iterable
from typing import Any

from release_tracker.domain.errors import UpstreamError
from release_tracker.domain.movie import CacheKey
from release_tracker.ports.upstream_catalog_client import UpstreamCatalogClient, UpstreamPage


class InMemoryCatalogClient(UpstreamCatalogClient):
    """
    Canonical contract implementation for tests.

    - Serves ``items`` in fixed-size pages, identical for every cache key
    - ``failing_pages`` raise UpstreamError, ``empty_pages`` return no items
    - ``gate`` (if given) holds every call until it is set
    - Records every call so tests can count upstream load
    """

    def __init__(
        self,
        items: list[dict[str, Any]],
        page_size: int = 20,
        total_pages: int | None = None,
        failing_pages: Iterable[int] = (),
        empty_pages: Iterable[int] = (),
        gate: asyncio.Event | None = None,
    ) -> None:
        self._items = items
        self._page_size = page_size
        self._total_pages = (
            total_pages if total_pages is not None else max(1, math.ceil(len(items) / page_size))
        )
        self.failing_pages = set(failing_pages)
        self.empty_pages = set(empty_pages)
        self.gate = gate
        self.calls: list[tuple[CacheKey, int]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_for_page(self, page: int) -> int:
        return sum(1 for _, called_page in self.calls if called_page == page)

    async def fetch_page(self, cache_key: CacheKey, page: int) -> UpstreamPage:
        self.calls.append((cache_key, page))
        if self.gate is not None:
            await self.gate.wait()

        if page in self.failing_pages:
            raise UpstreamError("Simulated upstream failure", page=page)
        if page in self.empty_pages or page > self._total_pages:
            return UpstreamPage(page=page, total_pages=self._total_pages, items=[])

        start = (page - 1) * self._page_size
        return UpstreamPage(
            page=page,
            total_pages=self._total_pages,
            items=self._items[start : start + self._page_size],
        )
