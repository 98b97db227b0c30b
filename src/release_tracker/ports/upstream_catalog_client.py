from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from release_tracker.domain.movie import CacheKey


@dataclass(frozen=True)
class UpstreamPage:
    """One page of raw upstream results plus pagination metadata."""

    page: int
    total_pages: int
    items: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_last(self) -> bool:
        return self.page >= self.total_pages


class UpstreamCatalogClient(ABC):
    """
    Port for the page-based upstream catalog.

    Implementations translate a cache key into the upstream query (sort hint,
    region, release-date window, genre) and return the requested page.

    Contract:
        - page numbers are 1-based
        - an empty ``items`` list is a valid answer (the caller decides how
          many empty pages it tolerates)
        - transport or status failures are raised as ``UpstreamError``
    """

    @abstractmethod
    async def fetch_page(self, cache_key: CacheKey, page: int) -> UpstreamPage:
        """
        Fetch one page of raw catalog items.

        Args:
            cache_key: Collection the page is fetched for
            page: 1-based upstream page number

        Returns:
            UpstreamPage with raw items and total page count

        Raises:
            UpstreamError: If the page could not be fetched
        """
        ...
