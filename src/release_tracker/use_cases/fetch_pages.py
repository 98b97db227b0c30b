from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from release_tracker.domain.dedupe import dedupe
from release_tracker.domain.errors import UpstreamError, UpstreamRateLimitError
from release_tracker.domain.filters import ItemPredicate
from release_tracker.domain.movie import CacheKey, CatalogItem
from release_tracker.infra.config import PaginationSettings
from release_tracker.ports.item_processor import ItemProcessor
from release_tracker.ports.upstream_catalog_client import UpstreamCatalogClient

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class FetchPlan:
    """Which upstream pages to walk and when to stop."""

    start_page: int
    max_pages: int
    target_size: int | None = None  # New items wanted; None walks the whole budget

    @property
    def last_page(self) -> int:
        return self.start_page + self.max_pages - 1


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    items: list[CatalogItem]  # Seed items first, then new items in fetch order
    new_count: int
    last_page_attempted: int  # start_page - 1 when nothing was attempted
    pages_succeeded: int
    exhausted: bool  # Upstream reported the final page
    aborted: bool  # A failure or empty-page budget ended the walk


class PageFetcher:
    """
    Walks upstream pages through enrich -> filter -> dedupe.

    Shared by warming, quick fetches and expansion so that every path
    applies exactly the same pipeline. Items are NOT sorted here; callers
    sort once when the walk is over.
    """

    def __init__(
        self,
        upstream: UpstreamCatalogClient,
        processor: ItemProcessor,
        settings: PaginationSettings,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._upstream = upstream
        self._processor = processor
        self._settings = settings
        self._sleep = sleep

    async def fetch(
        self,
        cache_key: CacheKey,
        predicate: ItemPredicate,
        plan: FetchPlan,
        seed: Iterable[CatalogItem] = (),
    ) -> FetchOutcome:
        accumulated = list(seed)
        seed_size = len(accumulated)

        last_attempted = plan.start_page - 1
        pages_succeeded = 0
        consecutive_failures = 0
        consecutive_empty = 0
        exhausted = False
        aborted = False

        for page in range(plan.start_page, plan.last_page + 1):
            if plan.target_size is not None and len(accumulated) - seed_size >= plan.target_size:
                break

            if page > plan.start_page:
                # Throttle between upstream calls to respect upstream rate limits
                await self._sleep(self._settings.page_delay)

            last_attempted = page
            try:
                upstream_page = await self._upstream.fetch_page(cache_key, page)
            except UpstreamError as exc:
                consecutive_failures += 1
                logger.warning(
                    "Upstream page fetch failed",
                    extra={
                        "cache_key": str(cache_key),
                        "page": page,
                        "error_code": exc.error_code,
                        "consecutive_failures": consecutive_failures,
                    },
                )
                if consecutive_failures >= self._settings.max_consecutive_failures:
                    aborted = True
                    break
                await self._sleep(self._backoff_for(exc))
                continue

            consecutive_failures = 0
            pages_succeeded += 1

            if not upstream_page.items:
                consecutive_empty += 1
                if upstream_page.is_last:
                    exhausted = True
                    break
                if consecutive_empty >= self._settings.max_empty_pages:
                    logger.warning(
                        "Empty page budget exhausted",
                        extra={"cache_key": str(cache_key), "page": page},
                    )
                    aborted = True
                    break
                continue

            consecutive_empty = 0

            enriched = await self._processor.enrich(upstream_page.items, cache_key.kind)
            matching = [item for item in enriched if predicate(item)]
            new_items = dedupe(matching, accumulated)

            if len(new_items) != len(matching):
                logger.info(
                    "Dropped overlapping upstream items",
                    extra={
                        "cache_key": str(cache_key),
                        "page": page,
                        "dropped": len(matching) - len(new_items),
                    },
                )

            accumulated.extend(new_items)

            if upstream_page.is_last:
                exhausted = True
                break

        return FetchOutcome(
            items=accumulated,
            new_count=len(accumulated) - seed_size,
            last_page_attempted=last_attempted,
            pages_succeeded=pages_succeeded,
            exhausted=exhausted,
            aborted=aborted,
        )

    def _backoff_for(self, exc: UpstreamError) -> float:
        if isinstance(exc, UpstreamRateLimitError) and exc.retry_after:
            return max(self._settings.failure_backoff, exc.retry_after)
        return self._settings.failure_backoff
