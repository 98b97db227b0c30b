from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from release_tracker.domain.collection import Collection, PageResult, StoredCollection
from release_tracker.domain.filters import FilterFactory, default_filter_for
from release_tracker.domain.movie import (
    CacheKey,
    CollectionKind,
    ExpansionType,
    PageRequest,
    PageSource,
    SortStrategy,
)
from release_tracker.domain.page_extractor import extract
from release_tracker.infra.config import PaginationSettings
from release_tracker.ports.collection_store import CollectionStore
from release_tracker.use_cases.expand_collection import CollectionExpander
from release_tracker.use_cases.warm_collection import CollectionWarmer

logger = logging.getLogger(__name__)

DEFAULT_PRELOAD_KEYS: tuple[CacheKey, ...] = (
    CacheKey(CollectionKind.UPCOMING, SortStrategy.POPULARITY),
    CacheKey(CollectionKind.RELEASES, SortStrategy.POPULARITY),
    CacheKey(CollectionKind.UPCOMING, SortStrategy.RELEASE_DATE_ASC),
)


@dataclass(frozen=True, slots=True)
class CollectionStats:
    size: int
    age_seconds: float
    fresh: bool
    pages_fetched: int
    exhausted: bool
    expansion_level: int
    refresh_in_flight: bool
    expansion_in_flight: bool


@dataclass(frozen=True, slots=True)
class CacheStats:
    collections: int
    total_items: int
    per_key: dict[str, CollectionStats]


@dataclass(frozen=True, slots=True)
class EvictionReport:
    collections_evicted: int
    expansions_reset: int


class PaginationService:
    """
    Façade over the collection cache: the only entry point for page requests.

    Request path:
    1. Validate the request
    2. Absent key -> quick fetch for this answer, full warm in the background
    3. Stale key -> serve what is cached, re-warm in the background
    4. Extract the next unseen items
    5. Near the collection boundary -> expand, in the background when this
       page is already full, synchronously when it would come back short
    """

    def __init__(
        self,
        store: CollectionStore,
        warmer: CollectionWarmer,
        expander: CollectionExpander,
        settings: PaginationSettings,
        filter_factory: FilterFactory = default_filter_for,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._warmer = warmer
        self._expander = expander
        self._settings = settings
        self._filters = filter_factory
        self._clock = clock

    # ==========================================================================
    # Request path
    # ==========================================================================

    async def get_page(self, request: PageRequest) -> PageResult:
        """
        Serve one page of a cached collection.

        Raises:
            PagingValidationError: If paging parameters are invalid
            FilterValidationError: If the filter signature is invalid
            CollectionUnavailableError: If a cold key cannot even be quick-fetched
        """
        request.validate(self._settings.max_page_size)
        cache_key = request.cache_key
        predicate = self._filters(cache_key)

        stored = self._store.get(cache_key)
        if stored is None:
            return await self._serve_cold(request)

        if self.needs_full_refresh(cache_key):
            started = self._warmer.warm_in_background(cache_key, predicate)
            logger.info(
                "Serving stale collection",
                extra={"cache_key": str(cache_key), "refresh_started": started},
            )

        extraction = extract(
            stored.collection, request.page, request.page_size, request.exclude_ids
        )
        expansion = ExpansionType.NONE

        if extraction.available_count >= request.page_size:
            if self._expander.should_expand(
                cache_key, extraction.available_count, request.page_size
            ) and self._expander.expand_in_background(cache_key, predicate):
                expansion = ExpansionType.BACKGROUND
        else:
            # A short page is only returned once nothing more can be fetched.
            # A committed pass may add nothing under a sparse filter; the next
            # level still reaches deeper pages. Level and depth caps bound the loop.
            while extraction.available_count < request.page_size and (
                self._expander.is_expanding(cache_key) or self._expander.can_expand(cache_key)
            ):
                logger.info(
                    "Short page ahead, expanding synchronously",
                    extra={
                        "cache_key": str(cache_key),
                        "available": extraction.available_count,
                        "page_size": request.page_size,
                    },
                )
                expansion = ExpansionType.SYNCHRONOUS
                committed = await self._expander.expand(cache_key, predicate, join_inflight=True)
                stored = self._store.get(cache_key) or stored
                extraction = extract(
                    stored.collection, request.page, request.page_size, request.exclude_ids
                )
                if not committed:
                    break

        return PageResult(
            items=extraction.items,
            has_more=extraction.has_more,
            total_count=len(stored.collection),
            collection_size=len(stored.collection),
            available_count=extraction.available_count,
            excluded_count=len(request.exclude_ids),
            page=request.page,
            page_size=request.page_size,
            expansion=expansion,
            source=PageSource.CACHE,
        )

    async def _serve_cold(self, request: PageRequest) -> PageResult:
        cache_key = request.cache_key
        predicate = self._filters(cache_key)

        started = self._warmer.warm_in_background(cache_key, predicate)
        logger.info(
            "Cache miss, answering from quick fetch",
            extra={"cache_key": str(cache_key), "warm_started": started},
        )

        # No expansion for quick data; it is replaced once the warm lands
        quick = await self._warmer.quick_fetch(cache_key, predicate)
        extraction = extract(quick, request.page, request.page_size, request.exclude_ids)

        return PageResult(
            items=extraction.items,
            has_more=extraction.has_more or not quick.exhausted,
            total_count=len(quick),
            collection_size=len(quick),
            available_count=extraction.available_count,
            excluded_count=len(request.exclude_ids),
            page=request.page,
            page_size=request.page_size,
            expansion=ExpansionType.NONE,
            source=PageSource.QUICK,
        )

    def needs_full_refresh(self, cache_key: CacheKey) -> bool:
        stored = self._store.get(cache_key)
        if stored is None:
            return True
        return self._age(stored) > self._refresh_interval(cache_key)

    # ==========================================================================
    # Administrative operations
    # ==========================================================================

    async def force_warm(self, cache_key: CacheKey) -> CollectionStats:
        """
        Rebuild ``cache_key`` now, joining a warm that is already running.

        Raises:
            FilterValidationError: If the filter signature is invalid
            CollectionUnavailableError: If upstream delivered nothing and nothing was cached
        """
        cache_key.validate()
        stored = await self._warmer.warm(cache_key, self._filters(cache_key))
        return self._collection_stats(cache_key, stored)

    async def preload(self, keys: Iterable[CacheKey] | None = None) -> list[CacheKey]:
        """
        Warm the most requested keys one after another.

        Failures are logged and skipped so one bad key does not block the rest.

        Returns:
            Keys that were warmed successfully
        """
        warmed: list[CacheKey] = []
        for cache_key in keys or DEFAULT_PRELOAD_KEYS:
            try:
                await self.force_warm(cache_key)
            except Exception:
                logger.exception("Preload failed", extra={"cache_key": str(cache_key)})
                continue
            warmed.append(cache_key)

        logger.info("Preload finished", extra={"warmed": [str(k) for k in warmed]})
        return warmed

    def evict_stale(self) -> EvictionReport:
        """
        Drop collections far past their refresh interval and reset expired expansions.

        Keys with a warm or expansion in flight are left alone.
        """
        now = self._clock()
        evicted = 0
        reset = 0

        for cache_key, stored in self._store.items():
            if self._warmer.is_warming(cache_key) or self._expander.is_expanding(cache_key):
                continue

            threshold = self._refresh_interval(cache_key) * self._settings.stale_eviction_factor
            if now - stored.metadata.refreshed_at > threshold:
                self._store.delete(cache_key)
                evicted += 1
                continue

            if stored.metadata.expansion_expired(now):
                self._store.reset_expansion(cache_key)
                reset += 1

        if evicted or reset:
            logger.info(
                "Evicted stale collections",
                extra={"collections_evicted": evicted, "expansions_reset": reset},
            )
        return EvictionReport(collections_evicted=evicted, expansions_reset=reset)

    def stats(self) -> CacheStats:
        entries = self._store.items()
        return CacheStats(
            collections=len(entries),
            total_items=sum(len(stored.collection) for _, stored in entries),
            per_key={str(key): self._collection_stats(key, stored) for key, stored in entries},
        )

    async def drain(self) -> None:
        """Wait for background warms and expansions to finish."""
        await self._warmer.drain()
        await self._expander.drain()

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _collection_stats(self, cache_key: CacheKey, stored: StoredCollection) -> CollectionStats:
        collection: Collection = stored.collection
        age = self._age(stored)
        return CollectionStats(
            size=len(collection),
            age_seconds=age,
            fresh=age <= self._refresh_interval(cache_key),
            pages_fetched=collection.pages_fetched,
            exhausted=collection.exhausted,
            expansion_level=stored.metadata.expansion_level,
            refresh_in_flight=self._warmer.is_warming(cache_key),
            expansion_in_flight=self._expander.is_expanding(cache_key),
        )

    def _age(self, stored: StoredCollection) -> float:
        return self._clock() - stored.metadata.refreshed_at

    def _refresh_interval(self, cache_key: CacheKey) -> float:
        return self._settings.refresh_interval_for(cache_key.sort.is_date_sensitive)
