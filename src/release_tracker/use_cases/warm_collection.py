from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from release_tracker.domain.collection import Collection, StoredCollection
from release_tracker.domain.errors import CollectionUnavailableError
from release_tracker.domain.filters import ItemPredicate
from release_tracker.domain.movie import CacheKey
from release_tracker.infra.config import PaginationSettings
from release_tracker.infra.inflight import InFlightRegistry
from release_tracker.ports.collection_store import CollectionStore
from release_tracker.use_cases.fetch_pages import FetchPlan, PageFetcher

logger = logging.getLogger(__name__)


class CollectionWarmer:
    """
    Builds collections from scratch and stores them.

    Responsibilities:
    - Walk upstream pages until the target size, the last upstream page or
      the page budget is reached
    - Sort once at the end and replace the stored collection
    - Run at most one warm per cache key; concurrent callers share it
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        store: CollectionStore,
        settings: PaginationSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._settings = settings
        self._clock = clock
        self._inflight: InFlightRegistry[StoredCollection] = InFlightRegistry("warm")
        self._quick: InFlightRegistry[Collection] = InFlightRegistry("quick")

    def is_warming(self, cache_key: CacheKey) -> bool:
        return self._inflight.is_running(cache_key)

    async def warm(
        self,
        cache_key: CacheKey,
        predicate: ItemPredicate,
        target_size: int | None = None,
        max_pages: int | None = None,
    ) -> StoredCollection:
        """
        Warm ``cache_key`` and wait for the result.

        Joins the warm already running for this key instead of starting a
        duplicate one (the overrides of a joining caller are then ignored).

        Returns:
            The stored collection produced by the run
        """
        task, started = self._inflight.start(
            cache_key, lambda: self._run(cache_key, predicate, target_size, max_pages)
        )
        if not started:
            logger.info("Joining in-flight warm", extra={"cache_key": str(cache_key)})
        return await asyncio.shield(task)

    def warm_in_background(self, cache_key: CacheKey, predicate: ItemPredicate) -> bool:
        """
        Start a warm without waiting for it.

        Returns:
            False if a warm for this key was already running ("not ready yet")
        """
        _, started = self._inflight.start(cache_key, lambda: self._run(cache_key, predicate))
        return started

    async def quick_fetch(self, cache_key: CacheKey, predicate: ItemPredicate) -> Collection:
        """
        Fetch a handful of pages to answer a cache miss right away.

        The result is NOT stored; it is temporary data while the full warm runs.
        Concurrent misses on the same key share one quick fetch.

        Raises:
            CollectionUnavailableError: If not a single quick page could be fetched
        """
        task, started = self._quick.start(
            cache_key, lambda: self._quick_run(cache_key, predicate)
        )
        if not started:
            logger.info("Joining in-flight quick fetch", extra={"cache_key": str(cache_key)})
        return await asyncio.shield(task)

    async def _quick_run(self, cache_key: CacheKey, predicate: ItemPredicate) -> Collection:
        outcome = await self._fetcher.fetch(
            cache_key,
            predicate,
            FetchPlan(start_page=1, max_pages=self._settings.quick_fetch_pages),
        )
        if outcome.pages_succeeded == 0:
            raise CollectionUnavailableError(str(cache_key))

        return Collection.build(
            outcome.items,
            cache_key.sort,
            pages_fetched=outcome.last_page_attempted,
            exhausted=outcome.exhausted,
        )

    async def drain(self) -> None:
        await self._inflight.drain()
        await self._quick.drain()

    async def _run(
        self,
        cache_key: CacheKey,
        predicate: ItemPredicate,
        target_size: int | None = None,
        max_pages: int | None = None,
    ) -> StoredCollection:
        plan = FetchPlan(
            start_page=1,
            max_pages=max_pages or self._settings.warm_max_pages,
            target_size=target_size or self._settings.target_size,
        )
        logger.info(
            "Warming collection",
            extra={
                "cache_key": str(cache_key),
                "target_size": plan.target_size,
                "max_pages": plan.max_pages,
            },
        )

        outcome = await self._fetcher.fetch(cache_key, predicate, plan)

        if outcome.pages_succeeded == 0:
            existing = self._store.get(cache_key)
            logger.warning(
                "Warm fetched no pages",
                extra={"cache_key": str(cache_key), "kept_previous": existing is not None},
            )
            if existing is None:
                raise CollectionUnavailableError(str(cache_key))
            # Keep serving what we have
            return existing

        collection = Collection.build(
            outcome.items,
            cache_key.sort,
            pages_fetched=outcome.last_page_attempted,
            exhausted=outcome.exhausted,
        )
        stored = self._store.replace(cache_key, collection, refreshed_at=self._clock())

        logger.info(
            "Collection warmed",
            extra={
                "cache_key": str(cache_key),
                "size": len(collection),
                "pages": outcome.last_page_attempted,
                "exhausted": outcome.exhausted,
                "aborted": outcome.aborted,
            },
        )
        return stored
