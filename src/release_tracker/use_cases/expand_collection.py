from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from release_tracker.domain.collection import Collection, StoredCollection
from release_tracker.domain.filters import ItemPredicate
from release_tracker.domain.movie import CacheKey
from release_tracker.infra.config import PaginationSettings
from release_tracker.infra.inflight import InFlightRegistry
from release_tracker.ports.collection_store import CollectionStore
from release_tracker.use_cases.fetch_pages import FetchPlan, PageFetcher

logger = logging.getLogger(__name__)


class CollectionExpander:
    """
    Grows a stored collection past the depth its warm covered.

    Each successful pass fetches ``expansion_pages_per_level`` further
    upstream pages, appends the new items, re-sorts and bumps the expansion
    level. Levels are capped by ``max_expansion_level``; once the expansion
    TTL elapses the level drops back to 0 so the key can be expanded again.
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
        self._inflight: InFlightRegistry[bool] = InFlightRegistry("expand")

    def is_expanding(self, cache_key: CacheKey) -> bool:
        return self._inflight.is_running(cache_key)

    def current(self, cache_key: CacheKey) -> StoredCollection | None:
        """Stored entry with an expired expansion level already reset."""
        stored = self._store.get(cache_key)
        if stored is not None and stored.metadata.expansion_expired(self._clock()):
            logger.info(
                "Expansion expired, resetting level",
                extra={
                    "cache_key": str(cache_key),
                    "expansion_level": stored.metadata.expansion_level,
                },
            )
            stored = self._store.reset_expansion(cache_key)
        return stored

    def can_expand(self, cache_key: CacheKey) -> bool:
        stored = self.current(cache_key)
        if stored is None or stored.collection.exhausted:
            return False
        if stored.metadata.expansion_level >= self._settings.max_expansion_level:
            return False
        return stored.collection.pages_fetched < self._settings.max_collection_pages

    def should_expand(self, cache_key: CacheKey, available_count: int, page_size: int) -> bool:
        """
        Proactive trigger: fewer unseen items remain than this page plus the buffer.

        Fires before the boundary is actually hit so the next page does not
        have to wait for upstream.
        """
        buffer_items = (1 + self._settings.proactive_buffer_pages) * page_size
        if available_count >= buffer_items:
            return False
        return self.can_expand(cache_key)

    async def expand(
        self,
        cache_key: CacheKey,
        predicate: ItemPredicate,
        join_inflight: bool = False,
    ) -> bool:
        """
        Run one expansion pass for ``cache_key``.

        Args:
            cache_key: Collection to grow
            predicate: Filter applied to newly fetched items
            join_inflight: Await an expansion that is already running instead
                of returning immediately

        Returns:
            True if a pass was committed: the level and depth advanced, even
            when the filter kept none of the new items
        """
        if self.is_expanding(cache_key):
            if not join_inflight:
                logger.info("Expansion already in flight", extra={"cache_key": str(cache_key)})
                return False
            return bool(await self._inflight.join(cache_key))

        if not self.can_expand(cache_key):
            return False

        task, _ = self._inflight.start(cache_key, lambda: self._run(cache_key, predicate))
        return await asyncio.shield(task)

    def expand_in_background(self, cache_key: CacheKey, predicate: ItemPredicate) -> bool:
        """Start an expansion pass without waiting. False if one is already running."""
        if self.is_expanding(cache_key) or not self.can_expand(cache_key):
            return False
        _, started = self._inflight.start(cache_key, lambda: self._run(cache_key, predicate))
        return started

    async def drain(self) -> None:
        await self._inflight.drain()

    async def _run(self, cache_key: CacheKey, predicate: ItemPredicate) -> bool:
        stored = self.current(cache_key)
        if stored is None:
            return False

        collection = stored.collection
        level = stored.metadata.expansion_level
        remaining_depth = self._settings.max_collection_pages - collection.pages_fetched
        plan = FetchPlan(
            start_page=collection.pages_fetched + 1,
            max_pages=min(self._settings.expansion_pages_per_level, remaining_depth),
        )
        logger.info(
            "Expanding collection",
            extra={
                "cache_key": str(cache_key),
                "from_level": level,
                "to_level": level + 1,
                "start_page": plan.start_page,
                "last_page": plan.last_page,
            },
        )

        outcome = await self._fetcher.fetch(cache_key, predicate, plan, seed=collection.items)
        if outcome.pages_succeeded == 0:
            logger.warning("Expansion fetched no pages", extra={"cache_key": str(cache_key)})
            return False

        # Append then re-sort; seed items keep their identity so nothing is lost
        grown = Collection.build(
            outcome.items,
            collection.sort,
            pages_fetched=max(collection.pages_fetched, outcome.last_page_attempted),
            exhausted=outcome.exhausted,
        )
        now = self._clock()
        committed = self._store.commit_expansion(
            cache_key,
            grown,
            generation=stored.metadata.generation,
            expanded_at=now,
            expires_at=now + self._settings.expansion_ttl,
        )
        if committed is None:
            logger.info(
                "Collection rebuilt during expansion, discarding result",
                extra={"cache_key": str(cache_key)},
            )
            return False

        logger.info(
            "Collection expanded",
            extra={
                "cache_key": str(cache_key),
                "expansion_level": committed.metadata.expansion_level,
                "size": len(grown),
                "added": outcome.new_count,
                "pages": grown.pages_fetched,
            },
        )
        return True
