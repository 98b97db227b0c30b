"""
Composition root for the pagination engine.

Every collaborator is passed in, so tests and the HTTP app assemble the same
object graph with different adapters.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from release_tracker.adapters.in_memory_collection_store import InMemoryCollectionStore
from release_tracker.domain.filters import FilterFactory, default_filter_for
from release_tracker.infra.config import PaginationSettings
from release_tracker.ports.collection_store import CollectionStore
from release_tracker.ports.item_processor import ItemProcessor
from release_tracker.ports.upstream_catalog_client import UpstreamCatalogClient
from release_tracker.use_cases.expand_collection import CollectionExpander
from release_tracker.use_cases.fetch_pages import PageFetcher, Sleep
from release_tracker.use_cases.pagination_service import PaginationService
from release_tracker.use_cases.warm_collection import CollectionWarmer


def build_pagination_service(
    upstream: UpstreamCatalogClient,
    processor: ItemProcessor,
    settings: PaginationSettings | None = None,
    store: CollectionStore | None = None,
    filter_factory: FilterFactory = default_filter_for,
    clock: Callable[[], float] = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> PaginationService:
    settings = settings or PaginationSettings()
    store = store or InMemoryCollectionStore()

    fetcher = PageFetcher(upstream, processor, settings, sleep=sleep)
    warmer = CollectionWarmer(fetcher, store, settings, clock=clock)
    expander = CollectionExpander(fetcher, store, settings, clock=clock)

    return PaginationService(
        store=store,
        warmer=warmer,
        expander=expander,
        settings=settings,
        filter_factory=filter_factory,
        clock=clock,
    )
