from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import pytest

from release_tracker.adapters.in_memory_catalog_client import InMemoryCatalogClient
from release_tracker.adapters.in_memory_collection_store import InMemoryCollectionStore
from release_tracker.adapters.raw_item_processor import RawItemProcessor
from release_tracker.domain.filters import ItemPredicate, accept_all
from release_tracker.infra.config import PaginationSettings
from release_tracker.use_cases.expand_collection import CollectionExpander
from release_tracker.use_cases.fetch_pages import PageFetcher
from release_tracker.use_cases.pagination_service import PaginationService
from release_tracker.use_cases.warm_collection import CollectionWarmer


@dataclass
class Engine:
    upstream: InMemoryCatalogClient
    store: InMemoryCollectionStore
    settings: PaginationSettings
    fetcher: PageFetcher
    warmer: CollectionWarmer
    expander: CollectionExpander
    service: PaginationService


@pytest.fixture
def build_engine(
    clock: Any,
    recorded_sleep: Any,
    today: Any,
    make_raw_movies: Callable[..., list[dict[str, Any]]],
) -> Callable[..., Engine]:
    """
    Assemble the engine over in-memory adapters.

    By default every item passes the filter, so collection sizes follow
    upstream directly.
    """

    def factory(
        item_count: int = 45,
        upstream_page_size: int = 20,
        settings: PaginationSettings | None = None,
        predicate: ItemPredicate = accept_all,
        **upstream_options: Any,
    ) -> Engine:
        settings = settings or PaginationSettings()
        upstream = InMemoryCatalogClient(
            make_raw_movies(item_count), page_size=upstream_page_size, **upstream_options
        )
        store = InMemoryCollectionStore()
        fetcher = PageFetcher(
            upstream, RawItemProcessor(today=lambda: today), settings, sleep=recorded_sleep
        )
        warmer = CollectionWarmer(fetcher, store, settings, clock=clock)
        expander = CollectionExpander(fetcher, store, settings, clock=clock)
        service = PaginationService(
            store,
            warmer,
            expander,
            settings,
            filter_factory=lambda cache_key: predicate,
            clock=clock,
        )
        return Engine(upstream, store, settings, fetcher, warmer, expander, service)

    return factory


@pytest.fixture
def shallow_settings() -> PaginationSettings:
    """Warm stops after 30 items so collections can still be expanded."""
    return replace(PaginationSettings(), target_size=30)
