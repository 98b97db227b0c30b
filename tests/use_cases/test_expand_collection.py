"""
Test suite for CollectionExpander.

Test sections:
- Trigger policy: proactive buffer and expandability
- Levels: bounded growth and TTL reset
- Concurrency: one expansion per key, rebuilds discard stale expansions
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace
from typing import Any

import pytest

from release_tracker.domain.collection import Collection
from release_tracker.domain.filters import accept_all
from release_tracker.domain.movie import CacheKey, CollectionKind, SortStrategy
from release_tracker.infra.config import PaginationSettings

KEY = CacheKey(CollectionKind.UPCOMING, SortStrategy.POPULARITY)


@pytest.fixture
def one_page_per_level() -> PaginationSettings:
    return replace(
        PaginationSettings(),
        target_size=10,
        expansion_pages_per_level=1,
        max_expansion_level=2,
    )


# ==============================================================================
# Trigger policy
# ==============================================================================


@pytest.mark.asyncio
async def test_should_expand_within_proactive_buffer(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    await engine.warmer.warm(KEY, accept_all)

    # Buffer: this page plus two more
    assert engine.expander.should_expand(KEY, available_count=30, page_size=10) is False
    assert engine.expander.should_expand(KEY, available_count=29, page_size=10) is True


@pytest.mark.asyncio
async def test_exhausted_collection_is_not_expanded(build_engine: Callable[..., Any]) -> None:
    engine = build_engine(item_count=45, upstream_page_size=20)
    await engine.warmer.warm(KEY, accept_all)

    assert engine.expander.can_expand(KEY) is False
    assert await engine.expander.expand(KEY, accept_all) is False
    assert engine.upstream.calls_for_page(4) == 0


@pytest.mark.asyncio
async def test_missing_collection_is_not_expanded(build_engine: Callable[..., Any]) -> None:
    engine = build_engine()

    assert engine.expander.can_expand(KEY) is False
    assert engine.expander.should_expand(KEY, available_count=0, page_size=20) is False
    assert await engine.expander.expand(KEY, accept_all) is False


# ==============================================================================
# Levels
# ==============================================================================


@pytest.mark.asyncio
async def test_expand_appends_next_pages_and_records_level(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings, clock: Any
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    await engine.warmer.warm(KEY, accept_all)

    grew = await engine.expander.expand(KEY, accept_all)

    stored = engine.store.get(KEY)
    assert grew is True
    assert [item.id for item in stored.collection.items] == list(range(1, 131))
    assert stored.collection.pages_fetched == 13
    assert stored.metadata.expansion_level == 1
    assert stored.metadata.expansion_expires_at == clock() + shallow_settings.expansion_ttl
    assert engine.upstream.calls_for_page(4) == 1


@pytest.mark.asyncio
async def test_expansion_level_never_exceeds_maximum(
    build_engine: Callable[..., Any], one_page_per_level: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=one_page_per_level)
    await engine.warmer.warm(KEY, accept_all)

    results = [await engine.expander.expand(KEY, accept_all) for _ in range(4)]

    stored = engine.store.get(KEY)
    assert results == [True, True, False, False]
    assert stored.metadata.expansion_level == 2
    assert stored.collection.pages_fetched == 3
    assert engine.upstream.calls_for_page(4) == 0


@pytest.mark.asyncio
async def test_expired_expansion_restarts_from_level_zero(
    build_engine: Callable[..., Any], one_page_per_level: PaginationSettings, clock: Any
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=one_page_per_level)
    await engine.warmer.warm(KEY, accept_all)
    await engine.expander.expand(KEY, accept_all)
    await engine.expander.expand(KEY, accept_all)
    assert engine.expander.can_expand(KEY) is False

    clock.advance(one_page_per_level.expansion_ttl + 1)

    assert engine.expander.can_expand(KEY) is True
    assert engine.store.get(KEY).metadata.expansion_level == 0
    assert await engine.expander.expand(KEY, accept_all) is True
    stored = engine.store.get(KEY)
    assert stored.metadata.expansion_level == 1
    assert stored.collection.pages_fetched == 4  # Depth is kept, only the level resets


@pytest.mark.asyncio
async def test_expansion_stops_at_collection_depth_cap(build_engine: Callable[..., Any]) -> None:
    settings = replace(
        PaginationSettings(), target_size=10, warm_max_pages=5, max_collection_pages=5
    )
    engine = build_engine(item_count=200, upstream_page_size=10, settings=settings)
    await engine.warmer.warm(KEY, accept_all)

    await engine.expander.expand(KEY, accept_all)

    stored = engine.store.get(KEY)
    assert stored.collection.pages_fetched == 5
    assert len(stored.collection) == 50
    assert engine.expander.can_expand(KEY) is False


@pytest.mark.asyncio
async def test_failed_expansion_leaves_collection_untouched(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    before = await engine.warmer.warm(KEY, accept_all)
    engine.upstream.failing_pages = set(range(4, 14))

    assert await engine.expander.expand(KEY, accept_all) is False

    assert engine.store.get(KEY) is before
    assert not engine.expander.is_expanding(KEY)


# ==============================================================================
# Concurrency
# ==============================================================================


@pytest.mark.asyncio
async def test_second_expansion_while_in_flight_is_a_noop(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    await engine.warmer.warm(KEY, accept_all)
    engine.upstream.gate = asyncio.Event()

    running = asyncio.create_task(engine.expander.expand(KEY, accept_all))
    await asyncio.sleep(0)
    assert engine.expander.is_expanding(KEY)

    assert await engine.expander.expand(KEY, accept_all) is False
    assert engine.expander.expand_in_background(KEY, accept_all) is False

    engine.upstream.gate.set()
    assert await running is True
    assert engine.store.get(KEY).metadata.expansion_level == 1
    assert engine.upstream.calls_for_page(4) == 1


@pytest.mark.asyncio
async def test_joining_caller_waits_for_the_running_expansion(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    await engine.warmer.warm(KEY, accept_all)
    engine.upstream.gate = asyncio.Event()

    assert engine.expander.expand_in_background(KEY, accept_all) is True
    joiner = asyncio.create_task(engine.expander.expand(KEY, accept_all, join_inflight=True))
    await asyncio.sleep(0)
    assert not joiner.done()

    engine.upstream.gate.set()

    assert await joiner is True
    assert len(engine.store.get(KEY).collection) == 130
    assert engine.upstream.calls_for_page(4) == 1


@pytest.mark.asyncio
async def test_rebuild_during_expansion_discards_the_expansion(
    build_engine: Callable[..., Any],
    shallow_settings: PaginationSettings,
    make_item: Callable[..., Any],
    clock: Any,
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    await engine.warmer.warm(KEY, accept_all)
    engine.upstream.gate = asyncio.Event()

    running = asyncio.create_task(engine.expander.expand(KEY, accept_all))
    while engine.upstream.calls_for_page(4) == 0:
        await asyncio.sleep(0)
    rebuilt = engine.store.replace(
        KEY,
        Collection.build([make_item(i) for i in range(500, 510)], SortStrategy.POPULARITY, 1),
        refreshed_at=clock(),
    )
    engine.upstream.gate.set()

    assert await running is False
    assert engine.store.get(KEY) is rebuilt
    assert rebuilt.metadata.expansion_level == 0


@pytest.mark.asyncio
async def test_expanded_collection_has_no_duplicates(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    warmed = await engine.warmer.warm(KEY, accept_all)
    # Claim one page less than was fetched so the expansion re-reads page 3
    engine.store.replace(
        KEY,
        Collection.build(warmed.collection.items, SortStrategy.POPULARITY, pages_fetched=2),
        refreshed_at=warmed.metadata.refreshed_at,
    )

    await engine.expander.expand(KEY, accept_all)

    items = engine.store.get(KEY).collection.items
    assert len({item.id for item in items}) == len(items)
    assert [item.id for item in items] == list(range(1, 121))


@pytest.mark.asyncio
async def test_pass_that_adds_nothing_still_advances_level_and_depth(
    build_engine: Callable[..., Any], shallow_settings: PaginationSettings
) -> None:
    engine = build_engine(item_count=200, upstream_page_size=10, settings=shallow_settings)
    predicate = lambda item: item.id <= 30  # noqa: E731
    before = await engine.warmer.warm(KEY, predicate)

    assert await engine.expander.expand(KEY, predicate) is True

    stored = engine.store.get(KEY)
    assert stored.collection.items == before.collection.items
    assert stored.collection.pages_fetched == 13
    assert stored.metadata.expansion_level == 1
    assert engine.expander.can_expand(KEY) is True
