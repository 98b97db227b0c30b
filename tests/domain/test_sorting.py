"""
Sort pipeline tests.

Every strategy must be a total order with ascending id as the final
tie-breaker, keep items lacking the sort field (last), and be idempotent.
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable
from datetime import date

import pytest

from release_tracker.domain.movie import CatalogItem, SortStrategy
from release_tracker.domain.sorting import MIN_RELIABLE_VOTES, sort_items


def ids(items: list[CatalogItem]) -> list[int]:
    return [item.id for item in items]


# ==============================================================================
# Strategies
# ==============================================================================


def test_popularity_descending(make_item: Callable[..., CatalogItem]) -> None:
    items = [make_item(1, popularity=5.0), make_item(2, popularity=50.0), make_item(3, popularity=20.0)]

    assert ids(sort_items(items, SortStrategy.POPULARITY)) == [2, 3, 1]


def test_release_date_ascending_and_descending(make_item: Callable[..., CatalogItem]) -> None:
    items = [
        make_item(1, release_date=date(2026, 3, 1)),
        make_item(2, release_date=date(2026, 1, 1)),
        make_item(3, release_date=date(2026, 2, 1)),
    ]

    assert ids(sort_items(items, SortStrategy.RELEASE_DATE_ASC)) == [2, 3, 1]
    assert ids(sort_items(items, SortStrategy.RELEASE_DATE_DESC)) == [1, 3, 2]


def test_newest_orders_by_streaming_date(make_item: Callable[..., CatalogItem]) -> None:
    items = [
        make_item(1, streaming_date=date(2025, 11, 1)),
        make_item(2, streaming_date=date(2026, 1, 1)),
        make_item(3, streaming_date=None),
    ]

    assert ids(sort_items(items, SortStrategy.NEWEST)) == [2, 1, 3]


def test_rating_uses_log_popularity_weighting(make_item: Callable[..., CatalogItem]) -> None:
    """A perfect score with almost no popularity must not top a well-known title."""
    obscure = make_item(1, rating=10.0, popularity=0.5)
    known = make_item(2, rating=7.5, popularity=300.0)

    assert obscure.quality_score == pytest.approx(10.0 * math.log(1.5))
    assert ids(sort_items([obscure, known], SortStrategy.RATING)) == [2, 1]


def test_vote_average_puts_unreliable_ratings_last(make_item: Callable[..., CatalogItem]) -> None:
    items = [
        make_item(1, rating=9.9, vote_count=MIN_RELIABLE_VOTES - 1),
        make_item(2, rating=6.0, vote_count=500),
        make_item(3, rating=8.0, vote_count=MIN_RELIABLE_VOTES),
    ]

    assert ids(sort_items(items, SortStrategy.VOTE_AVERAGE)) == [3, 2, 1]


def test_vote_average_puts_missing_rating_below_thinly_voted(
    make_item: Callable[..., CatalogItem],
) -> None:
    unrated = make_item(1, rating=None, vote_count=500)
    thin = make_item(2, rating=6.0, vote_count=MIN_RELIABLE_VOTES - 1)

    assert ids(sort_items([unrated, thin], SortStrategy.VOTE_AVERAGE)) == [2, 1]


def test_rating_without_popularity_has_no_quality_score(
    make_item: Callable[..., CatalogItem],
) -> None:
    no_popularity = make_item(1, rating=9.0, popularity=None)
    unpopular = make_item(2, rating=1.0, popularity=0.0)

    assert no_popularity.quality_score is None
    assert unpopular.quality_score == 0.0
    # A real zero score still ranks above a missing one
    assert ids(sort_items([no_popularity, unpopular], SortStrategy.RATING)) == [2, 1]


# ==============================================================================
# Determinism
# ==============================================================================


@pytest.mark.parametrize("strategy", list(SortStrategy))
def test_ties_broken_by_ascending_id(
    strategy: SortStrategy, make_item: Callable[..., CatalogItem]
) -> None:
    same = {
        "popularity": 10.0,
        "rating": 7.0,
        "vote_count": 100,
        "release_date": date(2026, 1, 1),
        "streaming_date": date(2026, 2, 1),
    }
    items = [make_item(30, **same), make_item(10, **same), make_item(20, **same)]

    assert ids(sort_items(items, strategy)) == [10, 20, 30]


@pytest.mark.parametrize("strategy", list(SortStrategy))
def test_missing_sort_fields_are_kept_and_ordered_last(
    strategy: SortStrategy, make_item: Callable[..., CatalogItem]
) -> None:
    complete = make_item(
        5,
        popularity=10.0,
        rating=7.0,
        vote_count=100,
        release_date=date(2026, 1, 1),
        streaming_date=date(2026, 2, 1),
    )
    bare = make_item(1)

    result = sort_items([bare, complete], strategy)

    assert ids(result) == [5, 1]


@pytest.mark.parametrize("strategy", list(SortStrategy))
def test_sorting_is_idempotent_and_input_order_independent(
    strategy: SortStrategy, make_item: Callable[..., CatalogItem]
) -> None:
    rng = random.Random(7)
    items = [
        make_item(
            i,
            popularity=rng.choice([None, 1.0, 5.0, 5.0, 80.0]),
            rating=rng.choice([None, 6.0, 7.5, 7.5]),
            vote_count=rng.choice([0, 5, 50]),
            release_date=rng.choice([None, date(2026, 1, 1), date(2026, 5, 1)]),
            streaming_date=rng.choice([None, date(2026, 3, 1)]),
        )
        for i in range(1, 40)
    ]
    shuffled = items[:]
    rng.shuffle(shuffled)

    once = sort_items(items, strategy)

    assert sort_items(once, strategy) == once
    assert sort_items(shuffled, strategy) == once


def test_sort_does_not_mutate_input(make_item: Callable[..., CatalogItem]) -> None:
    items = [make_item(2, popularity=1.0), make_item(1, popularity=2.0)]

    sort_items(items, SortStrategy.POPULARITY)

    assert ids(items) == [2, 1]
