"""Deterministic ordering of catalog items.

Every strategy is a total order: the primary criterion first, items that
lack it last, and ascending id as the final tie-breaker. Identical inputs
therefore always produce identical slices, and sorting an already sorted
list is a no-op.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from release_tracker.domain.movie import CatalogItem, SortStrategy

# Ratings backed by fewer votes than this sink below the rest
MIN_RELIABLE_VOTES = 10

SortKey = Callable[[CatalogItem], tuple[Any, ...]]


def _descending(value: float | None) -> tuple[bool, float]:
    # (missing?, negated value) so that missing values sort last
    if value is None:
        return (True, 0.0)
    return (False, -value)


def _popularity_key(item: CatalogItem) -> tuple[Any, ...]:
    return (*_descending(item.popularity), item.id)


def _quality_key(item: CatalogItem) -> tuple[Any, ...]:
    return (*_descending(item.quality_score), item.id)


def _vote_average_key(item: CatalogItem) -> tuple[Any, ...]:
    # Missing ratings sink below thinly voted ones
    return (
        item.rating is None,
        item.vote_count < MIN_RELIABLE_VOTES,
        *_descending(item.rating),
        item.id,
    )


def _release_date_asc_key(item: CatalogItem) -> tuple[Any, ...]:
    if item.release_date is None:
        return (True, 0, item.id)
    return (False, item.release_date.toordinal(), item.id)


def _release_date_desc_key(item: CatalogItem) -> tuple[Any, ...]:
    if item.release_date is None:
        return (True, 0, item.id)
    return (False, -item.release_date.toordinal(), item.id)


def _newest_key(item: CatalogItem) -> tuple[Any, ...]:
    if item.streaming_date is None:
        return (True, 0, item.id)
    return (False, -item.streaming_date.toordinal(), item.id)


SORT_KEYS: dict[SortStrategy, SortKey] = {
    SortStrategy.POPULARITY: _popularity_key,
    SortStrategy.RATING: _quality_key,
    SortStrategy.VOTE_AVERAGE: _vote_average_key,
    SortStrategy.RELEASE_DATE_ASC: _release_date_asc_key,
    SortStrategy.RELEASE_DATE_DESC: _release_date_desc_key,
    SortStrategy.NEWEST: _newest_key,
}


def sort_items(items: Iterable[CatalogItem], strategy: SortStrategy) -> list[CatalogItem]:
    """Return a new list ordered by ``strategy``. The input is not mutated."""
    return sorted(items, key=SORT_KEYS[strategy])
