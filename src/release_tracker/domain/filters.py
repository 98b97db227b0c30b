"""Item predicates applied after enrichment and before dedupe/sort.

Business rules live here, outside the pagination engine, which only sees
an ``ItemPredicate``.
"""

from __future__ import annotations

from typing import Protocol

from release_tracker.domain.movie import CacheKey, CatalogItem, CollectionKind


class ItemPredicate(Protocol):
    def __call__(self, item: CatalogItem) -> bool: ...


class FilterFactory(Protocol):
    def __call__(self, cache_key: CacheKey) -> ItemPredicate: ...


def is_followable(item: CatalogItem) -> bool:
    return item.can_follow


def has_streaming_date(item: CatalogItem) -> bool:
    return item.streaming_date is not None


def accept_all(item: CatalogItem) -> bool:
    return True


def in_genre(genre_id: int) -> ItemPredicate:
    def predicate(item: CatalogItem) -> bool:
        return genre_id in item.genre_ids

    return predicate


def all_of(*predicates: ItemPredicate) -> ItemPredicate:
    def predicate(item: CatalogItem) -> bool:
        return all(p(item) for p in predicates)

    return predicate


def default_filter_for(cache_key: CacheKey) -> ItemPredicate:
    """
    Standard listing rules.

    - upcoming: only items a user can still follow
    - releases: only items with a known home-release date
    - genre signature: item must carry that genre
    """
    base = is_followable if cache_key.kind is CollectionKind.UPCOMING else has_streaming_date
    genre_id = cache_key.genre_id
    if genre_id is None:
        return base
    return all_of(base, in_genre(genre_id))
