from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from release_tracker.domain.dedupe import dedupe
from release_tracker.domain.movie import (
    CatalogItem,
    ExpansionType,
    PageSource,
    SortStrategy,
)
from release_tracker.domain.sorting import sort_items


@dataclass(frozen=True, slots=True)
class Collection:
    """
    Ordered, deduplicated virtual list backing one cache key.

    Invariants (enforced by ``build``):
    - no two items share an id
    - items follow ``sort`` with ties broken by ascending id

    ``pages_fetched`` is the upstream depth the items were assembled from;
    ``exhausted`` is True once upstream reported there are no further pages.
    """

    items: tuple[CatalogItem, ...]
    sort: SortStrategy
    pages_fetched: int = 0
    exhausted: bool = False

    @classmethod
    def build(
        cls,
        items: Iterable[CatalogItem],
        sort: SortStrategy,
        pages_fetched: int = 0,
        exhausted: bool = False,
    ) -> Collection:
        return cls(
            items=tuple(sort_items(dedupe(items), sort)),
            sort=sort,
            pages_fetched=pages_fetched,
            exhausted=exhausted,
        )

    @classmethod
    def empty(cls, sort: SortStrategy) -> Collection:
        return cls(items=(), sort=sort)

    def ids(self) -> frozenset[int]:
        return frozenset(item.id for item in self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class CollectionMetadata:
    """
    Freshness bookkeeping for one stored collection.

    ``generation`` increases on every full rebuild so that an expansion
    computed against an older collection can be recognized and discarded.
    """

    refreshed_at: float
    generation: int = 1
    expansion_level: int = 0
    expanded_at: float | None = None
    expansion_expires_at: float | None = None

    def expansion_expired(self, now: float) -> bool:
        return self.expansion_expires_at is not None and now >= self.expansion_expires_at


@dataclass(frozen=True, slots=True)
class StoredCollection:
    collection: Collection
    metadata: CollectionMetadata


@dataclass(frozen=True, slots=True)
class PageResult:
    """Result of one page request including diagnostic metadata."""

    items: tuple[CatalogItem, ...]
    has_more: bool
    total_count: int  # Size of the backing collection, not of the filtered view
    collection_size: int
    available_count: int  # Unseen items in the collection before slicing
    excluded_count: int
    page: int
    page_size: int
    expansion: ExpansionType = ExpansionType.NONE
    source: PageSource = PageSource.CACHE

    @property
    def incomplete(self) -> bool:
        """Short final page: fewer items than requested and nothing left."""
        return len(self.items) < self.page_size and not self.has_more
