from __future__ import annotations

import logging
from collections.abc import Collection as SizedIterable
from dataclasses import dataclass

from release_tracker.domain.collection import Collection
from release_tracker.domain.dedupe import find_duplicate_ids
from release_tracker.domain.movie import CatalogItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Extraction:
    items: tuple[CatalogItem, ...]
    has_more: bool
    available_count: int
    shown_count: int  # Collection items the client has already seen


def extract(
    collection: Collection,
    page: int,
    page_size: int,
    exclude_ids: SizedIterable[int] = frozenset(),
) -> Extraction:
    """
    Take the next ``page_size`` unseen items from the front of the collection.

    The slice is NOT computed from a numeric offset: the client reports what
    it has already rendered through ``exclude_ids`` and receives the next
    unseen items, so "page 2" stays well defined while the collection grows
    between requests. ``page`` is only used for diagnostics.

    ``has_more`` compares the collection size with the items already shown
    plus this page, so it is False exactly when every item in the collection
    has been returned. Excluded ids that are not in the collection do not count.
    """
    excluded = exclude_ids if isinstance(exclude_ids, (set, frozenset)) else frozenset(exclude_ids)

    available = [item for item in collection.items if item.id not in excluded]
    page_items = tuple(available[:page_size])

    shown_count = len(collection) - len(available)
    has_more = shown_count + len(page_items) < len(collection)

    duplicate_ids = find_duplicate_ids(page_items)
    if duplicate_ids:
        # Data-integrity violation upstream of the extractor; surface it, never mask it
        logger.warning(
            "Duplicate items detected in page",
            extra={
                "page": page,
                "duplicate_ids": duplicate_ids,
                "collection_size": len(collection),
            },
        )

    return Extraction(
        items=page_items,
        has_more=has_more,
        available_count=len(available),
        shown_count=shown_count,
    )
