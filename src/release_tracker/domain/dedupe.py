from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from release_tracker.domain.movie import CatalogItem


def dedupe(
    new_items: Iterable[CatalogItem],
    existing_items: Iterable[CatalogItem] = (),
) -> list[CatalogItem]:
    """
    Keep only items whose id is not already present.

    Removes ids found in ``existing_items`` as well as repeats inside
    ``new_items`` itself (upstream pages can overlap). First occurrence wins,
    input order is preserved.
    """
    seen = {item.id for item in existing_items}
    unique: list[CatalogItem] = []
    for item in new_items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


def find_duplicate_ids(items: Iterable[CatalogItem]) -> list[int]:
    """Ids that occur more than once, in first-seen order."""
    counts = Counter(item.id for item in items)
    return [item_id for item_id, count in counts.items() if count > 1]
