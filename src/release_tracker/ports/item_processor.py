from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from release_tracker.domain.movie import CatalogItem, CollectionKind


class ItemProcessor(ABC):
    """
    Port that turns raw upstream results into CatalogItems.

    Implementations may perform (and cache) per-item lookups; callers treat
    this as a black box that is slower for cache-cold items. Items that
    cannot be enriched are returned with whatever the raw payload provides,
    never dropped and never raised.
    """

    @abstractmethod
    async def enrich(
        self, raw_items: Sequence[Mapping[str, Any]], kind: CollectionKind
    ) -> list[CatalogItem]: ...
