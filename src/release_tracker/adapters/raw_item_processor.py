from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date
from typing import Any

from release_tracker.domain.movie import CatalogItem, CollectionKind
from release_tracker.domain.release_dates import (
    ReleaseData,
    build_catalog_item,
    parse_date,
)
from release_tracker.ports.item_processor import ItemProcessor


class RawItemProcessor(ItemProcessor):
    """
    Builds items from the listing payload alone, without per-item lookups.

    A raw ``streaming_date`` field, when present, is honoured so fixtures can
    describe home releases without a release-dates payload.
    """

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    async def enrich(
        self, raw_items: Sequence[Mapping[str, Any]], kind: CollectionKind
    ) -> list[CatalogItem]:
        today = self._today()
        return [
            build_catalog_item(
                raw,
                kind,
                today,
                ReleaseData(streaming=parse_date(raw.get("streaming_date"))),
            )
            for raw in raw_items
        ]
