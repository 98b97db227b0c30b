"""Release-date rules: parsing upstream payloads and deriving display fields.

TMDB release types: 1 premiere, 2 limited theatrical, 3 theatrical,
4 digital, 5 physical, 6 TV.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from release_tracker.domain.movie import CatalogItem, CollectionKind

DEFAULT_REGION = "US"
THEATRICAL_TYPES = frozenset({2, 3})
HOME_RELEASE_TYPES = frozenset({4, 5})

# Window used for both "upcoming" (forward) and "recent releases" (backward)
WINDOW_DAYS = 182


@dataclass(frozen=True, slots=True)
class ReleaseData:
    theatrical: date | None = None  # Regional theatrical date
    primary: date | None = None  # Earliest release of any kind, any region
    streaming: date | None = None  # Earliest digital/physical release


def parse_date(value: Any) -> date | None:
    """Parse 'YYYY-MM-DD' or an ISO timestamp; anything else yields None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def release_window(kind: CollectionKind, today: date) -> tuple[date, date]:
    """Inclusive date window a collection kind is drawn from."""
    if kind is CollectionKind.UPCOMING:
        return today, today + timedelta(days=WINDOW_DAYS)
    return today - timedelta(days=WINDOW_DAYS), today


def parse_release_dates(payload: Mapping[str, Any], region: str = DEFAULT_REGION) -> ReleaseData:
    """
    Reduce a ``/movie/{id}/release_dates`` payload to the dates we use.

    The regional entry is preferred; without one the first listed region
    is used for the streaming date, mirroring how upstream orders results.
    """
    results = payload.get("results") or []
    if not results:
        return ReleaseData()

    regional = next((r for r in results if r.get("iso_3166_1") == region), None)
    fallback = regional or results[0]

    def dates_of(entry: Mapping[str, Any], types: frozenset[int] | None) -> list[date]:
        found = []
        for release in entry.get("release_dates") or []:
            if types is not None and release.get("type") not in types:
                continue
            parsed = parse_date(release.get("release_date"))
            if parsed is not None:
                found.append(parsed)
        return found

    theatrical = dates_of(regional, THEATRICAL_TYPES) if regional else []
    streaming = dates_of(fallback, HOME_RELEASE_TYPES)
    every_date = [d for entry in results for d in dates_of(entry, None)]

    return ReleaseData(
        theatrical=min(theatrical, default=None),
        primary=min(every_date, default=None),
        streaming=min(streaming, default=None),
    )


def resolve_display_date(
    kind: CollectionKind,
    release_date: date | None,
    streaming_date: date | None,
    today: date,
) -> date | None:
    """Pick the date a card should headline for the given listing."""
    if kind is CollectionKind.RELEASES:
        return streaming_date or release_date

    # Upcoming: future dates first, streaming preferred over theatrical
    if streaming_date and streaming_date > today:
        return streaming_date
    if release_date and release_date > today:
        return release_date
    return streaming_date or release_date


def can_follow(
    kind: CollectionKind,
    release_date: date | None,
    streaming_date: date | None,
    today: date,
) -> bool:
    if kind is CollectionKind.UPCOMING:
        # Any future date, or no dates at all (trust upstream listing it as upcoming)
        return bool(
            (streaming_date and streaming_date > today)
            or (release_date and release_date > today)
            or (streaming_date is None and release_date is None)
        )
    return streaming_date is not None or release_date is not None


def build_catalog_item(
    raw: Mapping[str, Any],
    kind: CollectionKind,
    today: date,
    release: ReleaseData | None = None,
) -> CatalogItem:
    """
    Convert one raw upstream result into a CatalogItem.

    Prefers the regional theatrical date over the primary date and over the
    listing's own ``release_date``.
    """
    release = release or ReleaseData()
    release_date = release.theatrical or release.primary or parse_date(raw.get("release_date"))
    streaming_date = release.streaming

    vote_average = raw.get("vote_average")
    popularity = raw.get("popularity")

    return CatalogItem(
        id=int(raw["id"]),
        title=raw.get("title") or raw.get("original_title") or "",
        poster_path=raw.get("poster_path"),
        overview=(raw.get("overview") or "")[:200],
        genre_ids=tuple(int(g) for g in raw.get("genre_ids") or ()),
        release_date=release_date,
        streaming_date=streaming_date,
        display_date=resolve_display_date(kind, release_date, streaming_date, today),
        popularity=float(popularity) if popularity is not None else None,
        rating=float(vote_average) if vote_average is not None else None,
        vote_count=int(raw.get("vote_count") or 0),
        can_follow=can_follow(kind, release_date, streaming_date, today),
    )
