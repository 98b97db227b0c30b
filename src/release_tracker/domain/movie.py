from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from release_tracker.domain.errors import ValidationError

ALL_GENRES = "all"

# Keep it reasonable; the HTTP layer enforces the same ceiling
MAX_PAGE_SIZE = 100


# ==============================================================================
# Domain Exceptions
# ==============================================================================


class PagingValidationError(ValidationError):
    """Raised when paging parameters are invalid."""

    pass


class FilterValidationError(ValidationError):
    """Raised when filter parameters are invalid."""

    pass


# ==============================================================================
# Enumerations
# ==============================================================================


class CollectionKind(str, Enum):
    """Which upstream listing a collection is assembled from."""

    UPCOMING = "upcoming"
    RELEASES = "releases"


class SortStrategy(str, Enum):
    POPULARITY = "popularity"
    RATING = "rating"
    VOTE_AVERAGE = "vote_average"
    RELEASE_DATE_ASC = "release_date_asc"
    RELEASE_DATE_DESC = "release_date_desc"
    NEWEST = "newest"

    @property
    def is_date_sensitive(self) -> bool:
        return self in (
            SortStrategy.RELEASE_DATE_ASC,
            SortStrategy.RELEASE_DATE_DESC,
            SortStrategy.NEWEST,
        )


class ExpansionType(str, Enum):
    NONE = "none"
    BACKGROUND = "background"
    SYNCHRONOUS = "synchronous"


class PageSource(str, Enum):
    CACHE = "cache"
    QUICK = "quick"


# ==============================================================================
# Value Objects
# ==============================================================================


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Identifies one cached collection: kind x sort x filter."""

    kind: CollectionKind
    sort: SortStrategy
    filter_signature: str = ALL_GENRES

    def validate(self) -> None:
        """
        Validate the filter signature.

        Raises:
            FilterValidationError: If the signature is neither "all" nor a genre id
        """
        if self.filter_signature != ALL_GENRES and not self.filter_signature.isdigit():
            raise FilterValidationError(
                errors=[
                    {
                        "field": "genre",
                        "message": "Must be 'all' or a numeric genre id",
                        "code": "INVALID_GENRE",
                    }
                ]
            )

    @property
    def genre_id(self) -> int | None:
        if self.filter_signature == ALL_GENRES:
            return None
        return int(self.filter_signature)

    @classmethod
    def for_genre(
        cls, kind: CollectionKind, sort: SortStrategy, genre: str | int | None = None
    ) -> CacheKey:
        signature = ALL_GENRES if genre in (None, "", ALL_GENRES) else str(genre)
        return cls(kind=kind, sort=sort, filter_signature=signature)

    def __str__(self) -> str:
        return f"{self.kind.value}_{self.sort.value}_{self.filter_signature}"


@dataclass(frozen=True, slots=True)
class CatalogItem:
    id: int
    title: str
    poster_path: str | None = None
    overview: str = ""
    genre_ids: tuple[int, ...] = ()
    release_date: date | None = None
    streaming_date: date | None = None
    display_date: date | None = None
    popularity: float | None = None
    rating: float | None = None
    vote_count: int = 0
    can_follow: bool = True

    @property
    def quality_score(self) -> float | None:
        """Rating weighted by log-popularity so a handful of votes cannot top the list."""
        if self.rating is None or self.popularity is None:
            return None
        return self.rating * math.log(self.popularity + 1)


@dataclass(frozen=True, slots=True)
class PageRequest:
    cache_key: CacheKey
    page: int = 1
    page_size: int = 20
    exclude_ids: frozenset[int] = field(default_factory=frozenset)

    def validate(self, max_page_size: int = MAX_PAGE_SIZE) -> None:
        """
        Validate paging and filter parameters.

        Raises:
            PagingValidationError: If paging parameters are invalid
            FilterValidationError: If the cache key's filter is invalid
        """
        if self.page < 1:
            raise PagingValidationError("page must be >= 1")
        if self.page_size <= 0:
            raise PagingValidationError("page_size must be > 0")
        if self.page_size > max_page_size:
            raise PagingValidationError(f"page_size must be <= {max_page_size}")
        self.cache_key.validate()
