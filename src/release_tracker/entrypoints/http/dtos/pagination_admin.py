from pydantic import BaseModel, Field

from release_tracker.domain.movie import SortStrategy


class CollectionStatsDTO(BaseModel):
    size: int
    age_seconds: float
    fresh: bool
    pages_fetched: int
    exhausted: bool
    expansion_level: int
    refresh_in_flight: bool
    expansion_in_flight: bool


class CacheStatsResponseDTO(BaseModel):
    collections: int
    total_items: int
    per_key: dict[str, CollectionStatsDTO]


class WarmQueryDTO(BaseModel):
    """Which collection of a kind to warm."""

    sort: SortStrategy = Field(default=SortStrategy.POPULARITY, examples=["popularity"])
    genre: str | None = Field(default=None, description="Genre id, or 'all'", examples=["28"])


class WarmResponseDTO(BaseModel):
    cache_key: str
    stats: CollectionStatsDTO


class PreloadResponseDTO(BaseModel):
    warmed: list[str]


class CleanupResponseDTO(BaseModel):
    collections_evicted: int
    expansions_reset: int
