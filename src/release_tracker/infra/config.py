from __future__ import annotations

import os
from dataclasses import dataclass, fields

DEFAULT_TMDB_BASE_URL = "https://api.themoviedb.org/3"


def tmdb_api_key() -> str:
    key = os.getenv("TMDB_API_KEY")

    if not key:
        raise RuntimeError("TMDB_API_KEY environment variable is not set")

    return key


def tmdb_base_url() -> str:
    return os.getenv("TMDB_BASE_URL") or DEFAULT_TMDB_BASE_URL


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class PaginationSettings:
    """
    Tunables of the pagination engine. Durations are in seconds.

    Every field can be overridden with a ``PAGINATION_<FIELD>`` environment
    variable, e.g. ``PAGINATION_TARGET_SIZE=200``.
    """

    # Freshness
    refresh_interval_date: float = 15 * 60  # Date-sensitive sorts
    refresh_interval_popularity: float = 30 * 60  # Popularity-sensitive sorts
    stale_eviction_factor: float = 2.0  # Evict after factor * refresh interval
    sweep_interval: float = 30 * 60

    # Warming
    target_size: int = 100
    warm_max_pages: int = 25
    quick_fetch_pages: int = 2

    # Expansion
    expansion_ttl: float = 10 * 60  # Expanded data is more provisional than a fresh warm
    max_expansion_level: int = 3
    expansion_pages_per_level: int = 10
    proactive_buffer_pages: int = 2
    max_collection_pages: int = 60

    # Upstream etiquette
    page_delay: float = 0.12  # Deliberate throttle between upstream calls
    failure_backoff: float = 1.0
    max_consecutive_failures: int = 3
    max_empty_pages: int = 3
    enrich_concurrency: int = 8
    region: str = "US"

    # Requests
    max_page_size: int = 100
    preload_on_startup: bool = False

    def refresh_interval_for(self, date_sensitive: bool) -> float:
        return self.refresh_interval_date if date_sensitive else self.refresh_interval_popularity

    def validate(self) -> None:
        """
        Reject settings the engine cannot run with.

        Raises:
            ValueError: If a bound is non-positive or inconsistent
        """
        positive = (
            "target_size",
            "warm_max_pages",
            "quick_fetch_pages",
            "max_consecutive_failures",
            "max_empty_pages",
            "enrich_concurrency",
            "max_page_size",
            "expansion_pages_per_level",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.max_expansion_level < 0:
            raise ValueError("max_expansion_level must be >= 0")
        if self.proactive_buffer_pages < 0:
            raise ValueError("proactive_buffer_pages must be >= 0")
        if self.page_delay < 0 or self.failure_backoff < 0:
            raise ValueError("delays must be >= 0")
        if self.max_collection_pages < self.warm_max_pages:
            raise ValueError("max_collection_pages cannot be smaller than warm_max_pages")

    @classmethod
    def from_env(cls) -> PaginationSettings:
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = os.getenv(f"PAGINATION_{f.name.upper()}")
            if raw is None or raw == "":
                continue
            if f.type in ("bool", bool):
                overrides[f.name] = _env_bool(raw)
            elif f.type in ("int", int):
                overrides[f.name] = int(raw)
            elif f.type in ("float", float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw

        settings = cls(**overrides)  # type: ignore[arg-type]
        settings.validate()
        return settings
