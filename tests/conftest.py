from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

import pytest

from release_tracker.domain.movie import CatalogItem
from release_tracker.infra.config import PaginationSettings

TODAY = date(2026, 1, 15)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Records requested delays and yields to the event loop instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def settings() -> PaginationSettings:
    """Defaults with the throttle kept, so tests can assert on it."""
    return PaginationSettings()


@pytest.fixture
def make_item() -> Callable[..., CatalogItem]:
    """Factory for CatalogItem with sensible defaults."""

    def factory(item_id: int, **overrides: Any) -> CatalogItem:
        values: dict[str, Any] = {"id": item_id, "title": f"Movie {item_id}"}
        values.update(overrides)
        return CatalogItem(**values)

    return factory


@pytest.fixture
def make_raw_movies() -> Callable[..., list[dict[str, Any]]]:
    """
    Factory for raw upstream results.

    Popularity decreases with the id, so popularity order equals id order.
    """

    def factory(count: int, start_id: int = 1) -> list[dict[str, Any]]:
        return [
            {
                "id": movie_id,
                "title": f"Movie {movie_id}",
                "overview": f"Overview of movie {movie_id}",
                "poster_path": f"/poster-{movie_id}.jpg",
                "genre_ids": [28] if movie_id % 2 else [18],
                "release_date": (TODAY + timedelta(days=movie_id)).isoformat(),
                "popularity": 10_000.0 - movie_id,
                "vote_average": 7.0,
                "vote_count": 100,
            }
            for movie_id in range(start_id, start_id + count)
        ]

    return factory
