from __future__ import annotations

from dataclasses import replace

import pytest

from release_tracker.infra.config import (
    DEFAULT_TMDB_BASE_URL,
    PaginationSettings,
    tmdb_api_key,
    tmdb_base_url,
)


def test_defaults() -> None:
    settings = PaginationSettings()

    assert settings.target_size == 100
    assert settings.page_delay == 0.12
    assert settings.refresh_interval_for(date_sensitive=True) == 15 * 60
    assert settings.refresh_interval_for(date_sensitive=False) == 30 * 60
    settings.validate()


def test_from_env_parses_field_types(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGINATION_TARGET_SIZE", "200")
    monkeypatch.setenv("PAGINATION_PAGE_DELAY", "0.5")
    monkeypatch.setenv("PAGINATION_PRELOAD_ON_STARTUP", "true")
    monkeypatch.setenv("PAGINATION_REGION", "GB")
    monkeypatch.setenv("PAGINATION_MAX_EMPTY_PAGES", "")

    settings = PaginationSettings.from_env()

    assert settings.target_size == 200
    assert settings.page_delay == 0.5
    assert settings.preload_on_startup is True
    assert settings.region == "GB"
    assert settings.max_empty_pages == PaginationSettings().max_empty_pages


def test_from_env_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGINATION_TARGET_SIZE", "0")

    with pytest.raises(ValueError, match="target_size"):
        PaginationSettings.from_env()


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"warm_max_pages": 0}, "warm_max_pages"),
        ({"max_page_size": -1}, "max_page_size"),
        ({"max_expansion_level": -1}, "max_expansion_level"),
        ({"proactive_buffer_pages": -1}, "proactive_buffer_pages"),
        ({"page_delay": -0.1}, "delays"),
        ({"max_collection_pages": 10, "warm_max_pages": 20}, "max_collection_pages"),
    ],
)
def test_validate_rejects_inconsistent_settings(overrides: dict, message: str) -> None:
    settings = replace(PaginationSettings(), **overrides)

    with pytest.raises(ValueError, match=message):
        settings.validate()


def test_tmdb_api_key_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    with pytest.raises(RuntimeError, match="TMDB_API_KEY"):
        tmdb_api_key()

    monkeypatch.setenv("TMDB_API_KEY", "secret")
    assert tmdb_api_key() == "secret"


def test_tmdb_base_url_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_BASE_URL", raising=False)
    assert tmdb_base_url() == DEFAULT_TMDB_BASE_URL

    monkeypatch.setenv("TMDB_BASE_URL", "https://tmdb.test/3")
    assert tmdb_base_url() == "https://tmdb.test/3"
