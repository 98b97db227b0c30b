"""
Unit tests for FastAPI dependency functions.

The pagination service is created once in the app lifespan and read from
``app.state`` on every request.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from release_tracker.entrypoints.http.dependencies import get_pagination_service


def make_request(**state: object) -> Mock:
    request = Mock()
    request.app.state = SimpleNamespace(**state)
    return request


def test_returns_service_from_app_state() -> None:
    service = Mock()

    assert get_pagination_service(make_request(pagination_service=service)) is service


def test_same_service_for_every_request() -> None:
    service = Mock()

    first = get_pagination_service(make_request(pagination_service=service))
    second = get_pagination_service(make_request(pagination_service=service))

    assert first is second


def test_raises_when_lifespan_did_not_run() -> None:
    with pytest.raises(RuntimeError, match="not initialized"):
        get_pagination_service(make_request())
