"""
Dependency injection for FastAPI routes.

Key principle: the pagination service holds the process-wide collection
cache, so it is built once in the app lifespan and shared by every request.
Tests replace it through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from release_tracker.use_cases.pagination_service import PaginationService


def get_pagination_service(request: Request) -> PaginationService:
    """
    Returns the PaginationService created at startup.

    Raises:
        RuntimeError: If the app was started without its lifespan
    """
    service = getattr(request.app.state, "pagination_service", None)
    if service is None:
        raise RuntimeError("Pagination service is not initialized")
    return service
