from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import httpx
from fastapi import FastAPI

from release_tracker.adapters.tmdb_catalog_client import TmdbCatalogClient
from release_tracker.adapters.tmdb_item_processor import TmdbItemProcessor
from release_tracker.entrypoints.http.exception_handlers import register_exception_handlers
from release_tracker.entrypoints.http.routes.admin import router as admin_router
from release_tracker.entrypoints.http.routes.health import router as health_router
from release_tracker.entrypoints.http.routes.movies import router as movies_router
from release_tracker.infra.config import PaginationSettings, tmdb_api_key, tmdb_base_url
from release_tracker.infra.sweeper import StaleCollectionSweeper
from release_tracker.infra.wiring import build_pagination_service

logger = logging.getLogger(__name__)

UPSTREAM_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Builds the pagination engine for the lifetime of the process.

    1. Open the shared upstream HTTP client
    2. Compose adapters and the pagination service
    3. Optionally preload the common collections, start the stale sweeper
    4. On shutdown: stop the sweeper, let background work finish, close the client
    """
    settings = PaginationSettings.from_env()

    async with httpx.AsyncClient(base_url=tmdb_base_url(), timeout=UPSTREAM_TIMEOUT) as http:
        upstream = TmdbCatalogClient(http, api_key=tmdb_api_key(), region=settings.region)
        processor = TmdbItemProcessor(
            upstream, region=settings.region, concurrency=settings.enrich_concurrency
        )
        service = build_pagination_service(upstream, processor, settings)
        app.state.pagination_service = service

        if settings.preload_on_startup:
            await service.preload()

        sweeper = StaleCollectionSweeper(service, interval=settings.sweep_interval)
        sweeper_task = asyncio.create_task(sweeper.run_forever(), name="stale-sweeper")
        logger.info("Pagination engine started", extra={"preloaded": settings.preload_on_startup})

        try:
            yield
        finally:
            sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper_task
            await service.drain()
            logger.info("Pagination engine stopped")


def build_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Release Tracker API",
        description="""
        Paginated movie listings backed by a cached, proactively grown view
        of the TMDB catalog.

        ## Features
        - Upcoming movies and recent home releases
        - Stable "load more" pagination: no movie is shown twice
        - Operational endpoints for cache statistics, preloading and cleanup

        ## Error Handling
        All errors return structured JSON responses with error codes.
        See the error response schemas in the API documentation.
        """,
        version="0.1.0",
        docs_url="/docs",  # Swagger UI
        redoc_url="/redoc",  # ReDoc alternative
        openapi_url="/openapi.json",
        lifespan=lifespan if with_lifespan else None,
    )

    # Register global exception handlers
    register_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(movies_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")

    return app


app = build_app()
