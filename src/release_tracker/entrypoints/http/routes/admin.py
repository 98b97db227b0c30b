from typing import Annotated

from fastapi import APIRouter, Depends, Query

from release_tracker.domain.movie import CacheKey, CollectionKind
from release_tracker.entrypoints.http.dependencies import get_pagination_service
from release_tracker.entrypoints.http.error_responses import ERROR_RESPONSES
from release_tracker.entrypoints.http.dtos.pagination_admin import (
    CacheStatsResponseDTO,
    CleanupResponseDTO,
    PreloadResponseDTO,
    WarmQueryDTO,
    WarmResponseDTO,
)
from release_tracker.entrypoints.http.mappers.pagination_admin_mapper import (
    PaginationAdminMapper,
)
from release_tracker.use_cases.pagination_service import PaginationService


router = APIRouter(
    prefix="/admin/pagination", tags=["Pagination admin"], responses=ERROR_RESPONSES
)


@router.get(
    "/stats",
    response_model=CacheStatsResponseDTO,
    summary="Collection cache statistics",
)
def get_stats(
    service: PaginationService = Depends(get_pagination_service),
) -> CacheStatsResponseDTO:
    return PaginationAdminMapper.to_stats_response(service.stats())


@router.post(
    "/preload",
    response_model=PreloadResponseDTO,
    summary="Warm the most requested collections",
    description="""
    Warms the default listings one after another and waits for them.

    Keys that fail to warm are logged and left out of `warmed`.
    """,
)
async def preload(
    service: PaginationService = Depends(get_pagination_service),
) -> PreloadResponseDTO:
    warmed = await service.preload()
    return PreloadResponseDTO(warmed=[str(key) for key in warmed])


@router.post(
    "/cleanup",
    response_model=CleanupResponseDTO,
    summary="Evict stale collections",
)
def cleanup(
    service: PaginationService = Depends(get_pagination_service),
) -> CleanupResponseDTO:
    return PaginationAdminMapper.to_cleanup_response(service.evict_stale())


@router.post(
    "/warm/{kind}",
    response_model=WarmResponseDTO,
    summary="Rebuild one collection now",
)
async def warm(
    kind: CollectionKind,
    query: Annotated[WarmQueryDTO, Query()],
    service: PaginationService = Depends(get_pagination_service),
) -> WarmResponseDTO:
    cache_key = CacheKey.for_genre(kind, query.sort, query.genre)
    stats = await service.force_warm(cache_key)
    return WarmResponseDTO(
        cache_key=str(cache_key),
        stats=PaginationAdminMapper.to_collection_stats(stats),
    )
