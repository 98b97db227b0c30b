from __future__ import annotations

from release_tracker.entrypoints.http.dtos.pagination_admin import (
    CacheStatsResponseDTO,
    CleanupResponseDTO,
    CollectionStatsDTO,
)
from release_tracker.use_cases.pagination_service import (
    CacheStats,
    CollectionStats,
    EvictionReport,
)


class PaginationAdminMapper:
    @staticmethod
    def to_collection_stats(stats: CollectionStats) -> CollectionStatsDTO:
        return CollectionStatsDTO(
            size=stats.size,
            age_seconds=round(stats.age_seconds, 3),
            fresh=stats.fresh,
            pages_fetched=stats.pages_fetched,
            exhausted=stats.exhausted,
            expansion_level=stats.expansion_level,
            refresh_in_flight=stats.refresh_in_flight,
            expansion_in_flight=stats.expansion_in_flight,
        )

    @staticmethod
    def to_stats_response(stats: CacheStats) -> CacheStatsResponseDTO:
        return CacheStatsResponseDTO(
            collections=stats.collections,
            total_items=stats.total_items,
            per_key={
                key: PaginationAdminMapper.to_collection_stats(entry)
                for key, entry in stats.per_key.items()
            },
        )

    @staticmethod
    def to_cleanup_response(report: EvictionReport) -> CleanupResponseDTO:
        return CleanupResponseDTO(
            collections_evicted=report.collections_evicted,
            expansions_reset=report.expansions_reset,
        )
