from __future__ import annotations

from release_tracker.domain.movie import CacheKey, CatalogItem, CollectionKind, PageRequest
from release_tracker.domain.collection import PageResult
from release_tracker.entrypoints.http.dtos.movie_page import (
    MoviePageQueryDTO,
    MoviePageResponseDTO,
    MovieResponseDTO,
)


class MoviePageMapper:
    """Maps between REST DTOs and domain models for movie listings."""

    @staticmethod
    def to_exclude_ids(raw: str | None) -> frozenset[int]:
        """
        Parses the comma-separated exclusion list.

        The DTO pattern already guarantees digits only.
        """
        if not raw:
            return frozenset()
        return frozenset(int(part) for part in raw.split(","))

    @staticmethod
    def to_domain_request(kind: CollectionKind, dto: MoviePageQueryDTO) -> PageRequest:
        return PageRequest(
            cache_key=CacheKey.for_genre(kind, dto.sort, dto.genre),
            page=dto.page,
            page_size=dto.page_size,
            exclude_ids=MoviePageMapper.to_exclude_ids(dto.exclude_ids),
        )

    @staticmethod
    def to_movie_response(item: CatalogItem) -> MovieResponseDTO:
        return MovieResponseDTO(
            id=item.id,
            title=item.title,
            poster_path=item.poster_path,
            overview=item.overview,
            genre_ids=list(item.genre_ids),
            release_date=item.release_date,
            streaming_date=item.streaming_date,
            display_date=item.display_date,
            popularity=item.popularity,
            rating=item.rating,
            vote_count=item.vote_count,
            quality_score=item.quality_score,
            can_follow=item.can_follow,
        )

    @staticmethod
    def to_response(result: PageResult) -> MoviePageResponseDTO:
        """
        Converts a domain page to the REST response.

        Args:
            result: Page served by the pagination service

        Returns:
            MoviePageResponseDTO: Movies plus pagination diagnostics
        """
        return MoviePageResponseDTO(
            movies=[MoviePageMapper.to_movie_response(item) for item in result.items],
            has_more=result.has_more,
            total_count=result.total_count,
            collection_size=result.collection_size,
            available_count=result.available_count,
            excluded_count=result.excluded_count,
            page=result.page,
            page_size=result.page_size,
            expansion=result.expansion,
            source=result.source,
        )
