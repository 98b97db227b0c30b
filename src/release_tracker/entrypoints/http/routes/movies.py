from typing import Annotated

from fastapi import APIRouter, Depends, Query

from release_tracker.domain.movie import CollectionKind
from release_tracker.entrypoints.http.dependencies import get_pagination_service
from release_tracker.entrypoints.http.dtos.movie_page import (
    MoviePageQueryDTO,
    MoviePageResponseDTO,
)
from release_tracker.entrypoints.http.mappers.movie_page_mapper import MoviePageMapper
from release_tracker.use_cases.pagination_service import PaginationService


router = APIRouter(tags=["Movies"])


@router.get(
    "/movies/{kind}",
    response_model=MoviePageResponseDTO,
    summary="Load a page of a movie listing",
    description="""
    Returns the next page of upcoming movies or recent home releases.

    ## Load more
    - Send every id already rendered in `exclude_ids`
    - The response holds the next unseen movies, never one the client already has
    - `has_more` is false only once every cached movie was returned

    ## Sorting
    - popularity, rating (quality score), vote_average
    - release_date_asc, release_date_desc, newest

    ## Example
    ```
    GET /v1/movies/upcoming?sort=release_date_asc&page=2&exclude_ids=550,680
    ```
    """,
    responses={
        200: {
            "description": "Successful response",
            "content": {
                "application/json": {
                    "example": {
                        "movies": [
                            {
                                "id": 550,
                                "title": "Fight Club",
                                "poster_path": "/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg",
                                "overview": "A ticking-time-bomb insomniac...",
                                "genre_ids": [18],
                                "release_date": "2026-11-20",
                                "streaming_date": None,
                                "display_date": "2026-11-20",
                                "popularity": 61.4,
                                "rating": 8.4,
                                "vote_count": 2300,
                                "quality_score": 34.7,
                                "can_follow": True,
                            }
                        ],
                        "has_more": True,
                        "total_count": 100,
                        "collection_size": 100,
                        "available_count": 80,
                        "excluded_count": 20,
                        "page": 2,
                        "page_size": 20,
                        "expansion": "none",
                        "source": "cache",
                    }
                }
            },
        },
        422: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Validation failed",
                        "code": "VALIDATION_ERROR",
                        "errors": [
                            {
                                "field": "genre",
                                "message": "Must be 'all' or a numeric genre id",
                                "code": "INVALID_GENRE",
                            }
                        ],
                    }
                }
            },
        },
        503: {
            "description": "Collection is cold and upstream is unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Collection 'upcoming_popularity_all' is temporarily unavailable",
                        "code": "COLLECTION_UNAVAILABLE",
                    }
                }
            },
        },
    },
)
async def get_movies(
    kind: CollectionKind,
    query: Annotated[MoviePageQueryDTO, Query()],
    service: PaginationService = Depends(get_pagination_service),
) -> MoviePageResponseDTO:
    """Movie listing endpoint following parse → execute → map → return pattern."""
    # 1. Map to domain request
    request = MoviePageMapper.to_domain_request(kind, query)

    # 2. Execute use case
    result = await service.get_page(request)

    # 3. Map to response
    return MoviePageMapper.to_response(result)
