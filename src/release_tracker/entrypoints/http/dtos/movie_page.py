from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from release_tracker.domain.movie import ExpansionType, PageSource, SortStrategy


class MovieResponseDTO(BaseModel):
    id: int
    title: str
    poster_path: str | None
    overview: str
    genre_ids: list[int]
    release_date: date | None
    streaming_date: date | None
    display_date: date | None
    popularity: float | None
    rating: float | None
    vote_count: int
    quality_score: float | None
    can_follow: bool


class MoviePageQueryDTO(BaseModel):
    """Query parameters for loading one page of a movie listing."""

    sort: SortStrategy = Field(
        default=SortStrategy.POPULARITY,
        description="Sort strategy of the listing",
        examples=["popularity"],
    )
    page: int = Field(
        default=1,
        description="Page number (diagnostic; the slice follows exclude_ids)",
        examples=[2],
        ge=1,
    )
    page_size: int = Field(
        default=20,
        description="Number of movies to return",
        examples=[20],
        ge=1,
        le=100,
    )
    exclude_ids: str | None = Field(
        default=None,
        description="Comma-separated ids the client has already rendered",
        examples=["550,680,13"],
        pattern=r"^\d+(,\d+)*$",
    )
    genre: str | None = Field(
        default=None,
        description="Genre id, or 'all'",
        examples=["28"],
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sort": "release_date_asc",
                "page": 2,
                "page_size": 20,
                "exclude_ids": "550,680,13",
                "genre": "all",
            }
        }
    )


class MoviePageResponseDTO(BaseModel):
    movies: list[MovieResponseDTO]
    has_more: bool
    total_count: int
    collection_size: int
    available_count: int
    excluded_count: int
    page: int
    page_size: int
    expansion: ExpansionType
    source: PageSource
