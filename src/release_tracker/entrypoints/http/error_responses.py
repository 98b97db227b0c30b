"""REST API error response models.

Every error body has the same shape so clients can branch on ``code``.
"""

from pydantic import BaseModel, ConfigDict


class ErrorDetail(BaseModel):
    """One field-level problem inside a validation error."""

    field: str
    message: str
    code: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "field": "genre",
                "message": "Must be 'all' or a numeric genre id",
                "code": "INVALID_GENRE",
            }
        }
    )


class ErrorResponse(BaseModel):
    """Structured error response.

    Examples:
        Cold collection with upstream down:
            {
                "detail": "Collection 'upcoming_popularity_all' is temporarily unavailable",
                "code": "COLLECTION_UNAVAILABLE"
            }

        Invalid paging:
            {
                "detail": "Validation failed",
                "code": "VALIDATION_ERROR",
                "errors": [{"field": "page_size", "message": "...", "code": "less_than_equal"}]
            }
    """

    detail: str
    code: str | None = None
    errors: list[ErrorDetail] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "detail": "Collection 'upcoming_popularity_all' is temporarily unavailable",
                    "code": "COLLECTION_UNAVAILABLE",
                },
                {"detail": "Upstream answered 500", "code": "UPSTREAM_ERROR"},
                {
                    "detail": "Validation failed",
                    "code": "VALIDATION_ERROR",
                    "errors": [
                        {
                            "field": "genre",
                            "message": "Must be 'all' or a numeric genre id",
                            "code": "INVALID_GENRE",
                        }
                    ],
                },
            ]
        }
    )


ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    422: {"model": ErrorResponse, "description": "Validation error"},
    502: {"model": ErrorResponse, "description": "Upstream catalog failure"},
    503: {"model": ErrorResponse, "description": "Collection unavailable"},
}
