"""Failures of the pagination engine, independent of any transport.

The HTTP layer maps each ``error_code`` to a status; see
``entrypoints/http/exception_handlers.py``.
"""

from typing import Any


class DomainError(Exception):
    """Root of every engine failure.

    ``context`` holds structured details (cache key, page, status) that end up
    in logs and in ``to_dict()``.
    """

    # Stable identifier, also used as the API error code
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "code": self.error_code}
        payload.update(self.context)
        return payload


class ValidationError(DomainError):
    """A request the engine refuses to serve.

    Raised for paging outside the allowed bounds and for filter signatures
    that are neither "all" nor a genre id. Maps to 422.
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
        **context: Any,
    ) -> None:
        """
        Args:
            message: Summary; defaults depend on whether field errors are given
            errors: Per-field problems as ``{"field", "message", "code"}`` dicts
        """
        self.errors: list[dict[str, str]] | None = errors or None
        default = "Validation failed" if self.errors else "Validation error"
        super().__init__(message or default, **context)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "code": self.error_code}
        if self.errors:
            payload["errors"] = self.errors
        payload.update(self.context)
        return payload


class CollectionUnavailableError(DomainError):
    """A cold collection could not be served at all.

    Only raised when a cache miss cannot even complete a quick fetch.
    A page with fewer items than requested is a normal result, not this error.
    Maps to 503.
    """

    error_code: str = "COLLECTION_UNAVAILABLE"

    def __init__(self, cache_key: str, **context: Any) -> None:
        super().__init__(
            f"Collection '{cache_key}' is temporarily unavailable",
            cache_key=cache_key,
            **context,
        )


class UpstreamError(DomainError):
    """The upstream catalog failed to deliver a page or a lookup.

    Adapters translate transport failures into this error. The fetch loop
    counts it against its failure budget. Maps to 502.
    """

    error_code: str = "UPSTREAM_ERROR"

    def __init__(self, message: str, status_code: int | None = None, **context: Any) -> None:
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **context)


class UpstreamRateLimitError(UpstreamError):
    """The upstream catalog answered 429 Too Many Requests."""

    error_code: str = "UPSTREAM_RATE_LIMITED"

    def __init__(self, retry_after: float | None = None, **context: Any) -> None:
        self.retry_after = retry_after
        super().__init__(
            "Upstream rate limit exceeded",
            status_code=429,
            retry_after=retry_after,
            **context,
        )
