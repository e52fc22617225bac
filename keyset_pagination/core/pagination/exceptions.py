"""Errors raised while validating a page request.

Every error here is raised before any query is built, so a failed
validation never leaves a half-executed page behind. They map to HTTP 400
through the generic ``AppException`` handler.
"""

from __future__ import annotations

from typing import Any

from keyset_pagination.core.exceptions import BadRequestException


class SortKeyConfigError(ValueError):
    """Sort key registry was declared incorrectly.

    Raised at setup time, never in response to a request.
    """


class PaginationError(BadRequestException):
    """Base class for page request validation errors."""

    def __init__(self, detail: str, type: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail=detail, type=type, extra=extra)


class SortKeyUndefinedError(PaginationError):
    """No sort key was requested and the registry has no default."""

    def __init__(self) -> None:
        super().__init__("Sort key is not defined", type="sort-key-undefined")


class SortKeyNotFoundError(PaginationError):
    """Requested sort key is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Sort key {name} is not defined",
            type="sort-key-not-found",
            extra={"sort_key": name},
        )


class InvalidCursorError(PaginationError):
    """Cursor token is malformed or does not fit the sort key."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Invalid cursor: {reason}",
            type="invalid-cursor",
            extra={"reason": reason},
        )


class NegativeLimitError(PaginationError):
    """Requested page size is below zero."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            "Limit must be positive",
            type="negative-limit",
            extra={"limit": limit},
        )


class LimitExceedsMaxError(PaginationError):
    """Requested page size is above the configured maximum."""

    def __init__(self, limit: int, max_limit: int) -> None:
        self.limit = limit
        self.max_limit = max_limit
        super().__init__(
            f"Limit {limit} is greater than max {max_limit}",
            type="limit-exceeds-max",
            extra={"limit": limit, "max_limit": max_limit},
        )


__all__ = [
    "InvalidCursorError",
    "LimitExceedsMaxError",
    "NegativeLimitError",
    "PaginationError",
    "SortKeyConfigError",
    "SortKeyNotFoundError",
    "SortKeyUndefinedError",
]
