"""Database repository exceptions.

Custom exceptions for repository operations that provide better
error messages and typing than raw SQLAlchemy exceptions. Driver and
SQL errors are never wrapped; they reach the caller unchanged.
"""
from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base exception for repository operations.

    Raised when a repository operation fails due to programming
    errors, configuration issues, or unexpected states.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class NotFoundError(RepositoryError):
    """Query that must return a row returned none.

    Used as the default error of ``SqlAlchemyPageQuery.execute_count``
    when the aggregate produces no row.

    Attributes:
        model_name: Name of the model class that was queried
        identifier: What was searched for
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        self.model_name = model_name
        self.identifier = identifier

        id_str = ", ".join(f"{k}={v!r}" for k, v in identifier.items())
        message = f"{model_name} not found with {id_str}"

        super().__init__(message, details={"model": model_name, **identifier})

    def __repr__(self) -> str:
        return f"NotFoundError(model={self.model_name!r}, identifier={self.identifier!r})"


class InvalidFilterError(RepositoryError):
    """Predicate or ordering cannot be translated for this model or dialect.

    Raised for unknown columns, unknown cast types and timestamp
    truncation on unsupported dialects.
    """

    def __init__(self, message: str, filter_name: str | None = None):
        details = {"filter": filter_name} if filter_name else {}
        super().__init__(message, details=details)


__all__ = [
    "InvalidFilterError",
    "NotFoundError",
    "RepositoryError",
]
