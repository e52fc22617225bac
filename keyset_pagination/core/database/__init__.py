"""SQLAlchemy backend for the pagination engine."""

from keyset_pagination.core.database.exceptions import (
    InvalidFilterError,
    NotFoundError,
    RepositoryError,
)
from keyset_pagination.core.database.query import CAST_TYPES, SqlAlchemyPageQuery
from keyset_pagination.core.database.repository import CursorRepository

__all__ = [
    "CAST_TYPES",
    "CursorRepository",
    "InvalidFilterError",
    "NotFoundError",
    "RepositoryError",
    "SqlAlchemyPageQuery",
]
