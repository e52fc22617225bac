"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: isolated pagination settings
    - Backend Fixtures: in-memory page query collaborator with call counters
    - Database Fixtures: async SQLAlchemy engine on in-memory SQLite
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Self

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from keyset_pagination.core.pagination.expressions import (
    And,
    Cast,
    ColumnExpression,
    Compare,
    ComparisonOperator,
    Or,
    OrderTerm,
    Predicate,
    SortDirection,
    TruncateTimestamp,
    column_of,
)
from keyset_pagination.core.settings import PaginationSettings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Keep settings deterministic regardless of the developer's environment
os.environ.setdefault("PAGINATION_DEFAULT_LIMIT", "10")
os.environ.setdefault("PAGINATION_MAX_LIMIT", "100")
os.environ.setdefault("LOG_JSON", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def pagination_settings() -> PaginationSettings:
    """Pagination settings independent of environment variables."""
    return PaginationSettings(default_limit=10, max_limit=100, include_total_count=True)


# ============================================================================
# Backend Fixtures
# ============================================================================


def _truncate(value: Any, precision: str) -> Any:
    if not isinstance(value, datetime):
        return value
    if precision == "seconds":
        return value.replace(microsecond=0)
    if precision == "milliseconds":
        return value.replace(microsecond=value.microsecond // 1000 * 1000)
    return value


def _evaluate_expression(expression: ColumnExpression, row: dict[str, Any]) -> Any:
    value = row[column_of(expression).name]
    if isinstance(expression, TruncateTimestamp):
        return _truncate(value, expression.precision)
    if isinstance(expression, Cast) and expression.type_name == "text":
        return str(value)
    return value


def _evaluate(predicate: Predicate, row: dict[str, Any]) -> bool:
    if isinstance(predicate, And):
        return all(_evaluate(operand, row) for operand in predicate.operands)
    if isinstance(predicate, Or):
        return any(_evaluate(operand, row) for operand in predicate.operands)

    assert isinstance(predicate, Compare)
    left = _evaluate_expression(predicate.expression, row)
    right = predicate.value
    if isinstance(predicate.expression, TruncateTimestamp):
        right = _truncate(right, predicate.expression.precision)
    if predicate.operator is ComparisonOperator.GT:
        return left > right
    if predicate.operator is ComparisonOperator.LT:
        return left < right
    return left == right


class InMemoryBackend:
    """List of dict rows served through ``InMemoryPageQuery`` objects.

    Counts page and count executions so tests can assert memoization.
    """

    def __init__(self, rows: Sequence[dict[str, Any]]) -> None:
        self.rows = list(rows)
        self.page_queries = 0
        self.count_queries = 0
        self.issued: list[InMemoryPageQuery] = []

    def query(self) -> InMemoryPageQuery:
        query = InMemoryPageQuery(self)
        self.issued.append(query)
        return query


class InMemoryPageQuery:
    """``PageQuery`` over Python lists; the filter callback receives the row list."""

    def __init__(self, backend: InMemoryBackend) -> None:
        self.backend = backend
        self.rows = list(backend.rows)
        self.predicate: Predicate | None = None
        self.order_by: tuple[OrderTerm, ...] = ()
        self.limit: int | None = None

    def apply_filter(self, callback: Callable[[Any], Any] | None) -> Self:
        if callback is not None:
            self.rows = list(callback(self.rows))
        return self

    def apply_where(self, predicate: Predicate) -> Self:
        self.predicate = predicate
        self.rows = [row for row in self.rows if _evaluate(predicate, row)]
        return self

    def apply_order_by(self, order_by: Sequence[OrderTerm]) -> Self:
        self.order_by = tuple(order_by)
        for term in reversed(self.order_by):
            self.rows.sort(
                key=lambda row, term=term: _evaluate_expression(term.expression, row),
                reverse=term.direction is SortDirection.DESC,
            )
        return self

    def apply_limit(self, limit: int) -> Self:
        self.limit = limit
        return self

    async def execute(self) -> list[dict[str, Any]]:
        self.backend.page_queries += 1
        return self.rows if self.limit is None else self.rows[: self.limit]

    async def execute_count(self, callback: Callable[[Any], Any] | None) -> int:
        self.backend.count_queries += 1
        rows = self.backend.rows if callback is None else list(callback(self.backend.rows))
        return len(rows)


@pytest.fixture
def event_rows() -> list[dict[str, Any]]:
    """Fifteen rows; consecutive pairs share ``created_at``.

    Sorted by (created_at, id) the rows are in ``id`` order, so page
    contents can be asserted by id.
    """
    start = datetime(2025, 1, 1, tzinfo=UTC)
    return [
        {
            "id": i,
            "created_at": start + timedelta(minutes=i // 2),
            "kind": "even" if i % 2 == 0 else "odd",
        }
        for i in range(1, 16)
    ]


@pytest.fixture
def memory_backend(event_rows: list[dict[str, Any]]) -> InMemoryBackend:
    """In-memory backend over ``event_rows``."""
    return InMemoryBackend(event_rows)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    try:
        yield engine
    finally:
        await engine.dispose()

