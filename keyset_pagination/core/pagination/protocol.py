"""Interface the pagination engine expects from a query backend.

Uses structural subtyping, so any object with these methods can serve
pages: the SQLAlchemy implementation in
``keyset_pagination.core.database.query``, or an in-memory stub in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, Self

from keyset_pagination.core.pagination.expressions import OrderTerm, Predicate

FilterCallback = Callable[[Any], Any]
"""Caller-supplied hook receiving the backend statement and returning a narrowed one."""


class PageQuery(Protocol):
    """One-shot query builder used for a single page or count.

    The engine asks a factory for a fresh ``PageQuery`` per execution and
    calls the ``apply_*`` methods in order: filter, where, order by, limit.
    """

    def apply_filter(self, callback: FilterCallback | None) -> Self:
        """Narrow the query with a caller-supplied callback (no-op when None)."""
        ...

    def apply_where(self, predicate: Predicate) -> Self:
        """Add the seek predicate."""
        ...

    def apply_order_by(self, order_by: Sequence[OrderTerm]) -> Self:
        """Set the literal ordering."""
        ...

    def apply_limit(self, limit: int) -> Self:
        ...

    async def execute(self) -> Sequence[Any]:
        """Run the query and return rows in query order."""
        ...

    async def execute_count(self, callback: FilterCallback | None) -> int:
        """Count rows matching ``callback`` by primary identifier."""
        ...


PageQueryFactory = Callable[[], PageQuery]


__all__ = ["FilterCallback", "PageQuery", "PageQueryFactory"]
