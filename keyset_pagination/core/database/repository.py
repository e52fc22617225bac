"""Cursor-paginated repository for SQLAlchemy models.

Composes the pagination engine with the SQLAlchemy query collaborator for
one model. Session passing is explicit, as everywhere else:

    from keyset_pagination.core.database import CursorRepository
    from keyset_pagination.core.pagination import PageRequest, SortKeyRegistry, TimestampValue

    posts = CursorRepository(
        Post,
        SortKeyRegistry(
            {
                "newest": [("created_at", "desc", True, TimestampValue()), ("id", "desc", True)],
                "title": [("title", "asc", True), ("id", "asc", True)],
            },
            default="newest",
        ),
    )

    connection = await posts.get_connection(
        session,
        PageRequest.forward(first=20, after=cursor, filter=lambda s: s.where(Post.published)),
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from keyset_pagination.core.database.query import SqlAlchemyPageQuery
from keyset_pagination.core.pagination.connection import CursorPaginator
from keyset_pagination.core.settings import get_pagination_settings
from keyset_pagination.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from keyset_pagination.core.pagination.connection import LazyConnection, PageRequest, PageResult
    from keyset_pagination.core.pagination.protocol import FilterCallback
    from keyset_pagination.core.pagination.schemas import Connection
    from keyset_pagination.core.pagination.sort_keys import SortKeyRegistry
    from keyset_pagination.core.settings.pagination import PaginationSettings


class CursorRepository[T]:
    """Keyset pagination for one mapped model.

    Provides:
        - get_page(session, request) -> PageResult
        - get_lazy_connection(session, request) -> LazyConnection
        - get_connection(session, request) -> Connection[T]
        - count(session, filter) -> int

    Args:
        model: SQLAlchemy model class (e.g., Post)
        registry: Sort keys available for the model
        settings: Page size defaults (environment when omitted)
        id_column: Primary identifier used for counting
        no_result_error: Factory for the error raised when a count returns no row
    """

    __slots__ = (
        "_lazy",
        "_logger",
        "_no_result_error",
        "id_column",
        "model",
        "registry",
        "settings",
    )

    def __init__(
        self,
        model: type[T],
        registry: SortKeyRegistry,
        *,
        settings: PaginationSettings | None = None,
        id_column: str = "id",
        no_result_error: Callable[[], Exception] | None = None,
    ) -> None:
        self.model = model
        self.registry = registry
        self.settings = settings or get_pagination_settings()
        self.id_column = id_column
        self._no_result_error = no_result_error
        # Standard logger for INFO/WARNING/ERROR
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        # Lazy logger for DEBUG (zero overhead when DEBUG disabled)
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    def query(self, session: AsyncSession) -> SqlAlchemyPageQuery:
        """Fresh query collaborator bound to ``session``."""
        return SqlAlchemyPageQuery(
            session,
            self.model,
            id_column=self.id_column,
            no_result_error=self._no_result_error,
        )

    def paginator(self, session: AsyncSession) -> CursorPaginator:
        return CursorPaginator(
            self.registry,
            lambda: self.query(session),
            settings=self.settings,
        )

    async def get_page(self, session: AsyncSession, request: PageRequest) -> PageResult:
        """Fetch one page of rows plus the over-fetch ``has_more`` flag."""
        return await self.paginator(session).get_page(request)

    def get_lazy_connection(self, session: AsyncSession, request: PageRequest) -> LazyConnection:
        """Validate ``request`` and return a connection that queries on first read."""
        return self.paginator(session).get_lazy_connection(request)

    async def get_connection(
        self,
        session: AsyncSession,
        request: PageRequest,
        *,
        include_total: bool | None = None,
    ) -> Connection[T]:
        """Resolve edges, page info and (optionally) the total count.

        Example:
            result = await posts.get_connection(session, PageRequest.forward(first=50))
            for edge in result.edges:
                print(edge.node, edge.cursor)
            if result.page_info.has_next_page:
                next_cursor = result.page_info.end_cursor
        """
        connection: Connection[Any] = await self.paginator(session).get_connection(
            request, include_total=include_total
        )
        self._lazy.debug(
            lambda: (
                f"db.get_connection: {self.model.__name__}"
                f"(sort_key={request.sort_key or self.registry.default}) "
                f"-> {len(connection.edges)} items, has_next={connection.page_info.has_next_page}, "
                f"total={connection.total_count}"
            )
        )
        return connection

    async def count(
        self,
        session: AsyncSession,
        filter: FilterCallback | None = None,  # noqa: A002
    ) -> int:
        """Count rows matching ``filter``."""
        total = await self.paginator(session).count(filter)
        self._logger.info(
            "Count executed",
            extra={"entity": self.model.__name__, "count": total, "operation": "db.count"},
        )
        return total


__all__ = ["CursorRepository"]
