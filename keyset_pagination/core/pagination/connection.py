"""Page assembly: request validation, over-fetch, edges and lazy connections.

``CursorPaginator`` ties the pieces together for one table:

    paginator = CursorPaginator(registry, query_factory)

    # Rows plus has_more, one query
    page = await paginator.get_page(PageRequest.forward(first=10, sort_key="newest"))

    # Relay connection, each field loaded on demand
    connection = paginator.get_lazy_connection(PageRequest.backward(last=10, before=cursor))
    edges = await connection.edges()
    has_next = await connection.page_info.has_next_page()  # reuses the same query
    total = await connection.total_count()                 # separate count query

    # Everything resolved up front
    resolved = await paginator.get_connection(request)

Validation (sort key, limit bounds, cursor shape) happens synchronously in
``plan()``, before a query object is created.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from keyset_pagination.core.pagination.comparison import ComparisonTreeBuilder, SeekPlan
from keyset_pagination.core.pagination.cursor import CursorCodec
from keyset_pagination.core.pagination.exceptions import LimitExceedsMaxError, NegativeLimitError
from keyset_pagination.core.pagination.expressions import render
from keyset_pagination.core.pagination.schemas import Connection, Edge, PageInfo
from keyset_pagination.core.settings import get_pagination_settings
from keyset_pagination.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from keyset_pagination.core.pagination.protocol import FilterCallback, PageQueryFactory
    from keyset_pagination.core.pagination.sort_keys import SortKeyRegistry, SortKeySpec
    from keyset_pagination.core.settings.pagination import PaginationSettings

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Parameters of one page.

    Forward pages use ``first``/``after``; backward pages use
    ``last``/``before``. Setting either ``last`` or ``before`` makes the
    request backward.

    Attributes:
        sort_key: Registered sort key name (registry default when None).
        first: Forward page size.
        after: Cursor to page forward from.
        last: Backward page size.
        before: Cursor to page backward from.
        filter: Callback narrowing the backend statement.
        one_more: Over-fetch one row to detect further pages.
    """

    sort_key: str | None = None
    first: int | None = None
    after: str | None = None
    last: int | None = None
    before: str | None = None
    filter: FilterCallback | None = None
    one_more: bool = True

    @classmethod
    def forward(
        cls,
        first: int | None = None,
        after: str | None = None,
        *,
        sort_key: str | None = None,
        filter: FilterCallback | None = None,  # noqa: A002
    ) -> PageRequest:
        return cls(sort_key=sort_key, first=first, after=after, filter=filter)

    @classmethod
    def backward(
        cls,
        last: int | None = None,
        before: str | None = None,
        *,
        sort_key: str | None = None,
        filter: FilterCallback | None = None,  # noqa: A002
    ) -> PageRequest:
        return cls(sort_key=sort_key, last=last, before=before, filter=filter)

    @property
    def is_backward(self) -> bool:
        return self.last is not None or self.before is not None

    @property
    def cursor(self) -> str | None:
        return self.before or self.after or None

    @property
    def requested_limit(self) -> int | None:
        return self.first if self.first is not None else self.last


@dataclass(frozen=True, slots=True)
class PagePlan:
    """Validated request, ready to be executed."""

    spec: SortKeySpec
    limit: int
    cursor: str | None
    is_backward: bool
    seek: SeekPlan
    filter: FilterCallback | None
    one_more: bool

    @property
    def fetch_limit(self) -> int:
        return self.limit + (1 if self.one_more else 0)

    @property
    def restores_forward_order(self) -> bool:
        """Backward pages over reversible columns are fetched in reverse order.

        Reversal restores forward order only when every column is reversible.
        With a mixed key, rows that tie on the reversible columns keep the
        direction of the non-reversible ones, so they come out reversed.
        """
        return self.is_backward and self.spec.has_reversible


@dataclass(slots=True)
class PageResult:
    """Rows of one page plus over-fetch outcome."""

    rows: list[Any]
    has_more: bool
    edges: list[Edge[Any]] = field(default_factory=list)


class CursorPaginator:
    """Keyset pagination over one query backend.

    Args:
        registry: Sort keys available for this table.
        query_factory: Returns a fresh ``PageQuery`` per execution.
        settings: Page size defaults; loaded from the environment when omitted.
        default_limit: Overrides ``settings.default_limit``.
        max_limit: Overrides ``settings.max_limit``; ``0`` disables the bound.
    """

    __slots__ = ("default_limit", "include_total", "max_limit", "query_factory", "registry")

    def __init__(
        self,
        registry: SortKeyRegistry,
        query_factory: PageQueryFactory,
        *,
        settings: PaginationSettings | None = None,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ) -> None:
        settings = settings or get_pagination_settings()
        if registry.default is None and settings.default_sort_key:
            registry = registry.with_default(settings.default_sort_key)
        self.registry = registry
        self.query_factory = query_factory
        self.default_limit = settings.default_limit if default_limit is None else default_limit
        self.max_limit = settings.max_limit if max_limit is None else max_limit
        self.include_total = settings.include_total_count

    def plan(self, request: PageRequest) -> PagePlan:
        """Validate ``request`` and build its seek plan.

        Raises:
            SortKeyUndefinedError: No sort key requested and no default.
            SortKeyNotFoundError: Sort key not registered.
            NegativeLimitError: Page size below zero.
            LimitExceedsMaxError: Page size above ``max_limit``.
            InvalidCursorError: Cursor malformed or of the wrong arity.
        """
        spec = self.registry.resolve(request.sort_key)
        is_backward = request.is_backward

        limit = request.requested_limit
        if limit is None:
            limit = self.default_limit
        if limit < 0:
            raise NegativeLimitError(limit)
        if self.max_limit and limit > self.max_limit:
            raise LimitExceedsMaxError(limit, self.max_limit)

        cursor = request.cursor
        values = CursorCodec.decode(cursor, spec) if cursor else ()
        seek = ComparisonTreeBuilder.build(spec, values, is_backward)

        return PagePlan(
            spec=spec,
            limit=limit,
            cursor=cursor,
            is_backward=is_backward,
            seek=seek,
            filter=request.filter,
            one_more=request.one_more,
        )

    async def get_page(self, request: PageRequest) -> PageResult:
        """Fetch one page with a single over-fetching query."""
        return await self.fetch(self.plan(request))

    async def fetch(self, plan: PagePlan) -> PageResult:
        """Execute an already validated plan."""
        query = self.query_factory().apply_filter(plan.filter)
        if plan.seek.predicate is not None:
            query = query.apply_where(plan.seek.predicate)
        query = query.apply_order_by(plan.seek.order_by).apply_limit(plan.fetch_limit)

        rows = list(await query.execute())
        has_more = len(rows) > plan.limit
        rows = rows[: plan.limit]
        if plan.restores_forward_order:
            rows.reverse()

        edges = [Edge(node=row, cursor=CursorCodec.encode(row, plan.spec)) for row in rows]

        _lazy.debug(
            lambda: (
                f"pagination.fetch: sort_key={plan.spec.name} limit={plan.limit} "
                f"backward={plan.is_backward} "
                f"seek={render(plan.seek.predicate) if plan.seek.predicate else None} "
                f"-> {len(rows)} rows, has_more={has_more}"
            )
        )
        return PageResult(rows=rows, has_more=has_more, edges=edges)

    async def count(self, filter: FilterCallback | None = None) -> int:  # noqa: A002
        """Count rows matching ``filter``; issues a fresh query every call."""
        return await self.query_factory().execute_count(filter)

    def get_lazy_connection(self, request: PageRequest) -> LazyConnection:
        """Validate ``request`` now and defer every query until first read."""
        return LazyConnection(self, self.plan(request))

    async def get_connection(
        self,
        request: PageRequest,
        *,
        include_total: bool | None = None,
    ) -> Connection[Any]:
        """Resolve every field of the connection.

        Args:
            request: Page parameters.
            include_total: Run the count query; ``total_count`` is None otherwise.
                Defaults to ``settings.include_total_count``.
        """
        if include_total is None:
            include_total = self.include_total
        lazy = self.get_lazy_connection(request)
        connection: Connection[Any] = Connection(
            edges=await lazy.edges(),
            page_info=PageInfo(
                has_previous_page=await lazy.page_info.has_previous_page(),
                has_next_page=await lazy.page_info.has_next_page(),
                start_cursor=await lazy.page_info.start_cursor(),
                end_cursor=await lazy.page_info.end_cursor(),
            ),
            total_count=await lazy.total_count() if include_total else None,
        )
        logger.debug(
            "Connection resolved",
            extra={
                "sort_key": lazy.plan.spec.name,
                "edges": len(connection.edges),
                "has_next_page": connection.page_info.has_next_page,
                "operation": "pagination.get_connection",
            },
        )
        return connection


class LazyConnection:
    """Connection whose fields are loaded on first read.

    ``edges``, ``has_next_page``, ``start_cursor`` and ``end_cursor`` share a
    single page query, started at most once per instance even when read
    concurrently. ``total_count`` issues its own query on every call.
    Cancelling one reader leaves the shared query running for the others.
    """

    __slots__ = ("_page", "_paginator", "page_info", "plan")

    def __init__(self, paginator: CursorPaginator, plan: PagePlan) -> None:
        self._paginator = paginator
        self._page: asyncio.Future[PageResult] | None = None
        self.plan = plan
        self.page_info = LazyPageInfo(self)

    async def load(self) -> PageResult:
        if self._page is None:
            self._page = asyncio.ensure_future(self._paginator.fetch(self.plan))
        return await asyncio.shield(self._page)

    async def edges(self) -> list[Edge[Any]]:
        return (await self.load()).edges

    async def total_count(self) -> int:
        return await self._paginator.count(self.plan.filter)


class LazyPageInfo:
    """Page info accessors of a ``LazyConnection``."""

    __slots__ = ("_connection",)

    def __init__(self, connection: LazyConnection) -> None:
        self._connection = connection

    async def has_previous_page(self) -> bool:
        # Any cursor implies rows behind it; not verified with a query.
        return bool(self._connection.plan.cursor)

    async def has_next_page(self) -> bool:
        return (await self._connection.load()).has_more

    async def start_cursor(self) -> str | None:
        edges = await self._connection.edges()
        return edges[0].cursor if edges else None

    async def end_cursor(self) -> str | None:
        edges = await self._connection.edges()
        return edges[-1].cursor if edges else None


__all__ = [
    "CursorPaginator",
    "LazyConnection",
    "LazyPageInfo",
    "PagePlan",
    "PageRequest",
    "PageResult",
]
