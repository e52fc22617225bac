"""Cursor-based (keyset) pagination.

Pages are selected by seeking past the sort-key values of a boundary row
instead of scanning an OFFSET, which keeps pages stable while rows are
inserted or deleted and lets the database use its indexes.

    registry = SortKeyRegistry(
        {"newest": [("created_at", "desc", True, TimestampValue()), ("id", "desc", True)]},
        default="newest",
    )
    paginator = CursorPaginator(registry, query_factory)
    connection = await paginator.get_connection(PageRequest.forward(first=10))

Cursors are opaque base64 strings that clients pass back unchanged.
"""

from keyset_pagination.core.pagination.comparison import ComparisonTreeBuilder, SeekPlan
from keyset_pagination.core.pagination.connection import (
    CursorPaginator,
    LazyConnection,
    LazyPageInfo,
    PagePlan,
    PageRequest,
    PageResult,
)
from keyset_pagination.core.pagination.cursor import CursorCodec
from keyset_pagination.core.pagination.exceptions import (
    InvalidCursorError,
    LimitExceedsMaxError,
    NegativeLimitError,
    PaginationError,
    SortKeyConfigError,
    SortKeyNotFoundError,
    SortKeyUndefinedError,
)
from keyset_pagination.core.pagination.expressions import (
    And,
    Cast,
    Column,
    Compare,
    ComparisonOperator,
    Or,
    OrderTerm,
    SortDirection,
    TruncateTimestamp,
)
from keyset_pagination.core.pagination.protocol import PageQuery
from keyset_pagination.core.pagination.schemas import Connection, CursorPage, Edge, PageInfo
from keyset_pagination.core.pagination.sort_keys import (
    CastValue,
    ColumnSpec,
    PlainValue,
    SortKeyRegistry,
    SortKeySpec,
    TimestampValue,
)

__all__ = [
    # Predicate tree
    "And",
    "Cast",
    "CastValue",
    "Column",
    "ColumnSpec",
    "Compare",
    "ComparisonOperator",
    "ComparisonTreeBuilder",
    # Schemas
    "Connection",
    "CursorCodec",
    "CursorPage",
    # Engine
    "CursorPaginator",
    "Edge",
    # Errors
    "InvalidCursorError",
    "LazyConnection",
    "LazyPageInfo",
    "LimitExceedsMaxError",
    "NegativeLimitError",
    "Or",
    "OrderTerm",
    "PageInfo",
    "PagePlan",
    "PageQuery",
    "PageRequest",
    "PageResult",
    "PaginationError",
    "PlainValue",
    "SeekPlan",
    "SortDirection",
    "SortKeyConfigError",
    "SortKeyNotFoundError",
    # Sort keys
    "SortKeyRegistry",
    "SortKeySpec",
    "SortKeyUndefinedError",
    "TimestampValue",
    "TruncateTimestamp",
]
