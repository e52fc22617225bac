"""Pagination response schemas for cursor-based pagination.

Two shapes are provided over the same cursors:

1. Relay-style ``Connection`` with edges, page info and a total count.
2. REST-style ``CursorPage`` with items, next/previous cursors and ``has_more``.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageInfo(BaseModel):
    """Navigation metadata in the GraphQL Relay connection shape.

    Attributes:
        has_previous_page: A cursor was supplied, so rows may exist behind it
        has_next_page: The over-fetch returned more rows than the page size
        start_cursor: Cursor of the first edge in this page
        end_cursor: Cursor of the last edge in this page
    """

    has_previous_page: bool = Field(description="Whether previous items exist")
    has_next_page: bool = Field(description="Whether more items exist")
    start_cursor: str | None = Field(default=None, description="Cursor of the first item")
    end_cursor: str | None = Field(default=None, description="Cursor of the last item")


class Edge(BaseModel, Generic[T]):
    """A node together with the cursor pointing at it."""

    node: T = Field(description="The data item")
    cursor: str = Field(description="Cursor for this item")


class Connection(BaseModel, Generic[T]):
    """Fully resolved page of a keyset-paginated query.

    Client navigation:
        # First page
        GET /posts?first=10

        # Next page (using end_cursor from previous response)
        GET /posts?first=10&after=WyIyMDI1LTAx...

        # Previous page (using start_cursor)
        GET /posts?last=10&before=WyIyMDI1LTAx...
    """

    edges: list[Edge[T]] = Field(
        default_factory=list,
        description="List of edges (items with cursors)",
    )
    page_info: PageInfo = Field(description="Pagination metadata")
    total_count: int | None = Field(
        default=None,
        description="Rows matching the filter, ignoring the cursor",
    )

    @property
    def nodes(self) -> list[T]:
        """Get just the nodes without edge wrappers."""
        return [edge.node for edge in self.edges]

    def to_cursor_page(self) -> CursorPage[T]:
        """Convert to simple REST-style pagination."""
        return CursorPage(
            items=self.nodes,
            next_cursor=self.page_info.end_cursor if self.page_info.has_next_page else None,
            prev_cursor=self.page_info.start_cursor if self.page_info.has_previous_page else None,
            has_more=self.page_info.has_next_page,
            total_count=self.total_count,
        )


class CursorPage(BaseModel, Generic[T]):
    """Simple REST-style cursor pagination response.

    Attributes:
        items: List of data items
        next_cursor: Cursor for the next page (None if no more)
        prev_cursor: Cursor for the previous page (None if at start)
        has_more: Whether more items exist after this page
        total_count: Total count (optional)
    """

    items: list[T] = Field(default_factory=list, description="List of items")
    next_cursor: str | None = Field(default=None, description="Cursor to fetch next page")
    prev_cursor: str | None = Field(default=None, description="Cursor to fetch previous page")
    has_more: bool = Field(default=False, description="Whether more items exist")
    total_count: int | None = Field(default=None, description="Total count (optional)")


__all__ = [
    "Connection",
    "CursorPage",
    "Edge",
    "PageInfo",
]
