"""Cursor pagination dependency for FastAPI routes.

Reads the Relay-style query parameters into a ``PageRequest``. Bounds are
checked by the paginator, so out-of-range values surface as the same
problem-details errors whether they come from HTTP or from code.

Usage:
    from keyset_pagination.core.dependencies.pagination import CursorPagination

    @router.get("/posts", response_model=Connection[PostResponse])
    async def list_posts(page: CursorPagination, session: DbSession) -> Connection[Post]:
        return await post_repo.get_connection(session, page)

    # GET /posts?first=20
    # GET /posts?first=20&after=WyIyMDI1...
    # GET /posts?last=20&before=WyIyMDI1...&sort_key=title
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Query

from keyset_pagination.core.pagination.connection import PageRequest


def get_page_request(
    sort_key: Annotated[
        str | None,
        Query(description="Registered sort key name"),
    ] = None,
    first: Annotated[
        int | None,
        Query(description="Number of items after the cursor"),
    ] = None,
    after: Annotated[
        str | None,
        Query(description="Cursor to page forward from"),
    ] = None,
    last: Annotated[
        int | None,
        Query(description="Number of items before the cursor"),
    ] = None,
    before: Annotated[
        str | None,
        Query(description="Cursor to page backward from"),
    ] = None,
) -> PageRequest:
    """Build a page request from query parameters.

    Returns:
        PageRequest; backward when ``last`` or ``before`` is present.
    """
    return PageRequest(
        sort_key=sort_key,
        first=first,
        after=after,
        last=last,
        before=before,
    )


CursorPagination = Annotated[PageRequest, Depends(get_page_request)]
