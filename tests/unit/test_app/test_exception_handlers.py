"""Tests for problem-details handling of paginated routes."""

from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from keyset_pagination.app.exception_handlers import (
    app_exception_handler,
    configure_exception_handlers,
)
from keyset_pagination.core.dependencies.pagination import CursorPagination
from keyset_pagination.core.exceptions import AppException
from keyset_pagination.core.pagination import CursorPaginator, SortKeyRegistry, TimestampValue


def _build_request(path: str = "/test") -> Request:
    """Create a minimal ASGI request for handler tests."""
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "headers": [],
        "query_string": b"",
        "client": ("test", 1234),
        "server": ("test", 80),
    }
    return Request(scope, lambda: None)


@pytest.fixture
def app(memory_backend, pagination_settings) -> FastAPI:
    paginator = CursorPaginator(
        SortKeyRegistry(
            {
                "created": [("created_at", "asc", True, TimestampValue()), ("id", "asc", True)],
                "latest": [("created_at", "desc", True, TimestampValue()), ("id", "desc", True)],
            },
            default="created",
        ),
        memory_backend.query,
        settings=pagination_settings,
    )

    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/events")
    async def list_events(page: CursorPagination) -> dict[str, Any]:
        connection = await paginator.get_connection(page)
        return connection.model_dump(mode="json")

    return app


@pytest.fixture
async def client(app) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_app_exception_handler_builds_problem_details() -> None:
    exc = AppException(status_code=400, detail="oops", type="custom", extra={"hint": "retry"})

    response = await app_exception_handler(_build_request(), exc)

    assert response.status_code == 400
    body = json.loads(response.body)
    assert body == {
        "type": "custom",
        "title": "Bad Request",
        "status": 400,
        "detail": "oops",
        "instance": "http://test/test",
        "hint": "retry",
    }


@pytest.mark.asyncio
async def test_app_exception_handler_keeps_explicit_instance() -> None:
    exc = AppException(status_code=404, detail="gone", instance="/events/7")

    response = await app_exception_handler(_build_request(), exc)

    assert json.loads(response.body)["instance"] == "/events/7"


@pytest.mark.asyncio
async def test_first_page(client: AsyncClient) -> None:
    response = await client.get("/events", params={"first": 3})

    assert response.status_code == 200
    body = response.json()
    assert [edge["node"]["id"] for edge in body["edges"]] == [1, 2, 3]
    assert body["page_info"]["has_next_page"] is True
    assert body["page_info"]["has_previous_page"] is False
    assert body["total_count"] == 15


@pytest.mark.asyncio
async def test_next_and_previous_page(client: AsyncClient) -> None:
    first = (await client.get("/events", params={"first": 5})).json()

    second = await client.get(
        "/events", params={"first": 5, "after": first["page_info"]["end_cursor"]}
    )
    body = second.json()
    assert [edge["node"]["id"] for edge in body["edges"]] == [6, 7, 8, 9, 10]

    back = await client.get(
        "/events", params={"last": 5, "before": body["page_info"]["start_cursor"]}
    )
    assert [edge["node"]["id"] for edge in back.json()["edges"]] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_named_sort_key(client: AsyncClient) -> None:
    response = await client.get("/events", params={"first": 2, "sort_key": "latest"})

    assert [edge["node"]["id"] for edge in response.json()["edges"]] == [15, 14]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("params", "problem_type", "extra"),
    [
        ({"first": -1}, "negative-limit", {"limit": -1}),
        ({"first": 101}, "limit-exceeds-max", {"limit": 101, "max_limit": 100}),
        ({"first": 2, "after": "garbage"}, "invalid-cursor", {}),
        ({"first": 2, "sort_key": "rank"}, "sort-key-not-found", {"sort_key": "rank"}),
    ],
)
async def test_invalid_requests_are_problem_details(
    client: AsyncClient, params: dict[str, Any], problem_type: str, extra: dict[str, Any]
) -> None:
    response = await client.get("/events", params=params)

    assert response.status_code == 400
    body = response.json()
    assert body["type"] == problem_type
    assert body["title"] == "Bad Request"
    assert body["status"] == 400
    assert body["instance"].startswith("http://test/events?")
    for key, value in extra.items():
        assert body[key] == value


@pytest.mark.asyncio
async def test_non_integer_limit_is_validation_error(client: AsyncClient) -> None:
    response = await client.get("/events", params={"first": "ten"})

    assert response.status_code == 422
