"""
Tests for the Unraid GraphQL client.
"""
import json

import httpx
import pytest

from assist.clients.unraid import UnraidClient
from assist.exceptions import APIError


def make_client(handler):
    return UnraidClient(
        "https://tower.local/graphql",
        "unraid-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_query_posts_and_returns_data():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.headers.get("x-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"array": {"state": "STARTED"}}})

    data = await make_client(handler).query("{ array { state } }")

    assert data == {"array": {"state": "STARTED"}}
    assert seen["key"] == "unraid-key"
    assert seen["body"] == {"query": "{ array { state } }"}


@pytest.mark.asyncio
async def test_graphql_errors_are_joined():
    payload = {"errors": [{"message": "forbidden"}, {"message": "bad field"}]}
    client = make_client(lambda r: httpx.Response(200, json=payload))

    with pytest.raises(APIError) as excinfo:
        await client.query("{ x }")

    assert str(excinfo.value) == "GraphQL error: forbidden; bad field"


@pytest.mark.asyncio
async def test_missing_data_raises():
    client = make_client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(APIError, match="No data in response"):
        await client.query("{ x }")


@pytest.mark.asyncio
async def test_http_status_error_raises():
    client = make_client(lambda r: httpx.Response(500, text="oops"))
    with pytest.raises(APIError, match=r"API error \(500\)"):
        await client.query("{ x }")
