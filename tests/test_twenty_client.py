import json

import httpx
import pytest

from twenty_connector.core.errors import ConfigurationError, InvalidUuidError
from twenty_connector.services.twenty_client import GraphQLError, TwentyClient, TwentyClientError


pytestmark = pytest.mark.anyio

VALID_ID = "123e4567-e89b-12d3-a456-426614174000"


def _client(handler) -> TwentyClient:
    return TwentyClient("crm.example.com/", "secret-key", transport=httpx.MockTransport(handler))


def test_client_requires_credentials():
    with pytest.raises(ConfigurationError):
        TwentyClient("", "key")
    with pytest.raises(ConfigurationError):
        TwentyClient("crm.example.com", "")


def test_client_normalizes_domain():
    client = TwentyClient("crm.example.com/", "key")
    assert client.base_url == "https://crm.example.com"


async def test_graphql_sends_bearer_token_and_returns_data():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"people": {"edges": []}}})

    async with _client(handler) as client:
        data = await client.graphql("query FindPeople { people { edges { node { id } } } }", {"first": 1})

    assert data == {"people": {"edges": []}}
    assert seen["auth"] == "Bearer secret-key"
    assert seen["url"] == "https://crm.example.com/graphql"
    assert seen["body"]["variables"] == {"first": 1}


async def test_graphql_errors_on_http_200_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": None, "errors": [{"message": "Field not found"}]})

    async with _client(handler) as client:
        with pytest.raises(GraphQLError) as exc_info:
            await client.graphql("query X { x }")

    assert str(exc_info.value) == "GraphQL Error: Field not found"
    assert exc_info.value.errors == [{"message": "Field not found"}]


async def test_http_error_status_carries_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Invalid token"})

    async with _client(handler) as client:
        with pytest.raises(TwentyClientError) as exc_info:
            await client.graphql("query X { x }")

    assert exc_info.value.status_code == 401
    assert "Invalid token" in str(exc_info.value)


async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TwentyClientError):
            await client.graphql("query X { x }")


async def test_rest_rejects_invalid_path_uuid_without_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    async with _client(handler) as client:
        with pytest.raises(InvalidUuidError):
            await client.rest("GET", "companies", "company-1")
        with pytest.raises(InvalidUuidError):
            await client.rest("GET", "companies/123e4567-e89b-62d3-a456-426614174000")

    assert calls == []


async def test_rest_post_generates_id_and_sends_filter():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["filter"] = request.url.params.get("filter")
        seen["body"] = json.loads(request.content) if request.content else None
        return httpx.Response(200, json={"data": {"ok": True}})

    async with _client(handler) as client:
        await client.rest("POST", "companies", body={"name": "Acme", "employees": None})
        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/companies"
        assert set(seen["body"]) == {"id", "name"}

        await client.rest("GET", "companies", filter='name[ilike]:"%acme%"')
        assert seen["filter"] == 'name[ilike]:"%acme%"'

        await client.rest("DELETE", "companies", VALID_ID)
        assert seen["path"] == f"/rest/companies/{VALID_ID}"


async def test_metadata_path():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(200, json={"data": {"fields": []}})

    async with _client(handler) as client:
        body = await client.metadata("fields", filter='object.nameSingular[eq]:"person"')

    assert seen["path"] == "/rest/metadata/fields"
    assert body == {"data": {"fields": []}}


async def test_health_check_reports_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    async with _client(handler) as client:
        assert await client.health_check() is False
