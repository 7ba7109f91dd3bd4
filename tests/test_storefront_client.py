"""Tests for catalog_engine.storefront_client."""

from unittest.mock import MagicMock

import pytest
import requests

from catalog_engine.exceptions import StorefrontAPIError
from catalog_engine.storefront_client import StorefrontClient


def _client(json_body=None, status_error=None):
    session = MagicMock()
    session.headers = {}
    response = MagicMock()
    response.json.return_value = json_body
    if status_error:
        response.raise_for_status.side_effect = status_error
    session.post.return_value = response
    client = StorefrontClient("https://example.myshopify.com/", "public-token", api_version="2025-01", session=session)
    return client, session


def test_endpoint_and_headers():
    client, session = _client({"data": {}})
    assert client.endpoint == "https://example.myshopify.com/api/2025-01/graphql.json"
    assert session.headers["X-Shopify-Storefront-Access-Token"] == "public-token"
    assert session.headers["Content-Type"] == "application/json"


def test_execute_graphql_returns_data():
    client, session = _client({"data": {"products": {"edges": []}}})

    data = client.execute_graphql("query Q { shop { name } }", {"first": 12})

    assert data == {"products": {"edges": []}}
    session.post.assert_called_once_with(
        client.endpoint,
        json={"query": "query Q { shop { name } }", "variables": {"first": 12}},
        timeout=30,
    )


def test_execute_graphql_without_variables():
    client, session = _client({"data": {}})
    client.execute_graphql("query Q { shop { name } }")
    assert session.post.call_args.kwargs["json"] == {"query": "query Q { shop { name } }"}


def test_graphql_errors_raise():
    client, _ = _client({"errors": [{"message": "Field 'x' doesn't exist"}, {"message": "Bad"}]})
    with pytest.raises(StorefrontAPIError) as exc_info:
        client.execute_graphql("query Q { x }")
    assert str(exc_info.value) == "GraphQL errors: Field 'x' doesn't exist; Bad"
    assert len(exc_info.value.errors) == 2


def test_http_error_propagates():
    client, _ = _client(status_error=requests.HTTPError("401 Unauthorized"))
    with pytest.raises(requests.HTTPError):
        client.execute_graphql("query Q { x }")


def test_non_object_body_raises_value_error():
    client, _ = _client(["unexpected"])
    with pytest.raises(ValueError):
        client.execute_graphql("query Q { x }")


def test_default_session_has_retrying_adapter():
    client = StorefrontClient("example.myshopify.com", "token", max_retries=5)
    adapter = client._session.get_adapter("https://example.myshopify.com")
    assert adapter.max_retries.total == 5
    assert 429 in adapter.max_retries.status_forcelist


def test_non_object_data_raises_value_error():
    client, _ = _client({"data": ["x"]})
    with pytest.raises(ValueError):
        client.execute_graphql("query Q { x }")


def test_null_data_is_empty():
    client, _ = _client({"data": None})
    assert client.execute_graphql("query Q { x }") == {}
