"""Tests for the run.py command line entry point."""

import os
from unittest.mock import patch

import requests

import run
from catalog_engine.catalog_service import CatalogService
from catalog_engine.page_fetcher import PageFetcher

_ENV = {
    "SHOPIFY_STORE_DOMAIN": "example.myshopify.com",
    "SHOPIFY_STOREFRONT_TOKEN": "public-token",
}


def _service(client):
    with patch.dict(os.environ, _ENV, clear=True):
        return CatalogService(env_file="/nonexistent/.env", fetcher=PageFetcher(client))


def test_params_from_args():
    args = run.build_parser().parse_args(
        ["--collection", "shoes", "--price", "500-1000", "--tag", "summer", "--tag", "linen",
         "--sort", "price-asc", "--first", "6"]
    )
    assert args.collection == "shoes"
    assert run.params_from_args(args) == {
        "tag": ["summer", "linen"],
        "priceRange": "500-1000",
        "sort": "price-asc",
        "first": 6,
    }


def test_params_from_args_defaults():
    args = run.build_parser().parse_args([])
    assert run.params_from_args(args) == {"tag": []}
    assert args.collection is None
    assert not args.all


def test_run_listing_single_page(mock_client, root_data):
    mock_client.execute_graphql.return_value = root_data
    args = run.build_parser().parse_args(["--q", "linen"])

    results = run.run_listing(_service(mock_client), args)

    assert results["success"] is True
    assert results["request"]["scope"] == "root"
    assert results["request"]["q"] == "linen"
    assert results["summary"]["products"] == 2
    assert results["summary"]["has_next_page"] is True
    assert results["summary"]["tags"] == ["bags", "linen", "summer"]
    assert len(results["connection"]["edges"]) == 2


def test_run_listing_reports_failure(mock_client):
    mock_client.execute_graphql.side_effect = requests.ConnectionError("down")
    args = run.build_parser().parse_args([])

    results = run.run_listing(_service(mock_client), args)

    assert results["success"] is False
    assert results["error"].startswith("transport:")
    assert results["summary"]["products"] == 0


def test_run_listing_all_pages(mock_client, root_data):
    second = {
        "products": {
            "edges": [{"cursor": "c3", "node": {"id": "gid://shopify/Product/3", "tags": []}}],
            "pageInfo": {"hasNextPage": False, "endCursor": "c3"},
        }
    }
    mock_client.execute_graphql.side_effect = [root_data, second]
    args = run.build_parser().parse_args(["--all"])

    results = run.run_listing(_service(mock_client), args)

    assert results["success"] is True
    assert results["list_state"] == "exhausted"
    assert results["summary"]["products"] == 3
    assert results["summary"]["has_next_page"] is False


def test_print_summary(capsys):
    run.print_summary({"success": False, "summary": {"products": 0}, "error": "transport: down"})
    out = capsys.readouterr().out
    assert "Status: FAILED" in out
    assert "Error: transport: down" in out
