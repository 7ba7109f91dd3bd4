#!/usr/bin/env python3
"""
Storefront Catalog Fetcher — Entry Point.

Fetches product listing pages from a Storefront GraphQL API using the same
facet, sort and cursor parameters the storefront UI sends, and saves the
result as timestamped JSON. Useful for checking what a given filter
combination returns without going through the UI.

Steps:
  1. Load configuration from .env and validate it
  2. Build the listing request from the CLI flags
  3. Fetch one page, or walk every page through the incremental list (--all)
  4. Save the Connection and run metadata to a timestamped output directory

Usage:
    python run.py                                   # First page of the global listing
    python run.py --collection shoes --sort price-asc --price 500-1000 --tag summer
    python run.py --q "linen shirt" --all           # Every page of a search
    python run.py --after <cursor>                  # Page after a cursor
    python run.py --collections                     # List collection handles
    python run.py --debug                           # Verbose logging
    python run.py --version                         # Show version
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from catalog_engine import CatalogService, ListState, OutputManager, collect_tags
from catalog_engine.models import PriceRange, SortToken
from catalog_engine.settings import DEFAULT_SETTINGS

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def os_setting(name: str) -> str:
    return os.getenv(name, str(DEFAULT_SETTINGS[name]))


def os_bool(name: str) -> bool:
    return os_setting(name).lower() == "true"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Storefront Catalog Fetcher - Fetch filtered, sorted product pages from a Storefront API"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--collection", "-c", help="Collection handle (omit for the global listing)")
    parser.add_argument("--q", dest="q", help="Free-text search")
    parser.add_argument("--price", choices=[p.value for p in PriceRange], help="Price range bucket")
    parser.add_argument("--tag", action="append", default=[], help="Tag filter (repeatable, any tag matches)")
    parser.add_argument("--sort", choices=[s.value for s in SortToken], help="Sort order")
    parser.add_argument("--after", help="Forward cursor")
    parser.add_argument("--before", help="Backward cursor")
    parser.add_argument("--first", type=int, help="Products per page")
    parser.add_argument("--all", action="store_true", help="Load every page through the incremental list")
    parser.add_argument("--collections", action="store_true", help="List collection handles and exit")
    parser.add_argument("--no-save", action="store_true", help="Do not write JSON output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")
    return parser


def params_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate CLI flags into the UI parameter mapping CatalogService expects."""
    params: Dict[str, Any] = {"tag": list(args.tag)}
    for name, value in (
        ("q", args.q),
        ("priceRange", args.price),
        ("sort", args.sort),
        ("after", args.after),
        ("before", args.before),
        ("first", args.first),
    ):
        if value:
            params[name] = value
    return params


def run_listing(service: CatalogService, args: argparse.Namespace) -> Dict[str, Any]:
    """Fetch the requested listing and return run metadata plus the Connection."""
    request = service.build_request(params_from_args(args), args.collection)
    results: Dict[str, Any] = {
        "started_at": datetime.now(timezone.utc).isoformat(),
        "request": {
            "scope": request.scope.value,
            "collection": request.collection_handle,
            "q": request.filters.free_text,
            "priceRange": request.filters.price_range.value,
            "tags": sorted(request.filters.tags),
            "sort": request.sort,
            "after": request.page_args.after,
            "before": request.page_args.before,
            "first": request.page_args.first,
        },
        "success": False,
    }

    if args.all:
        controller = asyncio.run(service.load_all(request))
        connection = controller.to_connection()
        results["list_state"] = controller.state.value
        results["duplicates_dropped"] = controller.duplicates_dropped
        if controller.state is ListState.ERROR:
            results["error"] = controller.error
    else:
        connection = service.fetch_page(request)
        failure = service.fetcher.last_failure
        if failure is not None:
            results["error"] = f"{failure.kind}: {failure.message}"

    products = connection.nodes()
    results["success"] = "error" not in results
    results["summary"] = {
        "products": len(products),
        "has_next_page": connection.page_info.has_next_page,
        "end_cursor": connection.page_info.end_cursor,
        "tags": collect_tags(products),
    }
    results["completed_at"] = datetime.now(timezone.utc).isoformat()
    results["connection"] = connection.to_dict()
    return results


def print_summary(results: Dict[str, Any]) -> None:
    print(f"\n{'='*60}")
    print("FETCH COMPLETE")
    print("=" * 60)
    print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

    summary = results.get("summary", {})
    if summary:
        print(f"Products: {summary.get('products', 0)}")
        print(f"More pages: {'yes' if summary.get('has_next_page') else 'no'}")
        if summary.get("end_cursor"):
            print(f"Next cursor: {summary['end_cursor']}")
        if summary.get("tags"):
            print(f"Tags: {', '.join(summary['tags'])}")

    if results.get("error"):
        print(f"Error: {results['error']}")


def main():
    """Parse CLI arguments and fetch the listing."""
    args = build_parser().parse_args()

    if args.version:
        print(f"storefront-catalog-engine {VERSION}")
        sys.exit(0)

    service = CatalogService(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        service.debug = True
    logging.basicConfig(
        level=logging.DEBUG if service.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"\n{'='*60}")
    print(f"STOREFRONT CATALOG FETCHER v{VERSION}")
    print("=" * 60)
    print(f"Store: {service.store_domain}")
    print(f"API version: {service.api_version}")

    if not service.validate_config():
        sys.exit(1)

    if args.collections:
        for collection in service.list_collections():
            print(f"  {collection.handle:30} {collection.title}")
        sys.exit(0)

    save_json = not args.no_save and os_bool("SAVE_JSON")
    output_manager = OutputManager(
        os_setting("OUTPUT_DIR"),
        os_setting("STOREFRONT_NAME"),
        int(os_setting("OUTPUT_RETENTION_DAYS")),
    )
    if save_json and output_manager.retention_days > 0:
        deleted = output_manager.cleanup_old_folders()
        if deleted > 0:
            print(f"Cleaned up {deleted} old output folder(s)")

    results = run_listing(service, args)
    print_summary(results)

    if save_json:
        output_manager.create_timestamped_dir()
        page_path = output_manager.write_json("catalog_page.json", results.pop("connection"))
        results_path = output_manager.write_json("run_results.json", results)
        print(f"\n  Saved page: {page_path}")
        print(f"  Results saved to: {results_path}")

    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
