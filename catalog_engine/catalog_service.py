"""
Catalog Service — Turns storefront listing parameters into product pages.

This module ties the other modules together for one listing view:

  Step 1: PARSE PARAMETERS
      build_request() turns already-parsed UI parameters (sort, priceRange,
      tag, q, after, before, first) and an optional collection handle into a
      CatalogRequest. The scope follows from the handle: no handle means the
      global product listing, a handle means that collection's listing.

  Step 2: RESOLVE COLLECTION (collection scope only)
      The handle is resolved to the provider's collection ID through
      PageFetcher.resolve_collection(). An unknown collection yields an
      empty page.

  Step 3: ENCODE + SORT
      encode_facets() and map_sort() produce the scope-specific filter and
      sort arguments. On the root listing, a price predicate combined with
      RELEVANCE ranking is switched to PRICE ascending (the provider ignores
      price predicates under relevance) unless RELEVANCE_PRICE_FALLBACK is off.

  Step 4: COMPOSE + FETCH
      compose_query() builds the request and PageFetcher returns a Connection.

For incremental lists, page_loader() returns an async callable that the
IncrementalListController awaits for each cursor. The blocking HTTP call runs
in a worker thread so the event loop stays responsive.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    Required: SHOPIFY_STORE_DOMAIN, SHOPIFY_STOREFRONT_TOKEN.
    See settings.py for defaults.

Typical usage:
    service = CatalogService(env_file="./.env")
    if service.validate_config():
        request = service.build_request({"sort": "price-asc", "tag": ["summer"]}, "shoes")
        connection = service.fetch_page(request)
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Hashable, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigurationError, PageLoadError
from .facet_encoder import encode_facets
from .list_controller import BUTTON, IncrementalListController, ListState, PageLoader
from .models import CollectionRef, Connection, FilterState, PageArgs, Scope
from .page_fetcher import FetchFailure, PageFetcher
from .query_composer import ComposedQuery, compose_query
from .settings import DEFAULT_SETTINGS
from .sort_mapper import SortSpec, map_sort
from .storefront_client import StorefrontClient

logger = logging.getLogger(__name__)


def _env_bool(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


def _env_int(name: str) -> int:
    return int(os.getenv(name, str(DEFAULT_SETTINGS[name])))


@dataclass(frozen=True)
class CatalogRequest:
    """Everything needed to fetch one listing page.

    Attributes:
        filters: Active facets.
        sort: Sort token as received from the UI ("price-asc", ...); None
            means "featured".
        page_args: Cursors and page size.
        collection_handle: Collection slug, or None for the global listing.
    """

    filters: FilterState = field(default_factory=FilterState)
    sort: Optional[str] = None
    page_args: PageArgs = field(default_factory=PageArgs)
    collection_handle: Optional[str] = None

    @property
    def scope(self) -> Scope:
        return Scope.COLLECTION if self.collection_handle else Scope.ROOT

    @property
    def key(self) -> Hashable:
        """Identifies the filter/sort configuration, independent of cursors."""
        return (self.scope, self.collection_handle, self.filters, self.sort)


class CatalogService:
    """Builds and fetches storefront listing pages.

    Attributes:
        store_domain: Storefront domain (e.g., "example.myshopify.com").
        access_token: Storefront API access token.
        api_version: Storefront API version.
        page_size: Products per page.
        auto_load_limit: Visibility-triggered loading limit for list controllers.
        relevance_price_fallback: Switch RELEVANCE to PRICE under a root price filter.
        collection_text_query: Forward free text on collection listings.
        debug: Whether DEBUG logging was requested.
    """

    def __init__(self, env_file: str = "./.env", fetcher: Optional[PageFetcher] = None):
        """Initialize the service by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
            fetcher: Pre-built PageFetcher (tests inject one backed by a mock
                     client). Built from the configuration on first use otherwise.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            logger.info("Loaded configuration from: %s", env_file)
        else:
            logger.debug("%s not found, using defaults/environment", env_file)

        # Storefront connection (required)
        self.store_domain = os.getenv("SHOPIFY_STORE_DOMAIN", "")
        self.access_token = os.getenv("SHOPIFY_STOREFRONT_TOKEN", "")
        self.api_version = os.getenv("SHOPIFY_API_VERSION", DEFAULT_SETTINGS["SHOPIFY_API_VERSION"])

        # Request behaviour
        self.timeout = _env_int("REQUEST_TIMEOUT")
        self.max_retries = _env_int("MAX_RETRIES")
        self.page_size = _env_int("PAGE_SIZE")
        self.auto_load_limit = _env_int("AUTO_LOAD_LIMIT")
        self.relevance_price_fallback = _env_bool("RELEVANCE_PRICE_FALLBACK")
        self.collection_text_query = _env_bool("COLLECTION_TEXT_QUERY")
        self.debug = _env_bool("DEBUG")

        self._fetcher = fetcher

    def validate_config(self) -> bool:
        """Validate that all required configuration values are present.

        Returns:
            True if all required values are present, False otherwise.
            Prints specific error messages for each missing value.
        """
        errors = []
        if not self.store_domain:
            errors.append("SHOPIFY_STORE_DOMAIN is required")
        if not self.access_token:
            errors.append("SHOPIFY_STOREFRONT_TOKEN is required")
        if self.page_size <= 0:
            errors.append("PAGE_SIZE must be a positive integer")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    @property
    def fetcher(self) -> PageFetcher:
        if self._fetcher is None:
            if not self.store_domain or not self.access_token:
                raise ConfigurationError("SHOPIFY_STORE_DOMAIN and SHOPIFY_STOREFRONT_TOKEN are required")
            client = StorefrontClient(
                self.store_domain,
                self.access_token,
                api_version=self.api_version,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
            self._fetcher = PageFetcher(client)
        return self._fetcher

    # -- Step 1 ----------------------------------------------------------

    def build_request(self, params: Mapping[str, Any], collection_handle: Optional[str] = None) -> CatalogRequest:
        """Build a CatalogRequest from already-parsed UI parameters.

        Args:
            params: Mapping with any of "sort", "priceRange", "tag", "tags",
                "q", "after", "before", "first".
            collection_handle: Collection slug for collection-scoped listings.
        """
        first = params.get("first")
        try:
            first = int(first) if first not in (None, "") else self.page_size
        except (TypeError, ValueError):
            logger.warning("Invalid page size %r, using %d", first, self.page_size)
            first = self.page_size
        if first <= 0:
            first = self.page_size

        sort = params.get("sort")
        if isinstance(sort, (list, tuple)):
            sort = sort[0] if sort else None

        return CatalogRequest(
            filters=FilterState.from_params(params),
            sort=sort or None,
            page_args=PageArgs(
                first=first,
                after=params.get("after") or None,
                before=params.get("before") or None,
            ),
            collection_handle=collection_handle or None,
        )

    # -- Steps 2-4 -------------------------------------------------------

    def resolve_sort(self, request: CatalogRequest, has_price: bool) -> SortSpec:
        sort = map_sort(request.sort, request.scope)
        if (
            request.scope is Scope.ROOT
            and has_price
            and sort.sort_key == "RELEVANCE"
            and self.relevance_price_fallback
        ):
            logger.debug("Price filter active under RELEVANCE, sorting by PRICE instead")
            return SortSpec("PRICE", False)
        return sort

    def compose(self, request: CatalogRequest) -> Optional[ComposedQuery]:
        """Compose the page query for a request.

        Returns:
            The composed query, or None when the collection cannot be resolved.
        """
        composed, _ = self._compose_checked(request)
        return composed

    def _compose_checked(self, request: CatalogRequest) -> Tuple[Optional[ComposedQuery], Optional[FetchFailure]]:
        collection: Optional[CollectionRef] = None
        if request.scope is Scope.COLLECTION:
            collection, failure = self.fetcher.resolve_collection_checked(request.collection_handle)
            if collection is None:
                return None, failure

        facets = encode_facets(request.filters, request.scope)
        sort = self.resolve_sort(request, facets.has_price)
        composed = compose_query(
            request.scope,
            facets,
            sort,
            request.page_args,
            collection_id=collection.id if collection else None,
            collection_text_query=self.collection_text_query,
        )
        return composed, None

    def fetch_page(self, request: CatalogRequest) -> Connection:
        """Fetch one listing page. Never raises for provider or transport errors."""
        composed = self.compose(request)
        if composed is None:
            return Connection.empty()
        return self.fetcher.fetch_page(composed)

    def _fetch_checked(self, request: CatalogRequest) -> Connection:
        composed, failure = self._compose_checked(request)
        if composed is None:
            if failure is not None:
                raise PageLoadError(failure.message, failure.kind)
            # Unknown collection: a valid, empty listing
            return Connection.empty()

        connection, failure = self.fetcher.fetch_page_checked(composed)
        if failure is not None:
            raise PageLoadError(failure.message, failure.kind)
        return connection

    def list_collections(self) -> List[CollectionRef]:
        return self.fetcher.list_collections()

    # -- Incremental lists -----------------------------------------------

    def page_loader(self, request: CatalogRequest) -> PageLoader:
        """Async loader fetching the page after a cursor for this request.

        The loader always paginates forward from the given cursor (None for
        the first page), whatever cursors the original request carried.
        """

        async def load(after: Optional[str]) -> Connection:
            page_request = replace(request, page_args=PageArgs(first=request.page_args.first, after=after))
            return await asyncio.to_thread(self._fetch_checked, page_request)

        return load

    def new_list(self) -> IncrementalListController:
        return IncrementalListController(auto_load_limit=self.auto_load_limit)

    async def open_list(
        self, request: CatalogRequest, controller: Optional[IncrementalListController] = None
    ) -> IncrementalListController:
        """Reset a controller (or a new one) onto a request's first page."""
        controller = controller or self.new_list()
        await controller.reset(self.page_loader(request), key=request.key)
        return controller

    async def load_all(self, request: CatalogRequest, max_pages: int = 100) -> IncrementalListController:
        """Walk every page of a listing through a list controller.

        Stops at the last page, after a failed page, or after max_pages pages.
        """
        controller = await self.open_list(request)
        pages = 1
        while controller.state is ListState.IDLE and controller.has_more and pages < max_pages:
            if not await controller.load_more(BUTTON):
                break
            pages += 1
        return controller
