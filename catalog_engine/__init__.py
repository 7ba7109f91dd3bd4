"""
catalog_engine — Catalog query composition and pagination for a Storefront GraphQL API.

Each module handles one concern of a listing request:

  models.py            FilterState, SortToken, PriceRange, Scope, Connection
  facet_encoder.py     FilterState -> search string / structured filters
  sort_mapper.py       SortToken -> (sortKey, reverse), per scope
  query_composer.py    Facets + sort + cursors -> GraphQL document and variables
  graphql_queries.py   Fixed selection sets and lookup queries
  storefront_client.py HTTP communication with the Storefront API
  page_fetcher.py      Request -> Connection, failing open to an empty page
  list_controller.py   Incremental "load more" list with cursor guard
  catalog_service.py   Configuration and wiring of all of the above
  output_manager.py    Timestamped output folders for run.py
"""

from .catalog_service import CatalogRequest, CatalogService
from .exceptions import (
    CatalogError,
    ConfigurationError,
    PageLoadError,
    QueryCompositionError,
    StorefrontAPIError,
)
from .facet_encoder import FacetExpression, encode_facets
from .list_controller import BUTTON, VISIBILITY, IncrementalListController, ListState
from .models import (
    CollectionRef,
    Connection,
    FilterState,
    PageArgs,
    PageInfo,
    PriceRange,
    Scope,
    SortToken,
    collect_tags,
)
from .output_manager import OutputManager
from .page_fetcher import FetchFailure, PageFetcher
from .query_composer import ComposedQuery, QueryBuilder, compose_query
from .sort_mapper import SortSpec, map_sort
from .storefront_client import StorefrontClient
