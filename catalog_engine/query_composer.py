"""
Query Composer — Assembles a listing request (document + variables).

The composer combines the outputs of the Facet Encoder and Sort Mapper with
pagination arguments into one GraphQL request. Arguments are accumulated as
typed clauses in a QueryBuilder; the document is rendered from those clauses,
so a variable definition, its field argument and its value are always added
together or not at all.

Argument rules:

  Pagination
      before given   -> last + before        (first/after dropped)
      otherwise      -> first [+ after]
      The provider rejects requests mixing both directions, so when both
      cursors arrive the backward set wins.

  Sort
      sortKey + reverse, only when a sort is requested. The variable type is
      ProductSortKeys (root) or ProductCollectionSortKeys (collection).

  Facets
      Root:        query: String             only when a predicate exists
      Collection:  filters: [ProductFilter!] only when filters exist
                   query: String             only with collection_text_query

  An argument is never sent with a null or empty value. The provider treats
  an explicit empty filter differently from an absent one.

Document shapes:

    query CatalogProducts($first: Int!, $query: String, ...) {
      products(first: $first, query: $query, ...) { ...selection }
    }

    query CollectionProducts($id: ID!, $first: Int!, ...) {
      collection(id: $id) {
        id handle title
        products(first: $first, ...) { ...selection }
      }
    }

A collection-scoped query needs the collection's provider ID, resolved from
its handle beforehand (PageFetcher.resolve_collection).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import QueryCompositionError
from .facet_encoder import FacetExpression
from .graphql_queries import (
    COLLECTION_BY_HANDLE_QUERY,
    COLLECTIONS_QUERY,
    PRODUCT_CONNECTION_SELECTION,
)
from .models import PageArgs, Scope
from .sort_mapper import SORT_KEY_TYPES, SortSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Argument:
    """One typed GraphQL variable.

    Attributes:
        name: Variable and argument name (without "$").
        gql_type: GraphQL type used in the variable definition.
        value: The variable value. Never None.
        on_field: False for operation-level variables that are not arguments
            of the products field (e.g. the collection $id).
    """

    name: str
    gql_type: str
    value: Any
    on_field: bool = True


class QueryBuilder:
    """Accumulates typed arguments for one listing operation."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self._arguments: List[Argument] = []

    def add(self, name: str, gql_type: str, value: Any, on_field: bool = True) -> "QueryBuilder":
        if value is None or value == "" or value == []:
            raise QueryCompositionError(
                f"Argument '{name}' has no value; omit it instead of sending an empty value"
            )
        if any(a.name == name for a in self._arguments):
            raise QueryCompositionError(f"Argument '{name}' added twice")
        self._arguments.append(Argument(name, gql_type, value, on_field))
        return self

    def names(self) -> List[str]:
        return [a.name for a in self._arguments]

    def variable_definitions(self) -> str:
        return ", ".join(f"${a.name}: {a.gql_type}" for a in self._arguments)

    def field_arguments(self) -> str:
        return ", ".join(f"{a.name}: ${a.name}" for a in self._arguments if a.on_field)

    def variables(self) -> Dict[str, Any]:
        return {a.name: a.value for a in self._arguments}


@dataclass(frozen=True)
class ComposedQuery:
    """A ready-to-send GraphQL request for one listing page."""

    scope: Scope
    document: str
    variables: Dict[str, Any] = field(default_factory=dict)


def add_pagination(builder: QueryBuilder, page_args: PageArgs) -> None:
    """Add exactly one direction of pagination arguments."""
    if page_args.before:
        page_size = page_args.last if page_args.last else page_args.first
    else:
        page_size = page_args.first
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size <= 0:
        raise QueryCompositionError(f"Page size must be a positive integer, got {page_size!r}")

    if page_args.before:
        if page_args.after:
            logger.debug(
                "Both 'after' and 'before' supplied, dropping forward arguments (after=%s)",
                page_args.after,
            )
        builder.add("last", "Int!", page_size)
        builder.add("before", "String", page_args.before)
    else:
        builder.add("first", "Int!", page_size)
        if page_args.after:
            builder.add("after", "String", page_args.after)


def compose_query(
    scope: Scope,
    facets: FacetExpression,
    sort: Optional[SortSpec],
    page_args: PageArgs,
    collection_id: Optional[str] = None,
    collection_text_query: bool = False,
) -> ComposedQuery:
    """Compose the listing request for one page.

    Args:
        scope: Root listing or collection-scoped listing.
        facets: Output of encode_facets() for the same scope.
        sort: Output of map_sort() for the same scope, or None for the
            provider's own default order.
        page_args: Cursor and page size arguments.
        collection_id: Provider ID of the collection (Collection scope only).
        collection_text_query: Forward the free-text predicate on
            collection-scoped listings.

    Returns:
        A ComposedQuery with the rendered document and its variables.

    Raises:
        QueryCompositionError: On a collection query without a resolved ID or
            an invalid page size.
    """
    if scope is Scope.COLLECTION:
        if not collection_id:
            raise QueryCompositionError("Collection-scoped query requires a resolved collection ID")
        builder = QueryBuilder("CollectionProducts")
        builder.add("id", "ID!", collection_id, on_field=False)
    else:
        builder = QueryBuilder("CatalogProducts")

    add_pagination(builder, page_args)

    if sort is not None:
        builder.add("sortKey", SORT_KEY_TYPES[scope], sort.sort_key)
        builder.add("reverse", "Boolean", sort.reverse)

    if scope is Scope.ROOT:
        if facets.filters:
            logger.warning("Structured filters are not supported on the root listing, ignoring %s", facets.filters)
        if facets.predicate is not None:
            builder.add("query", "String", facets.predicate)
    else:
        if facets.filters:
            builder.add("filters", "[ProductFilter!]", list(facets.filters))
        if facets.predicate is not None:
            if collection_text_query:
                builder.add("query", "String", facets.predicate)
            else:
                logger.warning(
                    "Free-text predicate is not applied on collection listings: %s", facets.predicate
                )

    return ComposedQuery(scope=scope, document=render_document(scope, builder), variables=builder.variables())


def render_document(scope: Scope, builder: QueryBuilder) -> str:
    products_field = f"products({builder.field_arguments()}) {{{PRODUCT_CONNECTION_SELECTION}}}"
    if scope is Scope.COLLECTION:
        body = f"collection(id: $id) {{\n    id\n    handle\n    title\n    {products_field}\n  }}"
    else:
        body = products_field
    return f"query {builder.operation_name}({builder.variable_definitions()}) {{\n  {body}\n}}\n"


def compose_collection_lookup(handle: str) -> ComposedQuery:
    """Request resolving a collection handle to its provider ID."""
    if not handle:
        raise QueryCompositionError("Collection handle is required")
    return ComposedQuery(scope=Scope.COLLECTION, document=COLLECTION_BY_HANDLE_QUERY, variables={"handle": handle})


def compose_collections_listing(first: int = 250) -> ComposedQuery:
    """Request for the collection index."""
    return ComposedQuery(scope=Scope.ROOT, document=COLLECTIONS_QUERY, variables={"first": first})
