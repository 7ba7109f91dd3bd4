"""
Catalog Models — Value types shared by every stage of a listing request.

A listing request flows through these types:

    UI parameters ──► FilterState + SortToken + PageArgs
                          │
                          ▼
            FacetExpression + SortSpec (per Scope)
                          │
                          ▼
                ComposedQuery (document, variables)
                          │
                          ▼
                Connection (edges + PageInfo)

Products are kept as the raw dicts returned by the Storefront API. The engine
only ever reads a product's "id" (identity for deduplication) and "tags"
(facet discovery); every other field is passed through to the caller untouched.

Cursors (PageInfo.start_cursor / end_cursor, PageArgs.after / before) are
opaque strings returned by the provider and echoed back verbatim. Nothing in
this package parses or builds them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

Product = Dict[str, Any]


class Scope(Enum):
    """Which of the two provider listing shapes a query targets."""

    ROOT = "root"
    COLLECTION = "collection"


class PriceRange(Enum):
    """Closed set of price buckets offered by the storefront filter drawer."""

    ANY = "any"
    UP_TO_500 = "0-500"
    FROM_500_TO_1000 = "500-1000"
    FROM_1000_TO_2000 = "1000-2000"
    FROM_2000 = "2000+"

    @property
    def bounds(self) -> Tuple[Optional[int], Optional[int]]:
        """(min, max) price bounds; None marks an open side.

        "0-X" has no lower bound, "X+" has no upper bound, and ANY has neither.
        """
        return _PRICE_BOUNDS[self]

    @classmethod
    def parse(cls, token: Optional[str]) -> "PriceRange":
        """Parse a UI token, falling back to ANY for missing or unknown values."""
        if not token:
            return cls.ANY
        try:
            return cls(token)
        except ValueError:
            logger.warning("Unknown price range token %r, ignoring price filter", token)
            return cls.ANY


_PRICE_BOUNDS = {
    PriceRange.ANY: (None, None),
    PriceRange.UP_TO_500: (None, 500),
    PriceRange.FROM_500_TO_1000: (500, 1000),
    PriceRange.FROM_1000_TO_2000: (1000, 2000),
    PriceRange.FROM_2000: (2000, None),
}


class SortToken(Enum):
    """Closed set of sort options offered by the storefront sort select."""

    FEATURED = "featured"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    CREATED_ASC = "created-asc"
    CREATED_DESC = "created-desc"


@dataclass(frozen=True)
class FilterState:
    """The facet selection of one listing view.

    Frozen so that a (FilterState, sort) pair can identify a list generation.
    """

    free_text: Optional[str] = None
    price_range: PriceRange = PriceRange.ANY
    tags: FrozenSet[str] = frozenset()

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "FilterState":
        """Build a FilterState from already-parsed UI parameters.

        Recognized keys: "q" (free text), "priceRange", "tag" (a string or a
        list of strings, repeatable in the URL) and "tags" (comma-separated).
        """
        free_text = params.get("q") or params.get("query")
        if isinstance(free_text, str):
            free_text = free_text.strip() or None

        tags = set(_as_list(params.get("tag")))
        for chunk in _as_list(params.get("tags")):
            tags.update(part for part in chunk.split(","))

        return cls(
            free_text=free_text,
            price_range=PriceRange.parse(params.get("priceRange")),
            tags=frozenset(t.strip() for t in tags if t and t.strip()),
        )

    @property
    def is_empty(self) -> bool:
        return not self.free_text and self.price_range is PriceRange.ANY and not self.tags


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [v for v in value if isinstance(v, str)]


@dataclass(frozen=True)
class PageArgs:
    """Raw pagination arguments as they arrive from the UI.

    Both directions may be set here; QueryComposer decides which set wins.
    """

    first: int = 12
    after: Optional[str] = None
    last: Optional[int] = None
    before: Optional[str] = None


@dataclass
class PageInfo:
    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageInfo":
        return cls(
            has_next_page=bool(data.get("hasNextPage", False)),
            has_previous_page=bool(data.get("hasPreviousPage", False)),
            start_cursor=data.get("startCursor"),
            end_cursor=data.get("endCursor"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
            "startCursor": self.start_cursor,
            "endCursor": self.end_cursor,
        }


@dataclass
class Connection:
    """The edges + pageInfo pagination envelope of one fetched page.

    Attributes:
        edges: Ordered list of {"node": product} dicts, as returned by the provider.
        page_info: Cursors and next/previous flags for this page.
    """

    edges: List[Dict[str, Any]] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)

    @classmethod
    def empty(cls) -> "Connection":
        """A valid connection with no edges and no further pages."""
        return cls(edges=[], page_info=PageInfo())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Connection":
        """Build a Connection from a provider "products" payload.

        Raises:
            ValueError: If the payload does not have the connection shape.
        """
        edges = data.get("edges")
        page_info = data.get("pageInfo")
        if not isinstance(edges, list) or not isinstance(page_info, Mapping):
            raise ValueError("Connection payload must contain 'edges' and 'pageInfo'")
        for edge in edges:
            if not isinstance(edge, Mapping) or not isinstance(edge.get("node"), Mapping):
                raise ValueError("Every edge must contain a 'node' object")

        connection = cls(edges=[dict(e) for e in edges], page_info=PageInfo.from_dict(page_info))

        # A page that claims more results but gives no cursor to continue from
        # can never be followed, so it is treated as the last page.
        if connection.edges and connection.page_info.has_next_page and not connection.page_info.end_cursor:
            logger.warning("Page reports hasNextPage without an endCursor, treating it as the last page")
            connection.page_info.has_next_page = False
        return connection

    def nodes(self) -> List[Product]:
        return [edge["node"] for edge in self.edges]

    def to_dict(self) -> Dict[str, Any]:
        return {"edges": self.edges, "pageInfo": self.page_info.to_dict()}


@dataclass(frozen=True)
class CollectionRef:
    """A collection handle resolved to the provider's identifier."""

    id: str
    handle: str
    title: str = ""


def collect_tags(products: Iterable[Product]) -> List[str]:
    """Sorted unique tags across products, used to populate the tag facet."""
    tags = set()
    for product in products:
        tags.update(t for t in product.get("tags") or [] if t)
    return sorted(tags)
