"""
Facet Encoder — Translates a FilterState into the provider's filter syntax.

The Storefront API filters the two listing shapes in different ways:

  Root scope (products root field)
      Accepts only a search-syntax string through the "query" argument.
      Every facet becomes a clause of that string:

          (title:'boot' OR tag:'boot' OR product_type:'boot' OR vendor:'boot')
            AND (price:>=500 AND price:<=1000)
            AND (tag:'summer' OR tag:'winter')

  Collection scope (collection.products field)
      Accepts structured ProductFilter objects through the "filters" argument
      and has no string predicate for price or tags:

          [{"price": {"min": 500, "max": 1000}}, {"tag": "summer"}, {"tag": "winter"}]

      The provider ANDs filters of different kinds and ORs filters of the same
      kind, which gives the same "price AND (any tag)" semantics as the string.

Sending a price clause as a string on a collection (or a structured price on
the root) is silently ignored by the provider and returns unfiltered results,
so each facet is encoded in exactly one way per scope.

When no facet is active the encoder returns predicate=None and no filters.
An empty string is never produced: the composer must omit the argument.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import FilterState, PriceRange, Scope

# Display fields covered by the single search box
FREE_TEXT_FIELDS = ("title", "tag", "product_type", "vendor")


@dataclass(frozen=True)
class FacetExpression:
    """Encoded facets for one scope.

    Attributes:
        predicate: Search-syntax string, or None when there is nothing to filter.
        filters: Structured ProductFilter objects (Collection scope only).
        has_price: Whether a price clause or price filter was emitted.
    """

    predicate: Optional[str] = None
    filters: List[Dict[str, Any]] = field(default_factory=list)
    has_price: bool = False

    @property
    def is_empty(self) -> bool:
        return self.predicate is None and not self.filters


def quote_value(value: str) -> str:
    """Quote a value for the search syntax, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def encode_free_text(text: str) -> str:
    """Expand free text into one OR group across the display fields."""
    quoted = quote_value(text)
    return "(" + " OR ".join(f"{name}:{quoted}" for name in FREE_TEXT_FIELDS) + ")"


def encode_price_clause(price_range: PriceRange) -> Optional[str]:
    """Search-syntax clause for a price bucket, or None for ANY."""
    low, high = price_range.bounds
    if low is not None and high is not None:
        return f"(price:>={low} AND price:<={high})"
    if high is not None:
        return f"price:<={high}"
    if low is not None:
        return f"price:>={low}"
    return None


def encode_price_filter(price_range: PriceRange) -> Optional[Dict[str, Any]]:
    """Structured ProductFilter for a price bucket, or None for ANY."""
    low, high = price_range.bounds
    bounds = {}
    if low is not None:
        bounds["min"] = low
    if high is not None:
        bounds["max"] = high
    if not bounds:
        return None
    return {"price": bounds}


def encode_tag_clause(tags) -> Optional[str]:
    if not tags:
        return None
    return "(" + " OR ".join(f"tag:{quote_value(t)}" for t in sorted(tags)) + ")"


def encode_facets(filter_state: FilterState, scope: Scope) -> FacetExpression:
    """Encode every active facet of filter_state for the given scope.

    Args:
        filter_state: The facet selection of the current view.
        scope: Scope.ROOT for the products root, Scope.COLLECTION for a
            collection's products.

    Returns:
        A FacetExpression. For Root scope only `predicate` is used. For
        Collection scope `predicate` carries the free text (if any) and
        `filters` carries price and tags.
    """
    clauses: List[str] = []
    filters: List[Dict[str, Any]] = []
    has_price = False

    if filter_state.free_text:
        clauses.append(encode_free_text(filter_state.free_text))

    if scope is Scope.ROOT:
        price_clause = encode_price_clause(filter_state.price_range)
        if price_clause:
            clauses.append(price_clause)
            has_price = True
        tag_clause = encode_tag_clause(filter_state.tags)
        if tag_clause:
            clauses.append(tag_clause)
    else:
        price_filter = encode_price_filter(filter_state.price_range)
        if price_filter:
            filters.append(price_filter)
            has_price = True
        filters.extend({"tag": t} for t in sorted(filter_state.tags))

    predicate = " AND ".join(clauses) if clauses else None
    return FacetExpression(predicate=predicate, filters=filters, has_price=has_price)
