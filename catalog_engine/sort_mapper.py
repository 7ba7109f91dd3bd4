"""
Sort Mapper — Maps a UI sort token to a provider (sortKey, reverse) pair.

The two listing shapes use different GraphQL enums:

  Root scope        ProductSortKeys            (CREATED_AT, RELEVANCE, ...)
  Collection scope  ProductCollectionSortKeys  (CREATED, BEST_SELLING, ...)

"featured" maps to each scope's natural ranking: RELEVANCE on the root,
BEST_SELLING inside a collection.

An unknown token never raises. Sorting is cosmetic, so the scope default is
used and a warning is logged.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from .models import Scope, SortToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SortSpec:
    sort_key: str
    reverse: bool = False


ROOT_SORT_KEYS: Dict[SortToken, SortSpec] = {
    SortToken.FEATURED: SortSpec("RELEVANCE", False),
    SortToken.PRICE_ASC: SortSpec("PRICE", False),
    SortToken.PRICE_DESC: SortSpec("PRICE", True),
    SortToken.NAME_ASC: SortSpec("TITLE", False),
    SortToken.NAME_DESC: SortSpec("TITLE", True),
    SortToken.CREATED_ASC: SortSpec("CREATED_AT", False),
    SortToken.CREATED_DESC: SortSpec("CREATED_AT", True),
}

COLLECTION_SORT_KEYS: Dict[SortToken, SortSpec] = {
    SortToken.FEATURED: SortSpec("BEST_SELLING", False),
    SortToken.PRICE_ASC: SortSpec("PRICE", False),
    SortToken.PRICE_DESC: SortSpec("PRICE", True),
    SortToken.NAME_ASC: SortSpec("TITLE", False),
    SortToken.NAME_DESC: SortSpec("TITLE", True),
    SortToken.CREATED_ASC: SortSpec("CREATED", False),
    SortToken.CREATED_DESC: SortSpec("CREATED", True),
}

SORT_TABLES: Dict[Scope, Dict[SortToken, SortSpec]] = {
    Scope.ROOT: ROOT_SORT_KEYS,
    Scope.COLLECTION: COLLECTION_SORT_KEYS,
}

# GraphQL enum type of the sortKey variable, per scope
SORT_KEY_TYPES: Dict[Scope, str] = {
    Scope.ROOT: "ProductSortKeys",
    Scope.COLLECTION: "ProductCollectionSortKeys",
}


def default_sort(scope: Scope) -> SortSpec:
    return SORT_TABLES[scope][SortToken.FEATURED]


def map_sort(sort_token: Union[SortToken, str, None], scope: Scope) -> SortSpec:
    """Resolve a sort token for the given scope.

    Args:
        sort_token: A SortToken, its string value (e.g. "price-asc"), or None.
        scope: Which sort-key vocabulary to use.

    Returns:
        The SortSpec for the token, or the scope default for unknown tokens.
    """
    token: Optional[SortToken]
    if isinstance(sort_token, SortToken):
        token = sort_token
    else:
        try:
            token = SortToken(sort_token)
        except ValueError:
            token = None

    if token is None:
        if sort_token is not None:
            logger.warning(
                "Unknown sort token %r for %s scope, using %s",
                sort_token, scope.value, default_sort(scope).sort_key,
            )
        return default_sort(scope)

    return SORT_TABLES[scope][token]
