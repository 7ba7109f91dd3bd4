"""
Page Fetcher — Sends composed listing queries and normalizes the responses.

The two listing shapes nest the product connection at different paths:

    Root scope        data.products
    Collection scope  data.collection.products

fetch_page() hides that difference and always returns a Connection.

Failure policy ("fail open to empty"):
    Transport errors, provider-reported GraphQL errors, malformed payloads and
    unknown collections all produce Connection.empty() (no edges, no further
    pages) instead of raising. The error is logged, and its category is kept
    in `last_failure` so a caller that needs to tell "failed" apart from
    "nothing more to load" (the list controller) can do so.

    QueryCompositionError is not absorbed: it signals a bug in the caller,
    not a provider problem, and is raised before any request is sent.

fetch_page() has no side effects beyond the HTTP request and `last_failure`,
so identical calls can be retried freely.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from .exceptions import StorefrontAPIError
from .models import CollectionRef, Connection, Scope
from .query_composer import ComposedQuery, compose_collection_lookup, compose_collections_listing

logger = logging.getLogger(__name__)

TRANSPORT = "transport"
PROVIDER = "provider"
MALFORMED = "malformed"


@dataclass(frozen=True)
class FetchFailure:
    """Why the last fetch degraded to an empty page."""

    kind: str
    message: str


class PageFetcher:
    """Fetches listing pages through a StorefrontClient.

    Attributes:
        client: Object exposing execute_graphql(query, variables).
        last_failure: The failure behind the most recent empty page, or None
            if the most recent call succeeded.
    """

    def __init__(self, client):
        self.client = client
        self.last_failure: Optional[FetchFailure] = None
        self._collections: Dict[str, CollectionRef] = {}

    def fetch_page(self, composed: ComposedQuery) -> Connection:
        """Fetch one page and return it as a Connection.

        Args:
            composed: Output of compose_query().

        Returns:
            The page, or Connection.empty() on any fetch failure.
        """
        connection, _ = self.fetch_page_checked(composed)
        return connection

    def fetch_page_checked(self, composed: ComposedQuery) -> Tuple[Connection, Optional[FetchFailure]]:
        """Like fetch_page(), but also return the failure behind an empty page.

        Concurrent callers sharing one fetcher should use this instead of
        reading `last_failure`.
        """
        data, failure = self._execute(composed)
        if failure is not None:
            return Connection.empty(), failure

        try:
            payload = extract_connection_payload(data, composed.scope)
            if payload is None:
                # The collection vanished between resolution and the page request
                raise ValueError("Collection not found")
            connection = Connection.from_dict(payload)
        except ValueError as e:
            return Connection.empty(), self._fail(MALFORMED, str(e))

        self.last_failure = None
        logger.debug(
            "Fetched %d products (hasNextPage=%s)",
            len(connection.edges), connection.page_info.has_next_page,
        )
        return connection, None

    def resolve_collection(self, handle: str) -> Optional[CollectionRef]:
        """Resolve a collection handle to its provider ID.

        Results are cached per handle for the lifetime of the fetcher. Unknown
        handles and failures return None and are not cached.
        """
        ref, _ = self.resolve_collection_checked(handle)
        return ref

    def resolve_collection_checked(self, handle: str) -> Tuple[Optional[CollectionRef], Optional[FetchFailure]]:
        """Like resolve_collection(), but also return the failure behind a None.

        (None, None) means the lookup succeeded and the collection does not exist.
        """
        if handle in self._collections:
            return self._collections[handle], None

        data, failure = self._execute(compose_collection_lookup(handle))
        if failure is not None:
            return None, failure

        self.last_failure = None
        node = data.get("collection")
        if not isinstance(node, dict) or not node.get("id"):
            logger.warning("Collection '%s' not found", handle)
            return None, None

        ref = CollectionRef(id=node["id"], handle=node.get("handle") or handle, title=node.get("title") or "")
        self._collections[handle] = ref
        return ref, None

    def list_collections(self, first: int = 250) -> List[CollectionRef]:
        """Return the collection index, or an empty list on failure."""
        data, failure = self._execute(compose_collections_listing(first))
        if failure is not None:
            return []

        index = data.get("collections")
        edges = index.get("edges") if isinstance(index, dict) else None
        collections = []
        for edge in edges or []:
            node = edge.get("node") if isinstance(edge, dict) else None
            if isinstance(node, dict) and node.get("id") and node.get("handle"):
                collections.append(CollectionRef(id=node["id"], handle=node["handle"], title=node.get("title") or ""))
        self.last_failure = None
        return collections

    def _execute(self, composed: ComposedQuery) -> Tuple[Optional[Dict[str, Any]], Optional[FetchFailure]]:
        try:
            data = self.client.execute_graphql(composed.document, composed.variables)
            if not isinstance(data, dict):
                raise ValueError(f"Response data is not an object: {type(data).__name__}")
            return data, None
        except StorefrontAPIError as e:
            return None, self._fail(PROVIDER, str(e))
        except requests.exceptions.JSONDecodeError as e:
            return None, self._fail(MALFORMED, f"Response is not JSON: {e}")
        except requests.RequestException as e:
            return None, self._fail(TRANSPORT, str(e))
        except ValueError as e:
            return None, self._fail(MALFORMED, str(e))

    def _fail(self, kind: str, message: str) -> FetchFailure:
        failure = FetchFailure(kind, message)
        self.last_failure = failure
        if kind == TRANSPORT:
            logger.error("Storefront request failed: %s", message)
        else:
            logger.warning("Storefront %s error: %s", kind, message)
        return failure


def extract_connection_payload(data: Dict[str, Any], scope: Scope) -> Optional[Dict[str, Any]]:
    """Locate the product connection inside a response's "data".

    Returns:
        The connection dict, or None when the collection itself is null.

    Raises:
        ValueError: If the expected field is missing or not an object.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Response data is not an object: {type(data).__name__}")
    if scope is Scope.COLLECTION:
        if "collection" not in data:
            raise ValueError("Response has no 'collection' field")
        collection = data["collection"]
        if collection is None:
            return None
        if not isinstance(collection, dict):
            raise ValueError("'collection' is not an object")
        payload = collection.get("products")
    else:
        payload = data.get("products")

    if not isinstance(payload, dict):
        raise ValueError(f"Response has no products connection for {scope.value} scope")
    return payload
