"""Exception hierarchy for the catalog engine.

Only composition and configuration errors reach callers. Provider and
transport failures are absorbed by PageFetcher and turned into an empty
Connection, so StorefrontAPIError rarely escapes the fetch boundary.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base exception for the catalog engine."""

    pass


class ConfigurationError(CatalogError):
    """Required settings are missing or invalid."""

    pass


class QueryCompositionError(CatalogError):
    """A listing query cannot be composed from the given arguments."""

    pass


class StorefrontAPIError(CatalogError):
    """The Storefront API answered with a GraphQL "errors" array."""

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            error_messages = [e.get("message", str(e)) for e in errors]
            message = f"GraphQL errors: {'; '.join(error_messages)}"
        super().__init__(message)


class PageLoadError(CatalogError):
    """A page could not be loaded for the incremental list.

    Raised by page loaders so the list controller can tell a failed fetch
    from a legitimately empty last page.
    """

    def __init__(self, message: str, kind: str = "transport"):
        self.kind = kind
        super().__init__(message)
