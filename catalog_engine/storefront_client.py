"""
Storefront API Client — Handles HTTP communication with the Storefront GraphQL API.

This module is responsible for all HTTP traffic to the commerce platform. Every
request is a POST to the versioned GraphQL endpoint:

    POST https://{store_domain}/api/{api_version}/graphql.json
    Headers: X-Shopify-Storefront-Access-Token: <token>
    Body: {"query": "...", "variables": {...}}
    Response: {"data": {...}} or {"errors": [...]}

The Storefront token is a public, read-only token, so there is no separate
authentication step: the header is attached to the session once.

Transient failures (429 and 5xx) are retried by the session adapter with
exponential backoff before any error reaches the caller.

Pipeline context:
    Used by PageFetcher for collection resolution and listing pages. Errors
    raised here are caught by PageFetcher and turned into empty pages.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import StorefrontAPIError
from .settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class StorefrontClient:
    """Client for the Storefront GraphQL API.

    Manages a requests.Session with the access token header and a retrying
    adapter. All API calls go through this single session.

    Attributes:
        store_domain: Store domain (e.g., "example.myshopify.com"), scheme and
            trailing slash stripped.
        api_version: Storefront API version (e.g., "2025-01").
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = DEFAULT_SETTINGS["SHOPIFY_API_VERSION"],
        timeout: float = DEFAULT_SETTINGS["REQUEST_TIMEOUT"],
        max_retries: int = DEFAULT_SETTINGS["MAX_RETRIES"],
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            store_domain: Store domain, with or without "https://".
            access_token: Storefront API access token.
            api_version: API version segment of the endpoint URL.
            timeout: Request timeout in seconds.
            max_retries: Retries for 429/5xx responses.
            session: Pre-built session (tests inject a mock here).
        """
        domain = store_domain.strip()
        for prefix in ("https://", "http://"):
            if domain.startswith(prefix):
                domain = domain[len(prefix):]
        self.store_domain = domain.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._session = session or self._build_session(max_retries)
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "X-Shopify-Storefront-Access-Token": access_token,
            }
        )

    @staticmethod
    def _build_session(max_retries: int) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    @property
    def endpoint(self) -> str:
        return f"https://{self.store_domain}/api/{self.api_version}/graphql.json"

    def execute_graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GraphQL query against the Storefront API.

        Args:
            query: The GraphQL document.
            variables: Optional dict of GraphQL variables.

        Returns:
            The "data" portion of the GraphQL response (a dict).

        Raises:
            StorefrontAPIError: If the response contains a GraphQL "errors" array.
            requests.RequestException: If the HTTP request fails.
            ValueError: If the response body or its "data" is not a JSON object.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug("Executing GraphQL query (%d chars) with variables %s", len(query), variables)

        response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        response.raise_for_status()

        result = response.json()
        if not isinstance(result, dict):
            raise ValueError(f"Unexpected GraphQL response body: {type(result).__name__}")

        if result.get("errors"):
            raise StorefrontAPIError(result["errors"])

        data = result.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected GraphQL data: {type(data).__name__}")
        return data
