"""
Settings — Default configuration values for the storefront catalog engine.

This module provides the DEFAULT_SETTINGS dict that CatalogService uses as
fallback values when environment variables are not set. The actual configuration
is loaded from .env at runtime; these defaults cover the common storefront
listing setup (12 products per page, infinite scroll up to 24 products).

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --first, --no-save)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  SHOPIFY_API_VERSION       Storefront API version segment of the endpoint URL
  PAGE_SIZE                 Products requested per page ("first" / "last")
  AUTO_LOAD_LIMIT           Visibility-triggered loading stops at this many items;
                            past it the list only grows through the manual button
  REQUEST_TIMEOUT           Seconds before an HTTP request is abandoned
  MAX_RETRIES               Retries for 429/5xx responses (urllib3 Retry)
  RELEVANCE_PRICE_FALLBACK  Switch RELEVANCE to PRICE when a root price predicate
                            is active (the provider ignores price under relevance)
  COLLECTION_TEXT_QUERY     Forward the free-text predicate as "query" on
                            collection-scoped listings
  OUTPUT_DIR                Where run.py writes fetched pages (default: ./output)
  OUTPUT_RETENTION_DAYS     How many days to keep old output folders (0 = keep forever)
  SAVE_JSON                 Whether run.py writes the fetched pages to disk
  DEBUG                     Whether to enable DEBUG logging
"""

STOREFRONT_NAME = "Shopify_Storefront"

DEFAULT_SETTINGS = {
    "STOREFRONT_NAME": STOREFRONT_NAME,
    "SHOPIFY_API_VERSION": "2025-01",
    "PAGE_SIZE": 12,
    "AUTO_LOAD_LIMIT": 24,
    "REQUEST_TIMEOUT": 30,
    "MAX_RETRIES": 3,
    "RELEVANCE_PRICE_FALLBACK": True,
    "COLLECTION_TEXT_QUERY": False,
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "SAVE_JSON": True,
    "DEBUG": False,
}
