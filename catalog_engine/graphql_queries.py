"""
GraphQL Query Definitions — Static parts of the Storefront listing queries.

The page-level listing queries are shaped per request by QueryComposer (the
argument list changes with the active facets, sort and cursor direction). What
stays fixed is the selection set, defined here once and shared by both scopes
so that PageFetcher always receives the same Connection shape:

  PRODUCT_CONNECTION_SELECTION
      edges.node: id, handle, title, tags, productType, vendor, priceRange,
      the first image, and the first 10 variants (price, compareAtPrice,
      availability, selected options). Variants are display-only and are not
      interpreted by the engine.
      pageInfo: hasNextPage, hasPreviousPage, startCursor, endCursor.

Fixed queries:
  COLLECTION_BY_HANDLE_QUERY  Resolves a collection handle (the slug used in
                              storefront URLs) to its provider ID. Required
                              before any collection-scoped listing.
  COLLECTIONS_QUERY           The collection index, used to list the handles a
                              storefront can browse.

Based on the Shopify Storefront API 2025-01 schema.
"""

PRODUCT_CONNECTION_SELECTION = """
    edges {
      cursor
      node {
        id
        handle
        title
        tags
        productType
        vendor
        priceRange {
          minVariantPrice {
            amount
            currencyCode
          }
          maxVariantPrice {
            amount
            currencyCode
          }
        }
        images(first: 1) {
          edges {
            node {
              url
              altText
            }
          }
        }
        variants(first: 10) {
          edges {
            node {
              id
              title
              availableForSale
              price {
                amount
                currencyCode
              }
              compareAtPrice {
                amount
                currencyCode
              }
              selectedOptions {
                name
                value
              }
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
      startCursor
      endCursor
    }
"""

COLLECTION_BY_HANDLE_QUERY = """
query CollectionByHandle($handle: String!) {
  collection(handle: $handle) {
    id
    handle
    title
  }
}
"""

COLLECTIONS_QUERY = """
query CollectionIndex($first: Int!) {
  collections(first: $first) {
    edges {
      node {
        id
        handle
        title
        description
      }
    }
  }
}
"""
