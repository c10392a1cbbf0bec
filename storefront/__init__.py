"""
Storefront Core Module

This package contains the client-side storefront core:
- pricing: quantity-tiered discount pricing engine
- cart: cart store with injected persistence
- db: key-value stores (memory + Upstash Redis)
- api_client: REST API client with bearer auth
- recently_viewed: recently viewed products list
- checkout: order payload and reorder helpers

Note: Imports are lazy so that importing the package does not pull in
httpx or upstash_redis until they are actually needed.
"""

__all__ = [
    "price_for",
    "CartStore",
    "StorefrontAPI",
    "get_redis",
]


def __getattr__(name):
    """Lazy attribute access for the main entry points."""
    if name == "price_for":
        from storefront.pricing import price_for
        return price_for
    elif name == "CartStore":
        from storefront.cart import CartStore
        return CartStore
    elif name == "StorefrontAPI":
        from storefront.api_client import StorefrontAPI
        return StorefrontAPI
    elif name == "get_redis":
        from storefront.db import get_redis
        return get_redis
    raise AttributeError(f"module 'storefront' has no attribute '{name}'")
