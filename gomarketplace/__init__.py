"""
GoMarketplace Cart

Client-side shopping cart state kept in sync with a key-value store:
- cart: line items, stores, persist worker and the CartManager
- db: Redis client and storage settings
- models: catalog product schema
- logging: shared logger configuration

Note: Imports are lazy so that importing the package does not build
Redis clients or touch configuration.
"""

__all__ = [
    "CartManager",
    "cart_session",
    "use_cart",
    "Product",
    "get_cart_store",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name in ("CartManager", "cart_session", "use_cart", "get_cart_store"):
        from gomarketplace import cart
        return getattr(cart, name)
    if name == "Product":
        from gomarketplace.models import Product
        return Product
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
