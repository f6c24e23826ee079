"""
Cart Errors

Error message constants and the exceptions raised across the cart package.
"""

# Storage errors
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_STORAGE_NOT_CONFIGURED = "Cart storage backend is not configured"

# Snapshot errors
ERROR_SNAPSHOT_NOT_JSON = "Cart snapshot is not valid JSON"
ERROR_SNAPSHOT_NOT_LIST = "Cart snapshot must be a list of line items"
ERROR_SNAPSHOT_DUPLICATE_ID = "Cart snapshot contains duplicate product id"
ERROR_INVALID_QUANTITY = "Line item quantity must be a positive integer"

# Session errors
ERROR_NO_SESSION = "use_cart must be used within a cart_session"
ERROR_SESSION_NOT_STARTED = "Cart manager is not started"


class StorageUnavailable(Exception):
    """The key-value store could not be read or written."""


class CartDecodeError(ValueError):
    """A persisted cart snapshot could not be decoded."""


class CartSessionError(RuntimeError):
    """Cart state was used outside an initialized session."""


__all__ = [
    "ERROR_STORAGE_UNAVAILABLE",
    "ERROR_STORAGE_NOT_CONFIGURED",
    "ERROR_SNAPSHOT_NOT_JSON",
    "ERROR_SNAPSHOT_NOT_LIST",
    "ERROR_SNAPSHOT_DUPLICATE_ID",
    "ERROR_INVALID_QUANTITY",
    "ERROR_NO_SESSION",
    "ERROR_SESSION_NOT_STARTED",
    "StorageUnavailable",
    "CartDecodeError",
    "CartSessionError",
]
