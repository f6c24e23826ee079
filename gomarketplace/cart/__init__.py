"""Cart package: models, storage, persistence and manager facade."""
from .models import Cart, EMPTY_CART, LineItem
from .persistence import CartPersistWorker
from .service import CartManager, cart_session, use_cart
from .storage import CartStore, FileCartStore, MemoryCartStore, RedisCartStore, get_cart_store

__all__ = [
    "LineItem",
    "Cart",
    "EMPTY_CART",
    "CartStore",
    "MemoryCartStore",
    "RedisCartStore",
    "FileCartStore",
    "get_cart_store",
    "CartPersistWorker",
    "CartManager",
    "cart_session",
    "use_cart",
]
