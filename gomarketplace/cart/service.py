"""Cart manager: in-memory cart state with write-through persistence."""
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator, Callable, List, Mapping, Optional, Union

from gomarketplace.db import CART_REFRESH_ON_ADD, RedisKeys
from gomarketplace.errors import (
    ERROR_NO_SESSION,
    ERROR_SESSION_NOT_STARTED,
    CartDecodeError,
    CartSessionError,
    StorageUnavailable,
)
from gomarketplace.logging import get_logger, sanitize_id_for_logging, snapshot_excerpt
from gomarketplace.models import Product
from gomarketplace.money import to_float

from .models import EMPTY_CART, Cart
from .persistence import CartPersistWorker
from .storage import CartStore, get_cart_store

logger = get_logger(__name__)

Subscriber = Callable[[Cart], None]
ProductInput = Union[Product, Mapping]


class CartManager:
    """
    Owns the authoritative cart for one session.

    Mutations are plain (non-async) methods: the new cart is computed,
    published and queued for persistence before the call returns, so
    two updates can never read the same old state. Only the store write
    happens later, on the persist worker.
    """

    def __init__(
        self,
        store: CartStore,
        key: str = RedisKeys.CART,
        refresh_on_add: bool = CART_REFRESH_ON_ADD,
    ):
        self.store = store
        self.key = key
        self.refresh_on_add = refresh_on_add
        self._cart: Cart = EMPTY_CART
        self._subscribers: List[Subscriber] = []
        self._worker = CartPersistWorker(store)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def products(self) -> tuple:
        """Current line items, in cart order."""
        return self._cart.items

    @property
    def started(self) -> bool:
        return self._worker.running

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for every published cart.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def summary(self) -> dict:
        """Cart summary for UI badges and AI context."""
        cart = self._cart
        if cart.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "items": [],
                "subtotal": 0.0,
            }
        return {
            "is_empty": False,
            "total_items": cart.total_items,
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.price),
                    "total": to_float(item.total_price),
                }
                for item in cart
            ],
            "subtotal": to_float(cart.subtotal),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Hydrate from the store, then start the persist worker."""
        # Mutations stay rejected until the snapshot is in place
        await self.hydrate()
        self._worker.start()

    async def flush(self) -> None:
        """Wait for queued snapshots to reach the store."""
        await self._worker.flush()

    async def close(self) -> None:
        """Flush pending writes and stop the persist worker."""
        await self._worker.close()

    async def __aenter__(self) -> "CartManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def hydrate(self) -> None:
        """
        Replace in-memory state with the persisted snapshot.

        An absent, unreadable or undecodable snapshot leaves an empty
        cart. Never raises.
        """
        cart = EMPTY_CART
        raw = None
        try:
            raw = await self.store.get(self.key)
            if raw:
                cart = Cart.loads(raw)
        except StorageUnavailable as e:
            logger.warning(f"Cart store unavailable, starting with empty cart: {e}")
        except CartDecodeError as e:
            logger.warning(
                f"Corrupted cart snapshot under {sanitize_id_for_logging(self.key)}: {e} "
                f"(payload: {snapshot_excerpt(raw)})"
            )
        except Exception as e:
            logger.error(f"Unexpected error hydrating cart: {e}", exc_info=True)

        logger.info(f"Cart hydrated with {len(cart)} line(s)")
        self._publish(cart)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_to_cart(self, product: ProductInput) -> None:
        """Add one unit of a product; new products go to the end."""
        self._ensure_started()
        if not isinstance(product, Product):
            product = Product.model_validate(product)
        self._commit(self._cart.add(product, refresh=self.refresh_on_add))

    def increment(self, product_id: str) -> None:
        """Add one unit of a product already in the cart. Unknown ids are ignored."""
        self._ensure_started()
        new_cart = self._cart.increment(product_id)
        if new_cart is not self._cart:
            self._commit(new_cart)

    def decrement(self, product_id: str) -> None:
        """Remove one unit; the line disappears when its quantity hits zero."""
        self._ensure_started()
        new_cart = self._cart.decrement(product_id)
        if new_cart is not self._cart:
            self._commit(new_cart)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_started(self) -> None:
        if not self._worker.running:
            raise CartSessionError(ERROR_SESSION_NOT_STARTED)

    def _commit(self, cart: Cart) -> None:
        self._publish(cart)
        self._worker.enqueue(self.key, cart.dumps())

    def _publish(self, cart: Cart) -> None:
        self._cart = cart
        for callback in list(self._subscribers):
            try:
                callback(cart)
            except Exception as e:
                logger.warning(f"Cart subscriber {callback!r} failed: {e}", exc_info=True)


# Manager bound to the current cart_session
_current_manager: ContextVar[Optional[CartManager]] = ContextVar("cart_manager", default=None)


@asynccontextmanager
async def cart_session(
    store: Optional[CartStore] = None,
    key: Optional[str] = None,
    refresh_on_add: Optional[bool] = None,
) -> AsyncIterator[CartManager]:
    """
    Open a cart session: hydrate, serve use_cart(), flush on exit.

    Args:
        store: Store to use (default: configured store singleton)
        key: Storage key (default: RedisKeys.CART)
        refresh_on_add: Override CART_REFRESH_ON_ADD
    """
    manager = CartManager(
        store if store is not None else get_cart_store(),
        key=key or RedisKeys.CART,
        refresh_on_add=CART_REFRESH_ON_ADD if refresh_on_add is None else refresh_on_add,
    )
    await manager.start()
    token = _current_manager.set(manager)
    try:
        yield manager
    finally:
        _current_manager.reset(token)
        await manager.close()


def use_cart() -> CartManager:
    """Get the manager of the enclosing cart_session."""
    manager = _current_manager.get()
    if manager is None:
        raise CartSessionError(ERROR_NO_SESSION)
    return manager
