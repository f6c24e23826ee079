"""Cart models: immutable line items and carts with Decimal pricing."""
import json
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterator, Optional, Tuple

from gomarketplace.errors import (
    CartDecodeError,
    ERROR_INVALID_QUANTITY,
    ERROR_SNAPSHOT_DUPLICATE_ID,
    ERROR_SNAPSHOT_NOT_JSON,
    ERROR_SNAPSHOT_NOT_LIST,
)
from gomarketplace.models import Product
from gomarketplace.money import multiply, parse_decimal, round_money, to_decimal


@dataclass(frozen=True)
class LineItem:
    """Single product line in the cart."""
    id: str
    title: str
    image_url: str
    price: Decimal
    quantity: int = 1

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError(f"{ERROR_INVALID_QUANTITY}: {self.quantity!r}")
        object.__setattr__(self, "price", to_decimal(self.price))

    @property
    def total_price(self) -> Decimal:
        """Price for all units of this line."""
        return round_money(multiply(self.price, self.quantity))

    def with_quantity(self, quantity: int) -> "LineItem":
        return replace(self, quantity=quantity)

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "LineItem":
        return cls(
            id=product.id,
            title=product.title,
            image_url=product.image_url,
            price=product.price,
            quantity=quantity,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary (price as string to keep precision)."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": str(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """Create from dictionary. Price may be a JSON number or a string."""
        if not isinstance(data["id"], str) or not data["id"]:
            raise ValueError(f"Invalid line item id: {data['id']!r}")
        return cls(
            id=data["id"],
            title=str(data["title"]),
            image_url=str(data["image_url"]),
            price=parse_decimal(data["price"]),
            quantity=data["quantity"],
        )


@dataclass(frozen=True)
class Cart:
    """
    Ordered, immutable collection of line items, unique by id.

    Every mutation returns a new Cart; a Cart that was already handed
    to a subscriber never changes underneath it.
    """
    items: Tuple[LineItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        items = tuple(self.items)
        seen = set()
        for item in items:
            if item.id in seen:
                raise ValueError(f"{ERROR_SNAPSHOT_DUPLICATE_ID}: {item.id!r}")
            seen.add(item.id)
        object.__setattr__(self, "items", items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, product_id: object) -> bool:
        return self.find(product_id) is not None

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        """Sum of line totals."""
        return round_money(sum((item.total_price for item in self.items), Decimal("0")))

    def find(self, product_id) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == product_id), None)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def add(self, product: Product, refresh: bool = False) -> "Cart":
        """
        Add one unit of a product.

        A product already in the cart gets its quantity bumped in place
        (position kept); a new one is appended with quantity 1. With
        ``refresh`` the stored title, image and price are replaced by the
        incoming product's.
        """
        existing = self.find(product.id)
        if existing is None:
            return Cart(self.items + (LineItem.from_product(product),))

        if refresh:
            updated = LineItem.from_product(product, quantity=existing.quantity + 1)
        else:
            updated = existing.with_quantity(existing.quantity + 1)
        return self._replace_line(updated)

    def increment(self, product_id: str) -> "Cart":
        """Bump quantity of an existing line. Unknown ids return self."""
        existing = self.find(product_id)
        if existing is None:
            return self
        return self._replace_line(existing.with_quantity(existing.quantity + 1))

    def decrement(self, product_id: str) -> "Cart":
        """Lower quantity of an existing line, dropping it at zero. Unknown ids return self."""
        existing = self.find(product_id)
        if existing is None:
            return self
        if existing.quantity == 1:
            return Cart(tuple(item for item in self.items if item.id != product_id))
        return self._replace_line(existing.with_quantity(existing.quantity - 1))

    def _replace_line(self, line: LineItem) -> "Cart":
        return Cart(tuple(line if item.id == line.id else item for item in self.items))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_list(self) -> list:
        """Convert to a JSON-ready list of line item dicts."""
        return [item.to_dict() for item in self.items]

    @classmethod
    def from_list(cls, data) -> "Cart":
        """Create from a decoded snapshot list."""
        if not isinstance(data, list):
            raise CartDecodeError(ERROR_SNAPSHOT_NOT_LIST)
        try:
            return cls(tuple(LineItem.from_dict(entry) for entry in data))
        except CartDecodeError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise CartDecodeError(f"Invalid cart snapshot: {e}") from e

    def dumps(self) -> str:
        """Serialize for the key-value store."""
        return json.dumps(self.to_list(), ensure_ascii=False)

    @classmethod
    def loads(cls, raw: str) -> "Cart":
        """Deserialize a stored snapshot."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise CartDecodeError(f"{ERROR_SNAPSHOT_NOT_JSON}: {e}") from e
        return cls.from_list(data)


EMPTY_CART = Cart()
