# Overview: In-progress order held by the counter before checkout.

"""
Cart

The cart never touches the database. It lives in the client's signed
session cookie (Flask `session`) and is rebuilt on every request, so
discarding the cookie discards the cart.

RULES:
- add: products with no stock are ignored; an existing line grows by one
  but never past the product's current stock.
- adjust_quantity: a change that would leave the line below 1 or above the
  product's live stock is ignored.
- switching pricing mode empties the cart so lines never mix retail and
  wholesale prices.
- total = max(0, subtotal - discount). The discount is whatever the
  operator typed; it is not capped at the subtotal.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from flask import session

from ..models.sales import PAYMENT_METHODS, PRICING_MODES
from ..validation import ValidationError, parse_discount_input


CART_SESSION_KEY = "cart"
RECENT_SESSION_KEY = "recent_product_ids"
RECENT_LIMIT = 10
RECENT_DISPLAY_LIMIT = 6

DEFAULT_PRICING_MODE = "retail"
DEFAULT_PAYMENT_METHOD = "CASH"


def resolve_unit_price(product, pricing_mode: str) -> int:
    """Wholesale price only when the mode asks for it and the product has one."""
    wholesale = getattr(product, "wholesale_price_paise", None)
    if pricing_mode == "wholesale" and wholesale is not None and wholesale > 0:
        return wholesale
    return product.price_paise


@dataclass
class CartLine:
    product_id: int
    name: str
    sku: str
    category: str
    unit_price_paise: int
    quantity: int = 1

    @property
    def line_total_paise(self) -> int:
        return self.unit_price_paise * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data["line_total_paise"] = self.line_total_paise
        return data


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    pricing_mode: str = DEFAULT_PRICING_MODE
    discount_input: str = ""
    customer_name: str = ""
    customer_id: int | None = None
    payment_method: str = DEFAULT_PAYMENT_METHOD

    # ------------------------------------------------------------------
    # Line operations
    # ------------------------------------------------------------------

    def find(self, product_id: int) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add(self, product) -> bool:
        """Add one unit of product. Returns False when the cart is unchanged."""
        if product.stock_quantity <= 0:
            return False

        existing = self.find(product.id)
        if existing is not None:
            if existing.quantity >= product.stock_quantity:
                return False
            existing.quantity += 1
            return True

        self.lines.append(CartLine(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            category=product.category,
            unit_price_paise=resolve_unit_price(product, self.pricing_mode),
            quantity=1,
        ))
        return True

    def remove(self, product_id: int) -> bool:
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.product_id != product_id]
        return len(self.lines) != before

    def adjust_quantity(self, product_id: int, delta: int, stock_quantity: int | None) -> bool:
        """
        Change a line's quantity by delta against the product's live stock.

        stock_quantity is None when the product no longer exists; only the
        lower bound applies then (checkout will refuse the line anyway).
        """
        line = self.find(product_id)
        if line is None:
            return False

        new_quantity = line.quantity + delta
        if new_quantity < 1:
            return False
        if stock_quantity is not None and new_quantity > stock_quantity:
            return False

        line.quantity = new_quantity
        return True

    def clear(self) -> None:
        self.lines = []

    # ------------------------------------------------------------------
    # Checkout form fields
    # ------------------------------------------------------------------

    def set_pricing_mode(self, mode: str) -> None:
        if mode not in PRICING_MODES:
            raise ValidationError(f"pricing_mode must be one of: {', '.join(PRICING_MODES)}")
        self.pricing_mode = mode
        self.clear()

    def set_discount(self, value) -> None:
        self.discount_input = "" if value is None else str(value).strip()

    def set_payment_method(self, method: str) -> None:
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        self.payment_method = method

    def set_customer(self, name: str | None = None, customer_id: int | None = None) -> None:
        self.customer_name = (name or "").strip()
        self.customer_id = customer_id

    def reset(self) -> None:
        """Back to a fresh checkout; the pricing mode survives."""
        self.clear()
        self.discount_input = ""
        self.customer_name = ""
        self.customer_id = None
        self.payment_method = DEFAULT_PAYMENT_METHOD

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal_paise(self) -> int:
        return sum(line.line_total_paise for line in self.lines)

    @property
    def discount_paise(self) -> int:
        return parse_discount_input(self.discount_input)

    @property
    def total_paise(self) -> int:
        return max(0, self.subtotal_paise - self.discount_paise)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def summary(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "pricing_mode": self.pricing_mode,
            "discount_input": self.discount_input,
            "customer_name": self.customer_name,
            "customer_id": self.customer_id,
            "payment_method": self.payment_method,
            "item_count": self.item_count,
            "subtotal_paise": self.subtotal_paise,
            "discount_paise": self.discount_paise,
            "total_paise": self.total_paise,
        }

    # ------------------------------------------------------------------
    # Session (de)serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "lines": [asdict(line) for line in self.lines],
            "pricing_mode": self.pricing_mode,
            "discount_input": self.discount_input,
            "customer_name": self.customer_name,
            "customer_id": self.customer_id,
            "payment_method": self.payment_method,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "Cart":
        if not data:
            return cls()
        return cls(
            lines=[CartLine(**line) for line in data.get("lines", [])],
            pricing_mode=data.get("pricing_mode", DEFAULT_PRICING_MODE),
            discount_input=data.get("discount_input", ""),
            customer_name=data.get("customer_name", ""),
            customer_id=data.get("customer_id"),
            payment_method=data.get("payment_method", DEFAULT_PAYMENT_METHOD),
        )


def load_cart() -> Cart:
    return Cart.from_dict(session.get(CART_SESSION_KEY))


def save_cart(cart: Cart) -> None:
    session[CART_SESSION_KEY] = cart.to_dict()


def remember_recent(product_id: int) -> list[int]:
    """Most-recent-first list of distinct product ids added to a cart."""
    recent = [pid for pid in session.get(RECENT_SESSION_KEY, []) if pid != product_id]
    recent.insert(0, product_id)
    recent = recent[:RECENT_LIMIT]
    session[RECENT_SESSION_KEY] = recent
    return recent


def recent_product_ids() -> list[int]:
    return list(session.get(RECENT_SESSION_KEY, []))
