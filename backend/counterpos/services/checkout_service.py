"""
Checkout Service - all-or-nothing sale commit

One database transaction covers:
1. the Sale header,
2. one SaleItem per cart line (price frozen at add-to-cart time),
3. a conditional stock decrement per product,
4. the optional customer purchase statistics.

Stock is reserved with
    UPDATE products
       SET stock_quantity = stock_quantity - :qty, version_id = version_id + 1
     WHERE id = :id AND stock_quantity >= :qty
and a zero row count rejects the whole sale. Two checkouts racing for the
last unit therefore produce exactly one sale; the loser sees
InsufficientStockError and nothing of its attempt persists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Customer, Product, Sale, SaleItem
from ..models.sales import PAYMENT_METHODS, PRICING_MODES
from counterpos.time_utils import to_local, utcnow
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .products_service import random_base36

BILL_NUMBER_ATTEMPTS = 5


class CheckoutError(Exception):
    """Raised when a sale cannot be committed."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(CheckoutError):
    """A line asks for more units than are on the shelf."""


@dataclass(frozen=True)
class CheckoutLine:
    product_id: int
    quantity: int
    unit_price_paise: int


def lines_from_cart(cart) -> list[CheckoutLine]:
    return [
        CheckoutLine(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price_paise=line.unit_price_paise,
        )
        for line in cart.lines
    ]


def generate_bill_number(now: datetime | None = None) -> str:
    """BILL-DDMMYYYY-HHMM-XXXX on the store's wall clock."""
    local_now = to_local(now or utcnow())
    return f"BILL-{local_now:%d%m%Y}-{local_now:%H%M}-{random_base36(4)}"


def _validate(lines: list[CheckoutLine], discount_paise: int, payment_method: str, pricing_mode: str) -> None:
    if not lines:
        raise CheckoutError("Cart is empty")

    bad = [line.product_id for line in lines if line.quantity < 1 or line.unit_price_paise < 0]
    if bad:
        raise CheckoutError("Invalid cart lines", details={"product_ids": bad})

    if discount_paise < 0:
        raise CheckoutError("Discount cannot be negative")

    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    if pricing_mode not in PRICING_MODES:
        raise CheckoutError(f"pricing_mode must be one of: {', '.join(PRICING_MODES)}")


def _requested_quantities(lines: list[CheckoutLine]) -> dict[int, int]:
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _next_bill_number(now: datetime) -> str:
    for _ in range(BILL_NUMBER_ATTEMPTS):
        candidate = generate_bill_number(now)
        taken = db.session.query(Sale.id).filter_by(bill_number=candidate).first()
        if taken is None:
            return candidate
    raise CheckoutError("Could not allocate a bill number, try again")


def _decrement_stock(product_id: int, quantity: int) -> bool:
    """Atomic decrement-if-sufficient. True when the row was updated."""
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(
            stock_quantity=Product.stock_quantity - quantity,
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1


def commit_sale(
    *,
    lines: list[CheckoutLine],
    customer_name: str | None = None,
    discount_paise: int = 0,
    payment_method: str = "CASH",
    pricing_mode: str = "retail",
    customer_id: int | None = None,
) -> Sale:
    """
    Persist a sale and reserve its stock atomically.

    Raises:
        CheckoutError: empty cart, bad input, unknown product/customer
        InsufficientStockError: any product short on stock (nothing persisted)
    """
    _validate(lines, discount_paise, payment_method, pricing_mode)

    subtotal = sum(line.unit_price_paise * line.quantity for line in lines)
    total = max(0, subtotal - discount_paise)
    requested = _requested_quantities(lines)

    def _op():
        begin_write_transaction()
        now = utcnow()

        products = {
            p.id: p
            for p in db.session.query(Product).filter(Product.id.in_(list(requested))).all()
        }
        missing = sorted(pid for pid in requested if pid not in products)
        if missing:
            raise CheckoutError("Product not found", details={"product_ids": missing})

        customer = None
        if customer_id is not None:
            customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
            if customer is None:
                raise CheckoutError("Customer not found")

        sale = Sale(
            bill_number=_next_bill_number(now),
            customer_name=(customer_name or "").strip() or None,
            customer_id=customer_id,
            subtotal_paise=subtotal,
            discount_paise=discount_paise,
            total_paise=total,
            payment_method=payment_method,
            pricing_mode=pricing_mode,
            created_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        for line in lines:
            product = products[line.product_id]
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                quantity=line.quantity,
                price_at_sale_paise=line.unit_price_paise,
            ))

        # Fixed order keeps row-lock acquisition consistent across checkouts
        insufficient = []
        for product_id in sorted(requested):
            quantity = requested[product_id]
            if not _decrement_stock(product_id, quantity):
                insufficient.append({
                    "product_id": product_id,
                    "name": products[product_id].name,
                    "requested_quantity": quantity,
                    "stock_quantity": products[product_id].stock_quantity,
                })

        if insufficient:
            raise InsufficientStockError(
                "Insufficient stock to complete sale",
                details={"items": insufficient},
            )

        if customer is not None:
            customer.total_purchases_paise = (customer.total_purchases_paise or 0) + total
            customer.visit_count = (customer.visit_count or 0) + 1

        db.session.commit()
        return sale

    try:
        sale = run_with_retry(_op)
    except InsufficientStockError as exc:
        current_app.logger.warning("Checkout rejected: %s %s", exc, exc.details)
        raise

    current_app.logger.info(
        "Sale committed id=%s bill=%s total_paise=%s lines=%s",
        sale.id, sale.bill_number, sale.total_paise, len(lines),
    )
    return sale
