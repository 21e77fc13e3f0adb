# Overview: Service-layer operations for stock purchases (restocking from suppliers).

"""
Purchase Service

A stock purchase records units bought in and adds them to the shelf. The
increment is a single UPDATE (stock_quantity = stock_quantity + :qty) in the
same transaction as the purchase row, so it composes safely with concurrent
checkouts. The product's cost price follows the latest purchase.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Product, StockPurchase
from ..validation import MAX_STOCK_QUANTITY, ValidationError
from .concurrency import begin_write_transaction, run_with_retry


class PurchaseError(Exception):
    """Raised when a stock purchase cannot be recorded."""
    def __init__(self, message: str, details: dict | None = None, *, status_code: int = 400):
        super().__init__(message)
        self.details = details or {}
        self.status_code = status_code


def add_stock_purchase(
    *,
    product_id: int,
    quantity: int,
    unit_cost_paise: int,
    supplier: str | None = None,
    notes: str | None = None,
) -> dict:
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")

    def _op():
        begin_write_transaction()

        product = db.session.get(Product, product_id)
        if product is None:
            raise PurchaseError("Product not found", {"product_id": product_id}, status_code=404)
        if product.stock_quantity + quantity > MAX_STOCK_QUANTITY:
            raise ValidationError(f"stock_quantity cannot exceed {MAX_STOCK_QUANTITY}")

        purchase = StockPurchase(
            product_id=product_id,
            quantity=quantity,
            unit_cost_paise=unit_cost_paise,
            supplier=supplier,
            notes=notes,
        )
        db.session.add(purchase)

        db.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock_quantity=Product.stock_quantity + quantity,
                cost_price_paise=unit_cost_paise,
                version_id=Product.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        return purchase

    purchase = run_with_retry(_op)
    current_app.logger.info(
        "Stock purchase id=%s product=%s qty=%s", purchase.id, product_id, quantity
    )
    return purchase.to_dict()


def list_stock_purchases(product_id: int | None = None) -> list[dict]:
    query = db.session.query(StockPurchase)
    if product_id is not None:
        query = query.filter(StockPurchase.product_id == product_id)
    rows = query.order_by(StockPurchase.created_at.desc(), StockPurchase.id.desc()).all()
    return [row.to_dict() for row in rows]
