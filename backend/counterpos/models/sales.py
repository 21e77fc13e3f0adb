from __future__ import annotations

from ..extensions import db
from counterpos.time_utils import to_utc_z


PAYMENT_METHODS = ("CASH", "CARD", "UPI")
PRICING_MODES = ("retail", "wholesale")


class Sale(db.Model):
    """
    Completed checkout. Immutable once written: there is no edit or void flow.

    bill_number is the human-readable identifier printed on the receipt
    (BILL-DDMMYYYY-HHMM-XXXX). It is unique but is never used as a key.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("bill_number", name="uq_sales_bill_number"),
        db.CheckConstraint("payment_method IN ('CASH', 'CARD', 'UPI')", name="ck_sales_payment_method"),
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_number = db.Column(db.String(64), nullable=False)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    subtotal_paise = db.Column(db.Integer, nullable=False)
    discount_paise = db.Column(db.Integer, nullable=False, default=0)
    total_paise = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(8), nullable=False, default="CASH")
    pricing_mode = db.Column(db.String(16), nullable=False, default="retail")

    # Set explicitly by checkout so reports and receipts share one clock
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "bill_number": self.bill_number,
            "customer_name": self.customer_name,
            "customer_id": self.customer_id,
            "subtotal_paise": self.subtotal_paise,
            "discount_paise": self.discount_paise,
            "total_paise": self.total_paise,
            "payment_method": self.payment_method,
            "pricing_mode": self.pricing_mode,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One product line within a Sale.

    price_at_sale_paise is the unit price locked in when the line entered the
    cart; later product price edits never touch it. Name/SKU are snapshotted
    too so receipts and CSV exports survive product deletion.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_paise = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    @property
    def line_total_paise(self) -> int:
        return self.quantity * self.price_at_sale_paise

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "quantity": self.quantity,
            "price_at_sale_paise": self.price_at_sale_paise,
            "line_total_paise": self.line_total_paise,
        }
