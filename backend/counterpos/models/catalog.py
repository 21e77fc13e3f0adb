from __future__ import annotations

from ..extensions import db
from counterpos.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    SKU is the display code printed on shelf labels and receipts. It is
    generated at creation time (see products_service.generate_sku) and is
    unique across the catalog.

    STOCK INVARIANT:
    stock_quantity never goes negative. The CHECK constraint is the last line
    of defence; checkout decrements with a conditional UPDATE so a sale that
    would oversell is rejected before the constraint fires.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonnegative"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(64), nullable=False, default="General")

    # Authoritative storage in paise (frontend may only format for display)
    price_paise = db.Column(db.Integer, nullable=False)
    wholesale_price_paise = db.Column(db.Integer, nullable=True)
    cost_price_paise = db.Column(db.Integer, nullable=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "price_paise": self.price_paise,
            "wholesale_price_paise": self.wholesale_price_paise,
            "cost_price_paise": self.cost_price_paise,
            "stock_quantity": self.stock_quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockPurchase(db.Model):
    """Restocking record: units bought from a supplier at a unit cost."""
    __tablename__ = "stock_purchases"
    __table_args__ = (
        db.Index("ix_stock_purchases_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)
    unit_cost_paise = db.Column(db.Integer, nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship(
        "Product",
        backref=db.backref("stock_purchases", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_cost_paise": self.unit_cost_paise,
            "supplier": self.supplier,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
