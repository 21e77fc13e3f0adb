# backend/counterpos/services/products_service.py
"""
Products Service

Catalog reads for the billing screen and the inventory editor's create /
inline-edit / delete operations.
"""
from __future__ import annotations

import random
import string
import time

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, SaleItem
from ..validation import ConflictError
from .concurrency import run_with_retry

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "sku",
    "category",
    "price_paise",
    "wholesale_price_paise",
    "cost_price_paise",
    "stock_quantity",
}

DEFAULT_CATEGORY = "General"
SKU_ATTEMPTS = 5

_BASE36 = string.digits + string.ascii_uppercase

# Starter catalogue inserted by `flask system init` on an empty table
SEED_PRODUCTS = [
    {"name": "Golden Cricket Championship Cup (Large)", "price_paise": 125000, "stock_quantity": 20, "sku": "TRP-CKT-001", "category": "Sports"},
    {"name": "Crystal Star Excellence Award", "price_paise": 85000, "stock_quantity": 15, "sku": "TRP-CRP-002", "category": "Corporate"},
    {"name": "Wooden Plaque - Best Employee", "price_paise": 45000, "stock_quantity": 50, "sku": "TRP-WDN-003", "category": "Wooden"},
    {"name": "Silver Football Runner Up Cup", "price_paise": 95000, "stock_quantity": 10, "sku": "TRP-FBL-004", "category": "Sports"},
    {"name": "Academic Achievement Shield", "price_paise": 35000, "stock_quantity": 100, "sku": "TRP-ACD-005", "category": "Academic"},
    {"name": "Fiber Gold Star Trophy", "price_paise": 15000, "stock_quantity": 200, "sku": "TRP-FIB-006", "category": "Fiber"},
    {"name": "Brass Medals (Set of 3)", "price_paise": 27500, "stock_quantity": 60, "sku": "MDL-BRS-007", "category": "Medals"},
    {"name": "Glass Momentum with Box", "price_paise": 60000, "stock_quantity": 30, "sku": "TRP-GLS-008", "category": "Corporate"},
]


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def random_base36(length: int) -> str:
    return "".join(random.choices(_BASE36, k=length))


def generate_sku(category: str | None, *, now_ms: int | None = None) -> str:
    """
    <3-letter category prefix>-<base-36 ms timestamp>-<3 random chars>.

    e.g. "SPO-LZ8K2M1Q-7TX". Two creations in the same millisecond can only
    collide if they also draw the same suffix; create_product retries then.
    """
    prefix = (category or "").strip()[:3].upper() or "GEN"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}-{_to_base36(now_ms)}-{random_base36(3)}"


def _sku_exists(sku: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def list_products(
    *,
    q: str | None = None,
    category: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Catalog listing, newest first.

    Args:
        q: case-insensitive substring matched against name or SKU
        category: exact category label; "All" or None disables the filter
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)

    if q:
        pattern = f"%{q.strip().lower()}%"
        base_query = base_query.filter(
            db.or_(
                db.func.lower(Product.name).like(pattern),
                db.func.lower(Product.sku).like(pattern),
            )
        )

    if category and category != "All":
        base_query = base_query.filter(Product.category == category)

    base_query = base_query.order_by(Product.created_at.desc(), Product.id.desc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_categories() -> list[str]:
    """Distinct category labels for the billing filter bar, "All" first."""
    rows = db.session.query(Product.category).distinct().order_by(Product.category.asc()).all()
    return ["All"] + [row.category for row in rows]


def get_products_by_ids(product_ids: list[int]) -> list[Product]:
    """Products for the given ids, in the order given; missing ids are skipped."""
    if not product_ids:
        return []
    by_id = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    }
    return [by_id[pid] for pid in product_ids if pid in by_id]


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    SKU is generated from the category unless the caller supplies one.

    Raises:
        ConflictError: If the SKU is already taken
    """
    patch = dict(patch)
    category = (patch.get("category") or "").strip()
    patch["category"] = category or DEFAULT_CATEGORY

    sku = patch.get("sku")
    if sku:
        if _sku_exists(sku):
            raise ConflictError("SKU already exists.")
    else:
        for _ in range(SKU_ATTEMPTS):
            sku = generate_sku(category)
            if not _sku_exists(sku):
                break
        else:
            raise ConflictError("Could not generate a unique SKU, try again.")
        patch["sku"] = sku

    patch.setdefault("stock_quantity", 0)

    p = Product()
    apply_product_patch(p, patch)
    db.session.add(p)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("SKU already exists.")

    current_app.logger.info("Created product id=%s sku=%s", p.id, p.sku)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Partial update (inline price/stock edits and the other editable fields).

    Product rows are version-checked: a checkout that decremented stock
    between our read and write bumps version_id, the flush raises
    StaleDataError and the edit is re-applied on a fresh row.
    """
    def _op():
        p = db.session.query(Product).filter_by(id=product_id).first()
        if p is None:
            return None

        if "sku" in patch and patch["sku"] != p.sku and _sku_exists(patch["sku"], exclude_id=p.id):
            raise ConflictError("SKU already exists.")

        apply_product_patch(p, patch)
        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> bool:
    """
    Hard delete. Sale lines keep their name/SKU snapshots but lose the link.
    """
    p = db.session.query(Product).filter_by(id=product_id).first()
    if p is None:
        return False

    db.session.query(SaleItem).filter(SaleItem.product_id == product_id).update(
        {SaleItem.product_id: None}, synchronize_session=False
    )
    db.session.delete(p)
    db.session.commit()

    current_app.logger.info("Deleted product id=%s sku=%s", product_id, p.sku)
    return True


def seed_products() -> int:
    """Insert the starter catalogue if the products table is empty."""
    if db.session.query(Product.id).first() is not None:
        return 0

    for row in SEED_PRODUCTS:
        db.session.add(Product(**row))
    db.session.commit()
    return len(SEED_PRODUCTS)
