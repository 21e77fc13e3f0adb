# Overview: Flask API routes for catalog reads and inventory edits; parses input and returns JSON responses.

# backend/counterpos/routes/products.py
"""
Product routes.

- Catalog reads (list/search/filter, categories, recently added) are open to
  any unlocked counter session and degrade to empty lists on DB failure.
- Inventory edits (create, inline edit, delete) require an ADMIN session.
"""
from flask import Blueprint, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..models import Product
from ..services import cart_service, products_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "sku",
        "category",
        "price_paise",
        "wholesale_price_paise",
        "cost_price_paise",
        "stock_quantity",
    },
    required_on_create={"name", "price_paise"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@degrade_on_db_error(lambda: {"items": [], "count": 0})
def list_products():
    """
    Query params:
    - q: str (optional) - name or SKU substring, case-insensitive
    - category: str (optional) - "All" disables the filter
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return products_service.list_products(
        q=request.args.get("q"),
        category=request.args.get("category"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/categories")
@require_auth
@degrade_on_db_error(lambda: {"categories": ["All"]})
def list_categories():
    return {"categories": products_service.list_categories()}


@products_bp.get("/recent")
@require_auth
@degrade_on_db_error(lambda: {"items": []})
def recent_products():
    """Recently added-to-cart products still in the catalog, newest first."""
    ids = cart_service.recent_product_ids()
    products = products_service.get_products_by_ids(ids)
    return {"items": [p.to_dict() for p in products[:cart_service.RECENT_DISPLAY_LIMIT]]}


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created, 201


@products_bp.patch("/<int:product_id>")
@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    """Inline edits: any subset of the writable fields (price, stock, ...)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    if updated is None:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    if not products_service.delete_product(product_id=product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
