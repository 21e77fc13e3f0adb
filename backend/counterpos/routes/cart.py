# Overview: Flask API routes for the billing cart held in the session cookie.

# backend/counterpos/routes/cart.py
"""
Cart API Routes

Every route loads the cart from the signed session cookie, applies one
change and writes it back. Changes the rules refuse (out of stock, past the
shelf quantity, below one unit) leave the cart as it was and report
"changed": false with 200, the same as a click that did nothing.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..models import Product
from ..services import cart_service
from ..validation import ValidationError

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_response(cart, changed: bool = True, status: int = 200):
    return jsonify({"cart": cart.summary(), "changed": changed}), status


def _int_field(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value


@cart_bp.get("")
@require_auth
def get_cart_route():
    return _cart_response(cart_service.load_cart(), changed=False)


@cart_bp.post("/items")
@require_auth
def add_item_route():
    """
    Add one unit of a product at the current pricing mode's price.

    Request body:
    {
        "product_id": 12
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        product_id = _int_field(data, "product_id")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = db.session.get(Product, product_id)
        if product is None:
            return jsonify({"error": "Product not found"}), 404

        cart = cart_service.load_cart()
        changed = cart.add(product)
        if changed:
            cart_service.save_cart(cart)
            cart_service.remember_recent(product.id)
        return _cart_response(cart, changed)
    except Exception:
        current_app.logger.exception("Failed to add product %s to cart", product_id)
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("/items/<int:product_id>")
@require_auth
def remove_item_route(product_id: int):
    cart = cart_service.load_cart()
    changed = cart.remove(product_id)
    cart_service.save_cart(cart)
    return _cart_response(cart, changed)


@cart_bp.post("/items/<int:product_id>/adjust")
@require_auth
def adjust_item_route(product_id: int):
    """
    Request body:
    {
        "delta": 1 | -1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        delta = _int_field(data, "delta")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    cart = cart_service.load_cart()
    if cart.find(product_id) is None:
        return jsonify({"error": "Product not in cart"}), 404

    try:
        product = db.session.get(Product, product_id)
    except Exception:
        current_app.logger.exception("Failed to read stock for product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500

    stock = product.stock_quantity if product is not None else None
    changed = cart.adjust_quantity(product_id, delta, stock)
    cart_service.save_cart(cart)
    return _cart_response(cart, changed)


@cart_bp.put("/pricing-mode")
@require_auth
def pricing_mode_route():
    """Switching retail <-> wholesale empties the cart."""
    data = request.get_json(silent=True) or {}
    cart = cart_service.load_cart()
    try:
        cart.set_pricing_mode(data.get("pricing_mode"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    cart_service.save_cart(cart)
    return _cart_response(cart)


@cart_bp.patch("")
@require_auth
def update_checkout_fields_route():
    """
    Checkout form fields, any subset:
    {
        "discount": "20",
        "payment_method": "CASH" | "CARD" | "UPI",
        "customer_name": "Asha",
        "customer_id": 3
    }

    The discount is kept as typed; blank, negative or non-numeric input
    counts as no discount.
    """
    data = request.get_json(silent=True) or {}
    cart = cart_service.load_cart()

    try:
        if "discount" in data:
            cart.set_discount(data["discount"])
        if "payment_method" in data:
            cart.set_payment_method(data["payment_method"])
        if "customer_name" in data or "customer_id" in data:
            customer_id = data.get("customer_id", cart.customer_id)
            if customer_id is not None:
                customer_id = _int_field({"customer_id": customer_id}, "customer_id")
            cart.set_customer(data.get("customer_name", cart.customer_name), customer_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    cart_service.save_cart(cart)
    return _cart_response(cart)


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    cart = cart_service.load_cart()
    cart.reset()
    cart_service.save_cart(cart)
    return _cart_response(cart)
