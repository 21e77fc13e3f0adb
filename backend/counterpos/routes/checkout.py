# Overview: Flask API route that turns the session cart into a committed sale.

# backend/counterpos/routes/checkout.py
"""
Checkout API Route

POST /api/checkout commits the session cart in one transaction (see
checkout_service). On success the cart is reset and the receipt is
returned; on any failure the cart is left exactly as it was so the
operator can fix it and retry.
"""

from flask import Blueprint, current_app, jsonify

from ..decorators import require_auth
from ..services import cart_service, checkout_service, receipt_service
from ..services.checkout_service import CheckoutError, InsufficientStockError

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.post("")
@require_auth
def checkout_route():
    """
    Returns:
        201: {"sale": {...}, "receipt": {...}}
        400: Empty cart, invalid lines, unknown product or customer
        409: Insufficient stock (details.items lists each short line)
    """
    cart = cart_service.load_cart()

    try:
        sale = checkout_service.commit_sale(
            lines=checkout_service.lines_from_cart(cart),
            customer_name=cart.customer_name,
            discount_paise=cart.discount_paise,
            payment_method=cart.payment_method,
            pricing_mode=cart.pricing_mode,
            customer_id=cart.customer_id,
        )
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "Internal server error"}), 500

    cart.reset()
    cart_service.save_cart(cart)

    return jsonify({
        "sale": sale.to_dict(include_items=True),
        "receipt": receipt_service.build_receipt(sale),
    }), 201
