# Overview: Flask API routes for stock purchases (restocking).

from flask import Blueprint, current_app, jsonify, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..models import StockPurchase
from ..services import purchase_service
from ..services.purchase_service import PurchaseError
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_stock_purchase,
    validate_payload,
)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "unit_cost_paise", "supplier", "notes"},
    required_on_create={"product_id", "quantity", "unit_cost_paise"},
)

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/stock-purchases")


@purchases_bp.post("")
@require_auth
@require_admin
def create_purchase_route():
    """
    Request body:
    {
        "product_id": 4,
        "quantity": 25,
        "unit_cost_paise": 52000,
        "supplier": "Kerala Trophies",  (optional)
        "notes": "Diwali restock"  (optional)
    }

    Adds quantity to the product's stock and sets its cost price.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(
            model=StockPurchase, payload=payload, policy=PURCHASE_POLICY, partial=False
        )
        enforce_rules_stock_purchase(patch)
        purchase = purchase_service.add_stock_purchase(**patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PurchaseError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record stock purchase")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(purchase), 201


@purchases_bp.get("")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"items": [], "count": 0})
def list_purchases_route():
    """Query params: product_id (optional)"""
    items = purchase_service.list_stock_purchases(request.args.get("product_id", type=int))
    return jsonify({"items": items, "count": len(items)}), 200
