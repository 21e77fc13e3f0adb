# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..models import Customer
from ..services import customer_service
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"items": [], "count": 0})
def list_customers_route():
    items = customer_service.list_customers()
    return jsonify({"items": items, "count": len(items)}), 200


@customers_bp.get("/search")
@require_auth
@degrade_on_db_error(lambda: {"items": []})
def search_customers_route():
    """Query params: q - name or phone fragment (max 10 results)"""
    return jsonify({"items": customer_service.search_customers(request.args.get("q"))}), 200


@customers_bp.post("")
@require_auth
@require_admin
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(customer_service.create_customer(patch=patch)), 201


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_admin
def delete_customer_route(customer_id: int):
    if not customer_service.delete_customer(customer_id):
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"ok": True}), 200
