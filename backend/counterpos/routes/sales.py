# Overview: Flask API routes for completed sales and their receipts.

# backend/counterpos/routes/sales.py
"""
Sales API Routes

- GET /api/sales                       admin: sales with items (optional start/end)
- GET /api/sales/<id>                  one sale with items
- GET /api/sales/<id>/receipt          receipt data for the preview
- GET /api/sales/<id>/receipt/print    fixed print layout (HTML)
"""

from flask import Blueprint, jsonify, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..extensions import db
from ..models import Sale
from ..services import receipt_service, reporting_service
from ..services.receipt_service import ReceiptError
from ..services.reporting_service import ReportError

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"items": [], "count": 0})
def list_sales_route():
    try:
        items = reporting_service.sales_with_items(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": items, "count": len(items)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict(include_items=True)}), 200


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
def get_receipt_route(sale_id: int):
    try:
        receipt = receipt_service.get_receipt(sale_id)
    except ReceiptError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"receipt": receipt}), 200


@sales_bp.get("/<int:sale_id>/receipt/print")
@require_auth
def print_receipt_route(sale_id: int):
    try:
        receipt = receipt_service.get_receipt(sale_id)
    except ReceiptError as e:
        return jsonify({"error": str(e)}), 404
    html = receipt_service.render_receipt_html(receipt)
    return html, 200, {"Content-Type": "text/html; charset=utf-8"}
