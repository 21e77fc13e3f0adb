# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

# backend/counterpos/routes/returns.py
"""
Return Processing API Routes

DESIGN:
- Create returns referencing an original sale (status PENDING)
- Admin approves or rejects; both decisions are final
- Repeating the decision a return already has is a no-op (200)
- Switching a decided return to the other decision is refused (409)

All routes require an ADMIN session.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..services import return_service
from ..services.return_service import ReturnError
from ..validation import ValidationError

returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


def _return_error(e: ReturnError):
    body = {"error": str(e)}
    if e.details:
        body["details"] = e.details
    return jsonify(body), e.status_code


# =============================================================================
# RETURN CREATION
# =============================================================================

@returns_bp.post("")
@require_auth
@require_admin
def create_return_route():
    """
    Request body:
    {
        "sale_id": 123,
        "refund_paise": 50000,
        "reason": "Engraving misspelt"  (optional)
    }

    Returns:
        201: Return created with PENDING status
        400: Invalid input
        404: Sale not found
    """
    data = request.get_json(silent=True) or {}

    sale_id = data.get("sale_id")
    refund_paise = data.get("refund_paise")

    if isinstance(sale_id, bool) or not isinstance(sale_id, int):
        return jsonify({"error": "sale_id must be an integer"}), 400
    if isinstance(refund_paise, bool) or not isinstance(refund_paise, int):
        return jsonify({"error": "refund_paise must be an integer"}), 400

    try:
        return_doc = return_service.create_return(
            sale_id=sale_id,
            refund_paise=refund_paise,
            reason=data.get("reason"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ReturnError as e:
        return _return_error(e)
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"return": return_doc.to_dict(include_sale=True)}), 201


# =============================================================================
# DECISIONS
# =============================================================================

@returns_bp.post("/<int:return_id>/approve")
@require_auth
@require_admin
def approve_return_route(return_id: int):
    try:
        return_doc = return_service.approve_return(return_id)
    except ReturnError as e:
        return _return_error(e)
    except Exception:
        current_app.logger.exception("Failed to approve return %s", return_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"return": return_doc.to_dict()}), 200


@returns_bp.post("/<int:return_id>/reject")
@require_auth
@require_admin
def reject_return_route(return_id: int):
    try:
        return_doc = return_service.reject_return(return_id)
    except ReturnError as e:
        return _return_error(e)
    except Exception:
        current_app.logger.exception("Failed to reject return %s", return_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"return": return_doc.to_dict()}), 200


# =============================================================================
# QUERIES
# =============================================================================

@returns_bp.get("")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"items": [], "count": 0})
def list_returns_route():
    """Query params: status (optional) - PENDING | APPROVED | REJECTED"""
    try:
        items = return_service.list_returns(status=request.args.get("status") or None)
    except ReturnError as e:
        return _return_error(e)
    return jsonify({"items": items, "count": len(items)}), 200


@returns_bp.get("/summary")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {
    "counts": {"PENDING": 0, "APPROVED": 0, "REJECTED": 0},
    "total": 0,
    "approved_refund_paise": 0,
})
def return_summary_route():
    return jsonify(return_service.get_return_summary()), 200
