# Overview: Flask API routes for file downloads (daily summary, sales CSV, JSON backup).

# backend/counterpos/routes/exports.py
import json

from flask import Blueprint, Response, current_app, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import export_service
from counterpos.time_utils import parse_iso_datetime

exports_bp = Blueprint("exports", __name__, url_prefix="/api/exports")


def _attachment(body: str, mimetype: str, filename: str) -> Response:
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@exports_bp.get("/daily-summary")
@require_auth
@require_admin
def daily_summary_route():
    try:
        text = export_service.daily_summary_text()
    except Exception:
        current_app.logger.exception("Daily summary export failed")
        return jsonify({"error": "Internal server error"}), 500
    return _attachment(
        text,
        "text/plain; charset=utf-8",
        export_service.export_filename("daily-summary", "txt"),
    )


@exports_bp.get("/sales.csv")
@require_auth
@require_admin
def sales_csv_route():
    """Query params: start, end (optional ISO-8601)"""
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400

    try:
        body = export_service.sales_csv(start=start, end=end)
    except Exception:
        current_app.logger.exception("Sales CSV export failed")
        return jsonify({"error": "Internal server error"}), 500
    return _attachment(
        body,
        "text/csv; charset=utf-8",
        export_service.export_filename("sales-report", "csv"),
    )


@exports_bp.get("/backup")
@require_auth
@require_admin
def backup_route():
    try:
        payload = export_service.backup_payload()
    except Exception:
        current_app.logger.exception("Backup export failed")
        return jsonify({"error": "Internal server error"}), 500
    return _attachment(
        json.dumps(payload, ensure_ascii=False, indent=2),
        "application/json",
        export_service.export_filename("counterpos-backup", "json"),
    )
