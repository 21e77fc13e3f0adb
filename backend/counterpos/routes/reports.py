# Overview: Flask API routes for the admin dashboard and sales reports.

# backend/counterpos/routes/reports.py
"""
Reporting API Routes

All routes require an ADMIN session and are read-only. A database failure
yields the zero/empty shape of each report so the dashboard still renders.
"""

from flask import Blueprint, jsonify, request

from ..decorators import degrade_on_db_error, require_admin, require_auth
from ..services import reporting_service
from ..services.reporting_service import ReportError

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _empty_dashboard() -> dict:
    return {
        "today_revenue_paise": 0,
        "today_sales_count": 0,
        "week_revenue_paise": 0,
        "week_sales_count": 0,
        "month_revenue_paise": 0,
        "month_sales_count": 0,
        "low_stock_count": 0,
        "low_stock_products": [],
        "total_products": 0,
    }


@reports_bp.get("/dashboard")
@require_auth
@require_admin
@degrade_on_db_error(_empty_dashboard)
def dashboard_route():
    return jsonify(reporting_service.dashboard_stats()), 200


@reports_bp.get("/sales-chart")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"dates": [], "labels": [], "data": []})
def sales_chart_route():
    """Query params: days (optional, default 7)"""
    days = request.args.get("days", default=7, type=int)
    try:
        return jsonify(reporting_service.sales_chart(days)), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400


@reports_bp.get("/categories")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {"labels": [], "counts": [], "values": []})
def category_stats_route():
    return jsonify(reporting_service.category_stats()), 200


@reports_bp.get("/summary")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {
    "total_sales": 0,
    "total_revenue_paise": 0,
    "total_discount_paise": 0,
    "average_order_value_paise": 0,
})
def sales_summary_route():
    """Query params: start, end (optional ISO-8601)"""
    try:
        summary = reporting_service.sales_summary(
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(summary), 200


@reports_bp.get("/profit")
@require_auth
@require_admin
@degrade_on_db_error(lambda: {
    "total_revenue_paise": 0,
    "total_cost_paise": 0,
    "gross_profit_paise": 0,
    "profit_margin_percent": 0.0,
    "product_margins": [],
})
def profit_route():
    return jsonify(reporting_service.profit_stats()), 200
