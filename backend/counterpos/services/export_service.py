# Overview: Service-layer operations for downloadable exports (daily summary, sales CSV, JSON backup).

from __future__ import annotations

import csv
import io
from datetime import datetime

from flask import current_app
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..formatting import format_local_datetime, format_long_date, format_money
from ..models import BUSINESS_TABLES, Sale
from counterpos.time_utils import local_date, to_local, to_utc_z, utcnow
from . import reporting_service


RULE = "═" * 39

CSV_HEADERS = ["Date", "Customer", "Payment Method", "Discount", "Total", "Items"]


def _plain_amount(paise: int | None) -> str:
    return format_money(paise, symbol="")


def export_filename(prefix: str, extension: str, now: datetime | None = None) -> str:
    """daily-summary-2026-10-17.txt, dated by the store's calendar."""
    return f"{prefix}-{local_date(now or utcnow()).isoformat()}.{extension}"


def daily_summary_text(*, now: datetime | None = None) -> str:
    """
    Plain-text end-of-day report built from the dashboard numbers.

    With no sales every revenue line reads ₹0.00 and every count 0.
    """
    now = now or utcnow()
    stats = reporting_service.dashboard_stats(now=now)
    store_name = current_app.config.get("STORE_NAME", "")

    if stats["low_stock_products"]:
        lines = [f"  • {p['name']} ({p['stock_quantity']} left)" for p in stats["low_stock_products"]]
        inventory_note = "LOW STOCK ALERT:\n" + "\n".join(lines)
    else:
        inventory_note = "All products well-stocked ✓"

    parts = [
        store_name.upper(),
        "DAILY SUMMARY REPORT",
        RULE,
        "",
        f"Date: {format_long_date(now)}",
        f"Generated: {to_local(now):%I:%M:%S %p}",
        "",
        RULE,
        "SALES OVERVIEW",
        RULE,
        "",
        f"Today's Revenue:     {format_money(stats['today_revenue_paise'])}",
        f"Today's Sales:       {stats['today_sales_count']} transactions",
        "",
        f"This Week:           {format_money(stats['week_revenue_paise'])}",
        f"Week Sales:          {stats['week_sales_count']} transactions",
        "",
        f"This Month:          {format_money(stats['month_revenue_paise'])}",
        f"Month Sales:         {stats['month_sales_count']} transactions",
        "",
        RULE,
        "INVENTORY STATUS",
        RULE,
        "",
        f"Total Products:      {stats['total_products']}",
        f"Low Stock Items:     {stats['low_stock_count']}",
        "",
        inventory_note,
        "",
        RULE,
    ]
    return "\n".join(parts)


def sales_csv(*, start: datetime | None = None, end: datetime | None = None) -> str:
    """Sales newest first, one row per sale, every cell quoted."""
    query = db.session.query(Sale).options(selectinload(Sale.items))
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end)
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for sale in sales:
        items = "; ".join(f"{item.product_name or 'Unknown'} x{item.quantity}" for item in sale.items)
        writer.writerow([
            format_local_datetime(sale.created_at),
            sale.customer_name or "Walk-in",
            sale.payment_method,
            _plain_amount(sale.discount_paise),
            _plain_amount(sale.total_paise),
            items,
        ])
    return buf.getvalue()


def _row_to_dict(row) -> dict:
    data = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            value = to_utc_z(value)
        data[column.key] = value
    return data


def backup_payload(*, now: datetime | None = None) -> dict:
    """Every business table as plain rows, for offline backup."""
    data = {}
    for name, model in BUSINESS_TABLES:
        rows = db.session.query(model).order_by(model.id.asc()).all()
        data[name] = [_row_to_dict(row) for row in rows]

    current_app.logger.info(
        "Backup exported: %s",
        ", ".join(f"{name}={len(rows)}" for name, rows in data.items()),
    )
    return {
        "exportDate": to_utc_z(now or utcnow()),
        "data": data,
    }
