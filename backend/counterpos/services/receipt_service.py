# Overview: Receipt data for the on-screen preview and the print template.

from __future__ import annotations

from flask import current_app, render_template

from ..extensions import db
from ..models import Sale
from counterpos.formatting import format_local_datetime, format_money


class ReceiptError(Exception):
    """Raised when a receipt cannot be produced."""
    pass


def store_identity() -> dict:
    cfg = current_app.config
    return {
        "name": cfg["STORE_NAME"],
        "tagline": cfg["STORE_TAGLINE"],
        "address": cfg["STORE_ADDRESS"],
        "phone": cfg["STORE_PHONE"],
        "terms": cfg["RECEIPT_TERMS"],
    }


def build_receipt(sale: Sale) -> dict:
    """
    Everything the preview and the print layout show, already formatted
    alongside the raw paise values.
    """
    items = [
        {
            "name": item.product_name,
            "sku": item.product_sku,
            "quantity": item.quantity,
            "unit_price_paise": item.price_at_sale_paise,
            "line_total_paise": item.line_total_paise,
            "unit_price": format_money(item.price_at_sale_paise),
            "line_total": format_money(item.line_total_paise),
        }
        for item in sale.items
    ]

    return {
        "sale_id": sale.id,
        "bill_number": sale.bill_number,
        "date": format_local_datetime(sale.created_at),
        "customer_name": sale.customer_name or "Walk-in Customer",
        "payment_method": sale.payment_method,
        "items": items,
        "subtotal_paise": sale.subtotal_paise,
        "discount_paise": sale.discount_paise,
        "total_paise": sale.total_paise,
        "subtotal": format_money(sale.subtotal_paise),
        "discount": format_money(sale.discount_paise),
        "total": format_money(sale.total_paise),
        "store": store_identity(),
    }


def get_receipt(sale_id: int) -> dict:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise ReceiptError("Sale not found")
    return build_receipt(sale)


def render_receipt_html(receipt: dict) -> str:
    """Fixed print layout; same sections as the preview."""
    return render_template("receipt.html", receipt=receipt)
