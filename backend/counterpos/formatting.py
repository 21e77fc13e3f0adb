from __future__ import annotations

from datetime import datetime

from flask import current_app

from .time_utils import to_local


def format_money(paise: int | None, symbol: str | None = None) -> str:
    """12345 -> "₹123.45"; negatives keep the sign before the symbol."""
    if symbol is None:
        symbol = current_app.config.get("CURRENCY_SYMBOL", "₹")
    paise = int(paise or 0)
    sign = "-" if paise < 0 else ""
    rupees, rem = divmod(abs(paise), 100)
    return f"{sign}{symbol}{rupees}.{rem:02d}"


def format_local_datetime(dt: datetime | None) -> str:
    """Receipt/CSV style: 17/10/2026 06:45 PM in the store zone."""
    if dt is None:
        return ""
    return to_local(dt).strftime("%d/%m/%Y %I:%M %p")


def format_long_date(dt: datetime) -> str:
    """Report header style: Saturday, 17 October 2026."""
    local = to_local(dt)
    return f"{local:%A}, {local.day} {local:%B %Y}"
