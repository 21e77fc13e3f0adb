"""
Money parsing, formatting and store-calendar helpers.
"""

from datetime import datetime

import pytest

from counterpos.formatting import format_local_datetime, format_long_date, format_money
from counterpos.services.checkout_service import generate_bill_number
from counterpos.time_utils import parse_iso_datetime, start_of_local_day, start_of_local_month, to_utc_z
from counterpos.validation import ValidationError, parse_amount_to_paise


@pytest.mark.parametrize("value,expected", [
    ("20", 2000),
    ("20.5", 2050),
    (" 0.01 ", 1),
    (19.99, 1999),
    (7, 700),
])
def test_parse_amount(value, expected):
    assert parse_amount_to_paise(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "NaN", "Infinity", None, True])
def test_parse_amount_rejects(value):
    with pytest.raises(ValidationError):
        parse_amount_to_paise(value)


def test_format_money(app):
    assert format_money(12345) == "₹123.45"
    assert format_money(5) == "₹0.05"
    assert format_money(-2000) == "-₹20.00"
    assert format_money(None) == "₹0.00"
    assert format_money(100, symbol="") == "1.00"


def test_store_calendar(app):
    now = datetime(2026, 10, 17, 12, 0)
    assert start_of_local_day(now) == datetime(2026, 10, 16, 18, 30)
    assert start_of_local_month(now) == datetime(2026, 9, 30, 18, 30)
    assert format_local_datetime(datetime(2026, 10, 17, 13, 5)) == "17/10/2026 06:35 PM"
    assert format_long_date(now) == "Saturday, 17 October 2026"


def test_iso_round_trip():
    assert parse_iso_datetime("2026-10-17T17:30:00+05:30") == datetime(2026, 10, 17, 12, 0)
    assert to_utc_z(datetime(2026, 10, 17, 12, 0)) == "2026-10-17T12:00:00Z"
    assert parse_iso_datetime("  ") is None


def test_bill_number_uses_store_clock(app):
    bill = generate_bill_number(datetime(2026, 10, 17, 13, 5))
    assert bill.startswith("BILL-17102026-1835-")
    assert len(bill.split("-")[-1]) == 4
