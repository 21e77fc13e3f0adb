from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


# =============================================================================
# STORE-LOCAL CALENDAR
# =============================================================================
# Storage is UTC-naive; day/month boundaries for reports and receipts follow
# the store's wall clock (STORE_TIMEZONE).

def store_tz() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("STORE_TIMEZONE", "UTC"))


def to_local(dt: datetime) -> datetime:
    """UTC-naive -> aware datetime in the store zone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(store_tz())


def local_to_utc_naive(dt: datetime) -> datetime:
    """Store-local (naive or aware) -> UTC-naive."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=store_tz())
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(dt: datetime) -> date:
    return to_local(dt).date()


def start_of_local_day(now: datetime | None = None) -> datetime:
    """UTC-naive instant of the most recent local midnight."""
    local_now = to_local(now or utcnow())
    return local_to_utc_naive(datetime.combine(local_now.date(), time.min))


def start_of_local_month(now: datetime | None = None) -> datetime:
    """UTC-naive instant of local midnight on the 1st of the current month."""
    local_now = to_local(now or utcnow())
    first = local_now.date().replace(day=1)
    return local_to_utc_naive(datetime.combine(first, time.min))


def rolling_days_ago(days: int, now: datetime | None = None) -> datetime:
    """UTC-naive instant exactly `days` * 24h before now."""
    return (now or utcnow()) - timedelta(days=days)
