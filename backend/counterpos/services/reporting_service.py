# Overview: Service-layer operations for reporting; read-only aggregation over sales and products.

"""
Reporting Service

Two interchangeable aggregation back ends sit behind SalesAggregator:

- InMemorySalesAggregator scans the rows and reduces them in Python. Works
  on every database.
- SqlSalesAggregator pushes SUM/COUNT/GROUP BY into the database. Daily
  buckets use strftime on SQLite and to_char(timezone(...)) on PostgreSQL.
  On any other database get_aggregator falls back to the in-memory one.

REPORT_AGGREGATOR ("memory" | "sql") selects one per request. Everything
above the aggregator (dashboard, chart series, summaries) is shared, and the
two must return identical numbers.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from counterpos.extensions import db
from counterpos.models import Product, Sale, SaleItem
from counterpos.time_utils import (
    local_date,
    local_to_utc_naive,
    parse_iso_datetime,
    rolling_days_ago,
    start_of_local_day,
    start_of_local_month,
    to_local,
    to_utc_z,
    utcnow,
)


MAX_CHART_DAYS = 366


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("start and end must be ISO-8601 datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must not be after end")
    return start_dt, end_dt


# =============================================================================
# AGGREGATORS
# =============================================================================

class SalesAggregator:
    """Aggregation primitives the reports are built from."""

    name = "base"

    def revenue_and_count(self, start: datetime | None = None, end: datetime | None = None) -> tuple[int, int]:
        """(sum of total_paise, number of sales) with start <= created_at <= end."""
        raise NotImplementedError

    def discount_total(self, start: datetime | None = None, end: datetime | None = None) -> int:
        raise NotImplementedError

    def daily_revenue(self, start: datetime) -> dict[date, int]:
        """Revenue per store-local calendar day for sales at or after start."""
        raise NotImplementedError

    def category_breakdown(self) -> dict[str, tuple[int, int]]:
        """category -> (product count, stock value in paise), by first appearance."""
        raise NotImplementedError

    def revenue_and_cost(self) -> tuple[int, int]:
        """Sold revenue at sale price and its cost at the products' current cost price."""
        raise NotImplementedError


class InMemorySalesAggregator(SalesAggregator):
    name = "memory"

    def _sales(self, start: datetime | None, end: datetime | None) -> list[Sale]:
        query = db.session.query(Sale)
        if start is not None:
            query = query.filter(Sale.created_at >= start)
        if end is not None:
            query = query.filter(Sale.created_at <= end)
        return query.all()

    def revenue_and_count(self, start=None, end=None):
        sales = self._sales(start, end)
        return sum(s.total_paise for s in sales), len(sales)

    def discount_total(self, start=None, end=None):
        return sum(s.discount_paise or 0 for s in self._sales(start, end))

    def daily_revenue(self, start):
        buckets: dict[date, int] = {}
        for sale in self._sales(start, None):
            day = local_date(sale.created_at)
            buckets[day] = buckets.get(day, 0) + sale.total_paise
        return buckets

    def category_breakdown(self):
        categories: dict[str, tuple[int, int]] = {}
        for product in db.session.query(Product).order_by(Product.id.asc()).all():
            count, value = categories.get(product.category, (0, 0))
            categories[product.category] = (
                count + 1,
                value + product.stock_quantity * product.price_paise,
            )
        return categories

    def revenue_and_cost(self):
        revenue = 0
        cost = 0
        items = db.session.query(SaleItem).options(selectinload(SaleItem.product)).all()
        for item in items:
            revenue += item.quantity * item.price_at_sale_paise
            unit_cost = item.product.cost_price_paise if item.product else None
            cost += item.quantity * (unit_cost or 0)
        return revenue, cost


class SqlSalesAggregator(SalesAggregator):
    name = "sql"
    dialects = ("sqlite", "postgresql")

    @staticmethod
    def local_day_expression(dialect: str, start: datetime):
        """
        Sale.created_at as a store-local "YYYY-MM-DD" string.

        SQLite stores naive UTC, so the day is shifted by the store offset at
        start. PostgreSQL converts each timestamptz with the zone name.
        """
        if dialect == "sqlite":
            offset = to_local(start).utcoffset() or timedelta(0)
            modifier = f"{int(offset.total_seconds() // 60):+d} minutes"
            return func.strftime("%Y-%m-%d", Sale.created_at, modifier)
        if dialect == "postgresql":
            zone = current_app.config.get("STORE_TIMEZONE", "UTC")
            return func.to_char(func.timezone(zone, Sale.created_at), "YYYY-MM-DD")
        raise ReportError(f"SQL aggregation does not support the {dialect} dialect")

    @staticmethod
    def _filtered(query, start, end):
        if start is not None:
            query = query.filter(Sale.created_at >= start)
        if end is not None:
            query = query.filter(Sale.created_at <= end)
        return query

    def revenue_and_count(self, start=None, end=None):
        query = db.session.query(
            func.coalesce(func.sum(Sale.total_paise), 0),
            func.count(Sale.id),
        )
        revenue, count = self._filtered(query, start, end).one()
        return int(revenue or 0), int(count or 0)

    def discount_total(self, start=None, end=None):
        query = db.session.query(func.coalesce(func.sum(Sale.discount_paise), 0))
        return int(self._filtered(query, start, end).scalar() or 0)

    def daily_revenue(self, start):
        day_expr = self.local_day_expression(_dialect_name(), start)

        rows = (
            db.session.query(
                day_expr.label("day"),
                func.coalesce(func.sum(Sale.total_paise), 0).label("revenue"),
            )
            .filter(Sale.created_at >= start)
            .group_by("day")
            .all()
        )
        return {date.fromisoformat(row.day): int(row.revenue or 0) for row in rows}

    def category_breakdown(self):
        rows = (
            db.session.query(
                Product.category,
                func.count(Product.id).label("count"),
                func.coalesce(func.sum(Product.stock_quantity * Product.price_paise), 0).label("value"),
                func.min(Product.id).label("first_id"),
            )
            .group_by(Product.category)
            .order_by("first_id")
            .all()
        )
        return {row.category: (int(row.count), int(row.value or 0)) for row in rows}

    def revenue_and_cost(self):
        revenue, cost = (
            db.session.query(
                func.coalesce(func.sum(SaleItem.quantity * SaleItem.price_at_sale_paise), 0),
                func.coalesce(
                    func.sum(SaleItem.quantity * func.coalesce(Product.cost_price_paise, 0)), 0
                ),
            )
            .select_from(SaleItem)
            .outerjoin(Product, Product.id == SaleItem.product_id)
            .one()
        )
        return int(revenue or 0), int(cost or 0)


AGGREGATORS = {
    InMemorySalesAggregator.name: InMemorySalesAggregator,
    SqlSalesAggregator.name: SqlSalesAggregator,
}


def _dialect_name() -> str:
    return db.engine.dialect.name


def get_aggregator(name: str | None = None) -> SalesAggregator:
    name = name or current_app.config.get("REPORT_AGGREGATOR", "memory")
    try:
        aggregator_cls = AGGREGATORS[name]
    except KeyError:
        raise ReportError(f"Unknown report aggregator: {name}")

    dialects = getattr(aggregator_cls, "dialects", None)
    if dialects is not None and _dialect_name() not in dialects:
        current_app.logger.warning(
            "Report aggregator %s does not support %s; using memory", name, _dialect_name()
        )
        return InMemorySalesAggregator()
    return aggregator_cls()


# =============================================================================
# REPORTS
# =============================================================================

def low_stock_products(threshold: int | None = None) -> list[Product]:
    if threshold is None:
        threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 5)
    return (
        db.session.query(Product)
        .filter(Product.stock_quantity < threshold)
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )


def dashboard_stats(*, now: datetime | None = None, aggregator: SalesAggregator | None = None) -> dict:
    """
    Headline numbers: today (since local midnight), this week (rolling
    7 days), this month (since the 1st), low stock and catalog size.
    """
    now = now or utcnow()
    aggregator = aggregator or get_aggregator()

    today_revenue, today_count = aggregator.revenue_and_count(start_of_local_day(now))
    week_revenue, week_count = aggregator.revenue_and_count(rolling_days_ago(7, now))
    month_revenue, month_count = aggregator.revenue_and_count(start_of_local_month(now))

    low_stock = low_stock_products()
    total_products = db.session.query(func.count(Product.id)).scalar() or 0

    return {
        "generated_at": to_utc_z(now),
        "today_revenue_paise": today_revenue,
        "today_sales_count": today_count,
        "week_revenue_paise": week_revenue,
        "week_sales_count": week_count,
        "month_revenue_paise": month_revenue,
        "month_sales_count": month_count,
        "low_stock_count": len(low_stock),
        "low_stock_products": [p.to_dict() for p in low_stock],
        "total_products": int(total_products),
    }


def sales_chart(days: int = 7, *, now: datetime | None = None, aggregator: SalesAggregator | None = None) -> dict:
    """
    Daily revenue for the last `days` local days (today included), oldest
    first, with zero for days without sales.
    """
    if days < 1 or days > MAX_CHART_DAYS:
        raise ReportError(f"days must be between 1 and {MAX_CHART_DAYS}")

    now = now or utcnow()
    aggregator = aggregator or get_aggregator()

    today = local_date(now)
    first_day = today - timedelta(days=days - 1)
    buckets = aggregator.daily_revenue(local_to_utc_naive(datetime.combine(first_day, time.min)))

    dates = [first_day + timedelta(days=i) for i in range(days)]
    return {
        "dates": [d.isoformat() for d in dates],
        "labels": [f"{d:%a} {d.day}" for d in dates],
        "data": [buckets.get(d, 0) for d in dates],
    }


def category_stats(*, aggregator: SalesAggregator | None = None) -> dict:
    """Product count and stock value (stock x price) per category."""
    aggregator = aggregator or get_aggregator()
    breakdown = aggregator.category_breakdown()
    return {
        "labels": list(breakdown),
        "counts": [count for count, _ in breakdown.values()],
        "values": [value for _, value in breakdown.values()],
    }


def sales_summary(
    start: str | None = None,
    end: str | None = None,
    *,
    aggregator: SalesAggregator | None = None,
) -> dict:
    start_dt, end_dt = _parse_range(start, end)
    aggregator = aggregator or get_aggregator()

    revenue, count = aggregator.revenue_and_count(start_dt, end_dt)
    discount = aggregator.discount_total(start_dt, end_dt)

    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "total_sales": count,
        "total_revenue_paise": revenue,
        "total_discount_paise": discount,
        "average_order_value_paise": round(revenue / count) if count else 0,
    }


def sales_with_items(start: str | None = None, end: str | None = None) -> list[dict]:
    """Sales newest first, each with its line items."""
    start_dt, end_dt = _parse_range(start, end)
    query = db.session.query(Sale).options(selectinload(Sale.items))
    if start_dt:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt:
        query = query.filter(Sale.created_at <= end_dt)
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()
    return [sale.to_dict(include_items=True) for sale in sales]


def profit_stats(*, aggregator: SalesAggregator | None = None) -> dict:
    """
    Gross profit over all sale lines, costed at each product's current cost
    price (lines whose product has no cost price count as zero cost), plus
    per-product list margins.
    """
    aggregator = aggregator or get_aggregator()
    revenue, cost = aggregator.revenue_and_cost()

    margins = []
    for p in db.session.query(Product).order_by(Product.name.asc()).all():
        cost_price = p.cost_price_paise or 0
        margin = p.price_paise - cost_price
        margin_percent = 0.0
        if p.cost_price_paise and p.price_paise:
            margin_percent = round(margin / p.price_paise * 100, 2)
        margins.append({
            "id": p.id,
            "name": p.name,
            "price_paise": p.price_paise,
            "cost_price_paise": cost_price,
            "margin_paise": margin,
            "margin_percent": margin_percent,
            "stock_quantity": p.stock_quantity,
        })

    gross = revenue - cost
    return {
        "total_revenue_paise": revenue,
        "total_cost_paise": cost,
        "gross_profit_paise": gross,
        "profit_margin_percent": round(gross / revenue * 100, 2) if revenue else 0.0,
        "product_margins": margins,
    }
