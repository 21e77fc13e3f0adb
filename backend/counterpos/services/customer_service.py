# Overview: Service-layer operations for customers; create, search and purchase statistics.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Customer, Sale

SEARCH_LIMIT = 10

CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "email", "address"}


def list_customers() -> list[dict]:
    rows = db.session.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()
    return [c.to_dict() for c in rows]


def search_customers(query: str | None) -> list[dict]:
    """Case-insensitive substring match on name or phone, at most SEARCH_LIMIT rows."""
    q = (query or "").strip()
    if not q:
        return []
    pattern = f"%{q.lower()}%"
    rows = (
        db.session.query(Customer)
        .filter(
            db.or_(
                db.func.lower(Customer.name).like(pattern),
                Customer.phone.like(pattern),
            )
        )
        .order_by(Customer.name.asc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    return [c.to_dict() for c in rows]


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def create_customer(*, patch: dict) -> dict:
    customer = Customer(total_purchases_paise=0, visit_count=0)
    for key, value in patch.items():
        if key in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, key, value)
    db.session.add(customer)
    db.session.commit()

    current_app.logger.info("Created customer id=%s", customer.id)
    return customer.to_dict()


def delete_customer(customer_id: int) -> bool:
    """Delete a customer; their past sales keep the typed name but lose the link."""
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return False

    db.session.query(Sale).filter(Sale.customer_id == customer_id).update(
        {Sale.customer_id: None}, synchronize_session=False
    )
    db.session.delete(customer)
    db.session.commit()

    current_app.logger.info("Deleted customer id=%s", customer_id)
    return True
