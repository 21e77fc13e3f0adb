# backend/counterpos/routes/system.py
"""
System health endpoint.

Unauthenticated so the counter screen can tell "server down" apart from
"session expired" before it asks for the PIN.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AccessCredential, Product
from ..models.auth import ROLE_ADMIN, ROLE_OPERATOR
from counterpos.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Round-trip the products table and report which credentials exist."""
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        roles = {row.role for row in db.session.query(AccessCredential.role).all()}
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "operator_pin_set": ROLE_OPERATOR in roles,
                "admin_set": ROLE_ADMIN in roles,
            },
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status_code = 200 if database["status"] == "healthy" else 503
    return {
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "store": current_app.config.get("STORE_NAME"),
        "checks": {"database": database},
    }, status_code
