# Overview: Service-layer operations for maintenance; bulk data housekeeping.

from __future__ import annotations

from ..extensions import db
from ..models import BUSINESS_TABLES


def wipe_business_data() -> dict[str, int]:
    """
    Delete every business row (products, customers, sales, returns,
    purchases). Access credentials and sessions are kept.

    Returns rows deleted per table.
    """
    deleted = {}
    # Children before parents
    for name, model in reversed(BUSINESS_TABLES):
        deleted[name] = db.session.query(model).delete(synchronize_session=False)
    db.session.commit()
    return deleted
