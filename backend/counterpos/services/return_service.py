"""
Return Processing Service

DESIGN PRINCIPLES:
- Returns reference an existing Sale
- Refund amount is entered by the operator (paise, > 0); reason optional
- Decisions are final: PENDING -> APPROVED | REJECTED

LIFECYCLE:
1. Create return (PENDING)
2. Approve or reject

Re-applying the decision a return already has is accepted and changes
nothing. Approval records the decision only; it does not restock inventory
or post a refund anywhere.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Return, Sale
from ..models.returns import (
    RETURN_STATUS_APPROVED,
    RETURN_STATUS_PENDING,
    RETURN_STATUS_REJECTED,
    RETURN_STATUSES,
)
from counterpos.time_utils import utcnow
from ..validation import enforce_rules_return
from .concurrency import lock_for_update, run_with_retry


class ReturnError(Exception):
    """Raised for return operation errors."""
    def __init__(self, message: str, details: dict | None = None, *, status_code: int = 400):
        super().__init__(message)
        self.details = details or {}
        self.status_code = status_code


# =============================================================================
# RETURN CREATION
# =============================================================================

def create_return(*, sale_id: int, refund_paise: int, reason: str | None = None) -> Return:
    """
    Create a new return document (status: PENDING).

    Raises:
        ValidationError: If refund_paise is not positive
        ReturnError: If the sale does not exist
    """
    enforce_rules_return({"refund_paise": refund_paise})

    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise ReturnError(f"Sale {sale_id} not found", status_code=404)

    return_doc = Return(
        sale_id=sale_id,
        reason=(reason or "").strip() or None,
        refund_paise=refund_paise,
        status=RETURN_STATUS_PENDING,
        created_at=utcnow(),
    )

    db.session.add(return_doc)
    db.session.commit()

    current_app.logger.info("Return %s created for sale %s", return_doc.id, sale_id)
    return return_doc


# =============================================================================
# DECISIONS
# =============================================================================

def _decide(return_id: int, decision: str) -> Return:
    def _op():
        return_doc = lock_for_update(db.session.query(Return).filter_by(id=return_id)).first()
        if return_doc is None:
            raise ReturnError("Return not found", status_code=404)

        if return_doc.status == decision:
            return return_doc

        if return_doc.status != RETURN_STATUS_PENDING:
            raise ReturnError(
                f"Return already {return_doc.status}",
                details={"status": return_doc.status, "requested": decision},
                status_code=409,
            )

        return_doc.status = decision
        return_doc.decided_at = utcnow()
        db.session.commit()

        current_app.logger.info("Return %s %s", return_id, decision)
        return return_doc

    return run_with_retry(_op)


def approve_return(return_id: int) -> Return:
    return _decide(return_id, RETURN_STATUS_APPROVED)


def reject_return(return_id: int) -> Return:
    return _decide(return_id, RETURN_STATUS_REJECTED)


# =============================================================================
# QUERIES
# =============================================================================

def list_returns(status: str | None = None) -> list[dict]:
    """Newest first, each with the referenced sale embedded."""
    if status is not None and status not in RETURN_STATUSES:
        raise ReturnError(f"status must be one of: {', '.join(RETURN_STATUSES)}")

    query = db.session.query(Return)
    if status:
        query = query.filter(Return.status == status)
    returns = query.order_by(Return.created_at.desc(), Return.id.desc()).all()
    return [r.to_dict(include_sale=True) for r in returns]


def get_return_summary() -> dict:
    """Counts per status and the refund total of approved returns."""
    counts = {status: 0 for status in RETURN_STATUSES}
    approved_refunds = 0
    for return_doc in db.session.query(Return).all():
        counts[return_doc.status] = counts.get(return_doc.status, 0) + 1
        if return_doc.status == RETURN_STATUS_APPROVED:
            approved_refunds += return_doc.refund_paise

    return {
        "counts": counts,
        "total": sum(counts.values()),
        "approved_refund_paise": approved_refunds,
    }
