from __future__ import annotations

from ..extensions import db
from counterpos.time_utils import to_utc_z


RETURN_STATUS_PENDING = "PENDING"
RETURN_STATUS_APPROVED = "APPROVED"
RETURN_STATUS_REJECTED = "REJECTED"

RETURN_STATUSES = (RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED, RETURN_STATUS_REJECTED)


class Return(db.Model):
    """
    Refund request against a prior sale.

    LIFECYCLE:
    PENDING -> APPROVED | REJECTED (both terminal)

    Approval does not restock or post to any ledger; it only records the
    decision.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_returns_status",
        ),
        db.CheckConstraint("refund_paise >= 0", name="ck_returns_refund_nonnegative"),
        db.Index("ix_returns_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reason = db.Column(db.Text, nullable=True)
    refund_paise = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=RETURN_STATUS_PENDING)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    decided_at = db.Column(db.DateTime(timezone=True), nullable=True)

    sale = db.relationship("Sale", backref=db.backref("returns", lazy=True))

    def to_dict(self, include_sale: bool = False) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "reason": self.reason,
            "refund_paise": self.refund_paise,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "decided_at": to_utc_z(self.decided_at) if self.decided_at else None,
        }
        if include_sale:
            data["sale"] = self.sale.to_dict() if self.sale else None
        return data
