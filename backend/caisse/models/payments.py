from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .cash import money_str

class PlatformPayment(db.Model):
    """
    Payment captured by the customer-facing ordering flow.

    READ-ONLY for the cash desk: rows are written by the ordering module.
    Only status='paid' rows count as confirmed revenue, attributed to the
    calendar day of confirmed_at.
    """
    __tablename__ = "platform_payments"
    __table_args__ = (
        db.Index("ix_platform_payments_restaurant_confirmed", "restaurant_id", "status", "confirmed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    # External order reference, informational only
    order_ref = db.Column(db.String(64), nullable=True)

    amount = db.Column(db.Numeric(14, 2), nullable=False)
    settlement_method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # pending, paid, failed

    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "order_ref": self.order_ref,
            "amount": money_str(self.amount),
            "settlement_method": self.settlement_method,
            "status": self.status,
            "confirmed_at": to_utc_z(self.confirmed_at),
        }
