from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class AuditEvent(db.Model):
    """
    Best-effort audit trail of cash-desk actions.

    Written after the financial transaction commits, in its own transaction.
    A failed audit write is logged and dropped; it never undoes the business
    write it describes. Append-only.
    """
    __tablename__ = "audit_events"
    __table_args__ = (
        db.Index("ix_audit_events_restaurant_occurred", "restaurant_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)  # e.g. cash_session.opened
    entity_type = db.Column(db.String(64), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    actor_id = db.Column(db.String(64), nullable=True)

    note = db.Column(db.String(255), nullable=True)
    payload = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "note": self.note,
            "payload": self.payload,
            "occurred_at": to_utc_z(self.occurred_at),
        }
