# Overview: Best-effort audit trail for cash desk actions.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AuditEvent
"""
Caisse Audit Trail Invariants (authoritative)

- Append-only: no updates/deletes of existing events.
- No domain/business logic in the audit trail itself.
- Best-effort: events are written AFTER the business transaction commits,
  in their own transaction. A failed audit write is logged and dropped; it
  never rolls back or fails the financial write it describes.
"""


def record_event(
    *,
    restaurant_id: int,
    event_type: str,
    entity_type: str,
    entity_id: int,
    actor_id: str | None = None,
    note: Optional[str] = None,
    payload: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> AuditEvent | None:
    """
    Append an audit event after a committed business write.

    Returns the event, or None if it could not be written.
    """
    try:
        ev = AuditEvent(
            restaurant_id=restaurant_id,
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            note=note[:255] if note else None,
            payload=payload,
        )
        if occurred_at is not None:
            ev.occurred_at = occurred_at
        db.session.add(ev)
        db.session.commit()
        return ev
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "Audit write failed for %s %s:%s (ignored)", event_type, entity_type, entity_id
        )
        return None


def list_events(restaurant_id: int, *, entity_type: str | None = None, limit: int = 200) -> list[AuditEvent]:
    q = db.session.query(AuditEvent).filter_by(restaurant_id=restaurant_id)
    if entity_type:
        q = q.filter_by(entity_type=entity_type)
    return q.order_by(AuditEvent.occurred_at.desc(), AuditEvent.id.desc()).limit(limit).all()
