"""
Revenue Ledger

WHY: Not every sale goes through the ordering app. Walk-in sales, drinks
served at the counter and services are typed in by hand at the till, and
they must land in the same session balance as platform payments.

DESIGN PRINCIPLES:
- Entries only against an open session of the caller's restaurant
- total_amount = quantity * unit_amount, computed here, never trusted from input
- Selling a good with a product_ref decrements stock in the same transaction
- Entries are immutable once created
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import RevenueEntry
from ..validation import (
    MAX_AMOUNT,
    RevenueKind,
    ValidationError,
    parse_amount,
    parse_quantity,
    parse_revenue_kind,
    parse_settlement_method,
    require_text,
    optional_text,
)
from .audit_service import record_event
from .cash_session_service import get_open_session_for_update
from .concurrency import atomic, run_with_retry
from .inventory_service import apply_movement, MOVEMENT_SALE_MANUAL
from .tenant_service import require_context


def record_revenue(
    *,
    restaurant_id: int,
    user_id: str,
    session_id: int,
    description,
    quantity,
    unit_amount,
    settlement_method,
    revenue_kind,
    product_ref: str | None = None,
    notes: str | None = None,
) -> RevenueEntry:
    """
    Record a manual sale against an open session.

    Validation happens before any write; the optional stock decrement and the
    entry itself are one atomic unit.

    Raises:
        Unauthorized: missing/invalid tenant context
        InvalidDomainValue: unknown settlement method or revenue kind
        ValidationError: bad quantity/amount/description
        SessionNotFound / SessionNotOpen: session missing or not open
        ProductNotFound: product_ref has no stock row in this restaurant
    """
    ctx = require_context(user_id, restaurant_id)

    method = parse_settlement_method(settlement_method)
    kind = parse_revenue_kind(revenue_kind)
    description = require_text(description, "description")
    qty = parse_quantity(quantity)
    unit = parse_amount(unit_amount, "unit_amount")
    notes = optional_text(notes, "notes")
    product_ref = optional_text(product_ref, "product_ref", max_length=64)

    total = unit * qty
    if total > MAX_AMOUNT:
        raise ValidationError(f"total_amount cannot exceed {MAX_AMOUNT}")
    stock_linked = kind is RevenueKind.GOOD and product_ref is not None

    def _op() -> RevenueEntry:
        with atomic():
            session = get_open_session_for_update(ctx.restaurant_id, session_id)

            movement_id = None
            if stock_linked:
                movement = apply_movement(
                    restaurant_id=ctx.restaurant_id,
                    product_ref=product_ref,
                    signed_delta=-qty,
                    actor_id=ctx.user_id,
                    movement_type=MOVEMENT_SALE_MANUAL,
                    reason=f"Manual sale: {description}",
                )
                movement_id = movement.id

            entry = RevenueEntry(
                restaurant_id=ctx.restaurant_id,
                session_id=session.id,
                description=description,
                quantity=qty,
                unit_amount=unit,
                total_amount=total,
                settlement_method=method.value,
                revenue_kind=kind.value,
                product_ref=product_ref,
                stock_movement_id=movement_id,
                notes=notes,
                created_by=ctx.user_id,
            )
            db.session.add(entry)
            db.session.flush()
        return entry

    # Only the inventory read-modify-write path is worth a retry
    entry = run_with_retry(_op, attempts=None if stock_linked else 1)

    current_app.logger.info(
        "Revenue %s recorded on session %s: %s x %s = %s (%s)",
        entry.id, session_id, qty, unit, total, method.value,
    )
    record_event(
        restaurant_id=ctx.restaurant_id,
        event_type="cash.revenue_recorded",
        entity_type="revenue_entry",
        entity_id=entry.id,
        actor_id=ctx.user_id,
        note=description,
        payload=f"total_amount={total};settlement_method={method.value}",
    )
    return entry


def list_revenues(restaurant_id: int, session_id: int) -> list[RevenueEntry]:
    """All revenue entries of a session, newest first."""
    return db.session.query(RevenueEntry).filter_by(
        restaurant_id=restaurant_id,
        session_id=session_id,
    ).order_by(RevenueEntry.created_at.desc(), RevenueEntry.id.desc()).all()
