"""
Expense Ledger

WHY: Money leaving the till (supplier purchases, wages, fuel, repairs) must
be recorded against the day's session so the theoretical balance reflects
it. Supplier purchases of stocked products also restock inventory.

DESIGN PRINCIPLES:
- Category and settlement method validated before any write
- stock_purchase + product_ref + quantity_added increments stock in the same
  transaction as the expense
- stock_purchase without the product/quantity pair is accepted as a plain
  expense with no inventory effect
- Entries are immutable once created
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import ExpenseEntry
from ..validation import (
    ExpenseCategory,
    parse_amount,
    parse_expense_category,
    parse_quantity,
    parse_settlement_method,
    require_text,
    optional_text,
)
from .audit_service import record_event
from .cash_session_service import get_open_session_for_update
from .concurrency import atomic, run_with_retry
from .inventory_service import apply_movement, MOVEMENT_PURCHASE
from .tenant_service import require_context


def record_expense(
    *,
    restaurant_id: int,
    user_id: str,
    session_id: int,
    description,
    amount,
    category,
    settlement_method,
    product_ref: str | None = None,
    quantity_added=None,
    notes: str | None = None,
) -> ExpenseEntry:
    """
    Record an outgoing expense against an open session.

    Raises:
        Unauthorized: missing/invalid tenant context
        InvalidDomainValue: unknown category or settlement method
        ValidationError: bad amount/quantity/description
        SessionNotFound / SessionNotOpen: session missing or not open
        ProductNotFound: product_ref has no stock row in this restaurant
    """
    ctx = require_context(user_id, restaurant_id)

    cat = parse_expense_category(category)
    method = parse_settlement_method(settlement_method)
    description = require_text(description, "description")
    amt = parse_amount(amount)
    notes = optional_text(notes, "notes")
    product_ref = optional_text(product_ref, "product_ref", max_length=64)
    qty_added = parse_quantity(quantity_added, "quantity_added") if quantity_added is not None else None

    stock_linked = (
        cat is ExpenseCategory.STOCK_PURCHASE
        and product_ref is not None
        and qty_added is not None
    )
    if cat is ExpenseCategory.STOCK_PURCHASE and not stock_linked:
        current_app.logger.warning(
            "stock_purchase expense on session %s without product/quantity; recorded without stock effect",
            session_id,
        )

    def _op() -> ExpenseEntry:
        with atomic():
            session = get_open_session_for_update(ctx.restaurant_id, session_id)

            movement_id = None
            if stock_linked:
                movement = apply_movement(
                    restaurant_id=ctx.restaurant_id,
                    product_ref=product_ref,
                    signed_delta=qty_added,
                    actor_id=ctx.user_id,
                    movement_type=MOVEMENT_PURCHASE,
                    reason=f"Supplier purchase: {description}",
                )
                movement_id = movement.id

            entry = ExpenseEntry(
                restaurant_id=ctx.restaurant_id,
                session_id=session.id,
                description=description,
                amount=amt,
                category=cat.value,
                settlement_method=method.value,
                product_ref=product_ref,
                quantity_added=qty_added,
                stock_movement_id=movement_id,
                notes=notes,
                created_by=ctx.user_id,
            )
            db.session.add(entry)
            db.session.flush()
        return entry

    entry = run_with_retry(_op, attempts=None if stock_linked else 1)

    current_app.logger.info(
        "Expense %s recorded on session %s: %s (%s, %s)",
        entry.id, session_id, amt, cat.value, method.value,
    )
    record_event(
        restaurant_id=ctx.restaurant_id,
        event_type="cash.expense_recorded",
        entity_type="expense_entry",
        entity_id=entry.id,
        actor_id=ctx.user_id,
        note=description,
        payload=f"amount={amt};category={cat.value};settlement_method={method.value}",
    )
    return entry


def list_expenses(restaurant_id: int, session_id: int) -> list[ExpenseEntry]:
    """All expense entries of a session, newest first."""
    return db.session.query(ExpenseEntry).filter_by(
        restaurant_id=restaurant_id,
        session_id=session_id,
    ).order_by(ExpenseEntry.created_at.desc(), ExpenseEntry.id.desc()).all()
