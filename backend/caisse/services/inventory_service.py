# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/caisse/services/inventory_service.py

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import InventoryItem, StockMovement
from .concurrency import lock_for_update
from .exceptions import ProductNotFound
"""
Caisse Inventory Invariants (authoritative)

Inventory model:
- InventoryItem.quantity is the current on-hand level per (restaurant, product).
- Every change to quantity goes through apply_movement and appends exactly one
  StockMovement carrying previous/new quantity and the applied delta.
- StockMovement rows are append-only (no updates/deletes).

Business invariants:
- Quantity never goes negative. A decrement larger than the stock on hand is
  clamped to zero rather than rejected; the movement records the clamped
  delta (new - previous), and the caller's figure in requested_delta.
- Increments are applied as-is.

Transaction boundary:
- apply_movement only flushes. The ledger service that calls it owns the
  transaction, so the quantity write, the movement row and the ledger entry
  commit or roll back together.
- The item row is read with SELECT ... FOR UPDATE and carries an optimistic
  version column, so concurrent movements on one product are serialized.
"""


MOVEMENT_PURCHASE = "purchase"
MOVEMENT_SALE_MANUAL = "sale_manual"


def _get_item(restaurant_id: int, product_ref: str, *, lock: bool = False) -> InventoryItem:
    query = db.session.query(InventoryItem).filter_by(
        restaurant_id=restaurant_id,
        product_ref=product_ref,
    )
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise ProductNotFound(f"Product {product_ref!r} not found in stock")
    return item


def get_inventory_item(restaurant_id: int, product_ref: str) -> InventoryItem:
    """Current stock row for a product; ProductNotFound outside the restaurant."""
    return _get_item(restaurant_id, product_ref)


def apply_movement(
    *,
    restaurant_id: int,
    product_ref: str,
    signed_delta: int,
    actor_id: str,
    movement_type: str,
    reason: str | None = None,
) -> StockMovement:
    """
    Apply a signed quantity change and append its StockMovement.

    Does NOT commit: must run inside the caller's transaction.

    Raises:
        ProductNotFound: no inventory row for (restaurant_id, product_ref)
        ValueError: signed_delta is zero
    """
    if signed_delta == 0:
        raise ValueError("signed_delta must be non-zero")

    item = _get_item(restaurant_id, product_ref, lock=True)

    previous = item.quantity
    new_quantity = max(0, previous + signed_delta)
    applied = new_quantity - previous

    if applied != signed_delta:
        current_app.logger.warning(
            "Stock decrement clamped for %s (restaurant %s): requested %d, on hand %d",
            product_ref, restaurant_id, signed_delta, previous,
        )

    item.quantity = new_quantity

    movement = StockMovement(
        restaurant_id=restaurant_id,
        product_ref=product_ref,
        actor_id=actor_id,
        movement_type=movement_type,
        quantity_delta=applied,
        requested_delta=signed_delta,
        previous_quantity=previous,
        new_quantity=new_quantity,
        reason=reason[:255] if reason else None,
    )
    db.session.add(movement)
    # Flushing the item surfaces a version conflict here, inside the caller's retry
    db.session.flush()

    current_app.logger.info(
        "Stock movement %s %s: %d -> %d (%+d)",
        movement_type, product_ref, previous, new_quantity, applied,
    )
    return movement


def list_stock_movements(restaurant_id: int, product_ref: str, limit: int | None = None) -> list[StockMovement]:
    """
    Most recent movements for a product, newest first.

    Raises ProductNotFound if the product has no stock row in this restaurant.
    """
    _get_item(restaurant_id, product_ref)

    if limit is None:
        limit = current_app.config.get("STOCK_HISTORY_LIMIT", 50)

    return db.session.query(StockMovement).filter_by(
        restaurant_id=restaurant_id,
        product_ref=product_ref,
    ).order_by(
        StockMovement.created_at.desc(),
        StockMovement.id.desc(),
    ).limit(limit).all()
