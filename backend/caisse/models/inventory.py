from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class InventoryItem(db.Model):
    """
    Current stock level of one product in one restaurant.

    SHARED: The row belongs to the warehouse/menu side; the cash desk only
    ever mutates `quantity`, and only through inventory_service.apply_movement
    so that every change leaves a StockMovement behind.

    CONCURRENCY: version_id is an optimistic lock. Two movements racing on
    the same row make the loser fail with StaleDataError instead of silently
    overwriting the winner's delta.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("restaurant_id", "product_ref", name="uq_inventory_items_restaurant_product"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    # Catalog identity of the product (owned by the menu module)
    product_ref = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    restaurant = db.relationship("Restaurant", backref=db.backref("inventory_items", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<InventoryItem product_ref={self.product_ref!r} qty={self.quantity} restaurant_id={self.restaurant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "product_ref": self.product_ref,
            "name": self.name,
            "quantity": self.quantity,
            "version_id": self.version_id,
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of one inventory quantity change.

    quantity_delta is the delta actually applied (new - previous). It differs
    from requested_delta only when a decrement was clamped at zero.

    MOVEMENT TYPES:
    - purchase: stock bought through a stock_purchase expense
    - sale_manual: stock sold through a manually recorded revenue
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_restaurant_product", "restaurant_id", "product_ref"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)
    product_ref = db.Column(db.String(64), nullable=False)
    actor_id = db.Column(db.String(64), nullable=False)

    movement_type = db.Column(db.String(32), nullable=False, index=True)

    quantity_delta = db.Column(db.Integer, nullable=False)
    requested_delta = db.Column(db.Integer, nullable=False)
    previous_quantity = db.Column(db.Integer, nullable=False)
    new_quantity = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    @property
    def was_clamped(self) -> bool:
        return self.quantity_delta != self.requested_delta

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "product_ref": self.product_ref,
            "actor_id": self.actor_id,
            "movement_type": self.movement_type,
            "quantity_delta": self.quantity_delta,
            "requested_delta": self.requested_delta,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
