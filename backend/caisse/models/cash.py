from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


def money_str(value: Decimal | None) -> str | None:
    """Serialize a money Decimal as a fixed two-place string (JSON-safe, exact)."""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal("0.01")))


class CashSession(db.Model):
    """
    One till day for one restaurant.

    LIFECYCLE:
    - open: revenues and expenses may be recorded against it
    - closed: counted, reconciled and frozen

    INVARIANT: at most one open session per (restaurant_id, session_date).
    The service checks first; the partial unique index is the backstop for
    two requests racing past the check.

    IMMUTABLE: once closed, the session and its entries are never modified.
    """
    __tablename__ = "cash_sessions"
    __table_args__ = (
        db.Index(
            "uq_cash_sessions_one_open_per_day",
            "restaurant_id",
            "session_date",
            unique=True,
            sqlite_where=db.text("status = 'open'"),
            postgresql_where=db.text("status = 'open'"),
        ),
        db.Index("ix_cash_sessions_restaurant_date", "restaurant_id", "session_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    session_date = db.Column(db.Date, nullable=False)
    is_historical = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(16), nullable=False, default="open", index=True)  # open, closed

    opening_balance = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    closing_balance = db.Column(db.Numeric(14, 2), nullable=True)  # Physical count, set at close
    theoretical_balance = db.Column(db.Numeric(14, 2), nullable=True)  # All methods, set at close
    balance_difference = db.Column(db.Numeric(14, 2), nullable=True)  # closing - theoretical

    opened_by = db.Column(db.String(64), nullable=False)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    closed_by = db.Column(db.String(64), nullable=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    restaurant = db.relationship("Restaurant", backref=db.backref("cash_sessions", lazy=True))
    revenues = db.relationship(
        "RevenueEntry",
        back_populates="session",
        order_by=lambda: (RevenueEntry.created_at.desc(), RevenueEntry.id.desc()),
        lazy="select",
    )
    expenses = db.relationship(
        "ExpenseEntry",
        back_populates="session",
        order_by=lambda: (ExpenseEntry.created_at.desc(), ExpenseEntry.id.desc()),
        lazy="select",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def __repr__(self) -> str:
        return f"<CashSession id={self.id} date={self.session_date} status={self.status} restaurant_id={self.restaurant_id}>"

    def to_dict(self, include_entries: bool = False) -> dict:
        data = {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "session_date": to_iso_date(self.session_date),
            "is_historical": self.is_historical,
            "status": self.status,
            "opening_balance": money_str(self.opening_balance),
            "closing_balance": money_str(self.closing_balance),
            "theoretical_balance": money_str(self.theoretical_balance),
            "balance_difference": money_str(self.balance_difference),
            "opened_by": self.opened_by,
            "opened_at": to_utc_z(self.opened_at),
            "closed_by": self.closed_by,
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "notes": self.notes,
        }
        if include_entries:
            data["revenues"] = [r.to_dict() for r in self.revenues]
            data["expenses"] = [e.to_dict() for e in self.expenses]
        return data


class RevenueEntry(db.Model):
    """
    Manually recorded sale (goods or services) against an open session.

    total_amount is always quantity * unit_amount computed server-side.
    When the sale decremented stock, stock_movement_id points at the
    movement written in the same transaction. Immutable once created.
    """
    __tablename__ = "revenue_entries"
    __table_args__ = (
        db.Index("ix_revenue_entries_session_method", "session_id", "settlement_method"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=False, index=True)

    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_amount = db.Column(db.Numeric(14, 2), nullable=False)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)

    settlement_method = db.Column(db.String(32), nullable=False)
    revenue_kind = db.Column(db.String(16), nullable=False)  # good, service

    product_ref = db.Column(db.String(64), nullable=True)
    stock_movement_id = db.Column(db.Integer, db.ForeignKey("stock_movements.id"), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    session = db.relationship("CashSession", back_populates="revenues")
    stock_movement = db.relationship("StockMovement")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "session_id": self.session_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_amount": money_str(self.unit_amount),
            "total_amount": money_str(self.total_amount),
            "settlement_method": self.settlement_method,
            "revenue_kind": self.revenue_kind,
            "product_ref": self.product_ref,
            "stock_movement_id": self.stock_movement_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class ExpenseEntry(db.Model):
    """
    Outgoing payment recorded against an open session.

    A stock_purchase expense carrying product_ref + quantity_added also
    increments stock; stock_movement_id links the movement. Immutable once
    created.
    """
    __tablename__ = "expense_entries"
    __table_args__ = (
        db.Index("ix_expense_entries_session_method", "session_id", "settlement_method"),
        db.Index("ix_expense_entries_session_category", "session_id", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=False, index=True)

    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    category = db.Column(db.String(32), nullable=False)
    settlement_method = db.Column(db.String(32), nullable=False)

    product_ref = db.Column(db.String(64), nullable=True)
    quantity_added = db.Column(db.Integer, nullable=True)
    stock_movement_id = db.Column(db.Integer, db.ForeignKey("stock_movements.id"), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    session = db.relationship("CashSession", back_populates="expenses")
    stock_movement = db.relationship("StockMovement")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "session_id": self.session_id,
            "description": self.description,
            "amount": money_str(self.amount),
            "category": self.category,
            "settlement_method": self.settlement_method,
            "product_ref": self.product_ref,
            "quantity_added": self.quantity_added,
            "stock_movement_id": self.stock_movement_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
