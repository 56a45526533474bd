"""
Balance Reconciler

WHY: The till's theoretical balance is the opening float plus everything
that came in minus everything that went out, across three sources:
- manual revenue entries recorded on the session
- confirmed platform payments from the ordering flow, for the session's day
- expense entries recorded on the session

DESIGN PRINCIPLES:
- Read-only. Never mutates anything, needs no transaction.
- Recompute, never maintain: every call aggregates from the stored rows, so
  concurrent writes can never leave a running total out of step.
- Deterministic: breakdowns are ordered by vocabulary declaration order, so
  two calls with no intervening writes produce identical reports.

NOTE: at close, the difference is taken against the all-methods theoretical
balance even though the closing count is physical cash. theoretical_cash is
reported alongside so the dashboard can show both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import CashSession, RevenueEntry, ExpenseEntry
from ..models.cash import money_str
from ..time_utils import day_bounds, to_iso_date
from ..validation import (
    CASH_METHODS,
    ExpenseCategory,
    SettlementMethod,
    difference_status,
    is_cash_method,
    to_money,
)
from .exceptions import SessionNotFound
from .platform_payment_service import sum_confirmed_payments_by_method
from .tenant_service import require_context

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class BalanceReport:
    """Reconciled figures for one session. All money values are Decimals."""
    session_id: int
    restaurant_id: int
    session_date: str
    status: str

    opening_balance: Decimal

    manual_revenue_by_method: dict[str, Decimal]
    platform_revenue_by_method: dict[str, Decimal]
    expenses_by_method: dict[str, Decimal]
    expenses_by_category: dict[str, Decimal]

    manual_revenue_total: Decimal
    platform_revenue_total: Decimal
    total_revenue: Decimal
    total_expense: Decimal

    cash_in: Decimal
    cash_out: Decimal

    theoretical_balance: Decimal
    theoretical_cash_balance: Decimal

    actual_balance: Decimal | None = None
    difference: Decimal | None = None
    difference_status: str = "ok"

    cash_methods: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        def _group(groups: dict[str, Decimal]) -> dict[str, str]:
            return {k: money_str(v) for k, v in groups.items()}

        return {
            "session_id": self.session_id,
            "restaurant_id": self.restaurant_id,
            "session_date": self.session_date,
            "status": self.status,
            "revenues": {
                "manual": money_str(self.manual_revenue_total),
                "platform": money_str(self.platform_revenue_total),
                "total": money_str(self.total_revenue),
                "by_method": _group(self.manual_revenue_by_method),
                "platform_by_method": _group(self.platform_revenue_by_method),
            },
            "expenses": {
                "total": money_str(self.total_expense),
                "by_method": _group(self.expenses_by_method),
                "by_category": _group(self.expenses_by_category),
            },
            "cash": {
                "methods": list(self.cash_methods),
                "in": money_str(self.cash_in),
                "out": money_str(self.cash_out),
            },
            "balance": {
                "opening": money_str(self.opening_balance),
                "theoretical": money_str(self.theoretical_balance),
                "theoretical_cash": money_str(self.theoretical_cash_balance),
                "actual": money_str(self.actual_balance),
                "difference": money_str(self.difference),
                "difference_status": self.difference_status,
            },
        }


def _ordered(groups: dict[str, Decimal], vocabulary) -> dict[str, Decimal]:
    """
    Order a breakdown by vocabulary declaration order. Values outside the
    vocabulary (legacy rows written before a tag was retired) go last, sorted.
    """
    known = [m.value for m in vocabulary]
    ordered = {k: groups[k] for k in known if k in groups}
    for k in sorted(k for k in groups if k not in ordered):
        ordered[k] = groups[k]
    return ordered


def _sum_by(column_group, column_amount, *filters) -> dict[str, Decimal]:
    rows = db.session.query(
        column_group,
        func.coalesce(func.sum(column_amount), 0),
    ).filter(*filters).group_by(column_group).all()
    return {key: to_money(total) for key, total in rows}


def _total(groups: dict[str, Decimal]) -> Decimal:
    return sum(groups.values(), ZERO)


def _cash_only(groups: dict[str, Decimal]) -> Decimal:
    return sum((v for k, v in groups.items() if is_cash_method(k)), ZERO)


def _load_session(restaurant_id: int, session_id: int) -> CashSession:
    session = db.session.query(CashSession).filter_by(
        id=session_id,
        restaurant_id=restaurant_id,
    ).first()
    if session is None:
        raise SessionNotFound("Session not found")
    return session


def build_report(session: CashSession) -> BalanceReport:
    """Aggregate every source for an already-loaded, tenant-checked session."""
    restaurant_id = session.restaurant_id

    manual_by_method = _ordered(_sum_by(
        RevenueEntry.settlement_method,
        RevenueEntry.total_amount,
        RevenueEntry.session_id == session.id,
        RevenueEntry.restaurant_id == restaurant_id,
    ), SettlementMethod)

    day_start, day_end = day_bounds(session.session_date)
    platform_by_method = _ordered(
        sum_confirmed_payments_by_method(restaurant_id, day_start, day_end),
        SettlementMethod,
    )

    expense_filters = (
        ExpenseEntry.session_id == session.id,
        ExpenseEntry.restaurant_id == restaurant_id,
    )
    expenses_by_method = _ordered(
        _sum_by(ExpenseEntry.settlement_method, ExpenseEntry.amount, *expense_filters),
        SettlementMethod,
    )
    expenses_by_category = _ordered(
        _sum_by(ExpenseEntry.category, ExpenseEntry.amount, *expense_filters),
        ExpenseCategory,
    )

    manual_total = _total(manual_by_method)
    platform_total = _total(platform_by_method)
    total_revenue = manual_total + platform_total
    total_expense = _total(expenses_by_method)

    cash_in = _cash_only(manual_by_method) + _cash_only(platform_by_method)
    cash_out = _cash_only(expenses_by_method)

    opening = to_money(session.opening_balance)
    theoretical = opening + total_revenue - total_expense
    theoretical_cash = opening + cash_in - cash_out

    actual = None
    difference = None
    if session.status == "closed" and session.closing_balance is not None:
        actual = to_money(session.closing_balance)
        difference = actual - theoretical

    threshold = current_app.config.get("CASH_DIFFERENCE_MINOR_THRESHOLD", 500)

    return BalanceReport(
        session_id=session.id,
        restaurant_id=restaurant_id,
        session_date=to_iso_date(session.session_date),
        status=session.status,
        opening_balance=opening,
        manual_revenue_by_method=manual_by_method,
        platform_revenue_by_method=platform_by_method,
        expenses_by_method=expenses_by_method,
        expenses_by_category=expenses_by_category,
        manual_revenue_total=manual_total,
        platform_revenue_total=platform_total,
        total_revenue=total_revenue,
        total_expense=total_expense,
        cash_in=cash_in,
        cash_out=cash_out,
        theoretical_balance=theoretical,
        theoretical_cash_balance=theoretical_cash,
        actual_balance=actual,
        difference=difference,
        difference_status=difference_status(difference, threshold),
        cash_methods=tuple(m.value for m in SettlementMethod if m in CASH_METHODS),
    )


def compute_balance(*, restaurant_id: int, user_id: str, session_id: int) -> BalanceReport:
    """
    Live (open) or frozen (closed) balance of a session.

    Raises:
        Unauthorized: missing/invalid tenant context
        SessionNotFound: session not in this restaurant
    """
    ctx = require_context(user_id, restaurant_id)
    session = _load_session(ctx.restaurant_id, session_id)
    return build_report(session)
