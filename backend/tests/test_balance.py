# Overview: Pytest coverage for the balance reconciler.

"""
Balance Reconciler Tests

Covers compute_balance: manual and platform revenue, expenses, the cash
subset, the platform-payment day window and report determinism.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from caisse.models import PlatformPayment
from caisse.services.balance_service import compute_balance
from caisse.services.cash_session_service import close_session, open_session
from caisse.services.exceptions import SessionNotFound, Unauthorized
from caisse.services.expense_service import record_expense
from caisse.services.revenue_service import record_revenue


def _revenue(ctx, session_id, amount, method="cash", quantity=1):
    return record_revenue(
        session_id=session_id,
        description="Plat du jour",
        quantity=quantity,
        unit_amount=amount,
        settlement_method=method,
        revenue_kind="service",
        **ctx,
    )


def _expense(ctx, session_id, amount, method="cash", category="other"):
    return record_expense(
        session_id=session_id,
        description="Divers",
        amount=amount,
        category=category,
        settlement_method=method,
        **ctx,
    )


def _payment(db_session, restaurant_id, amount, method, confirmed_at, status="paid"):
    payment = PlatformPayment(
        restaurant_id=restaurant_id,
        order_ref=f"ORD-{confirmed_at:%H%M%S}",
        amount=Decimal(amount),
        settlement_method=method,
        status=status,
        confirmed_at=confirmed_at,
    )
    db_session.add(payment)
    db_session.commit()
    return payment


class TestManualLedgers:
    """Reports built from revenue and expense entries only."""

    def test_empty_session(self, db_session, ctx_a, session_a):
        report = compute_balance(session_id=session_a.id, **ctx_a)

        assert report.opening_balance == Decimal("10000.00")
        assert report.total_revenue == Decimal("0.00")
        assert report.total_expense == Decimal("0.00")
        assert report.theoretical_balance == Decimal("10000.00")
        assert report.theoretical_cash_balance == Decimal("10000.00")
        assert report.difference is None
        assert report.actual_balance is None
        assert report.difference_status == "ok"

    def test_cash_sale(self, db_session, ctx_a, session_a):
        """Opening 10000 plus 2 x 1500 in cash."""
        record_revenue(
            session_id=session_a.id,
            description="Bissap",
            quantity=2,
            unit_amount="1500",
            settlement_method="cash",
            revenue_kind="good",
            **ctx_a,
        )

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.manual_revenue_total == Decimal("3000.00")
        assert report.theoretical_balance == Decimal("13000.00")
        assert report.theoretical_cash_balance == Decimal("13000.00")

    def test_non_cash_methods_excluded_from_cash_balance(self, db_session, ctx_a, session_a):
        _revenue(ctx_a, session_a.id, "1000", method="cash")
        _revenue(ctx_a, session_a.id, "2500", method="airtel_money")
        _revenue(ctx_a, session_a.id, "700", method="card")
        _expense(ctx_a, session_a.id, "300", method="cash")
        _expense(ctx_a, session_a.id, "400", method="moov_money")

        report = compute_balance(session_id=session_a.id, **ctx_a)

        assert report.manual_revenue_by_method == {
            "cash": Decimal("1000.00"),
            "airtel_money": Decimal("2500.00"),
            "card": Decimal("700.00"),
        }
        assert report.expenses_by_method == {
            "cash": Decimal("300.00"),
            "moov_money": Decimal("400.00"),
        }
        assert report.cash_in == Decimal("1000.00")
        assert report.cash_out == Decimal("300.00")
        assert report.theoretical_balance == Decimal("13500.00")
        assert report.theoretical_cash_balance == Decimal("10700.00")

    def test_expenses_by_category(self, db_session, ctx_a, session_a):
        _expense(ctx_a, session_a.id, "100", category="rent")
        _expense(ctx_a, session_a.id, "250", category="salary")
        _expense(ctx_a, session_a.id, "50", category="salary")

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert list(report.expenses_by_category) == ["salary", "rent"]
        assert report.expenses_by_category["salary"] == Decimal("300.00")
        assert report.total_expense == Decimal("400.00")

    def test_cents_add_up_exactly(self, db_session, ctx_a, session_a):
        for _ in range(10):
            _revenue(ctx_a, session_a.id, "0.10")
        _revenue(ctx_a, session_a.id, "0.20")

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.manual_revenue_total == Decimal("1.20")
        assert report.to_dict()["revenues"]["manual"] == "1.20"

    def test_only_this_sessions_entries(self, db_session, ctx_a, session_a):
        other = open_session(session_date="2024-01-02", opening_balance="0", **ctx_a)
        _revenue(ctx_a, other.id, "999")

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.manual_revenue_total == Decimal("0.00")


class TestPlatformPayments:
    """Confirmed ordering-flow payments for the session's calendar day."""

    def test_day_window_is_inclusive(self, db_session, ctx_a, session_a, restaurant_a):
        day = session_a.session_date
        _payment(db_session, restaurant_a.id, "1000", "cash", datetime(day.year, day.month, day.day, 0, 0, 0))
        _payment(db_session, restaurant_a.id, "2000", "airtel_money", datetime(day.year, day.month, day.day, 12, 30))
        _payment(db_session, restaurant_a.id, "500", "cash", datetime(day.year, day.month, day.day, 23, 59, 59, 999000))

        report = compute_balance(session_id=session_a.id, **ctx_a)

        assert report.platform_revenue_total == Decimal("3500.00")
        assert report.platform_revenue_by_method == {
            "cash": Decimal("1500.00"),
            "airtel_money": Decimal("2000.00"),
        }
        assert report.total_revenue == Decimal("3500.00")
        assert report.cash_in == Decimal("1500.00")
        assert report.theoretical_balance == Decimal("13500.00")
        assert report.theoretical_cash_balance == Decimal("11500.00")

    def test_outside_window_and_unconfirmed_ignored(self, db_session, ctx_a, session_a, restaurant_a):
        _payment(db_session, restaurant_a.id, "100", "cash", datetime(2023, 12, 31, 23, 59, 59))
        _payment(db_session, restaurant_a.id, "200", "cash", datetime(2024, 1, 2, 0, 0, 0))
        _payment(db_session, restaurant_a.id, "300", "cash", datetime(2024, 1, 1, 10, 0), status="pending")
        _payment(db_session, restaurant_a.id, "400", "cash", datetime(2024, 1, 1, 11, 0), status="failed")

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.platform_revenue_total == Decimal("0.00")

    def test_payment_serialization(self, db_session, restaurant_a):
        payment = _payment(db_session, restaurant_a.id, "1234.5", "moov_money", datetime(2024, 1, 1, 7, 5, 9))

        data = payment.to_dict()
        assert data["amount"] == "1234.50"
        assert data["status"] == "paid"
        assert data["confirmed_at"] == "2024-01-01T07:05:09Z"

    def test_other_restaurants_payments_ignored(self, db_session, ctx_a, session_a, restaurant_b):
        _payment(db_session, restaurant_b.id, "5000", "cash", datetime(2024, 1, 1, 9, 0))

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.platform_revenue_total == Decimal("0.00")

    def test_manual_and_platform_combined(self, db_session, ctx_a, session_a, restaurant_a):
        _revenue(ctx_a, session_a.id, "1500", quantity=2)
        _payment(db_session, restaurant_a.id, "4000", "card", datetime(2024, 1, 1, 19, 0))
        _expense(ctx_a, session_a.id, "1000")

        data = compute_balance(session_id=session_a.id, **ctx_a).to_dict()

        assert data["revenues"] == {
            "manual": "3000.00",
            "platform": "4000.00",
            "total": "7000.00",
            "by_method": {"cash": "3000.00"},
            "platform_by_method": {"card": "4000.00"},
        }
        assert data["balance"]["theoretical"] == "16000.00"
        assert data["balance"]["theoretical_cash"] == "12000.00"
        assert data["cash"] == {"methods": ["cash"], "in": "3000.00", "out": "1000.00"}


class TestReportProperties:
    """Determinism, closed-session figures and scoping."""

    def test_idempotent(self, db_session, ctx_a, session_a, restaurant_a):
        _revenue(ctx_a, session_a.id, "1500", method="card")
        _revenue(ctx_a, session_a.id, "800", method="cash")
        _expense(ctx_a, session_a.id, "250", method="moov_money", category="transport")
        _payment(db_session, restaurant_a.id, "900", "airtel_money", datetime(2024, 1, 1, 8, 0))

        first = compute_balance(session_id=session_a.id, **ctx_a)
        second = compute_balance(session_id=session_a.id, **ctx_a)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_breakdown_follows_declaration_order(self, db_session, ctx_a, session_a):
        _revenue(ctx_a, session_a.id, "1", method="other")
        _revenue(ctx_a, session_a.id, "1", method="card")
        _revenue(ctx_a, session_a.id, "1", method="cash")

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert list(report.manual_revenue_by_method) == ["cash", "card", "other"]

    def test_closed_session_reports_difference(self, db_session, ctx_a, session_a):
        _revenue(ctx_a, session_a.id, "1500", quantity=2)
        close_session(session_id=session_a.id, closing_balance="12800", **ctx_a)

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.status == "closed"
        assert report.actual_balance == Decimal("12800.00")
        assert report.difference == Decimal("-200.00")
        assert report.difference_status == "minor"

    def test_major_difference(self, db_session, ctx_a, session_a):
        close_session(session_id=session_a.id, closing_balance="8000", **ctx_a)

        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.difference == Decimal("-2000.00")
        assert report.difference_status == "major"

    def test_other_restaurant_session_not_found(self, db_session, ctx_b, session_a):
        with pytest.raises(SessionNotFound):
            compute_balance(session_id=session_a.id, **ctx_b)

    def test_missing_context(self, db_session, session_a):
        with pytest.raises(Unauthorized):
            compute_balance(restaurant_id=None, user_id="cashier-a", session_id=session_a.id)

    def test_session_date_in_report(self, db_session, ctx_a, session_a):
        report = compute_balance(session_id=session_a.id, **ctx_a)
        assert report.session_date == date(2024, 1, 1).isoformat()
