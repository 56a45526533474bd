# Overview: Flask API routes for cash sessions; parses input and returns JSON responses.

# backend/caisse/routes/cash.py
"""
Cash Desk API Routes

WHY: The dashboard's till screen opens the day, records manual sales and
expenses, shows the live balance and closes the day against a physical
count.

DESIGN:
- Every route runs under @require_auth; restaurant and user come from the
  token, never from the request body
- Sessions are addressed by id in the URL
- Session lifecycle: open -> close (immutable once closed)

ERRORS:
- 400 validation (including unknown settlement method / category)
- 401 missing or invalid tenant context
- 404 session or product not found in this restaurant
- 409 session state conflicts
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services import (
    balance_service,
    cash_session_service,
    expense_service,
    revenue_service,
)
from ..services.exceptions import (
    CashSessionError,
    ProductNotFound,
    SessionNotFound,
    Unauthorized,
)
from ..services.tenant_service import get_current_context
from ..time_utils import utc_today
from ..validation import ValidationError, parse_query_int


cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash")


def _domain_error(exc: Exception):
    """Map a known cash-desk error to (json, status), or None if unknown."""
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, Unauthorized):
        return jsonify({"error": "Unauthorized"}), 401
    if isinstance(exc, (SessionNotFound, ProductNotFound)):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, CashSessionError):
        return jsonify({"error": str(exc)}), 409
    return None


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================

@cash_bp.post("/sessions")
@require_auth
def open_session_route():
    """
    Open the till for a day.

    Request body:
    {
        "session_date": "2024-01-01",
        "opening_balance": "10000",
        "notes": "..."  (optional)
    }

    Returns 409 if a session is already open for that date.
    """
    try:
        ctx = get_current_context()
        data = _json_body()

        session = cash_session_service.open_session(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_date=data.get("session_date"),
            opening_balance=data.get("opening_balance", 0),
            notes=data.get("notes"),
        )

        return jsonify({"session": session.to_dict(include_entries=True)}), 201

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to open cash session")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.get("/sessions")
@require_auth
def list_sessions_route():
    """
    Recent sessions for the history calendar, newest first.

    Query params: limit, exclude_id, status
    """
    try:
        ctx = get_current_context()
        limit = parse_query_int(request.args.get("limit"), "limit", 1, 366)
        exclude_id = parse_query_int(request.args.get("exclude_id"), "exclude_id", 1)

        sessions = cash_session_service.list_sessions(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            limit=limit,
            exclude_session_id=exclude_id,
            status=request.args.get("status"),
        )

        return jsonify({"sessions": [s.to_dict() for s in sessions]}), 200

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to list cash sessions")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.get("/sessions/today")
@require_auth
def get_today_session_route():
    """
    Session for today (UTC) or for ?date=YYYY-MM-DD.

    Returns {"session": null} when the day has no session yet.
    """
    try:
        ctx = get_current_context()
        day = request.args.get("date") or utc_today().isoformat()

        session = cash_session_service.get_session_for_date(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_date=day,
        )

        return jsonify({
            "session": session.to_dict(include_entries=True) if session else None
        }), 200

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to load session for date")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.get("/sessions/<int:session_id>")
@require_auth
def get_session_route(session_id: int):
    """Session with its revenue and expense entries."""
    try:
        ctx = get_current_context()
        session = cash_session_service.get_session(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_id=session_id,
        )
        return jsonify({"session": session.to_dict(include_entries=True)}), 200

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to load cash session")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.get("/sessions/<int:session_id>/balance")
@require_auth
def get_balance_route(session_id: int):
    """Live (open) or frozen (closed) balance report."""
    try:
        ctx = get_current_context()
        report = balance_service.compute_balance(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_id=session_id,
        )
        return jsonify({"balance": report.to_dict()}), 200

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to compute session balance")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.post("/sessions/<int:session_id>/close")
@require_auth
def close_session_route(session_id: int):
    """
    Close a session against the physical count.

    Request body:
    {
        "closing_balance": "10500",  // Cash counted in the drawer
        "notes": "..."  (optional)
    }

    Session becomes immutable after closing.
    """
    try:
        ctx = get_current_context()
        data = _json_body()

        if data.get("closing_balance") is None:
            raise ValidationError("closing_balance required")

        session, report = cash_session_service.close_session(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_id=session_id,
            closing_balance=data.get("closing_balance"),
            notes=data.get("notes"),
        )

        return jsonify({
            "session": session.to_dict(include_entries=True),
            "balance": report.to_dict(),
        }), 200

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to close cash session")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

@cash_bp.post("/sessions/<int:session_id>/revenues")
@require_auth
def record_revenue_route(session_id: int):
    """
    Record a manual sale.

    Request body:
    {
        "description": "Bissap x2",
        "quantity": 2,
        "unit_amount": "1500",
        "settlement_method": "cash",
        "revenue_kind": "good",
        "product_ref": "P1",  (optional, decrements stock for goods)
        "notes": "..."  (optional)
    }

    total_amount is computed server-side.
    """
    try:
        ctx = get_current_context()
        data = _json_body()

        entry = revenue_service.record_revenue(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_id=session_id,
            description=data.get("description"),
            quantity=data.get("quantity"),
            unit_amount=data.get("unit_amount"),
            settlement_method=data.get("settlement_method"),
            revenue_kind=data.get("revenue_kind"),
            product_ref=data.get("product_ref"),
            notes=data.get("notes"),
        )

        return jsonify({"revenue": entry.to_dict()}), 201

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to record revenue")
        return jsonify({"error": "Internal server error"}), 500


@cash_bp.post("/sessions/<int:session_id>/expenses")
@require_auth
def record_expense_route(session_id: int):
    """
    Record an expense.

    Request body:
    {
        "description": "Supplier - rice",
        "amount": "2000",
        "category": "stock_purchase",
        "settlement_method": "cash",
        "product_ref": "P1",  (optional)
        "quantity_added": 5,  (optional, with product_ref restocks inventory)
        "notes": "..."  (optional)
    }
    """
    try:
        ctx = get_current_context()
        data = _json_body()

        entry = expense_service.record_expense(
            restaurant_id=ctx.restaurant_id,
            user_id=ctx.user_id,
            session_id=session_id,
            description=data.get("description"),
            amount=data.get("amount"),
            category=data.get("category"),
            settlement_method=data.get("settlement_method"),
            product_ref=data.get("product_ref"),
            quantity_added=data.get("quantity_added"),
            notes=data.get("notes"),
        )

        return jsonify({"expense": entry.to_dict()}), 201

    except Exception as e:
        mapped = _domain_error(e)
        if mapped:
            return mapped
        current_app.logger.exception("Failed to record expense")
        return jsonify({"error": "Internal server error"}), 500
