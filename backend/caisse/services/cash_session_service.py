"""
Cash Session Service

WHY: A cash session is one restaurant's till for one calendar day. It holds
the opening float, collects manual revenues and expenses, and at close
freezes the reconciled balance against the physical count.

DESIGN PRINCIPLES:
- One open session per (restaurant, session_date)
- open -> closed, no reopen; closed sessions are immutable
- Sessions are always addressed by explicit id, never by "the current one"
- Close reconciles from scratch (balance_service) and persists the result in
  the same transaction that flips the status
"""

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CashSession
from ..time_utils import utcnow, utc_today
from ..validation import ValidationError, parse_amount, parse_session_date, optional_text
from .audit_service import record_event
from .balance_service import BalanceReport, build_report
from .concurrency import atomic, lock_for_update
from .exceptions import (
    SessionAlreadyClosed,
    SessionAlreadyOpen,
    SessionNotFound,
    SessionNotOpen,
)
from .tenant_service import require_context

SESSION_STATUSES = ("open", "closed")


# =============================================================================
# LOOKUPS
# =============================================================================

def _session_query(restaurant_id: int, session_id: int):
    return db.session.query(CashSession).filter_by(
        id=session_id,
        restaurant_id=restaurant_id,
    )


def get_open_session_for_update(restaurant_id: int, session_id: int) -> CashSession:
    """
    Lock an open session of this restaurant for the current transaction.

    Used by the ledgers so that an entry and a concurrent close serialize on
    the session row.

    Raises SessionNotFound / SessionNotOpen.
    """
    session = lock_for_update(_session_query(restaurant_id, session_id)).first()
    if session is None:
        raise SessionNotFound("Session not found")
    if not session.is_open:
        raise SessionNotOpen(f"Session {session_id} is {session.status}")
    return session


def find_open_session(restaurant_id: int, session_date: date) -> CashSession | None:
    return db.session.query(CashSession).filter_by(
        restaurant_id=restaurant_id,
        session_date=session_date,
        status="open",
    ).first()


def get_session(*, restaurant_id: int, user_id: str, session_id: int) -> CashSession:
    """Session with its revenues and expenses (newest first)."""
    ctx = require_context(user_id, restaurant_id)
    session = _session_query(ctx.restaurant_id, session_id).first()
    if session is None:
        raise SessionNotFound("Session not found")
    return session


def get_session_for_date(*, restaurant_id: int, user_id: str, session_date) -> CashSession | None:
    """
    Session for a calendar day, preferring the open one.

    Returns None when the day has no session yet.
    """
    ctx = require_context(user_id, restaurant_id)
    day = parse_session_date(session_date)
    return db.session.query(CashSession).filter_by(
        restaurant_id=ctx.restaurant_id,
        session_date=day,
    ).order_by(
        (CashSession.status == "open").desc(),
        CashSession.id.desc(),
    ).first()


def list_sessions(
    *,
    restaurant_id: int,
    user_id: str,
    limit: int | None = None,
    exclude_session_id: int | None = None,
    status: str | None = None,
) -> list[CashSession]:
    """Most recent sessions by date (history calendar), newest first."""
    ctx = require_context(user_id, restaurant_id)
    if limit is None:
        limit = current_app.config.get("SESSION_LIST_LIMIT", 90)

    query = db.session.query(CashSession).filter_by(restaurant_id=ctx.restaurant_id)
    if exclude_session_id is not None:
        query = query.filter(CashSession.id != exclude_session_id)
    if status is not None:
        if status not in SESSION_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(SESSION_STATUSES)}")
        query = query.filter_by(status=status)

    return query.order_by(
        CashSession.session_date.desc(),
        CashSession.id.desc(),
    ).limit(limit).all()


# =============================================================================
# LIFECYCLE
# =============================================================================

def open_session(
    *,
    restaurant_id: int,
    user_id: str,
    session_date,
    opening_balance,
    notes: str | None = None,
) -> CashSession:
    """
    Open the till for a calendar day.

    A date before today opens a historical (backfill) session.

    Raises:
        Unauthorized: missing/invalid tenant context
        ValidationError: bad date or opening balance
        SessionAlreadyOpen: an open session already exists for that day
    """
    ctx = require_context(user_id, restaurant_id)
    day = parse_session_date(session_date)
    opening = parse_amount(opening_balance, "opening_balance")
    notes = optional_text(notes, "notes")

    try:
        with atomic():
            existing = find_open_session(ctx.restaurant_id, day)
            if existing is not None:
                raise SessionAlreadyOpen(
                    f"A session is already open for {day.isoformat()} (session {existing.id})"
                )

            session = CashSession(
                restaurant_id=ctx.restaurant_id,
                session_date=day,
                is_historical=day < utc_today(),
                status="open",
                opening_balance=opening,
                opened_by=ctx.user_id,
                opened_at=utcnow(),
                notes=notes,
                revenues=[],
                expenses=[],
            )
            db.session.add(session)
            db.session.flush()
    except IntegrityError:
        # Lost the race against a concurrent open for the same day
        raise SessionAlreadyOpen(f"A session is already open for {day.isoformat()}") from None

    current_app.logger.info(
        "Cash session %s opened for restaurant %s on %s (opening %s%s)",
        session.id, ctx.restaurant_id, day.isoformat(), opening,
        ", historical" if session.is_historical else "",
    )
    record_event(
        restaurant_id=ctx.restaurant_id,
        event_type="cash_session.opened",
        entity_type="cash_session",
        entity_id=session.id,
        actor_id=ctx.user_id,
        note="Session opened",
        payload=f"opening_balance={opening}",
    )
    return session


def close_session(
    *,
    restaurant_id: int,
    user_id: str,
    session_id: int,
    closing_balance,
    notes: str | None = None,
) -> tuple[CashSession, BalanceReport]:
    """
    Close a session against the physical count.

    balance_difference = closing_balance - theoretical_balance, where the
    theoretical balance covers every settlement method.

    IMMUTABLE: once closed, the session cannot be reopened or modified.

    Returns the closed session and the frozen balance report.

    Raises:
        Unauthorized: missing/invalid tenant context
        ValidationError: bad closing balance
        SessionNotFound / SessionAlreadyClosed
    """
    ctx = require_context(user_id, restaurant_id)
    closing = parse_amount(closing_balance, "closing_balance")
    notes = optional_text(notes, "notes")

    with atomic():
        session = lock_for_update(_session_query(ctx.restaurant_id, session_id)).first()
        if session is None:
            raise SessionNotFound("Session not found")
        if not session.is_open:
            raise SessionAlreadyClosed(f"Session {session_id} is already closed")

        theoretical = build_report(session).theoretical_balance

        session.status = "closed"
        session.closing_balance = closing
        session.theoretical_balance = theoretical
        session.balance_difference = closing - theoretical
        session.closed_at = utcnow()
        session.closed_by = ctx.user_id
        if notes is not None:
            session.notes = notes
        db.session.flush()

    report = build_report(session)

    current_app.logger.info(
        "Cash session %s closed: counted %s, theoretical %s, difference %s",
        session.id, closing, theoretical, session.balance_difference,
    )
    record_event(
        restaurant_id=ctx.restaurant_id,
        event_type="cash_session.closed",
        entity_type="cash_session",
        entity_id=session.id,
        actor_id=ctx.user_id,
        note=notes,
        payload=f"closing_balance={closing};theoretical_balance={theoretical};difference={closing - theoretical}",
    )
    return session, report

