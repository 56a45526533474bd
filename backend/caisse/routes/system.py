# backend/caisse/routes/system.py
"""
Liveness endpoint for the cash desk.

Each probe runs a couple of cheap counts; any store error marks the whole
service unhealthy (503) so the load balancer stops routing to it.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Restaurant, CashSession, SessionToken
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def _probe_store() -> dict:
    return {
        "restaurants": db.session.query(Restaurant).filter_by(is_active=True).count(),
        "open_cash_sessions": db.session.query(CashSession).filter_by(status="open").count(),
    }


def _probe_tokens() -> dict:
    now = utcnow()
    live = db.session.query(SessionToken).filter(
        SessionToken.is_revoked.is_(False),
        SessionToken.expires_at >= now,
    ).count()
    return {"live_tokens": live}


def run_check(name: str, probe) -> dict:
    """Run one probe and report its latency; never raises."""
    started = time.perf_counter()
    try:
        details = probe()
        outcome = {"status": "healthy", "details": details}
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Health probe %s failed", name)
        outcome = {"status": "unhealthy", "error": f"{name} unavailable"}
    outcome["latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    return outcome


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: store and token table reachable
    - 503: at least one probe failed
    """
    checks = {
        "database": run_check("database", _probe_store),
        "tokens": run_check("tokens", _probe_tokens),
    }
    healthy = all(c["status"] == "healthy" for c in checks.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
    }, 200 if healthy else 503
