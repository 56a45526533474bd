# Overview: Bearer token issuance and validation for the tenant context boundary.

"""
Session Token Management Service

WHY: The cash desk trusts an external identity provider for who the user
is. What it needs per request is the (user_id, restaurant_id) pair, bound
to a bearer token issued at login time.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable
- Restaurant context is immutable for the token lifetime
"""

import secrets
import hashlib
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, Restaurant
from ..time_utils import utcnow
from .tenant_service import TenantContext


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=2)        # Activity timeout


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy) sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: str, restaurant_id: int) -> tuple[SessionToken, str]:
    """
    Issue a token binding user_id to restaurant_id.

    Returns (session_record, plaintext_token).
    Raises ValueError if the restaurant is missing or inactive.
    """
    if not user_id:
        raise ValueError("user_id is required")

    restaurant = db.session.query(Restaurant).filter_by(id=restaurant_id).first()
    if not restaurant or not restaurant.is_active:
        raise ValueError("Restaurant is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=str(user_id),
        restaurant_id=restaurant.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> TenantContext | None:
    """
    Validate a bearer token and return its TenantContext.

    Returns None if the token is unknown, expired, idle too long, revoked,
    or bound to a deactivated restaurant. Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    # Check absolute timeout
    if session.expires_at < now:
        return None

    # Check idle timeout
    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    restaurant = session.restaurant
    if not restaurant or not restaurant.is_active:
        _revoke(session, "Restaurant deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return TenantContext(user_id=session.user_id, restaurant_id=session.restaurant_id)


def revoke_session(token: str, reason: str = "Logout") -> bool:
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.is_revoked:
        return False
    _revoke(session, reason)
    return True


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()
