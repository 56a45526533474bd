from __future__ import annotations

from ..extensions import db


class SessionToken(db.Model):
    """
    Bearer token carrying the (user_id, restaurant_id) tenant context.

    Users live in the external identity provider; user_id is an opaque
    string. The restaurant is captured at token creation and is immutable
    for the token lifetime.

    Only the SHA-256 of the token is stored. A token dies after 24 hours, or
    after 2 idle hours, or when revoked (logout, deactivated restaurant).
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    restaurant = db.relationship("Restaurant", backref=db.backref("session_tokens", lazy=True))
