from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

class Restaurant(db.Model):
    """
    Multi-tenant root: every tenant is a Restaurant.

    WHY: Shared-database multi-tenancy with strict isolation. Cash sessions,
    ledger entries, inventory and platform payments all carry restaurant_id,
    and every query is filtered by it.
    """
    __tablename__ = "restaurants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Restaurant id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
