"""
Multi-Tenant Service: Tenant Context and Scoping Helpers

WHY: Every cash-desk operation runs on behalf of one user inside one
restaurant. The (user_id, restaurant_id) pair comes from the external
authentication collaborator; this module turns it into a validated
TenantContext before any ledger code touches the store.

SECURITY INVARIANTS:
1. No service call proceeds without a non-empty user_id and restaurant_id
2. The restaurant must exist and be active
3. Every query touching restaurant-owned rows filters by restaurant_id
4. Rows from another restaurant are reported as "not found", never as
   "forbidden", so their existence is not revealed

USAGE:
    from caisse.services.tenant_service import require_context

    ctx = require_context(user_id, restaurant_id)
"""

from dataclasses import dataclass

from flask import g

from ..extensions import db
from ..models import Restaurant
from .exceptions import Unauthorized


@dataclass(frozen=True)
class TenantContext:
    """Resolved caller identity: opaque user id plus the acting restaurant."""
    user_id: str
    restaurant_id: int


def require_context(user_id, restaurant_id) -> TenantContext:
    """
    Validate the caller's tenant context.

    Raises Unauthorized if either half is missing, or if the restaurant is
    unknown or deactivated.
    """
    if user_id is None or str(user_id).strip() == "":
        raise Unauthorized("Missing user context")
    if restaurant_id is None or isinstance(restaurant_id, bool):
        raise Unauthorized("Missing restaurant context")
    try:
        restaurant_id = int(restaurant_id)
    except (TypeError, ValueError):
        raise Unauthorized("Invalid restaurant context") from None

    restaurant = db.session.query(Restaurant).filter_by(id=restaurant_id).first()
    if restaurant is None or not restaurant.is_active:
        raise Unauthorized("Invalid restaurant context")

    return TenantContext(user_id=str(user_id).strip(), restaurant_id=restaurant.id)


def get_current_context() -> TenantContext:
    """
    Tenant context established by @require_auth for the current request.

    SECURITY: Raises Unauthorized if not set. Should never happen behind
    @require_auth, but is a safety check.
    """
    ctx = getattr(g, "tenant", None)
    if ctx is None:
        raise Unauthorized("Tenant context not established")
    return ctx
