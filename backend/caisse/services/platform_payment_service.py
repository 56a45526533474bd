# Overview: Read-only access to confirmed payments from the ordering flow.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import PlatformPayment
from ..validation import to_money

CONFIRMED_STATUS = "paid"


def sum_confirmed_payments_by_method(
    restaurant_id: int,
    start: datetime,
    end: datetime,
) -> dict[str, Decimal]:
    """
    Confirmed payment totals per settlement method for [start, end] inclusive.

    The cash desk never writes these rows; they are revenue facts owned by
    the ordering flow.
    """
    rows = db.session.query(
        PlatformPayment.settlement_method,
        func.coalesce(func.sum(PlatformPayment.amount), 0),
    ).filter(
        PlatformPayment.restaurant_id == restaurant_id,
        PlatformPayment.status == CONFIRMED_STATUS,
        PlatformPayment.confirmed_at >= start,
        PlatformPayment.confirmed_at <= end,
    ).group_by(PlatformPayment.settlement_method).all()

    return {method: to_money(total) for method, total in rows}
