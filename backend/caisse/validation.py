from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any


"""
Caisse Ledger Vocabulary (authoritative)

- Settlement methods and expense categories are fixed vocabularies shared by
  the revenue and expense ledgers. The store does not enforce them; this
  module does, before any write.
- Raw strings are parsed into enums at the boundary. Services only ever see
  the enum members.
- "Physical cash" is exactly SettlementMethod.CASH. Mobile money and cards
  never enter the drawer.
"""

# Maximum accepted amount (99,999,999,999.99) keeps Numeric(14, 2) from overflowing
MAX_AMOUNT = Decimal("99999999999.99")
AMOUNT_QUANTUM = Decimal("0.01")
# Upper bound for line quantities and stock deltas
MAX_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class InvalidDomainValue(ValidationError):
    """A tag outside the known settlement-method / category vocabulary."""

    def __init__(self, field: str, value: Any, allowed: list[str]):
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"{field} must be one of: {', '.join(allowed)} (got {value!r})"
        )


class SettlementMethod(str, enum.Enum):
    CASH = "cash"
    AIRTEL_MONEY = "airtel_money"
    MOOV_MONEY = "moov_money"
    CARD = "card"
    OTHER = "other"


class ExpenseCategory(str, enum.Enum):
    STOCK_PURCHASE = "stock_purchase"
    SALARY = "salary"
    UTILITIES = "utilities"
    TRANSPORT = "transport"
    MAINTENANCE = "maintenance"
    MARKETING = "marketing"
    RENT = "rent"
    OTHER = "other"


class RevenueKind(str, enum.Enum):
    GOOD = "good"
    SERVICE = "service"


CASH_METHODS = frozenset({SettlementMethod.CASH})

PAYMENT_METHOD_LABELS = {
    SettlementMethod.CASH: "Cash",
    SettlementMethod.AIRTEL_MONEY: "Airtel Money",
    SettlementMethod.MOOV_MONEY: "Moov Money",
    SettlementMethod.CARD: "Card",
    SettlementMethod.OTHER: "Other",
}

EXPENSE_CATEGORY_LABELS = {
    ExpenseCategory.STOCK_PURCHASE: "Goods",
    ExpenseCategory.SALARY: "Salaries",
    ExpenseCategory.UTILITIES: "Utilities",
    ExpenseCategory.TRANSPORT: "Transport",
    ExpenseCategory.MAINTENANCE: "Maintenance",
    ExpenseCategory.MARKETING: "Marketing",
    ExpenseCategory.RENT: "Rent",
    ExpenseCategory.OTHER: "Other",
}


def _parse_tag(enum_cls: type[enum.Enum], field: str, value: Any):
    if isinstance(value, enum_cls):
        return value
    allowed = [m.value for m in enum_cls]
    if not isinstance(value, str):
        raise InvalidDomainValue(field, value, allowed)
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        raise InvalidDomainValue(field, value, allowed) from None


def parse_settlement_method(value: Any) -> SettlementMethod:
    return _parse_tag(SettlementMethod, "settlement_method", value)


def parse_expense_category(value: Any) -> ExpenseCategory:
    return _parse_tag(ExpenseCategory, "category", value)


def parse_revenue_kind(value: Any) -> RevenueKind:
    return _parse_tag(RevenueKind, "revenue_kind", value)


def is_cash_method(method: SettlementMethod | str) -> bool:
    """Accepts a member or a stored tag; unknown tags are not cash."""
    tag = method.value if isinstance(method, SettlementMethod) else method
    return tag in {m.value for m in CASH_METHODS}


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Parse a non-negative money amount into a two-place Decimal.

    Accepts int, Decimal, numeric strings and floats (via their repr, so
    12.1 stays 12.10). Rejects booleans, NaN/Infinity, negatives and values
    with more than two decimal places.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        raw = str(value).strip()
        if not raw:
            raise ValidationError(f"{field} must be a number")
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number") from None
    else:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")

    quantized = amount.quantize(AMOUNT_QUANTUM)
    if quantized != amount:
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    return quantized


def parse_quantity(value: Any, field: str = "quantity") -> int:
    """Strict positive integer: rejects floats, decimals and scientific notation."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e3")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            qty = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer") from None
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if qty <= 0:
        raise ValidationError(f"{field} must be > 0")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def parse_query_int(value: str | None, field: str, minimum: int, maximum: int | None = None) -> int | None:
    """Optional integer query parameter; None when absent, 400 when malformed or out of range."""
    if value is None:
        return None
    stripped = value.strip()
    if not stripped.isdecimal():
        raise ValidationError(f"{field} must be an integer")
    number = int(stripped)
    if number < minimum or (maximum is not None and number > maximum):
        if maximum is None:
            raise ValidationError(f"{field} must be >= {minimum}")
        raise ValidationError(f"{field} must be between {minimum} and {maximum}")
    return number


def parse_session_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("session_date is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("session_date must be an ISO date (YYYY-MM-DD)") from None


def require_text(value: Any, field: str, max_length: int = 255) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} cannot be blank")
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, field: str, max_length: int = 2000) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def difference_status(difference: Decimal | None, minor_threshold: int | Decimal = 500) -> str:
    """
    Classify a closing difference: 'ok' (none or zero), 'minor' (within the
    threshold either way) or 'major'.
    """
    if difference is None:
        return "ok"
    gap = abs(difference)
    if gap == 0:
        return "ok"
    if gap <= Decimal(minor_threshold):
        return "minor"
    return "major"


def to_money(value) -> Decimal:
    """
    Normalize a stored or aggregated amount to a two-place Decimal.

    SUM() over Numeric comes back as a float on SQLite; rounding to the cent
    recovers the exact figure for any amount the column can hold.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(AMOUNT_QUANTUM)
