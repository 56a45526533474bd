# Overview: Error taxonomy shared by the cash-desk services.

"""
Cash desk errors.

Routes map these to HTTP status codes:
- Unauthorized -> 401
- SessionNotFound, ProductNotFound -> 404
- SessionNotOpen, SessionAlreadyOpen, SessionAlreadyClosed -> 409

Input problems (including unknown settlement methods or categories) are
caisse.validation.ValidationError / InvalidDomainValue -> 400.

None of these are retried: they describe the caller's request, not a
transient store condition.
"""


class CashError(Exception):
    """Base class for cash desk domain errors."""


class Unauthorized(CashError):
    """Missing or invalid (user_id, restaurant_id) context."""


class CashSessionError(CashError):
    """Raised for cash session state-machine violations."""


class SessionNotFound(CashSessionError):
    """Session does not exist in the caller's restaurant."""


class SessionNotOpen(CashSessionError):
    """Entries can only be recorded against an open session."""


class SessionAlreadyOpen(CashSessionError):
    """An open session already exists for that restaurant and date."""


class SessionAlreadyClosed(CashSessionError):
    """Closed sessions are terminal."""


class ProductNotFound(CashError):
    """Stock-linked entry references a product with no inventory row."""
