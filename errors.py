"""
errors.py — Failure kinds raised by the store layer.

Each error carries a human-readable message and the HTTP status the web layer
is expected to answer with, so route handlers can map them without knowing
which repository raised them.
"""


class StoreError(Exception):
    status_code = 500
    default_message = "Internal store error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(StoreError):
    status_code = 404
    default_message = "Entity not found"


class LinkUnavailable(NotFound):
    """Raised for every failed retrieval attempt on a shared link.

    Missing, expired, wrong recipient and wrong password all produce this same
    error with the same message.
    """

    default_message = "Shared link is invalid or has expired"


class UniqueConstraintViolation(StoreError):
    status_code = 409
    default_message = "User with this username or email already exists"


class TransientStoreError(StoreError):
    """Connection, timeout or pool exhaustion. Safe to retry."""

    status_code = 503
    default_message = "Store temporarily unavailable"


StoreUnavailable = TransientStoreError


class InvariantViolation(StoreError):
    status_code = 500
    default_message = "Store invariant violated"
