"""
Booking error taxonomy.

Each error carries the HTTP status it maps to and a short machine-readable
reason; app.main turns them into the common {success, message, reason} body.
"""
from typing import Optional

from fastapi import status


class BookingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_reason = "error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "reason": self.reason}


class ValidationError(BookingError):
    """Malformed input, rejected slot or illegal status transition."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_reason = "invalid-request"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_reason = "not-found"


class ConflictError(BookingError):
    """The requested slot is already held by an active ticket."""

    status_code = status.HTTP_409_CONFLICT
    default_reason = "slot-taken"


class TransientError(BookingError):
    """Storage or network timeout; the caller may retry."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_reason = "transient"


class NotifierError(Exception):
    """Email delivery failed. Logged by the notifier, never returned to callers."""
