# app/core/exceptions.py
"""
Booking error taxonomy.

Services raise these; the API layer turns them into JSON responses.
Pure engine components never raise them for business-rule failures,
they return a Violation instead (see app/services/booking/constraint_validator.py).
"""
from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for every expected booking failure"""

    code = "booking_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "detail": self.message,
            "retryable": self.retryable,
            **({"details": self.details} if self.details else {}),
        }


class ValidationError(BookingError):
    """Client-correctable request problem (bad range, unknown zone/staff, mode/zone mismatch)"""
    code = "validation_error"
    status_code = 422


class CapacityViolation(BookingError):
    """Half-day physical appointment limit reached"""
    code = "capacity_violation"
    status_code = 422


class SpacingViolation(BookingError):
    """Minimum gap after a previous appointment not respected"""
    code = "spacing_violation"
    status_code = 422


class ConflictError(BookingError):
    """Another writer holds or took the staff/time; retry"""
    code = "conflict"
    status_code = 409
    retryable = True


class NotFoundError(BookingError):
    """Referenced appointment, zone or staff does not exist"""
    code = "not_found"
    status_code = 404


class ZoneInUseError(ValidationError):
    """Zone is still referenced and cannot be deleted"""
    code = "zone_in_use"
    status_code = 409
