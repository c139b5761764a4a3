# app/models/__init__.py
from .base import Base
from .zone import Zone
from .staff import Staff
from .availability import ZoneRule, ZoneException, StaffZoneRule, ZoneSelection
from .appointment import Appointment, IdempotencyKey
from .settings import BookingSettingsRow

__all__ = [
    "Base",
    "Zone",
    "Staff",
    "ZoneRule",
    "ZoneException",
    "StaffZoneRule",
    "ZoneSelection",
    "Appointment",
    "IdempotencyKey",
    "BookingSettingsRow",
]
