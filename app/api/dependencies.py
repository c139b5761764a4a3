# ============================================================================
# FILE: app/api/dependencies.py
# Shared request dependencies
# ============================================================================
from fastapi import Depends
from sqlalchemy.orm import Session
from typing import Callable, Optional, Tuple
from datetime import datetime

from app.config.database import get_db
from app.config.settings import settings
from app.core.exceptions import ValidationError
from app.services.booking.booking_service import BookingService
from app.utils.time_utils import local_now, to_local_naive


def get_clock() -> Callable[[], datetime]:
    """Current wall-clock time in the business timezone"""
    return lambda: local_now(settings.DEFAULT_TIMEZONE)


def get_booking_service(
        db: Session = Depends(get_db),
        clock: Callable[[], datetime] = Depends(get_clock)
) -> BookingService:
    return BookingService(db, clock=clock)


def local_range(start: Optional[datetime], end: Optional[datetime]) -> Tuple[datetime, datetime]:
    """Query-string range converted to business wall-clock time"""
    if start is None or end is None:
        raise ValidationError("Both 'from' and 'to' are required")
    start = to_local_naive(start, settings.DEFAULT_TIMEZONE)
    end = to_local_naive(end, settings.DEFAULT_TIMEZONE)
    if end <= start:
        raise ValidationError("'to' must be after 'from'")
    return start, end
