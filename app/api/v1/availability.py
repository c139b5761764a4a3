# app/api/v1/availability.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Callable, Optional
from datetime import datetime

from app.api.dependencies import get_clock, local_range
from app.config.database import get_db
from app.schemas.engine_dto import MeetingMode
from app.services.availability.availability_service import AvailabilityService

router = APIRouter(tags=["availability"])


@router.get("/availability")
def get_availability(
        start: datetime = Query(..., alias="from"),
        end: datetime = Query(..., alias="to"),
        staff_id: Optional[int] = Query(None),
        zone: Optional[str] = Query(None),
        mode: Optional[MeetingMode] = Query(None),
        only: str = Query("both", pattern="^(merged|slots|both)$"),
        db: Session = Depends(get_db),
        clock: Callable[[], datetime] = Depends(get_clock)
):
    """
    Free intervals (`merged`) and/or bookable slots (`slots`) in [from, to).
    Slots are aggregated across staff: one entry per (start, end, zone).
    """
    start, end = local_range(start, end)
    return AvailabilityService.get_availability(
        db,
        start=start,
        end=end,
        now=clock(),
        staff_id=staff_id,
        zone_name=zone,
        meeting_mode=mode,
        only=only,
    )
