# app/api/v1/calendar.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date

from app.config.database import get_db
from app.services.calendar.calendar_service import CalendarService

router = APIRouter(tags=["calendar"])


@router.get("/calendar/layout")
def calendar_layout(
        day: date = Query(..., alias="date"),
        by_staff: bool = Query(False, description="One fixed column per staff member instead of packed lanes"),
        include_free: bool = Query(True),
        db: Session = Depends(get_db)
):
    """Day view: appointments and free intervals with their lane"""
    return CalendarService.day_layout(db, day, by_staff=by_staff, include_free=include_free)
