# app/api/v1/bookings.py
from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from app.api.dependencies import get_booking_service, local_range
from app.config.database import get_db
from app.schemas.booking import (
    BookingRequest,
    BookingResponse,
    PreflightRequest,
    PreflightResponse,
    ZoneOptionsResponse,
)
from app.schemas.engine_dto import MeetingMode
from app.services.appointment.appointment_query_service import AppointmentService
from app.services.booking.booking_service import BookingService

router = APIRouter(tags=["bookings"])


@router.post("/book", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
        request: BookingRequest,
        idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
        service: BookingService = Depends(get_booking_service)
):
    """
    Book a slot. Retrying with the same Idempotency-Key returns the
    original booking instead of creating a second one.
    """
    return service.create_booking(request, idempotency_key)


@router.post("/book/validate", response_model=PreflightResponse)
def validate_booking(
        request: PreflightRequest,
        service: BookingService = Depends(get_booking_service)
):
    """Dry run of the booking checks; nothing is written"""
    return service.preflight(request)


@router.delete("/book/{appointment_id}")
def cancel_booking(
        appointment_id: int,
        service: BookingService = Depends(get_booking_service)
):
    return service.cancel_booking(appointment_id)


@router.get("/bookings")
def list_bookings(
        start: datetime = Query(..., alias="from"),
        end: datetime = Query(..., alias="to"),
        staff_id: Optional[int] = Query(None),
        zone_id: Optional[int] = Query(None),
        db: Session = Depends(get_db)
):
    start, end = local_range(start, end)
    appointments = AppointmentService.list_appointments(db, start, end, staff_id=staff_id, zone_id=zone_id)
    return {"appointments": appointments, "count": len(appointments)}


@router.get("/bookings/{appointment_id}")
def get_booking(appointment_id: int, db: Session = Depends(get_db)):
    return AppointmentService.get_appointment_by_id(db, appointment_id)


@router.get("/zones/options", response_model=ZoneOptionsResponse)
def zone_options(
        staff_id: int = Query(...),
        start: datetime = Query(..., alias="from"),
        end: datetime = Query(..., alias="to"),
        mode: MeetingMode = Query(MeetingMode.PHYSIQUE),
        zone: Optional[str] = Query(None),
        service: BookingService = Depends(get_booking_service)
):
    """Zones the staff member may book this slot under, and whether the choice is locked"""
    resolution = service.zone_options(staff_id, start, end, mode, zone)
    return ZoneOptionsResponse(**resolution.model_dump())
