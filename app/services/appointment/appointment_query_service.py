# ============================================================================
# app/services/appointment/appointment_query_service.py
# Pure business logic - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, Dict, Any, List, Iterable

from app.core.exceptions import NotFoundError
from app.models.appointment import Appointment
from app.models.staff import Staff
from app.models.zone import Zone
from app.schemas.engine_dto import BookedSlot, MeetingMode


class AppointmentService:
    """Service layer for appointment reads."""

    @staticmethod
    def _range_query(
            db: Session,
            start: datetime,
            end: datetime,
            staff_ids: Optional[Iterable[int]] = None,
            zone_id: Optional[int] = None
    ):
        """Appointments overlapping [start, end)"""
        query = db.query(Appointment, Zone.name, Staff.name).join(
            Zone, Zone.id == Appointment.zone_id
        ).join(
            Staff, Staff.id == Appointment.staff_id
        ).filter(
            Appointment.starts_at < end,
            Appointment.ends_at > start
        )
        if staff_ids is not None:
            query = query.filter(Appointment.staff_id.in_(list(staff_ids)))
        if zone_id is not None:
            query = query.filter(Appointment.zone_id == zone_id)
        return query.order_by(Appointment.starts_at.asc(), Appointment.id.asc())

    @staticmethod
    def booked_slots(
            db: Session,
            start: datetime,
            end: datetime,
            staff_ids: Optional[Iterable[int]] = None
    ) -> List[BookedSlot]:
        """Appointments overlapping [start, end) as engine value objects"""
        rows = AppointmentService._range_query(db, start, end, staff_ids).all()
        return [
            BookedSlot(
                id=appt.id,
                staff_id=appt.staff_id,
                zone_id=appt.zone_id,
                zone_name=zone_name,
                start=appt.starts_at,
                end=appt.ends_at,
                meeting_mode=MeetingMode(appt.meeting_mode),
            )
            for appt, zone_name, _ in rows
        ]

    @staticmethod
    def list_appointments(
            db: Session,
            start: datetime,
            end: datetime,
            staff_id: Optional[int] = None,
            zone_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Appointments in a range with zone and staff names, for the calendar."""
        rows = AppointmentService._range_query(
            db, start, end,
            staff_ids=[staff_id] if staff_id is not None else None,
            zone_id=zone_id
        ).all()
        return [
            AppointmentService.serialize(appt, zone_name=zone_name, staff_name=staff_name)
            for appt, zone_name, staff_name in rows
        ]

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Dict[str, Any]:
        """Get a single appointment by ID."""
        row = db.query(Appointment, Zone.name, Staff.name).join(
            Zone, Zone.id == Appointment.zone_id
        ).join(
            Staff, Staff.id == Appointment.staff_id
        ).filter(Appointment.id == appointment_id).first()

        if not row:
            raise NotFoundError(f"Appointment {appointment_id} not found")

        appt, zone_name, staff_name = row
        return AppointmentService.serialize(appt, zone_name=zone_name, staff_name=staff_name, detailed=True)

    @staticmethod
    def serialize(
            appointment: Appointment,
            zone_name: Optional[str] = None,
            staff_name: Optional[str] = None,
            detailed: bool = False
    ) -> Dict[str, Any]:
        """Convert Appointment model to dictionary."""
        base = {
            "id": appointment.id,
            "starts_at": appointment.starts_at.isoformat(),
            "ends_at": appointment.ends_at.isoformat(),
            "zone_id": appointment.zone_id,
            "zone_name": zone_name,
            "staff_id": appointment.staff_id,
            "staff_name": staff_name,
            "meeting_mode": appointment.meeting_mode,
            "client_name": appointment.client_name,
            "restaurant_name": appointment.restaurant_name,
            "city": appointment.city,
            "title": appointment.title or appointment.client_name,
        }

        if detailed:
            base.update({
                "client_email": appointment.client_email,
                "client_phone": appointment.client_phone,
                "attendees": appointment.attendees or [],
                "notes": appointment.notes,
                "created_at": appointment.created_at.isoformat() if appointment.created_at else None,
            })

        return base
