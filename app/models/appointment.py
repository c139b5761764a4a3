# ===== app/models/appointment.py =====
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON, CheckConstraint
from sqlalchemy.sql import func
from app.models.base import Base


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_appointments_range"),
        CheckConstraint("meeting_mode IN ('physique', 'visio')", name="ck_appointments_mode"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # References
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)

    # Wall-clock time in the business timezone
    starts_at = Column(DateTime, nullable=False, index=True)
    ends_at = Column(DateTime, nullable=False)
    meeting_mode = Column(String(10), nullable=False)

    # Customer info
    client_name = Column(String, nullable=False)
    client_email = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)
    attendees = Column(JSON, default=list)
    restaurant_name = Column(String, nullable=True)
    city = Column(String, nullable=True)

    title = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class IdempotencyKey(Base):
    """Result of a create request, replayed when the same key comes back"""
    __tablename__ = "idempotency_keys"

    key = Column(String(200), primary_key=True)
    request_hash = Column(String(64), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False)
    response = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
