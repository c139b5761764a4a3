# app/schemas/booking.py
from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime

from app.schemas.engine_dto import MeetingMode


class BookingRequest(BaseModel):
    """Appointment creation request"""
    start: datetime = Field(..., description="Slot start (naive = business timezone)")
    end: datetime = Field(..., description="Slot end (naive = business timezone)")
    zone: Optional[str] = Field(None, description="Zone name; defaults to the visio zone for visio meetings")
    meeting_mode: MeetingMode = Field(MeetingMode.PHYSIQUE, description="physique or visio")
    staff_id: Optional[int] = Field(None, description="Pinned staff member; auto-assigned when omitted")

    client_name: str = Field(..., min_length=1, description="Client name")
    client_email: Optional[str] = Field(None, description="Client email")
    client_phone: Optional[str] = Field(None, description="Client phone")
    attendees: List[str] = Field(default_factory=list, description="Extra attendee emails")
    restaurant_name: Optional[str] = Field(None)
    city: Optional[str] = Field(None)
    title: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)

    @field_validator("client_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("client_name must not be blank")
        return v


class BookingResponse(BaseModel):
    """Result of a create request, also what a replay returns"""
    appointment_id: int
    staff_id: int
    staff_name: Optional[str] = None
    zone: str
    zone_id: int
    start: datetime
    end: datetime
    meeting_mode: MeetingMode
    replayed: bool = False


class PreflightRequest(BaseModel):
    """Advisory check of a prospective booking; nothing is written"""
    start: datetime
    end: datetime
    zone: Optional[str] = None
    meeting_mode: MeetingMode = MeetingMode.PHYSIQUE
    staff_id: Optional[int] = None


class PreflightResponse(BaseModel):
    ok: bool
    allowed_staff_ids: List[int] = Field(default_factory=list)
    zone_options: Dict[int, List[str]] = Field(default_factory=dict, description="staff_id -> selectable zones")
    zone_locked: Dict[int, bool] = Field(default_factory=dict)
    violation: Optional[Dict[str, Any]] = None


class ZoneOptionsResponse(BaseModel):
    zones: List[str]
    locked: bool
    lock_reason: Optional[str] = None
