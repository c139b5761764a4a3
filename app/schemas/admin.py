# app/schemas/admin.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime, time

from app.schemas.engine_dto import HalfDay


# ============================================================================
# ZONES
# ============================================================================

class ZoneCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    is_visio: Optional[bool] = Field(None, description="Defaults to true when the name contains 'visio'")


class ZoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    is_visio: Optional[bool] = None


class ZoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str
    is_visio: bool


# ============================================================================
# RULES & EXCEPTIONS
# ============================================================================

class ZoneRuleCreate(BaseModel):
    zone_id: int
    weekday: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: time
    end_time: time


class ZoneRuleResponse(ZoneRuleCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class ZoneExceptionCreate(BaseModel):
    zone_id: int
    date: date
    start_time: time
    end_time: time
    note: Optional[str] = None


class ZoneExceptionResponse(ZoneExceptionCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class StaffZoneRuleCreate(BaseModel):
    staff_id: int
    zone_id: int
    weekday: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: time
    end_time: time


class StaffZoneRuleResponse(StaffZoneRuleCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class GenerateWeeklyRulesRequest(BaseModel):
    """One rule per weekday with the same hours"""
    zone_id: int
    weekdays: List[int] = Field(..., min_length=1)
    start_time: time
    end_time: time
    replace: bool = Field(False, description="Delete the zone's existing rules on those weekdays first")


class GenerateExceptionsRequest(BaseModel):
    """One exception per matching date of the range"""
    zone_id: int
    from_date: date
    to_date: date
    weekdays: Optional[List[int]] = Field(None, description="Restrict to these weekdays (0=Sunday); all when omitted")
    start_time: time
    end_time: time
    note: Optional[str] = None
    replace: bool = Field(False, description="Delete existing exceptions on those dates first")


# ============================================================================
# STAFF
# ============================================================================

class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    is_active: Optional[bool] = None


class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_active: bool
    created_at: Optional[datetime] = None


# ============================================================================
# ZONE SELECTIONS
# ============================================================================

class ZoneSelectionCreate(BaseModel):
    zone_id: int
    date: date
    staff_id: Optional[int] = Field(None, description="Applies to every staff member when omitted")
    half_day: Optional[HalfDay] = Field(None, description="Applies to the whole day when omitted")


class ZoneSelectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    zone_id: int
    date: date
    staff_id: Optional[int] = None
    half_day: Optional[HalfDay] = None
