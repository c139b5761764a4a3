# app/schemas/__init__.py
from .engine_dto import (
    MeetingMode,
    HalfDay,
    TimeInterval,
    FreeInterval,
    SlotCandidate,
    BookedSlot,
    ViolationKind,
    Violation,
    ConstraintResult,
    ZoneResolution,
    LayoutEvent,
    PlacedEvent
)

from .settings import (
    BookingSettingsUpdate,
    BookingSettingsResponse,
    BookingConfig,
    ModeTiming
)

from .booking import (
    BookingRequest,
    BookingResponse,
    PreflightRequest,
    PreflightResponse,
    ZoneOptionsResponse
)

from .admin import (
    ZoneCreate,
    ZoneUpdate,
    ZoneResponse,
    ZoneRuleCreate,
    ZoneRuleResponse,
    ZoneExceptionCreate,
    ZoneExceptionResponse,
    StaffZoneRuleCreate,
    StaffZoneRuleResponse,
    GenerateWeeklyRulesRequest,
    GenerateExceptionsRequest,
    StaffCreate,
    StaffUpdate,
    StaffResponse,
    ZoneSelectionCreate,
    ZoneSelectionResponse
)
