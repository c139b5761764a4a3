# app/schemas/engine_dto.py
"""
Value objects exchanged by the availability and booking engine.

All datetimes are naive wall-clock values in the business timezone.
"""
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MeetingMode(str, Enum):
    PHYSIQUE = "physique"
    VISIO = "visio"


class HalfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class TimeInterval(BaseModel):
    """Half-open interval [start, end)"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


class FreeInterval(BaseModel):
    """Maximal span where a staff member is eligible and unbooked"""
    model_config = ConfigDict(frozen=True)

    staff_id: int
    start: datetime
    end: datetime
    # Latest start at which a full in-person meeting still fits; display only
    display_end: Optional[datetime] = None
    visio_only: bool = False


class SlotCandidate(BaseModel):
    """Discrete, offerable booking option; always inside a FreeInterval"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    staff_ids: List[int] = Field(default_factory=list)
    zone_id: Optional[int] = None
    visio_only: bool = False


class BookedSlot(BaseModel):
    """Existing appointment as seen by the pure engine components"""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    staff_id: int
    zone_id: Optional[int] = None
    zone_name: Optional[str] = None
    start: datetime
    end: datetime
    meeting_mode: MeetingMode


class ViolationKind(str, Enum):
    CAPACITY = "capacity"
    SPACING = "spacing"


class Violation(BaseModel):
    """Business-rule rejection returned by the ConstraintValidator"""
    model_config = ConfigDict(frozen=True)

    kind: ViolationKind
    message: str
    staff_id: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ConstraintResult(BaseModel):
    """Outcome of a pre-flight constraint check over a set of candidate staff"""

    allowed_staff_ids: List[int] = Field(default_factory=list)
    violations: Dict[int, Violation] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.allowed_staff_ids)

    @property
    def violation(self) -> Optional[Violation]:
        """The rejection to report when no candidate staff is left"""
        if self.ok or not self.violations:
            return None
        return self.violations[min(self.violations)]


class ZoneResolution(BaseModel):
    """Selectable zones for a slot; `locked` means the choice is already fixed"""

    zones: List[str] = Field(default_factory=list)
    locked: bool = False
    lock_reason: Optional[str] = None  # overlap, half_day, selection


class LayoutEvent(BaseModel):
    """Calendar event in minutes from the start of the day"""

    id: str
    start_min: int
    end_min: int
    kind: str = "appointment"  # appointment, free
    track: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class PlacedEvent(LayoutEvent):
    lane: int
    lanes_count: int
