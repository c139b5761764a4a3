# ===== app/services/booking/constraint_validator.py =====
"""
Capacity and spacing rules for a prospective booking.

The single authority on these rules: the pre-flight endpoint and the
commit path both call it. It never touches the database and never raises
for a rule violation; it returns which candidate staff are still allowed
and why the others are not.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from app.schemas.engine_dto import (
    BookedSlot,
    ConstraintResult,
    MeetingMode,
    Violation,
    ViolationKind,
)
from app.schemas.settings import BookingConfig
from app.utils.time_utils import half_day_of


class ConstraintValidator:

    @staticmethod
    def check(
            start: datetime,
            end: datetime,
            meeting_mode: MeetingMode,
            candidate_staff_ids: Iterable[int],
            appointments: Iterable[BookedSlot],
            config: BookingConfig
    ) -> ConstraintResult:
        """Evaluate every candidate staff member against the rules of the meeting mode"""
        day_appointments = [a for a in appointments if a.start.date() == start.date()]
        result = ConstraintResult()

        for staff_id in sorted(set(candidate_staff_ids)):
            own = [a for a in day_appointments if a.staff_id == staff_id]
            if meeting_mode == MeetingMode.VISIO:
                violation = ConstraintValidator._check_visio(staff_id, start, own, config)
            else:
                violation = ConstraintValidator._check_physical(staff_id, start, own, config)

            if violation is None:
                result.allowed_staff_ids.append(staff_id)
            else:
                result.violations[staff_id] = violation

        return result

    @staticmethod
    def _check_visio(
            staff_id: int,
            start: datetime,
            own: List[BookedSlot],
            config: BookingConfig
    ) -> Optional[Violation]:
        """A previous appointment must have ended at least visio_gap minutes before the start"""
        gap = timedelta(minutes=config.visio_gap_min)
        for appt in own:
            if start - gap < appt.end <= start:
                return Violation(
                    kind=ViolationKind.SPACING,
                    message=f"Respect a {config.visio_gap_min} min gap after the previous appointment",
                    staff_id=staff_id,
                    details={
                        "previous_end": appt.end.isoformat(),
                        "required_gap_min": config.visio_gap_min,
                    },
                )
        return None

    @staticmethod
    def _check_physical(
            staff_id: int,
            start: datetime,
            own: List[BookedSlot],
            config: BookingConfig
    ) -> Optional[Violation]:
        split = config.half_day_split_hour
        half = half_day_of(start, split)
        same_half = sorted(
            (a for a in own
             if a.meeting_mode == MeetingMode.PHYSIQUE and half_day_of(a.start, split) == half),
            key=lambda a: a.start
        )

        if len(same_half) >= config.physical_max_per_half_day:
            return Violation(
                kind=ViolationKind.CAPACITY,
                message=f"Capacity reached: {config.physical_max_per_half_day} physical appointments max per half-day",
                staff_id=staff_id,
                details={"half_day": half.value, "existing": len(same_half)},
            )

        # Forward gap only: a booking placed before the existing one is left to the overlap check
        previous_ends = [a.end for a in same_half if a.end <= start]
        if previous_ends:
            previous_end = max(previous_ends)
            gap_min = int((start - previous_end).total_seconds() // 60)
            if gap_min < config.physical_second_gap_min:
                return Violation(
                    kind=ViolationKind.SPACING,
                    message=(
                        f"Insufficient gap between physical appointments: "
                        f"{gap_min} min (< {config.physical_second_gap_min} min)"
                    ),
                    staff_id=staff_id,
                    details={
                        "gap_min": gap_min,
                        "required_gap_min": config.physical_second_gap_min,
                    },
                )
        return None
