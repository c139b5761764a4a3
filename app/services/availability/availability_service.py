# ===== app/services/availability/availability_service.py =====
from typing import List, Dict, Optional, Any, Tuple
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import ValidationError
from app.schemas.engine_dto import FreeInterval, MeetingMode, SlotCandidate, TimeInterval
from app.services.appointment.appointment_query_service import AppointmentService
from app.services.availability.availability_merger import AvailabilityMerger
from app.services.availability.slot_generator import SlotCandidateGenerator
from app.services.schedule.schedule_store import ScheduleSnapshot
from app.services.settings.settings_service import SettingsService
from app.utils.time_utils import daterange

logger = logging.getLogger(__name__)

ONLY_MERGED = "merged"
ONLY_SLOTS = "slots"
ONLY_BOTH = "both"


def _clip(intervals: List[TimeInterval], start: datetime, end: datetime) -> List[TimeInterval]:
    clipped = []
    for interval in intervals:
        s = max(interval.start, start)
        e = min(interval.end, end)
        if s < e:
            clipped.append(TimeInterval(start=s, end=e))
    return clipped


class AvailabilityService:
    """Availability queries: rules + appointments -> free intervals -> slot candidates"""

    @staticmethod
    def get_availability(
            db: Session,
            start: datetime,
            end: datetime,
            now: datetime,
            staff_id: Optional[int] = None,
            zone_name: Optional[str] = None,
            meeting_mode: Optional[MeetingMode] = None,
            only: str = ONLY_BOTH
    ) -> Dict[str, Any]:
        """
        Free intervals and/or slot candidates in [start, end).

        The range is cut to [now, now + window_days]. Reads the latest committed
        rules, settings and appointments on every call.
        """
        if end <= start:
            raise ValidationError("'to' must be after 'from'")
        if only not in (ONLY_MERGED, ONLY_SLOTS, ONLY_BOTH):
            raise ValidationError(f"Unknown availability shape: {only}")

        config = SettingsService.get_config(db)
        start = max(start, now)
        end = min(end, now + timedelta(days=config.window_days))
        if end <= start:
            return {"from": start.isoformat(), "to": end.isoformat(), "merged": [], "slots": []}

        snapshot = ScheduleSnapshot.load(db, start.date(), end.date())

        zone_ids = None
        if zone_name:
            zone = snapshot.zone_by_name(zone_name)
            if zone is None:
                raise ValidationError(f"Unknown zone: {zone_name}")
            zone_ids = {zone.id}

        if staff_id is not None:
            if staff_id not in snapshot.staff:
                raise ValidationError(f"Unknown staff: {staff_id}")
            staff_ids = [staff_id]
        else:
            staff_ids = snapshot.active_staff_ids

        appointments = AppointmentService.booked_slots(db, start, end, staff_ids)

        merged: List[FreeInterval] = []
        slots: Dict[Tuple[datetime, datetime, Optional[int]], List[SlotCandidate]] = {}

        for sid in staff_ids:
            for day in daterange(start.date(), end.date()):
                if only != ONLY_SLOTS:
                    eligible = _clip(snapshot.eligible_intervals(sid, day, zone_ids), start, end)
                    for interval in AvailabilityMerger.free_intervals_for_day(sid, eligible, appointments):
                        merged.append(SlotCandidateGenerator.display_window(interval, config))

                if only != ONLY_MERGED:
                    by_zone = snapshot.eligibility_by_zone(sid, day, zone_ids)
                    for zid, spans in by_zone.items():
                        eligible = _clip([TimeInterval(start=s, end=e) for s, e in spans], start, end)
                        free = AvailabilityMerger.free_intervals_for_day(sid, eligible, appointments)
                        for candidate in SlotCandidateGenerator.candidates(
                                free, config, now=now, mode=meeting_mode, zone_id=zid):
                            slots.setdefault((candidate.start, candidate.end, zid), []).append(candidate)

        logger.debug(
            f"Availability {start.isoformat()} -> {end.isoformat()}: "
            f"{len(merged)} free intervals, {len(slots)} slots"
        )

        return {
            "from": start.isoformat(),
            "to": end.isoformat(),
            "merged": [AvailabilityService._serialize_interval(i, snapshot) for i in merged],
            "slots": AvailabilityService._aggregate_slots(slots, snapshot),
        }

    @staticmethod
    def _serialize_interval(interval: FreeInterval, snapshot: ScheduleSnapshot) -> Dict[str, Any]:
        staff = snapshot.staff.get(interval.staff_id)
        return {
            "staff_id": interval.staff_id,
            "staff_name": staff.name if staff else None,
            "start": interval.start.isoformat(),
            "end": interval.end.isoformat(),
            "display_end": interval.display_end.isoformat() if interval.display_end else None,
            "visio_only": interval.visio_only,
        }

    @staticmethod
    def _aggregate_slots(
            slots: Dict[Tuple[datetime, datetime, Optional[int]], List[SlotCandidate]],
            snapshot: ScheduleSnapshot
    ) -> List[Dict[str, Any]]:
        """One entry per (start, end, zone) listing every staff member who can take it"""
        result = []
        for (start, end, zid), candidates in slots.items():
            staff_ids = sorted({sid for c in candidates for sid in c.staff_ids})
            zone = snapshot.zones.get(zid)
            result.append({
                "start": start.isoformat(),
                "end": end.isoformat(),
                "zone": zone.name if zone else "",
                "zone_id": zid,
                "available_staff_ids": staff_ids,
                "available_staff_names": [snapshot.staff[s].name for s in staff_ids if s in snapshot.staff],
                "visio_only": all(c.visio_only for c in candidates),
            })
        result.sort(key=lambda s: (s["start"], s["zone"], s["end"]))
        return result

    @staticmethod
    def free_intervals(
            db: Session,
            staff_id: int,
            start: datetime,
            end: datetime,
            zone_ids=None
    ) -> List[FreeInterval]:
        """Raw free intervals of one staff member (no window clamp, no display annotation)"""
        snapshot = ScheduleSnapshot.load(db, start.date(), end.date())
        appointments = AppointmentService.booked_slots(db, start, end, [staff_id])
        result: List[FreeInterval] = []
        for day in daterange(start.date(), end.date()):
            eligible = _clip(snapshot.eligible_intervals(staff_id, day, zone_ids), start, end)
            result.extend(AvailabilityMerger.free_intervals_for_day(staff_id, eligible, appointments))
        return result
