# ===== app/services/booking/zone_resolver.py =====
"""
Which zone(s) a slot may be booked under for a given staff member.

Once a physical appointment occupies a half-day, the staff member is
committed to that zone for the rest of the half-day.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Set

from app.schemas.engine_dto import BookedSlot, MeetingMode, ZoneResolution
from app.utils.time_utils import half_day_of


class ZoneResolver:
    """Pure zone selection rules"""

    @staticmethod
    def resolve(
            slot_start: datetime,
            slot_end: datetime,
            staff_id: int,
            meeting_mode: MeetingMode,
            appointments: Iterable[BookedSlot],
            assigned_zones: Iterable[str],
            visio_zones: Set[str],
            nominal_zone: Optional[str] = None,
            selected_zone: Optional[str] = None,
            split_hour: int = 13
    ) -> ZoneResolution:
        """
        Args:
            appointments: the staff member's appointments (others are ignored)
            assigned_zones: zones the staff member is assigned to on that weekday
            visio_zones: names of the distinguished remote-meeting zone(s)
            nominal_zone: zone attached to the slot, used when nothing else applies
            selected_zone: explicit zone selection recorded for that day/half-day
        """
        physical = sorted(
            (a for a in appointments
             if a.staff_id == staff_id and a.meeting_mode == MeetingMode.PHYSIQUE and a.zone_name),
            key=lambda a: (a.start, a.end)
        )

        # 1) A physical appointment overlapping the slot fixes the zone
        for appt in physical:
            if appt.start < slot_end and appt.end > slot_start:
                return ZoneResolution(zones=[appt.zone_name], locked=True, lock_reason="overlap")

        # 2) Otherwise any physical appointment in the same half-day does
        slot_half = half_day_of(slot_start, split_hour)
        for appt in physical:
            if appt.start.date() == slot_start.date() and half_day_of(appt.start, split_hour) == slot_half:
                return ZoneResolution(zones=[appt.zone_name], locked=True, lock_reason="half_day")

        is_physical = meeting_mode == MeetingMode.PHYSIQUE

        # 3) An explicit day selection
        if selected_zone and not (is_physical and selected_zone in visio_zones):
            return ZoneResolution(zones=[selected_zone], locked=True, lock_reason="selection")

        # 4) Zones the staff member actually serves that day
        names: List[str] = []
        for name in assigned_zones:
            if name in names or (is_physical and name in visio_zones):
                continue
            names.append(name)
        if not names and nominal_zone and not (is_physical and nominal_zone in visio_zones):
            names.append(nominal_zone)
        return ZoneResolution(zones=names, locked=False)
