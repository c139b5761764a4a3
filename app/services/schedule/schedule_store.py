# ===== app/services/schedule/schedule_store.py =====
"""
Read side of the schedule rules consumed by the availability engine.

A ScheduleSnapshot is loaded once per query so a single availability or
booking computation sees one consistent set of rules. Nothing is cached
across calls.
"""
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from app.models.availability import StaffZoneRule, ZoneException, ZoneRule, ZoneSelection
from app.models.staff import Staff
from app.models.zone import Zone
from app.schemas.engine_dto import HalfDay, TimeInterval
from app.services.availability.availability_merger import (
    Span,
    intersect_intervals,
    merge_intervals,
)
from app.utils.time_utils import sunday_weekday


class ScheduleSnapshot:
    """Zones, rules, exceptions, staff assignments and zone selections for a date range"""

    def __init__(
            self,
            zones: Iterable[Zone],
            staff: Iterable[Staff],
            rules: Iterable[ZoneRule],
            exceptions: Iterable[ZoneException],
            assignments: Iterable[StaffZoneRule],
            selections: Iterable[ZoneSelection] = (),
            zones_with_exceptions: Optional[Set[int]] = None
    ):
        self.zones: Dict[int, Zone] = {z.id: z for z in zones}
        self.staff: Dict[int, Staff] = {s.id: s for s in staff}

        self._rules = defaultdict(list)
        for rule in rules:
            self._rules[(rule.zone_id, rule.weekday)].append(rule)
        self._zones_with_rules = {zone_id for zone_id, _ in self._rules}

        self._exceptions = defaultdict(list)
        for exc in exceptions:
            self._exceptions[(exc.zone_id, exc.date)].append(exc)
        self._zones_with_exceptions = set(zones_with_exceptions or ()) | {
            zone_id for zone_id, _ in self._exceptions
        }

        self._assignments = defaultdict(list)
        for assignment in assignments:
            self._assignments[(assignment.staff_id, assignment.weekday)].append(assignment)

        self._selections = list(selections)

    @classmethod
    def load(cls, db: Session, from_date: date, to_date: date) -> "ScheduleSnapshot":
        zones_with_exceptions = {
            row[0] for row in db.query(ZoneException.zone_id).distinct().all()
        }
        return cls(
            zones=db.query(Zone).all(),
            staff=db.query(Staff).order_by(Staff.id).all(),
            rules=db.query(ZoneRule).all(),
            exceptions=db.query(ZoneException).filter(
                ZoneException.date.between(from_date, to_date)
            ).all(),
            assignments=db.query(StaffZoneRule).all(),
            selections=db.query(ZoneSelection).filter(
                ZoneSelection.date.between(from_date, to_date)
            ).all(),
            zones_with_exceptions=zones_with_exceptions,
        )

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    @property
    def visio_zone_names(self) -> Set[str]:
        return {z.name for z in self.zones.values() if z.is_visio}

    @property
    def visio_zone(self) -> Optional[Zone]:
        visio = sorted((z for z in self.zones.values() if z.is_visio), key=lambda z: z.id)
        return visio[0] if visio else None

    def zone_by_name(self, name: str) -> Optional[Zone]:
        for zone in self.zones.values():
            if zone.name == name:
                return zone
        return None

    def zone_windows(self, zone_id: int, day: date) -> Optional[List[Span]]:
        """
        Open intervals of a zone on a date.

        Exceptions for the date replace the weekly pattern. Returns None for
        a zone with no rules and no exceptions at all, i.e. a zone whose
        hours are defined only by its staff assignments.
        """
        if zone_id not in self._zones_with_rules and zone_id not in self._zones_with_exceptions:
            return None
        exceptions = self._exceptions.get((zone_id, day))
        if exceptions:
            rows = exceptions
        else:
            rows = self._rules.get((zone_id, sunday_weekday(day)), [])
        return merge_intervals(
            (datetime.combine(day, r.start_time), datetime.combine(day, r.end_time)) for r in rows
        )

    # ------------------------------------------------------------------
    # Staff eligibility
    # ------------------------------------------------------------------

    @property
    def active_staff_ids(self) -> List[int]:
        return sorted(s.id for s in self.staff.values() if s.is_active)

    def eligibility_by_zone(
            self,
            staff_id: int,
            day: date,
            zone_ids: Optional[Set[int]] = None
    ) -> Dict[int, List[Span]]:
        """zone_id -> merged spans where the staff member may serve that zone on `day`"""
        per_zone = defaultdict(list)
        for assignment in self._assignments.get((staff_id, sunday_weekday(day)), []):
            if zone_ids is not None and assignment.zone_id not in zone_ids:
                continue
            per_zone[assignment.zone_id].append((
                datetime.combine(day, assignment.start_time),
                datetime.combine(day, assignment.end_time),
            ))

        result: Dict[int, List[Span]] = {}
        for zone_id, spans in per_zone.items():
            merged = merge_intervals(spans)
            windows = self.zone_windows(zone_id, day)
            if windows is not None:
                merged = intersect_intervals(merged, windows)
            if merged:
                result[zone_id] = merged
        return result

    def eligible_intervals(
            self,
            staff_id: int,
            day: date,
            zone_ids: Optional[Set[int]] = None
    ) -> List[TimeInterval]:
        """Union over zones of the staff member's eligible spans"""
        spans = []
        for zone_spans in self.eligibility_by_zone(staff_id, day, zone_ids).values():
            spans.extend(zone_spans)
        return [TimeInterval(start=s, end=e) for s, e in merge_intervals(spans)]

    def assigned_zone_names(self, staff_id: int, day: date) -> List[str]:
        """Zones the staff member is assigned to on that weekday, by name"""
        zone_ids = {a.zone_id for a in self._assignments.get((staff_id, sunday_weekday(day)), [])}
        return sorted(self.zones[z].name for z in zone_ids if z in self.zones)

    # ------------------------------------------------------------------
    # Zone selections
    # ------------------------------------------------------------------

    def selected_zone_name(self, staff_id: int, day: date, half: HalfDay) -> Optional[str]:
        """Most specific selection: staff beats global, half-day beats whole day"""
        best = None
        best_rank = -1
        for selection in self._selections:
            if selection.date != day:
                continue
            if selection.staff_id is not None and selection.staff_id != staff_id:
                continue
            if selection.half_day is not None and selection.half_day != half.value:
                continue
            rank = (2 if selection.staff_id is not None else 0) + (1 if selection.half_day else 0)
            if rank > best_rank:
                best, best_rank = selection, rank
        if best is None or best.zone_id not in self.zones:
            return None
        return self.zones[best.zone_id].name
