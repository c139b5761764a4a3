# ===== app/services/calendar/calendar_service.py =====
"""Day view: appointments and free-interval previews packed into lanes"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.schemas.engine_dto import LayoutEvent
from app.services.appointment.appointment_query_service import AppointmentService
from app.services.availability.availability_merger import AvailabilityMerger
from app.services.availability.slot_generator import SlotCandidateGenerator
from app.services.calendar.layout_engine import CalendarLayoutEngine
from app.services.schedule.schedule_store import ScheduleSnapshot
from app.services.settings.settings_service import SettingsService
from app.utils.time_utils import minutes_from_midnight

logger = logging.getLogger(__name__)


class CalendarService:

    @staticmethod
    def day_layout(db: Session, day: date, by_staff: bool = False, include_free: bool = True) -> Dict[str, Any]:
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)

        config = SettingsService.get_config(db)
        snapshot = ScheduleSnapshot.load(db, day, day)
        staff_ids = snapshot.active_staff_ids
        booked = AppointmentService.booked_slots(db, day_start, day_end)
        # Names are not unique: tracks are keyed by staff id, the name is only a label
        staff_track = {sid: f"staff-{sid}" for sid in snapshot.staff}

        events: List[LayoutEvent] = []
        for appt in booked:
            events.append(LayoutEvent(
                id=f"appt-{appt.id}",
                start_min=minutes_from_midnight(max(appt.start, day_start), day),
                end_min=minutes_from_midnight(min(appt.end, day_end), day),
                kind="appointment",
                track=staff_track.get(appt.staff_id) if by_staff else None,
                payload={
                    "appointment_id": appt.id,
                    "staff_id": appt.staff_id,
                    "zone": appt.zone_name,
                    "meeting_mode": appt.meeting_mode.value,
                },
            ))

        if include_free:
            for sid in staff_ids:
                eligible = snapshot.eligible_intervals(sid, day)
                for interval in AvailabilityMerger.free_intervals_for_day(sid, eligible, booked):
                    preview = SlotCandidateGenerator.display_window(interval, config)
                    events.append(LayoutEvent(
                        id=f"free-{sid}-{minutes_from_midnight(preview.start, day)}",
                        start_min=minutes_from_midnight(preview.start, day),
                        end_min=minutes_from_midnight(preview.end, day),
                        kind="free",
                        track=staff_track[sid] if by_staff else None,
                        payload={
                            "staff_id": sid,
                            "display_end_min": (
                                minutes_from_midnight(preview.display_end, day) if preview.display_end else None
                            ),
                            "visio_only": preview.visio_only,
                        },
                    ))

        tracks = [staff_track[sid] for sid in staff_ids] if by_staff else None
        track_labels = [
            {"track": staff_track[sid], "staff_id": sid, "name": snapshot.staff[sid].name}
            for sid in staff_ids
        ] if by_staff else []
        placed = CalendarLayoutEngine.layout(events, tracks=tracks)
        logger.debug(f"Calendar layout {day.isoformat()}: {len(placed)} events")

        return {
            "date": day.isoformat(),
            "tracks": track_labels,
            "lanes_count": placed[0].lanes_count if placed else (len(tracks) if tracks else 0),
            "events": [p.model_dump() for p in placed],
        }
