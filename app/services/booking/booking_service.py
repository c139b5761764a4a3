# ============================================================================
# app/services/booking/booking_service.py
# Booking transaction: create / cancel / pre-flight
# ============================================================================
"""
Creates and cancels appointments.

Every write for a staff member runs under that staff member's lock, and
the overlap and constraint checks are evaluated again under the lock,
right before the insert, inside the same database transaction.
"""
import hashlib
import json
import logging
from datetime import datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple, Any

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import (
    BookingError,
    CapacityViolation,
    ConflictError,
    NotFoundError,
    SpacingViolation,
    ValidationError,
)
from app.models.appointment import Appointment, IdempotencyKey
from app.models.staff import Staff
from app.models.zone import Zone
from app.schemas.booking import BookingRequest, BookingResponse, PreflightRequest, PreflightResponse
from app.schemas.engine_dto import BookedSlot, MeetingMode, ViolationKind, ZoneResolution
from app.schemas.settings import BookingConfig
from app.services.appointment.appointment_query_service import AppointmentService
from app.services.booking.constraint_validator import ConstraintValidator
from app.services.booking.staff_locks import StaffLockManager, get_lock_manager
from app.services.booking.zone_resolver import ZoneResolver
from app.services.schedule.schedule_store import ScheduleSnapshot
from app.services.settings.settings_service import SettingsService
from app.utils.time_utils import half_day_of, local_now, to_local_naive

logger = logging.getLogger(__name__)


def normalize_attendees(client_email: Optional[str], attendees: List[str]) -> List[str]:
    """Client email first, then the others; blanks dropped, duplicates removed ignoring case"""
    result = []
    seen = set()
    for email in [client_email or ""] + list(attendees or []):
        email = email.strip()
        if not email or email.lower() in seen:
            continue
        seen.add(email.lower())
        result.append(email)
    return result


def _day_bounds(day_start: datetime) -> Tuple[datetime, datetime]:
    start = datetime.combine(day_start.date(), time.min)
    return start, start + timedelta(days=1)


class BookingService:
    """Appointment writes for one database session"""

    def __init__(
            self,
            db: Session,
            lock_manager: Optional[StaffLockManager] = None,
            clock: Optional[Callable[[], datetime]] = None
    ):
        self.db = db
        self.settings = get_settings()
        self.locks = lock_manager or get_lock_manager()
        self.clock = clock or (lambda: local_now(self.settings.DEFAULT_TIMEZONE))

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_booking(self, request: BookingRequest, idempotency_key: Optional[str]) -> Dict[str, Any]:
        """
        Create an appointment, or replay the stored result of an earlier
        request carrying the same idempotency key.

        Raises:
            ValidationError: bad range, unknown zone/staff, mode/zone mismatch,
                no eligible staff, zone locked, key reused for another request
            CapacityViolation / SpacingViolation: rule rejections
            ConflictError: slot already taken, or staff lock not obtained in time
        """
        key = (idempotency_key or "").strip()
        if not key:
            raise ValidationError("An Idempotency-Key header is required to create a booking")

        start, end = self._normalize_range(request.start, request.end)
        request_hash = self._request_hash(request, start, end)

        replay = self._replay(key, request_hash)
        if replay is not None:
            return replay

        snapshot = ScheduleSnapshot.load(self.db, start.date(), end.date())
        zone = self._resolve_zone(snapshot, request.zone, request.meeting_mode)
        candidates = self._candidate_staff(snapshot, request.staff_id)
        self._check_booking_window(start, SettingsService.get_config(self.db))

        # Release the read transaction before waiting on other writers
        self.db.commit()

        with self.locks.acquire_many(candidates):
            try:
                self._lock_staff_rows(candidates)

                replay = self._replay(key, request_hash)
                if replay is not None:
                    return replay

                # Fresh state, now that no other writer can touch these staff
                config = SettingsService.get_config(self.db)
                snapshot = ScheduleSnapshot.load(self.db, start.date(), end.date())
                day_start, day_end = _day_bounds(start)
                booked = AppointmentService.booked_slots(self.db, day_start, day_end, candidates)

                allowed, _ = self._select_candidates(
                    snapshot, zone, request.meeting_mode, start, end, candidates, booked, config
                )
                staff_id = self._least_loaded(allowed, booked)

                appointment = Appointment(
                    zone_id=zone.id,
                    staff_id=staff_id,
                    starts_at=start,
                    ends_at=end,
                    meeting_mode=request.meeting_mode.value,
                    client_name=request.client_name,
                    client_email=request.client_email,
                    client_phone=request.client_phone,
                    attendees=normalize_attendees(request.client_email, request.attendees),
                    restaurant_name=request.restaurant_name,
                    city=request.city,
                    title=request.title,
                    notes=request.notes,
                )
                self.db.add(appointment)
                self.db.flush()

                staff = snapshot.staff.get(staff_id)
                response = BookingResponse(
                    appointment_id=appointment.id,
                    staff_id=staff_id,
                    staff_name=staff.name if staff else None,
                    zone=zone.name,
                    zone_id=zone.id,
                    start=start,
                    end=end,
                    meeting_mode=request.meeting_mode,
                ).model_dump(mode="json")

                self.db.add(IdempotencyKey(
                    key=key,
                    request_hash=request_hash,
                    appointment_id=appointment.id,
                    response=response,
                ))
                self.db.commit()

            except IntegrityError:
                # Same key committed by a writer holding other staff locks
                self.db.rollback()
                replay = self._replay(key, request_hash)
                if replay is not None:
                    return replay
                raise ConflictError("The booking could not be stored, please retry")
            except BookingError as e:
                self.db.rollback()
                logger.info(f"Booking rejected ({e.code}): {e.message}")
                raise
            except Exception:
                self.db.rollback()
                raise

        logger.info(
            f"📅 Booked appointment {response['appointment_id']}: staff {staff_id}, "
            f"zone {zone.name}, {start.isoformat()} -> {end.isoformat()} ({request.meeting_mode.value})"
        )
        return response

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    def cancel_booking(self, appointment_id: int) -> Dict[str, Any]:
        """Delete an appointment unconditionally; its interval is free again once this returns"""
        appointment = self.db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        staff_id = appointment.staff_id
        self.db.commit()

        with self.locks.acquire(staff_id):
            try:
                appointment = self.db.get(Appointment, appointment_id)
                if appointment is None:
                    raise NotFoundError(f"Appointment {appointment_id} not found")

                # A cancelled booking may be booked again with the same key
                self.db.query(IdempotencyKey).filter(
                    IdempotencyKey.appointment_id == appointment_id
                ).delete(synchronize_session=False)
                self.db.delete(appointment)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logger.info(f"🗑️ Cancelled appointment {appointment_id} (staff {staff_id})")
        return {"success": True, "appointment_id": appointment_id}

    # ------------------------------------------------------------------
    # Advisory checks
    # ------------------------------------------------------------------

    def preflight(self, request: PreflightRequest) -> PreflightResponse:
        """Run the booking checks without writing; rejections come back as data"""
        try:
            start, end = self._normalize_range(request.start, request.end)
            snapshot = ScheduleSnapshot.load(self.db, start.date(), end.date())
            zone = self._resolve_zone(snapshot, request.zone, request.meeting_mode)
            candidates = self._candidate_staff(snapshot, request.staff_id)
            config = SettingsService.get_config(self.db)
            self._check_booking_window(start, config)

            day_start, day_end = _day_bounds(start)
            booked = AppointmentService.booked_slots(self.db, day_start, day_end, candidates)
            allowed, resolutions = self._select_candidates(
                snapshot, zone, request.meeting_mode, start, end, candidates, booked, config
            )
        except BookingError as e:
            return PreflightResponse(ok=False, violation=e.to_dict())

        return PreflightResponse(
            ok=True,
            allowed_staff_ids=allowed,
            zone_options={sid: resolutions[sid].zones for sid in allowed},
            zone_locked={sid: resolutions[sid].locked for sid in allowed},
        )

    def zone_options(
            self,
            staff_id: int,
            start: datetime,
            end: datetime,
            meeting_mode: MeetingMode,
            zone: Optional[str] = None
    ) -> ZoneResolution:
        """Zones a staff member may book the slot under"""
        start, end = self._normalize_range(start, end)
        snapshot = ScheduleSnapshot.load(self.db, start.date(), end.date())
        if staff_id not in snapshot.staff:
            raise ValidationError(f"Unknown staff: {staff_id}")
        if zone and snapshot.zone_by_name(zone) is None:
            raise ValidationError(f"Unknown zone: {zone}")
        config = SettingsService.get_config(self.db)
        day_start, day_end = _day_bounds(start)
        booked = AppointmentService.booked_slots(self.db, day_start, day_end, [staff_id])
        return self._resolve_for_staff(snapshot, staff_id, start, end, meeting_mode, booked, config, zone)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _normalize_range(self, start: datetime, end: datetime) -> Tuple[datetime, datetime]:
        start = to_local_naive(start, self.settings.DEFAULT_TIMEZONE)
        end = to_local_naive(end, self.settings.DEFAULT_TIMEZONE)
        if end <= start:
            raise ValidationError("The end of the slot must be after its start")
        if end.date() != start.date() and end != datetime.combine(start.date() + timedelta(days=1), time.min):
            raise ValidationError("A booking must start and end on the same day")
        return start, end

    @staticmethod
    def _request_hash(request: BookingRequest, start: datetime, end: datetime) -> str:
        payload = request.model_dump(mode="json")
        payload["start"] = start.isoformat()
        payload["end"] = end.isoformat()
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def _replay(self, key: str, request_hash: str) -> Optional[Dict[str, Any]]:
        stored = self.db.get(IdempotencyKey, key)
        if stored is None:
            return None
        if stored.request_hash != request_hash:
            raise ValidationError(
                "Idempotency-Key was already used for a different booking request",
                details={"idempotency_key": key},
            )
        logger.info(f"Replaying booking for idempotency key {key}")
        return {**stored.response, "replayed": True}

    @staticmethod
    def _resolve_zone(snapshot: ScheduleSnapshot, zone_name: Optional[str], mode: MeetingMode) -> Zone:
        if not zone_name:
            if mode == MeetingMode.VISIO and snapshot.visio_zone is not None:
                return snapshot.visio_zone
            raise ValidationError("A zone is required for this booking")

        zone = snapshot.zone_by_name(zone_name)
        if zone is None:
            raise ValidationError(f"Unknown zone: {zone_name}")
        if mode == MeetingMode.PHYSIQUE and zone.is_visio:
            raise ValidationError(f"Zone {zone_name} only takes visio meetings")
        if mode == MeetingMode.VISIO and not zone.is_visio:
            raise ValidationError(f"Visio meetings must be booked in a visio zone, not {zone_name}")
        return zone

    @staticmethod
    def _candidate_staff(snapshot: ScheduleSnapshot, staff_id: Optional[int]) -> List[int]:
        if staff_id is None:
            candidates = snapshot.active_staff_ids
            if not candidates:
                raise ValidationError("No active staff to assign")
            return candidates
        staff = snapshot.staff.get(staff_id)
        if staff is None:
            raise ValidationError(f"Unknown staff: {staff_id}")
        if not staff.is_active:
            raise ValidationError(f"Staff {staff_id} is not active")
        return [staff_id]

    def _check_booking_window(self, start: datetime, config: BookingConfig) -> None:
        now = self.clock()
        if start < now + timedelta(minutes=config.notice_min):
            raise ValidationError(
                f"Bookings need {config.notice_min} min notice",
                details={"earliest": (now + timedelta(minutes=config.notice_min)).isoformat()},
            )
        if start >= now + timedelta(days=config.window_days):
            raise ValidationError(f"Bookings open at most {config.window_days} days ahead")

    def _lock_staff_rows(self, staff_ids: List[int]) -> None:
        """Row locks on the staff for databases that support them; SQLite ignores FOR UPDATE"""
        try:
            self.db.query(Staff.id).filter(
                Staff.id.in_(staff_ids)
            ).order_by(Staff.id).with_for_update(nowait=True).all()
        except OperationalError:
            self.db.rollback()
            raise ConflictError("Staff is being booked by another request, please retry")

    def _resolve_for_staff(
            self,
            snapshot: ScheduleSnapshot,
            staff_id: int,
            start: datetime,
            end: datetime,
            mode: MeetingMode,
            booked: List[BookedSlot],
            config: BookingConfig,
            nominal_zone: Optional[str] = None
    ) -> ZoneResolution:
        day = start.date()
        return ZoneResolver.resolve(
            slot_start=start,
            slot_end=end,
            staff_id=staff_id,
            meeting_mode=mode,
            appointments=booked,
            assigned_zones=snapshot.assigned_zone_names(staff_id, day),
            visio_zones=snapshot.visio_zone_names,
            nominal_zone=nominal_zone,
            selected_zone=snapshot.selected_zone_name(
                staff_id, day, half_day_of(start, config.half_day_split_hour)
            ),
            split_hour=config.half_day_split_hour,
        )

    def _select_candidates(
            self,
            snapshot: ScheduleSnapshot,
            zone: Zone,
            mode: MeetingMode,
            start: datetime,
            end: datetime,
            candidates: List[int],
            booked: List[BookedSlot],
            config: BookingConfig
    ) -> Tuple[List[int], Dict[int, ZoneResolution]]:
        """Staff who can take the slot, with their zone resolutions; raises when nobody can"""
        day = start.date()
        zone_ids = {zone.id} if mode == MeetingMode.PHYSIQUE else None

        eligible = []
        for staff_id in candidates:
            spans = []
            for zone_spans in snapshot.eligibility_by_zone(staff_id, day, zone_ids).values():
                spans.extend(zone_spans)
            if any(s <= start and end <= e for s, e in spans):
                eligible.append(staff_id)
        if not eligible:
            raise ValidationError(
                f"No staff works zone {zone.name} at that time",
                details={"zone": zone.name, "start": start.isoformat(), "end": end.isoformat()},
            )

        # A full half-day rejects physical bookings whatever the overlap or zone
        if mode == MeetingMode.PHYSIQUE:
            capacity = ConstraintValidator.check(start, end, mode, eligible, booked, config)
            full = {
                sid: v for sid, v in capacity.violations.items() if v.kind == ViolationKind.CAPACITY
            }
            eligible = [sid for sid in eligible if sid not in full]
            if not eligible:
                violation = full[min(full)]
                raise CapacityViolation(
                    violation.message, details={"staff_id": violation.staff_id, **violation.details}
                )

        free = [
            sid for sid in eligible
            if not any(a.staff_id == sid and a.start < end and a.end > start for a in booked)
        ]
        if not free:
            raise ConflictError(
                "This slot has just been taken, please pick another one",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )

        resolutions = {
            sid: self._resolve_for_staff(snapshot, sid, start, end, mode, booked, config, zone.name)
            for sid in free
        }
        if mode == MeetingMode.PHYSIQUE:
            unlocked = [sid for sid in free if zone.name in resolutions[sid].zones]
            if not unlocked:
                first = resolutions[free[0]]
                raise ValidationError(
                    f"Zone is locked to {', '.join(first.zones)} for this half-day",
                    details={"zones": first.zones, "lock_reason": first.lock_reason},
                )
            free = unlocked

        result = ConstraintValidator.check(start, end, mode, free, booked, config)
        if not result.ok:
            violation = result.violation
            error_cls = CapacityViolation if violation.kind == ViolationKind.CAPACITY else SpacingViolation
            raise error_cls(violation.message, details={"staff_id": violation.staff_id, **violation.details})

        return result.allowed_staff_ids, resolutions

    @staticmethod
    def _least_loaded(staff_ids: List[int], booked: List[BookedSlot]) -> int:
        """Fewest appointments that day, lowest id on ties"""
        load = {sid: 0 for sid in staff_ids}
        for appointment in booked:
            if appointment.staff_id in load:
                load[appointment.staff_id] += 1
        return min(staff_ids, key=lambda sid: (load[sid], sid))
