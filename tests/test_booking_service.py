"""Tests for the booking transaction."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.exceptions import (
    CapacityViolation,
    ConflictError,
    NotFoundError,
    SpacingViolation,
    ValidationError,
)
from app.models import Appointment, IdempotencyKey
from app.schemas.booking import BookingRequest, PreflightRequest
from app.schemas.engine_dto import MeetingMode
from app.services.appointment.appointment_query_service import AppointmentService
from app.services.booking.booking_service import BookingService, normalize_attendees

from conftest import FIXED_NOW, at


class TestCreateBooking:
    """Creating appointments."""

    def test_auto_assign_least_load(self, booking_service, make_request, seeded):
        """Equal load goes to the lowest id; the next booking goes to the idler staff."""
        first = booking_service.create_booking(make_request(), "key-1")
        second = booking_service.create_booking(make_request(start=at(14), end=at(14, 30)), "key-2")

        assert first["staff_id"] == seeded.alice_id
        assert first["zone"] == "North"
        assert second["staff_id"] == seeded.bob_id

    def test_idempotent_create(self, booking_service, make_request, db):
        """Same payload and key twice: one appointment, same id both times."""
        request = make_request()

        first = booking_service.create_booking(request, "same-key")
        second = booking_service.create_booking(request, "same-key")

        assert first["appointment_id"] == second["appointment_id"]
        assert first["replayed"] is False
        assert second["replayed"] is True
        assert db.query(Appointment).count() == 1

    def test_key_reused_for_other_request(self, booking_service, make_request):
        booking_service.create_booking(make_request(), "reused")

        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(start=at(15), end=at(15, 30)), "reused")

    def test_key_required(self, booking_service, make_request):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(), "  ")

    def test_overlap_is_a_conflict(self, booking_service, make_request, seeded, db):
        booking_service.create_booking(make_request(staff_id=seeded.alice_id), "k1")

        with pytest.raises(ConflictError) as exc_info:
            booking_service.create_booking(
                make_request(start=at(10, 15), end=at(10, 45), staff_id=seeded.alice_id), "k2"
            )

        assert exc_info.value.retryable is True
        assert db.query(Appointment).count() == 1

    def test_zone_locked_for_half_day(self, booking_service, make_request, seeded):
        """After a South appointment in the morning, Bob cannot do North that morning."""
        booking_service.create_booking(
            make_request(start=at(9), end=at(9, 30), zone="South", staff_id=seeded.bob_id), "k1"
        )

        with pytest.raises(ValidationError) as exc_info:
            booking_service.create_booking(
                make_request(start=at(11), end=at(11, 30), zone="North", staff_id=seeded.bob_id), "k2"
            )

        assert exc_info.value.details["lock_reason"] == "half_day"

        # The afternoon is still open for North
        afternoon = booking_service.create_booking(
            make_request(start=at(14), end=at(14, 30), zone="North", staff_id=seeded.bob_id), "k3"
        )
        assert afternoon["zone"] == "North"

    def test_capacity_violation(self, booking_service, make_request, seeded):
        bob = seeded.bob_id
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=bob), "k1")
        booking_service.create_booking(make_request(start=at(11), end=at(11, 30), staff_id=bob), "k2")

        with pytest.raises(CapacityViolation):
            booking_service.create_booking(make_request(start=at(12, 30), end=at(13), staff_id=bob), "k3")

    def test_capacity_reported_before_overlap(self, booking_service, make_request, seeded):
        """A third physical booking overlapping an existing one is still a capacity rejection."""
        bob = seeded.bob_id
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=bob), "k1")
        booking_service.create_booking(make_request(start=at(11), end=at(11, 30), staff_id=bob), "k2")

        with pytest.raises(CapacityViolation):
            booking_service.create_booking(make_request(start=at(9, 15), end=at(9, 45), staff_id=bob), "k3")

    def test_capacity_reported_before_zone_lock(self, booking_service, make_request, seeded):
        """A third physical booking in another zone is a capacity rejection, not a zone lock."""
        bob = seeded.bob_id
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=bob), "k1")
        booking_service.create_booking(make_request(start=at(11), end=at(11, 30), staff_id=bob), "k2")

        with pytest.raises(CapacityViolation) as exc_info:
            booking_service.create_booking(
                make_request(start=at(12, 30), end=at(13), zone="South", staff_id=bob), "k3"
            )
        assert exc_info.value.details["existing"] == 2

    def test_full_staff_skipped_when_another_is_free(self, booking_service, make_request, seeded):
        alice = seeded.alice_id
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=alice), "k1")
        booking_service.create_booking(make_request(start=at(11), end=at(11, 30), staff_id=alice), "k2")

        result = booking_service.create_booking(make_request(start=at(9, 15), end=at(9, 45)), "k3")

        assert result["staff_id"] == seeded.bob_id

    def test_spacing_violation(self, booking_service, make_request, seeded):
        bob = seeded.bob_id
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=bob), "k1")

        with pytest.raises(SpacingViolation):
            booking_service.create_booking(make_request(start=at(10), end=at(10, 30), staff_id=bob), "k2")

    def test_auto_assign_skips_constrained_staff(self, booking_service, make_request, seeded):
        """Alice is too close to her previous appointment, so Bob gets it."""
        booking_service.create_booking(make_request(start=at(9), end=at(9, 30), staff_id=seeded.alice_id), "k1")

        result = booking_service.create_booking(make_request(), "k2")

        assert result["staff_id"] == seeded.bob_id

    def test_visio_defaults_to_visio_zone(self, booking_service, make_request):
        result = booking_service.create_booking(
            make_request(zone=None, meeting_mode=MeetingMode.VISIO), "visio-1"
        )
        assert result["zone"] == "Visio"
        assert result["meeting_mode"] == "visio"

    def test_mode_zone_mismatch(self, booking_service, make_request):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(zone="Visio"), "k1")
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(meeting_mode=MeetingMode.VISIO), "k2")

    def test_unknown_zone_and_staff(self, booking_service, make_request):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(zone="Atlantis"), "k1")
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(staff_id=999), "k2")

    def test_outside_eligible_hours(self, booking_service, make_request):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(start=at(18), end=at(18, 30)), "k1")

    def test_inverted_range(self, booking_service, make_request):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(start=at(11), end=at(10)), "k1")

    def test_notice_window(self, db, seeded, lock_manager, make_request):
        service = BookingService(db, lock_manager=lock_manager, clock=lambda: at(9, 50))

        with pytest.raises(ValidationError):
            service.create_booking(make_request(start=at(9, 30), end=at(10)), "k1")

    def test_failed_attempt_leaves_nothing(self, booking_service, make_request, seeded, db):
        with pytest.raises(ValidationError):
            booking_service.create_booking(make_request(zone="Atlantis"), "k1")

        assert db.query(Appointment).count() == 0
        assert db.query(IdempotencyKey).count() == 0

    def test_attendees_stored_deduplicated(self, booking_service, make_request, db):
        result = booking_service.create_booking(
            make_request(attendees=["OWNER@bistro.example", "chef@bistro.example"]), "k1"
        )

        stored = db.get(Appointment, result["appointment_id"])
        assert stored.attendees == ["owner@bistro.example", "chef@bistro.example"]


class TestCancelBooking:

    def test_cancel_frees_the_interval(self, booking_service, make_request, db, seeded):
        result = booking_service.create_booking(make_request(staff_id=seeded.alice_id), "k1")

        booking_service.cancel_booking(result["appointment_id"])

        assert AppointmentService.booked_slots(db, at(0), at(23, 59)) == []
        again = booking_service.create_booking(make_request(staff_id=seeded.alice_id), "k2")
        assert again["staff_id"] == seeded.alice_id

    def test_cancelled_key_can_book_again(self, booking_service, make_request, db):
        first = booking_service.create_booking(make_request(), "k1")
        booking_service.cancel_booking(first["appointment_id"])

        second = booking_service.create_booking(make_request(), "k1")

        assert second["replayed"] is False
        assert db.query(Appointment).count() == 1

    def test_cancel_unknown(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.cancel_booking(12345)


class TestPreflight:

    def test_free_slot(self, booking_service, seeded):
        result = booking_service.preflight(PreflightRequest(start=at(10), end=at(10, 30), zone="North"))

        assert result.ok
        assert result.allowed_staff_ids == [seeded.alice_id, seeded.bob_id]
        assert result.zone_options[seeded.bob_id] == ["North", "South"]

    def test_rejection_is_returned_not_raised(self, booking_service, make_request, seeded):
        booking_service.create_booking(
            make_request(start=at(9), end=at(9, 30), zone="South", staff_id=seeded.bob_id), "k1"
        )

        result = booking_service.preflight(PreflightRequest(
            start=at(11), end=at(11, 30), zone="North", staff_id=seeded.bob_id
        ))

        assert result.ok is False
        assert result.violation["error"] == "validation_error"

    def test_zone_options(self, booking_service, make_request, seeded):
        booking_service.create_booking(
            make_request(start=at(9), end=at(9, 30), zone="South", staff_id=seeded.bob_id), "k1"
        )

        resolution = booking_service.zone_options(seeded.bob_id, at(10), at(10, 30), MeetingMode.PHYSIQUE)

        assert resolution.zones == ["South"]
        assert resolution.locked is True


class TestConcurrentBooking:

    def test_race_for_same_staff_and_time(self, session_factory, seeded, lock_manager):
        """Two simultaneous requests for one staff/time: one wins, the other gets a conflict."""
        barrier = threading.Barrier(2)

        def attempt(key):
            session = session_factory()
            try:
                service = BookingService(session, lock_manager=lock_manager, clock=lambda: FIXED_NOW)
                request = BookingRequest(
                    start=at(10), end=at(10, 30), zone="North",
                    meeting_mode=MeetingMode.PHYSIQUE, staff_id=seeded.alice_id,
                    client_name=f"Client {key}",
                )
                barrier.wait()
                try:
                    return service.create_booking(request, key)
                except ConflictError as e:
                    return e
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, ["race-a", "race-b"]))

        successes = [r for r in results if isinstance(r, dict)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 1

        check = session_factory()
        try:
            assert check.query(Appointment).count() == 1
        finally:
            check.close()


class TestNormalizeAttendees:

    def test_client_first_and_case_insensitive(self):
        result = normalize_attendees("A@x.com", ["a@X.com", " b@y.com ", "", "B@y.com"])
        assert result == ["A@x.com", "b@y.com"]

    def test_no_client_email(self):
        assert normalize_attendees(None, ["c@z.com"]) == ["c@z.com"]
