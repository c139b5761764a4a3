"""Tests for zone selection rules."""

from app.schemas.engine_dto import MeetingMode
from app.services.booking.zone_resolver import ZoneResolver

from conftest import at, booked

VISIO = {"Visio"}


def resolve(start, end, appointments=(), assigned=("North", "South", "Visio"), mode=MeetingMode.PHYSIQUE, **kw):
    return ZoneResolver.resolve(
        slot_start=start,
        slot_end=end,
        staff_id=1,
        meeting_mode=mode,
        appointments=list(appointments),
        assigned_zones=list(assigned),
        visio_zones=VISIO,
        **kw
    )


class TestZoneLock:
    """A physical appointment fixes the zone for its half-day."""

    def test_morning_appointment_locks_every_morning_slot(self):
        """Sticky lock: every later morning slot resolves to exactly that zone."""
        appointments = [booked(1, at(9), at(10), zone_name="South")]

        for hour in (10, 11, 12):
            resolution = resolve(at(hour), at(hour, 30), appointments)
            assert resolution.zones == ["South"]
            assert resolution.locked is True
            assert resolution.lock_reason == "half_day"

    def test_overlapping_appointment_locks(self):
        appointments = [booked(1, at(14), at(15), zone_name="North")]

        resolution = resolve(at(14, 30), at(15), appointments)

        assert resolution.zones == ["North"]
        assert resolution.lock_reason == "overlap"

    def test_afternoon_not_locked_by_morning(self):
        appointments = [booked(1, at(9), at(10), zone_name="South")]

        resolution = resolve(at(14), at(14, 30), appointments)

        assert resolution.locked is False
        assert resolution.zones == ["North", "South"]

    def test_other_staff_do_not_lock(self):
        appointments = [booked(2, at(9), at(10), zone_name="South")]
        assert resolve(at(11), at(11, 30), appointments).locked is False

    def test_visio_appointment_does_not_lock(self):
        appointments = [booked(1, at(9), at(10), mode=MeetingMode.VISIO, zone_name="Visio")]
        assert resolve(at(11), at(11, 30), appointments).locked is False

    def test_split_hour_is_configurable(self):
        """With the split at 12, a 12:30 slot is in the afternoon."""
        appointments = [booked(1, at(9), at(10), zone_name="South")]

        assert resolve(at(12, 30), at(13), appointments).locked is True
        assert resolve(at(12, 30), at(13), appointments, split_hour=12).locked is False


class TestZoneOptions:

    def test_physical_excludes_visio_zones(self):
        assert resolve(at(10), at(10, 30)).zones == ["North", "South"]

    def test_visio_keeps_every_assigned_zone(self):
        resolution = resolve(at(10), at(10, 30), mode=MeetingMode.VISIO)
        assert resolution.zones == ["North", "South", "Visio"]

    def test_nominal_zone_when_nothing_assigned(self):
        resolution = resolve(at(10), at(10, 30), assigned=(), nominal_zone="North")
        assert resolution.zones == ["North"]
        assert resolution.locked is False

    def test_nominal_visio_zone_not_offered_in_person(self):
        assert resolve(at(10), at(10, 30), assigned=(), nominal_zone="Visio").zones == []

    def test_selection_locks_after_appointment_rules(self):
        """A day selection applies only when no appointment already fixes the zone."""
        resolution = resolve(at(10), at(10, 30), selected_zone="South")
        assert resolution.zones == ["South"]
        assert resolution.lock_reason == "selection"

        appointments = [booked(1, at(9), at(9, 30), zone_name="North")]
        resolution = resolve(at(10), at(10, 30), appointments, selected_zone="South")
        assert resolution.zones == ["North"]
        assert resolution.lock_reason == "half_day"

    def test_visio_selection_ignored_in_person(self):
        resolution = resolve(at(10), at(10, 30), selected_zone="Visio")
        assert resolution.locked is False
        assert resolution.zones == ["North", "South"]
