"""Tests for slot candidate generation."""

from app.schemas.engine_dto import FreeInterval, MeetingMode, TimeInterval
from app.services.availability.availability_merger import AvailabilityMerger
from app.services.availability.slot_generator import SlotCandidateGenerator, SlotCandidateSequence

from conftest import at, booked


def interval(start, end, staff_id=1):
    return FreeInterval(staff_id=staff_id, start=start, end=end)


class TestSlotCandidateSequence:
    """Candidates for a single free interval."""

    def test_monday_nine_to_six(self, config_factory):
        """15 min grid, 30 min meetings: first 09:00-09:30, last ends at 18:00."""
        config = config_factory(booking_step_min=15, default_duration_min=30, notice_min=0)

        slots = SlotCandidateSequence(interval(at(9), at(18)), config, now=at(7)).to_list()

        assert (slots[0].start, slots[0].end) == (at(9), at(9, 30))
        assert slots[-1].end == at(18)
        assert slots[-1].start == at(17, 30)
        assert len(slots) == 35
        assert all(s.staff_ids == [1] for s in slots)

    def test_notice_pushes_first_start_onto_grid(self, config_factory):
        """Earliest start is now + notice, rounded up to the interval's grid."""
        config = config_factory(booking_step_min=15, notice_min=30)

        slots = SlotCandidateSequence(interval(at(9), at(12)), config, now=at(10, 5)).to_list()

        assert slots[0].start == at(10, 45)

    def test_boundary_buffers(self, config_factory):
        config = config_factory(booking_step_min=15, buffer_before_min=10, buffer_after_min=10)

        slots = SlotCandidateSequence(interval(at(9), at(18)), config).to_list()

        assert slots[0].start == at(9, 15)
        assert slots[-1].end <= at(17, 50)
        assert slots[-1].start == at(17, 15)

    def test_iterating_twice_restarts(self, config_factory):
        sequence = SlotCandidateSequence(interval(at(9), at(10)), config_factory())
        assert list(sequence) == list(sequence)
        assert len(list(sequence)) == 3

    def test_too_short_interval_is_visio_only(self, config_factory):
        """Shorter than an in-person meeting: offered at visio duration, flagged visio-only."""
        config = config_factory(physical_duration_min=60, visio_duration_min=30, booking_step_min=15)
        sequence = SlotCandidateSequence(interval(at(9), at(9, 45)), config)

        slots = sequence.to_list()

        assert sequence.interval_visio_only
        assert [(s.start, s.end) for s in slots] == [(at(9), at(9, 30)), (at(9, 15), at(9, 45))]
        assert all(s.visio_only for s in slots)

    def test_too_short_interval_gives_nothing_in_person(self, config_factory):
        config = config_factory(physical_duration_min=60, visio_duration_min=30)
        sequence = SlotCandidateSequence(interval(at(9), at(9, 45)), config, mode=MeetingMode.PHYSIQUE)
        assert sequence.to_list() == []

    def test_late_starts_are_visio_only(self, config_factory):
        """A start whose in-person meeting would overrun the interval is flagged."""
        config = config_factory(physical_duration_min=60, default_duration_min=30, booking_step_min=15)

        slots = {s.start: s for s in SlotCandidateSequence(interval(at(9), at(11)), config)}

        assert slots[at(10)].visio_only is False
        assert slots[at(10, 15)].visio_only is True
        assert slots[at(10, 30)].visio_only is True

    def test_physical_mode_uses_physical_duration(self, config_factory):
        config = config_factory(physical_duration_min=60, default_duration_min=30, booking_step_min=30)

        slots = SlotCandidateSequence(interval(at(9), at(11)), config, mode=MeetingMode.PHYSIQUE).to_list()

        assert [(s.start, s.end) for s in slots] == [(at(9), at(10)), (at(9, 30), at(10, 30)), (at(10), at(11))]

    def test_zone_is_carried(self, config_factory):
        slots = SlotCandidateSequence(interval(at(9), at(10)), config_factory(), zone_id=7).to_list()
        assert {s.zone_id for s in slots} == {7}


class TestSlotCandidateGenerator:

    def test_no_candidate_overlaps_an_appointment(self, config_factory):
        """Candidates come from free intervals, so they never hit a booking."""
        config = config_factory(booking_step_min=5, default_duration_min=20)
        appointments = [booked(1, at(10), at(10, 40)), booked(1, at(13, 10), at(14, 5))]
        free = AvailabilityMerger.free_intervals_for_day(
            1, [TimeInterval(start=at(9), end=at(18))], appointments
        )

        for slot in SlotCandidateGenerator.candidates(free, config):
            for appt in appointments:
                assert not (slot.start < appt.end and appt.start < slot.end)

    def test_display_window_pulls_back_end(self, config_factory):
        config = config_factory(physical_duration_min=30)

        shown = SlotCandidateGenerator.display_window(interval(at(9), at(18)), config)

        assert shown.display_end == at(17, 30)
        assert shown.visio_only is False
        assert shown.end == at(18)

    def test_display_window_short_interval(self, config_factory):
        config = config_factory(physical_duration_min=30)

        shown = SlotCandidateGenerator.display_window(interval(at(9), at(9, 20)), config)

        assert shown.display_end == at(9, 20)
        assert shown.visio_only is True
