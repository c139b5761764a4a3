"""Tests for availability queries against the database."""

from datetime import timedelta

import pytest

from app.core.exceptions import ValidationError
from app.schemas.settings import BookingSettingsUpdate
from app.services.availability.availability_service import AvailabilityService
from app.services.settings.settings_service import SettingsService

from conftest import FIXED_NOW, MONDAY, at

DAY_START = at(0)
DAY_END = at(0, day=MONDAY + timedelta(days=1))


def query(db, **kw):
    params = {"start": DAY_START, "end": DAY_END, "now": FIXED_NOW}
    params.update(kw)
    return AvailabilityService.get_availability(db, **params)


class TestMergedAvailability:

    def test_one_interval_per_staff(self, db, seeded):
        """Eligible 09:00-18:00 everywhere, no appointments: one free interval each."""
        result = query(db, only="merged")

        assert result["slots"] == []
        assert [(m["staff_id"], m["start"], m["end"]) for m in result["merged"]] == [
            (seeded.alice_id, "2026-10-26T09:00:00", "2026-10-26T18:00:00"),
            (seeded.bob_id, "2026-10-26T09:00:00", "2026-10-26T18:00:00"),
        ]
        assert result["merged"][0]["display_end"] == "2026-10-26T17:30:00"
        assert result["merged"][0]["visio_only"] is False

    def test_filtered_by_staff_and_zone(self, db, seeded):
        result = query(db, only="merged", staff_id=seeded.bob_id, zone_name="South")
        assert [m["staff_id"] for m in result["merged"]] == [seeded.bob_id]

        result = query(db, only="merged", staff_id=seeded.alice_id, zone_name="South")
        assert result["merged"] == []


class TestSlotAvailability:

    def test_slots_aggregated_across_staff(self, db, seeded):
        result = query(db, only="slots", zone_name="North")
        slots = result["slots"]

        assert result["merged"] == []
        assert slots[0]["start"] == "2026-10-26T09:00:00"
        assert slots[0]["end"] == "2026-10-26T09:30:00"
        assert slots[0]["zone"] == "North"
        assert slots[0]["available_staff_ids"] == [seeded.alice_id, seeded.bob_id]
        assert slots[0]["available_staff_names"] == ["Alice", "Bob"]
        assert slots[-1]["end"] == "2026-10-26T18:00:00"
        assert len(slots) == 35

    def test_booked_staff_drops_out_of_slot(self, db, seeded, booking_service, make_request):
        booking_service.create_booking(make_request(staff_id=seeded.alice_id), "k1")

        slots = {s["start"]: s for s in query(db, only="slots", zone_name="North")["slots"]}

        assert slots["2026-10-26T10:00:00"]["available_staff_ids"] == [seeded.bob_id]
        assert slots["2026-10-26T09:45:00"]["available_staff_ids"] == [seeded.bob_id]
        assert slots["2026-10-26T09:30:00"]["available_staff_ids"] == [seeded.alice_id, seeded.bob_id]

    def test_window_days_clamps_range(self, db, seeded):
        SettingsService.update(db, BookingSettingsUpdate(window_days=1))

        result = query(db)

        # now + 1 day is Monday 08:00, before anyone starts
        assert result["slots"] == []
        assert result["merged"] == []

    def test_unknown_zone(self, db, seeded):
        with pytest.raises(ValidationError):
            query(db, zone_name="Atlantis")

    def test_unknown_staff(self, db, seeded):
        with pytest.raises(ValidationError):
            query(db, staff_id=999)

    def test_inverted_range(self, db, seeded):
        with pytest.raises(ValidationError):
            query(db, start=DAY_END, end=DAY_START)

    def test_past_range_is_empty(self, db, seeded):
        """Nothing before now is offered, even on a day with eligible staff."""
        past_monday = MONDAY - timedelta(days=7)

        result = query(db, start=at(0, day=past_monday), end=at(0, day=past_monday + timedelta(days=1)))

        assert result["merged"] == []
        assert result["slots"] == []

    def test_start_raised_to_now(self, db, seeded):
        now = at(12)

        result = query(db, only="merged", now=now)

        assert result["from"] == "2026-10-26T12:00:00"
        assert [m["start"] for m in result["merged"]] == ["2026-10-26T12:00:00"] * 2
