"""Tests for the day calendar view."""

from app.models import Appointment, Staff, StaffZoneRule
from app.services.calendar.calendar_service import CalendarService

from conftest import MONDAY, at


class TestDayLayout:

    def test_staff_sharing_a_name_get_separate_lanes(self, db, seeded):
        """Two staff called Alice with overlapping appointments never share a lane."""
        twin = Staff(name="Alice", is_active=True)
        db.add(twin)
        db.flush()
        db.add(StaffZoneRule(
            staff_id=twin.id, zone_id=seeded.north_id, weekday=1,
            start_time=at(9).time(), end_time=at(18).time()
        ))
        for staff_id in (seeded.alice_id, twin.id):
            db.add(Appointment(
                zone_id=seeded.north_id, staff_id=staff_id, starts_at=at(10), ends_at=at(10, 30),
                meeting_mode="physique", client_name="Le Petit Bistro", attendees=[],
            ))
        db.commit()

        layout = CalendarService.day_layout(db, MONDAY, by_staff=True, include_free=False)

        lanes = sorted(e["lane"] for e in layout["events"])
        assert lanes == [0, 2]
        assert layout["lanes_count"] == 3
        assert [t["name"] for t in layout["tracks"]] == ["Alice", "Bob", "Alice"]

    def test_dynamic_lanes_without_tracks(self, db, seeded):
        layout = CalendarService.day_layout(db, MONDAY)

        assert layout["tracks"] == []
        assert layout["lanes_count"] == 2
        assert {e["kind"] for e in layout["events"]} == {"free"}
