#!/usr/bin/env python3
"""
Seed a demo schedule: zones, weekday rules and staff assignments
Usage: python -m app.scripts.seed_schedule
"""
import sys
from datetime import time
from typing import Dict

from sqlalchemy.orm import Session

from app.config.database import SessionLocal, create_tables
from app.models import Staff, StaffZoneRule, Zone, ZoneRule

ZONES = [
    {"name": "Paris Centre", "color": "#2563eb", "is_visio": False},
    {"name": "Paris Ouest", "color": "#16a34a", "is_visio": False},
    {"name": "Visio", "color": "#6b21a8", "is_visio": True},
]

# 1=Monday ... 5=Friday
WEEKDAYS = range(1, 6)
DAY_START = time(9, 0)
DAY_END = time(18, 0)

STAFF_ASSIGNMENTS = {
    "Camille": ["Paris Centre", "Visio"],
    "Hugo": ["Paris Centre", "Paris Ouest", "Visio"],
}


def seed_schedule(db: Session) -> Dict[str, int]:
    """Create missing zones and staff; existing names are left untouched"""
    created = {"zones": 0, "zone_rules": 0, "staff": 0, "staff_zone_rules": 0}

    zones_by_name = {z.name: z for z in db.query(Zone).all()}
    for spec in ZONES:
        if spec["name"] in zones_by_name:
            continue
        zone = Zone(**spec)
        db.add(zone)
        db.flush()
        zones_by_name[zone.name] = zone
        created["zones"] += 1

        # Visio stays unbounded: no zone rules
        if zone.is_visio:
            continue
        for weekday in WEEKDAYS:
            db.add(ZoneRule(zone_id=zone.id, weekday=weekday, start_time=DAY_START, end_time=DAY_END))
            created["zone_rules"] += 1

    existing_staff = {s.name for s in db.query(Staff).all()}
    for name, zone_names in STAFF_ASSIGNMENTS.items():
        if name in existing_staff:
            continue
        staff = Staff(name=name, is_active=True)
        db.add(staff)
        db.flush()
        created["staff"] += 1

        for zone_name in zone_names:
            for weekday in WEEKDAYS:
                db.add(StaffZoneRule(
                    staff_id=staff.id,
                    zone_id=zones_by_name[zone_name].id,
                    weekday=weekday,
                    start_time=DAY_START,
                    end_time=DAY_END,
                ))
                created["staff_zone_rules"] += 1

    db.commit()
    return created


def main() -> int:
    create_tables()
    db: Session = SessionLocal()

    try:
        created = seed_schedule(db)
        print(f"✅ Schedule seeded: {created}")
        return 0
    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding schedule: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
