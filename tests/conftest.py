"""Pytest fixtures for the booking engine tests."""

import logging
from datetime import date, datetime, time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.dependencies import get_clock
from app.config.database import build_engine, get_db
from app.main import app
from app.models import Base, Staff, StaffZoneRule, Zone, ZoneRule
from app.schemas.booking import BookingRequest
from app.schemas.engine_dto import BookedSlot, MeetingMode
from app.schemas.settings import BookingConfig
from app.services.booking.booking_service import BookingService
from app.services.booking.staff_locks import StaffLockManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# 2026-10-26 is a Monday (weekday 1 with 0=Sunday)
MONDAY = date(2026, 10, 26)
MONDAY_WEEKDAY = 1
FIXED_NOW = datetime(2026, 10, 25, 8, 0)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """Wall-clock datetime on the test Monday"""
    return datetime.combine(day, time(hour, minute))


def booked(staff_id, start, end, mode=MeetingMode.PHYSIQUE, zone_name="North", zone_id=1, id=None):
    """Existing appointment as seen by the pure engine components"""
    return BookedSlot(
        id=id,
        staff_id=staff_id,
        zone_id=zone_id,
        zone_name=zone_name,
        start=start,
        end=end,
        meeting_mode=mode,
    )


@pytest.fixture
def config_factory():
    """Build a BookingConfig with overrides on top of the defaults."""
    def _make(**overrides):
        return BookingConfig(**overrides)
    return _make


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite database, one per test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'booking_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """
    Zones North, South (open Monday 09:00-18:00) and Visio (no rules, unbounded).
    Alice works North and Visio on Mondays; Bob works North, South and Visio.
    """
    north = Zone(name="North", color="#1d4ed8", is_visio=False)
    south = Zone(name="South", color="#15803d", is_visio=False)
    visio = Zone(name="Visio", color="#6b21a8", is_visio=True)
    alice = Staff(name="Alice", is_active=True)
    bob = Staff(name="Bob", is_active=True)
    db.add_all([north, south, visio, alice, bob])
    db.flush()

    nine, six = time(9, 0), time(18, 0)
    db.add_all([
        ZoneRule(zone_id=north.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        ZoneRule(zone_id=south.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        StaffZoneRule(staff_id=alice.id, zone_id=north.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        StaffZoneRule(staff_id=alice.id, zone_id=visio.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        StaffZoneRule(staff_id=bob.id, zone_id=north.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        StaffZoneRule(staff_id=bob.id, zone_id=south.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
        StaffZoneRule(staff_id=bob.id, zone_id=visio.id, weekday=MONDAY_WEEKDAY, start_time=nine, end_time=six),
    ])
    db.commit()

    return SimpleNamespace(
        north_id=north.id,
        south_id=south.id,
        visio_id=visio.id,
        alice_id=alice.id,
        bob_id=bob.id,
    )


@pytest.fixture
def lock_manager():
    return StaffLockManager(timeout_seconds=2.0)


@pytest.fixture
def booking_service(db, seeded, lock_manager):
    return BookingService(db, lock_manager=lock_manager, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_request():
    """BookingRequest for Monday with sensible defaults."""
    def _make(start=None, end=None, **overrides):
        data = {
            "start": start or at(10, 0),
            "end": end or at(10, 30),
            "zone": "North",
            "meeting_mode": MeetingMode.PHYSIQUE,
            "client_name": "Le Petit Bistro",
            "client_email": "owner@bistro.example",
        }
        data.update(overrides)
        return BookingRequest(**data)
    return _make


@pytest.fixture
def client(session_factory, seeded):
    """TestClient bound to the per-test database and a fixed clock."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
