# ===== app/models/availability.py =====
from sqlalchemy import Column, String, Integer, Time, Date, ForeignKey, CheckConstraint
from app.models.base import Base


class ZoneRule(Base):
    """Recurring weekly open hours of a zone. weekday: 0=Sunday .. 6=Saturday"""
    __tablename__ = "zone_rules"
    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_zone_rules_weekday"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)

    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)


class ZoneException(Base):
    """Date-specific hours of a zone; replaces the weekly pattern for that date"""
    __tablename__ = "zone_exceptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    note = Column(String, nullable=True)


class StaffZoneRule(Base):
    """When a staff member may serve a zone. weekday: 0=Sunday .. 6=Saturday"""
    __tablename__ = "staff_zone_rules"
    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_staff_zone_rules_weekday"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)

    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)


class ZoneSelection(Base):
    """
    Server-side choice of the zone worked on a given day.
    staff_id NULL applies to every staff member; half_day NULL to the whole day.
    """
    __tablename__ = "zone_selections"
    __table_args__ = (
        CheckConstraint("half_day IN ('morning', 'afternoon')", name="ck_zone_selections_half_day"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False)

    date = Column(Date, nullable=False, index=True)
    half_day = Column(String(10), nullable=True)
