# app/services/zone/zone_service.py
"""Zones, their weekly rules and date exceptions, and day zone selections"""
from datetime import date, time
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import NotFoundError, ValidationError, ZoneInUseError
from app.models.appointment import Appointment
from app.models.availability import StaffZoneRule, ZoneException, ZoneRule, ZoneSelection
from app.models.staff import Staff
from app.models.zone import Zone
from app.schemas.admin import (
    GenerateExceptionsRequest,
    GenerateWeeklyRulesRequest,
    ZoneCreate,
    ZoneExceptionCreate,
    ZoneRuleCreate,
    ZoneSelectionCreate,
    ZoneUpdate,
)
from app.utils.time_utils import daterange, sunday_weekday

logger = logging.getLogger(__name__)

DEFAULT_ZONE_COLOR = "#6b21a8"


def check_time_range(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise ValidationError(
            f"End time {end_time.strftime('%H:%M')} must be after start time {start_time.strftime('%H:%M')}"
        )


def check_weekdays(weekdays: List[int]) -> None:
    invalid = [w for w in weekdays if w < 0 or w > 6]
    if invalid:
        raise ValidationError(f"Invalid weekdays (0=Sunday .. 6=Saturday): {invalid}")


class ZoneService:
    """Zone administration"""

    @staticmethod
    def list_zones(db: Session) -> List[Zone]:
        return db.query(Zone).order_by(Zone.name).all()

    @staticmethod
    def get_zone(db: Session, zone_id: int) -> Zone:
        zone = db.get(Zone, zone_id)
        if not zone:
            raise NotFoundError(f"Zone {zone_id} not found")
        return zone

    @staticmethod
    def create_zone(db: Session, payload: ZoneCreate) -> Zone:
        name = payload.name.strip()
        if not name:
            raise ValidationError("Zone name must not be blank")
        if db.query(Zone).filter(Zone.name == name).first():
            raise ValidationError(f"Zone {name} already exists")

        is_visio = payload.is_visio if payload.is_visio is not None else "visio" in name.lower()
        zone = Zone(name=name, color=payload.color or DEFAULT_ZONE_COLOR, is_visio=is_visio)
        db.add(zone)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError(f"Zone {name} already exists")
        db.refresh(zone)
        logger.info(f"Created zone {zone.id} ({zone.name}, visio={zone.is_visio})")
        return zone

    @staticmethod
    def update_zone(db: Session, zone_id: int, payload: ZoneUpdate) -> Zone:
        zone = ZoneService.get_zone(db, zone_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            clash = db.query(Zone).filter(Zone.name == changes["name"], Zone.id != zone_id).first()
            if clash:
                raise ValidationError(f"Zone {changes['name']} already exists")
        for field, value in changes.items():
            setattr(zone, field, value)
        db.commit()
        db.refresh(zone)
        return zone

    @staticmethod
    def delete_zone(db: Session, zone_id: int) -> None:
        """Delete an unused zone; a zone still referenced anywhere is refused"""
        zone = ZoneService.get_zone(db, zone_id)
        references = {
            "rules": db.query(ZoneRule).filter(ZoneRule.zone_id == zone_id).count(),
            "exceptions": db.query(ZoneException).filter(ZoneException.zone_id == zone_id).count(),
            "staff_rules": db.query(StaffZoneRule).filter(StaffZoneRule.zone_id == zone_id).count(),
            "appointments": db.query(Appointment).filter(Appointment.zone_id == zone_id).count(),
            "selections": db.query(ZoneSelection).filter(ZoneSelection.zone_id == zone_id).count(),
        }
        used = {k: v for k, v in references.items() if v}
        if used:
            raise ZoneInUseError(f"Zone {zone.name} is still in use", details=used)
        db.delete(zone)
        db.commit()
        logger.info(f"Deleted zone {zone_id}")

    # ------------------------------------------------------------------
    # Weekly rules
    # ------------------------------------------------------------------

    @staticmethod
    def list_rules(db: Session, zone_id: Optional[int] = None) -> List[ZoneRule]:
        query = db.query(ZoneRule)
        if zone_id is not None:
            query = query.filter(ZoneRule.zone_id == zone_id)
        return query.order_by(ZoneRule.zone_id, ZoneRule.weekday, ZoneRule.start_time).all()

    @staticmethod
    def create_rule(db: Session, payload: ZoneRuleCreate) -> ZoneRule:
        ZoneService.get_zone(db, payload.zone_id)
        check_weekdays([payload.weekday])
        check_time_range(payload.start_time, payload.end_time)
        rule = ZoneRule(**payload.model_dump())
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def delete_rule(db: Session, rule_id: int) -> None:
        rule = db.get(ZoneRule, rule_id)
        if not rule:
            raise NotFoundError(f"Zone rule {rule_id} not found")
        db.delete(rule)
        db.commit()

    @staticmethod
    def generate_weekly_rules(db: Session, payload: GenerateWeeklyRulesRequest) -> List[ZoneRule]:
        """Same hours on several weekdays, optionally replacing the rules of those weekdays"""
        ZoneService.get_zone(db, payload.zone_id)
        check_weekdays(payload.weekdays)
        check_time_range(payload.start_time, payload.end_time)
        weekdays = sorted(set(payload.weekdays))

        try:
            if payload.replace:
                db.query(ZoneRule).filter(
                    ZoneRule.zone_id == payload.zone_id,
                    ZoneRule.weekday.in_(weekdays)
                ).delete(synchronize_session=False)

            rules = [
                ZoneRule(
                    zone_id=payload.zone_id,
                    weekday=weekday,
                    start_time=payload.start_time,
                    end_time=payload.end_time,
                )
                for weekday in weekdays
            ]
            db.add_all(rules)
            db.commit()
        except Exception:
            db.rollback()
            raise

        for rule in rules:
            db.refresh(rule)
        logger.info(f"Generated {len(rules)} weekly rules for zone {payload.zone_id} (replace={payload.replace})")
        return rules

    # ------------------------------------------------------------------
    # Date exceptions
    # ------------------------------------------------------------------

    @staticmethod
    def list_exceptions(
            db: Session,
            zone_id: Optional[int] = None,
            from_date: Optional[date] = None,
            to_date: Optional[date] = None
    ) -> List[ZoneException]:
        if from_date and to_date and to_date < from_date:
            raise ValidationError("'to' must not be before 'from'")
        query = db.query(ZoneException)
        if zone_id is not None:
            query = query.filter(ZoneException.zone_id == zone_id)
        if from_date:
            query = query.filter(ZoneException.date >= from_date)
        if to_date:
            query = query.filter(ZoneException.date <= to_date)
        return query.order_by(ZoneException.date, ZoneException.start_time).all()

    @staticmethod
    def create_exception(db: Session, payload: ZoneExceptionCreate) -> ZoneException:
        ZoneService.get_zone(db, payload.zone_id)
        check_time_range(payload.start_time, payload.end_time)
        exception = ZoneException(**payload.model_dump())
        db.add(exception)
        db.commit()
        db.refresh(exception)
        return exception

    @staticmethod
    def delete_exception(db: Session, exception_id: int) -> None:
        exception = db.get(ZoneException, exception_id)
        if not exception:
            raise NotFoundError(f"Zone exception {exception_id} not found")
        db.delete(exception)
        db.commit()

    @staticmethod
    def generate_exceptions_range(db: Session, payload: GenerateExceptionsRequest) -> List[ZoneException]:
        """One exception per date of [from_date, to_date] whose weekday matches"""
        ZoneService.get_zone(db, payload.zone_id)
        check_time_range(payload.start_time, payload.end_time)
        if payload.to_date < payload.from_date:
            raise ValidationError("'to_date' must not be before 'from_date'")
        if payload.weekdays is not None:
            check_weekdays(payload.weekdays)

        dates = [
            d for d in daterange(payload.from_date, payload.to_date)
            if payload.weekdays is None or sunday_weekday(d) in payload.weekdays
        ]

        try:
            if payload.replace and dates:
                db.query(ZoneException).filter(
                    ZoneException.zone_id == payload.zone_id,
                    ZoneException.date.in_(dates)
                ).delete(synchronize_session=False)

            exceptions = [
                ZoneException(
                    zone_id=payload.zone_id,
                    date=d,
                    start_time=payload.start_time,
                    end_time=payload.end_time,
                    note=payload.note,
                )
                for d in dates
            ]
            db.add_all(exceptions)
            db.commit()
        except Exception:
            db.rollback()
            raise

        for exception in exceptions:
            db.refresh(exception)
        logger.info(f"Generated {len(exceptions)} exceptions for zone {payload.zone_id} (replace={payload.replace})")
        return exceptions

    # ------------------------------------------------------------------
    # Day zone selections
    # ------------------------------------------------------------------

    @staticmethod
    def list_selections(db: Session, from_date: date, to_date: date) -> List[ZoneSelection]:
        if to_date < from_date:
            raise ValidationError("'to' must not be before 'from'")
        return db.query(ZoneSelection).filter(
            ZoneSelection.date.between(from_date, to_date)
        ).order_by(ZoneSelection.date, ZoneSelection.id).all()

    @staticmethod
    def set_selection(db: Session, payload: ZoneSelectionCreate) -> ZoneSelection:
        """Create or replace the selection for (staff, date, half-day)"""
        ZoneService.get_zone(db, payload.zone_id)
        if payload.staff_id is not None and db.get(Staff, payload.staff_id) is None:
            raise ValidationError(f"Unknown staff: {payload.staff_id}")
        half_day = payload.half_day.value if payload.half_day else None

        selection = db.query(ZoneSelection).filter(
            ZoneSelection.date == payload.date,
            ZoneSelection.staff_id.is_(None) if payload.staff_id is None else ZoneSelection.staff_id == payload.staff_id,
            ZoneSelection.half_day.is_(None) if half_day is None else ZoneSelection.half_day == half_day,
        ).first()
        if selection is None:
            selection = ZoneSelection(staff_id=payload.staff_id, date=payload.date, half_day=half_day)
            db.add(selection)
        selection.zone_id = payload.zone_id
        db.commit()
        db.refresh(selection)
        return selection

    @staticmethod
    def delete_selection(db: Session, selection_id: int) -> None:
        selection = db.get(ZoneSelection, selection_id)
        if not selection:
            raise NotFoundError(f"Zone selection {selection_id} not found")
        db.delete(selection)
        db.commit()
