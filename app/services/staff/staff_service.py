# app/services/staff/staff_service.py
"""Staff directory and staff-zone assignments"""
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import NotFoundError
from app.models.availability import StaffZoneRule
from app.models.staff import Staff
from app.schemas.admin import StaffCreate, StaffUpdate, StaffZoneRuleCreate
from app.services.zone.zone_service import ZoneService, check_time_range, check_weekdays

logger = logging.getLogger(__name__)


class StaffService:

    @staticmethod
    def list_staff(db: Session, active_only: bool = False) -> List[Staff]:
        query = db.query(Staff)
        if active_only:
            query = query.filter(Staff.is_active == True)
        return query.order_by(Staff.id).all()

    @staticmethod
    def get_staff(db: Session, staff_id: int) -> Staff:
        staff = db.get(Staff, staff_id)
        if not staff:
            raise NotFoundError(f"Staff {staff_id} not found")
        return staff

    @staticmethod
    def create_staff(db: Session, payload: StaffCreate) -> Staff:
        staff = Staff(name=payload.name.strip(), is_active=payload.is_active)
        db.add(staff)
        db.commit()
        db.refresh(staff)
        logger.info(f"Created staff {staff.id} ({staff.name})")
        return staff

    @staticmethod
    def update_staff(db: Session, staff_id: int, payload: StaffUpdate) -> Staff:
        staff = StaffService.get_staff(db, staff_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(staff, field, value)
        db.commit()
        db.refresh(staff)
        return staff

    # ------------------------------------------------------------------
    # Zone assignments
    # ------------------------------------------------------------------

    @staticmethod
    def list_zone_rules(db: Session, staff_id: Optional[int] = None) -> List[StaffZoneRule]:
        query = db.query(StaffZoneRule)
        if staff_id is not None:
            query = query.filter(StaffZoneRule.staff_id == staff_id)
        return query.order_by(
            StaffZoneRule.staff_id, StaffZoneRule.weekday, StaffZoneRule.start_time
        ).all()

    @staticmethod
    def create_zone_rule(db: Session, payload: StaffZoneRuleCreate) -> StaffZoneRule:
        StaffService.get_staff(db, payload.staff_id)
        ZoneService.get_zone(db, payload.zone_id)
        check_weekdays([payload.weekday])
        check_time_range(payload.start_time, payload.end_time)
        rule = StaffZoneRule(**payload.model_dump())
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def delete_zone_rule(db: Session, rule_id: int) -> None:
        rule = db.get(StaffZoneRule, rule_id)
        if not rule:
            raise NotFoundError(f"Staff zone rule {rule_id} not found")
        db.delete(rule)
        db.commit()
