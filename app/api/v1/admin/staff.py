# app/api/v1/admin/staff.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.schemas.admin import (
    StaffCreate,
    StaffResponse,
    StaffUpdate,
    StaffZoneRuleCreate,
    StaffZoneRuleResponse,
)
from app.services.staff.staff_service import StaffService

router = APIRouter(prefix="/admin")


@router.get("/staff", response_model=List[StaffResponse])
def list_staff(active_only: bool = Query(False), db: Session = Depends(get_db)):
    return StaffService.list_staff(db, active_only=active_only)


@router.post("/staff", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(payload: StaffCreate, db: Session = Depends(get_db)):
    return StaffService.create_staff(db, payload)


@router.patch("/staff/{staff_id}", response_model=StaffResponse)
def update_staff(staff_id: int, payload: StaffUpdate, db: Session = Depends(get_db)):
    return StaffService.update_staff(db, staff_id, payload)


# ========== STAFF ZONE ASSIGNMENTS ==========
@router.get("/staff_zone_rules", response_model=List[StaffZoneRuleResponse])
def list_staff_zone_rules(staff_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return StaffService.list_zone_rules(db, staff_id)


@router.post("/staff_zone_rules", response_model=StaffZoneRuleResponse, status_code=status.HTTP_201_CREATED)
def create_staff_zone_rule(payload: StaffZoneRuleCreate, db: Session = Depends(get_db)):
    return StaffService.create_zone_rule(db, payload)


@router.delete("/staff_zone_rules/{rule_id}")
def delete_staff_zone_rule(rule_id: int, db: Session = Depends(get_db)):
    StaffService.delete_zone_rule(db, rule_id)
    return {"success": True}
