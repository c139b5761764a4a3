# app/api/v1/admin/zones.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.config.database import get_db
from app.schemas.admin import (
    GenerateExceptionsRequest,
    GenerateWeeklyRulesRequest,
    ZoneCreate,
    ZoneExceptionCreate,
    ZoneExceptionResponse,
    ZoneResponse,
    ZoneRuleCreate,
    ZoneRuleResponse,
    ZoneSelectionCreate,
    ZoneSelectionResponse,
    ZoneUpdate,
)
from app.services.zone.zone_service import ZoneService

router = APIRouter(prefix="/admin")


# ========== ZONES ==========
@router.get("/zones", response_model=List[ZoneResponse])
def list_zones(db: Session = Depends(get_db)):
    return ZoneService.list_zones(db)


@router.post("/zones", response_model=ZoneResponse, status_code=status.HTTP_201_CREATED)
def create_zone(payload: ZoneCreate, db: Session = Depends(get_db)):
    return ZoneService.create_zone(db, payload)


@router.patch("/zones/{zone_id}", response_model=ZoneResponse)
def update_zone(zone_id: int, payload: ZoneUpdate, db: Session = Depends(get_db)):
    return ZoneService.update_zone(db, zone_id, payload)


@router.delete("/zones/{zone_id}")
def delete_zone(zone_id: int, db: Session = Depends(get_db)):
    """Refused with 409 while rules, assignments or appointments still use the zone"""
    ZoneService.delete_zone(db, zone_id)
    return {"success": True}


# ========== WEEKLY RULES ==========
@router.get("/zone_rules", response_model=List[ZoneRuleResponse])
def list_zone_rules(zone_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return ZoneService.list_rules(db, zone_id)


@router.post("/zone_rules", response_model=ZoneRuleResponse, status_code=status.HTTP_201_CREATED)
def create_zone_rule(payload: ZoneRuleCreate, db: Session = Depends(get_db)):
    return ZoneService.create_rule(db, payload)


@router.delete("/zone_rules/{rule_id}")
def delete_zone_rule(rule_id: int, db: Session = Depends(get_db)):
    ZoneService.delete_rule(db, rule_id)
    return {"success": True}


@router.post("/zone_rules/generate", response_model=List[ZoneRuleResponse], status_code=status.HTTP_201_CREATED)
def generate_weekly_rules(payload: GenerateWeeklyRulesRequest, db: Session = Depends(get_db)):
    return ZoneService.generate_weekly_rules(db, payload)


# ========== DATE EXCEPTIONS ==========
@router.get("/zone_exceptions", response_model=List[ZoneExceptionResponse])
def list_zone_exceptions(
        zone_id: Optional[int] = Query(None),
        from_date: Optional[date] = Query(None, alias="from"),
        to_date: Optional[date] = Query(None, alias="to"),
        db: Session = Depends(get_db)
):
    return ZoneService.list_exceptions(db, zone_id, from_date, to_date)


@router.post("/zone_exceptions", response_model=ZoneExceptionResponse, status_code=status.HTTP_201_CREATED)
def create_zone_exception(payload: ZoneExceptionCreate, db: Session = Depends(get_db)):
    return ZoneService.create_exception(db, payload)


@router.delete("/zone_exceptions/{exception_id}")
def delete_zone_exception(exception_id: int, db: Session = Depends(get_db)):
    ZoneService.delete_exception(db, exception_id)
    return {"success": True}


@router.post(
    "/zone_exceptions/generate",
    response_model=List[ZoneExceptionResponse],
    status_code=status.HTTP_201_CREATED
)
def generate_exceptions_range(payload: GenerateExceptionsRequest, db: Session = Depends(get_db)):
    return ZoneService.generate_exceptions_range(db, payload)


# ========== DAY ZONE SELECTIONS ==========
@router.get("/zone_selections", response_model=List[ZoneSelectionResponse])
def list_zone_selections(
        from_date: date = Query(..., alias="from"),
        to_date: date = Query(..., alias="to"),
        db: Session = Depends(get_db)
):
    return ZoneService.list_selections(db, from_date, to_date)


@router.put("/zone_selections", response_model=ZoneSelectionResponse)
def set_zone_selection(payload: ZoneSelectionCreate, db: Session = Depends(get_db)):
    return ZoneService.set_selection(db, payload)


@router.delete("/zone_selections/{selection_id}")
def delete_zone_selection(selection_id: int, db: Session = Depends(get_db)):
    ZoneService.delete_selection(db, selection_id)
    return {"success": True}
