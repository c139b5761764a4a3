# app/api/v1/admin/settings.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.schemas.settings import BookingSettingsResponse, BookingSettingsUpdate
from app.services.settings.settings_service import SettingsService

router = APIRouter(prefix="/admin")


@router.get("/settings", response_model=BookingSettingsResponse)
def get_settings_row(db: Session = Depends(get_db)):
    row = SettingsService.get_row(db)
    db.commit()
    return row


@router.put("/settings", response_model=BookingSettingsResponse)
def update_settings(payload: BookingSettingsUpdate, db: Session = Depends(get_db)):
    """Partial update: only the keys sent change; null clears a mode-specific override"""
    return SettingsService.update(db, payload)


@router.get("/settings/resolved")
def get_resolved_settings(db: Session = Depends(get_db)):
    """Effective values after the mode-specific -> generic -> default fallbacks"""
    return SettingsService.get_config(db).model_dump()
