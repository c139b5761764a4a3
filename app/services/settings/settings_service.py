# ===== app/services/settings/settings_service.py =====
"""Service for reading and editing the booking settings row"""
import logging

from sqlalchemy.orm import Session

from app.models.settings import BookingSettingsRow
from app.schemas.settings import BookingConfig, BookingSettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


class SettingsService:

    @staticmethod
    def get_row(db: Session) -> BookingSettingsRow:
        """Settings row, created with defaults on first access"""
        row = db.get(BookingSettingsRow, SETTINGS_ROW_ID)
        if row is None:
            row = BookingSettingsRow(id=SETTINGS_ROW_ID)
            db.add(row)
            db.flush()
        return row

    @staticmethod
    def get_config(db: Session) -> BookingConfig:
        """Latest committed settings, resolved with fallbacks"""
        row = db.get(BookingSettingsRow, SETTINGS_ROW_ID)
        return BookingConfig.resolve(row)

    @staticmethod
    def update(db: Session, payload: BookingSettingsUpdate) -> BookingSettingsRow:
        row = SettingsService.get_row(db)
        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            # Generic settings are required; a null only clears mode-specific overrides
            if value is None and not BookingSettingsRow.__table__.c[field].nullable:
                continue
            setattr(row, field, value)
        db.commit()
        db.refresh(row)
        logger.info(f"Booking settings updated: {sorted(changes)}")
        return row
