# ===== app/models/zone.py =====
from sqlalchemy import Column, String, Integer, Boolean
from app.models.base import Base


class Zone(Base):
    """Service area / category appointments are booked under"""
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(20), nullable=False, default="#6b21a8")

    # The distinguished zone for remote meetings
    is_visio = Column(Boolean, nullable=False, default=False)
