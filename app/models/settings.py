# ===== app/models/settings.py =====
from sqlalchemy import Column, Integer
from app.models.base import Base


class BookingSettingsRow(Base):
    """
    Administrator-edited booking settings. Single row (id=1).
    Mode-specific columns are nullable: NULL means "use the generic value".
    """
    __tablename__ = "booking_settings"

    id = Column(Integer, primary_key=True, default=1)

    booking_step_min = Column(Integer, nullable=False, default=15)
    default_duration_min = Column(Integer, nullable=False, default=30)
    buffer_before_min = Column(Integer, nullable=False, default=0)
    buffer_after_min = Column(Integer, nullable=False, default=0)
    notice_min = Column(Integer, nullable=False, default=0)
    window_days = Column(Integer, nullable=False, default=30)

    demo_visio_duration_min = Column(Integer, nullable=True)
    demo_visio_buffer_before_min = Column(Integer, nullable=True)
    demo_visio_buffer_after_min = Column(Integer, nullable=True)
    demo_physique_duration_min = Column(Integer, nullable=True)

    demo_visio_min_gap_min = Column(Integer, nullable=True)
    demo_physique_second_min_gap_min = Column(Integer, nullable=True)
    physical_max_per_half_day = Column(Integer, nullable=True)
    half_day_split_hour = Column(Integer, nullable=True)
