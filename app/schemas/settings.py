# app/schemas/settings.py
"""
Booking settings: the admin-facing row schemas and the resolved BookingConfig.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.engine_dto import MeetingMode

# Hard defaults, used when neither the mode-specific nor the generic value is set
DEFAULT_BOOKING_STEP_MIN = 15
DEFAULT_DURATION_MIN = 30
DEFAULT_WINDOW_DAYS = 30
DEFAULT_VISIO_GAP_MIN = 15
DEFAULT_PHYSICAL_SECOND_GAP_MIN = 90
DEFAULT_PHYSICAL_MAX_PER_HALF_DAY = 2
DEFAULT_HALF_DAY_SPLIT_HOUR = 13


class BookingSettingsBase(BaseModel):
    booking_step_min: int = Field(DEFAULT_BOOKING_STEP_MIN, gt=0)
    default_duration_min: int = Field(DEFAULT_DURATION_MIN, gt=0)
    buffer_before_min: int = Field(0, ge=0)
    buffer_after_min: int = Field(0, ge=0)
    notice_min: int = Field(0, ge=0)
    window_days: int = Field(DEFAULT_WINDOW_DAYS, gt=0)

    demo_visio_duration_min: Optional[int] = Field(None, gt=0)
    demo_visio_buffer_before_min: Optional[int] = Field(None, ge=0)
    demo_visio_buffer_after_min: Optional[int] = Field(None, ge=0)
    demo_physique_duration_min: Optional[int] = Field(None, gt=0)

    demo_visio_min_gap_min: Optional[int] = Field(None, ge=0)
    demo_physique_second_min_gap_min: Optional[int] = Field(None, ge=0)
    physical_max_per_half_day: Optional[int] = Field(None, gt=0)
    half_day_split_hour: Optional[int] = Field(None, ge=1, le=23)


class BookingSettingsResponse(BookingSettingsBase):
    model_config = ConfigDict(from_attributes=True)


class BookingSettingsUpdate(BaseModel):
    """Partial update; only the fields sent are changed"""
    booking_step_min: Optional[int] = Field(None, gt=0)
    default_duration_min: Optional[int] = Field(None, gt=0)
    buffer_before_min: Optional[int] = Field(None, ge=0)
    buffer_after_min: Optional[int] = Field(None, ge=0)
    notice_min: Optional[int] = Field(None, ge=0)
    window_days: Optional[int] = Field(None, gt=0)

    demo_visio_duration_min: Optional[int] = Field(None, gt=0)
    demo_visio_buffer_before_min: Optional[int] = Field(None, ge=0)
    demo_visio_buffer_after_min: Optional[int] = Field(None, ge=0)
    demo_physique_duration_min: Optional[int] = Field(None, gt=0)

    demo_visio_min_gap_min: Optional[int] = Field(None, ge=0)
    demo_physique_second_min_gap_min: Optional[int] = Field(None, ge=0)
    physical_max_per_half_day: Optional[int] = Field(None, gt=0)
    half_day_split_hour: Optional[int] = Field(None, ge=1, le=23)


class ModeTiming(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration_min: int
    buffer_before_min: int
    buffer_after_min: int


class BookingConfig(BaseModel):
    """
    Fully resolved booking configuration.

    Every value is concrete: mode-specific settings have already fallen back
    to their generic counterpart, and generic ones to the hard defaults.
    """
    model_config = ConfigDict(frozen=True)

    booking_step_min: int = DEFAULT_BOOKING_STEP_MIN
    default_duration_min: int = DEFAULT_DURATION_MIN
    buffer_before_min: int = 0
    buffer_after_min: int = 0
    notice_min: int = 0
    window_days: int = DEFAULT_WINDOW_DAYS

    visio_duration_min: int = DEFAULT_DURATION_MIN
    visio_buffer_before_min: int = 0
    visio_buffer_after_min: int = 0
    physical_duration_min: int = DEFAULT_DURATION_MIN

    visio_gap_min: int = DEFAULT_VISIO_GAP_MIN
    physical_second_gap_min: int = DEFAULT_PHYSICAL_SECOND_GAP_MIN
    physical_max_per_half_day: int = DEFAULT_PHYSICAL_MAX_PER_HALF_DAY
    half_day_split_hour: int = DEFAULT_HALF_DAY_SPLIT_HOUR

    @classmethod
    def resolve(cls, row=None) -> "BookingConfig":
        """Build a config from a settings row (ORM object or schema); None gives the defaults"""
        if row is None:
            return cls()

        def pick(*names, default):
            for name in names:
                value = getattr(row, name, None)
                if value is not None:
                    return value
            return default

        step = pick("booking_step_min", default=DEFAULT_BOOKING_STEP_MIN)
        duration = pick("default_duration_min", default=DEFAULT_DURATION_MIN)
        before = pick("buffer_before_min", default=0)
        after = pick("buffer_after_min", default=0)

        return cls(
            booking_step_min=step,
            default_duration_min=duration,
            buffer_before_min=before,
            buffer_after_min=after,
            notice_min=pick("notice_min", default=0),
            window_days=pick("window_days", default=DEFAULT_WINDOW_DAYS),
            visio_duration_min=pick("demo_visio_duration_min", default=duration),
            visio_buffer_before_min=pick("demo_visio_buffer_before_min", default=before),
            visio_buffer_after_min=pick("demo_visio_buffer_after_min", default=after),
            physical_duration_min=pick("demo_physique_duration_min", default=duration),
            # The visio gap has its own default rather than the generic buffer
            visio_gap_min=pick(
                "demo_visio_min_gap_min", "demo_visio_buffer_after_min", default=DEFAULT_VISIO_GAP_MIN
            ),
            physical_second_gap_min=pick(
                "demo_physique_second_min_gap_min", default=DEFAULT_PHYSICAL_SECOND_GAP_MIN
            ),
            physical_max_per_half_day=pick(
                "physical_max_per_half_day", default=DEFAULT_PHYSICAL_MAX_PER_HALF_DAY
            ),
            half_day_split_hour=pick("half_day_split_hour", default=DEFAULT_HALF_DAY_SPLIT_HOUR),
        )

    def timing_for(self, mode: Optional[MeetingMode] = None) -> ModeTiming:
        """Duration and boundary buffers for a meeting mode; None means the generic values"""
        if mode == MeetingMode.VISIO:
            return ModeTiming(
                duration_min=self.visio_duration_min,
                buffer_before_min=self.visio_buffer_before_min,
                buffer_after_min=self.visio_buffer_after_min,
            )
        if mode == MeetingMode.PHYSIQUE:
            return ModeTiming(
                duration_min=self.physical_duration_min,
                buffer_before_min=self.buffer_before_min,
                buffer_after_min=self.buffer_after_min,
            )
        return ModeTiming(
            duration_min=self.default_duration_min,
            buffer_before_min=self.buffer_before_min,
            buffer_after_min=self.buffer_after_min,
        )
