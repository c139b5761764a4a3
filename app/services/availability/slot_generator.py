# ===== app/services/availability/slot_generator.py =====
"""Discrete slot candidates derived from free intervals"""
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from app.schemas.engine_dto import FreeInterval, MeetingMode, SlotCandidate
from app.schemas.settings import BookingConfig


def _first_grid_start(origin: datetime, earliest: datetime, step: timedelta) -> datetime:
    """First point of the grid origin + n*step that is >= earliest"""
    if earliest <= origin:
        return origin
    steps = -(-(earliest - origin) // step)  # ceil division on timedeltas
    return origin + steps * step


class SlotCandidateSequence:
    """
    Lazy, finite sequence of slot candidates for one free interval.

    Iterating twice walks the grid again from the start.
    Starts are aligned on the step grid anchored at the interval start, and
    respect the boundary buffers and the advance-notice window. An interval
    too short for an in-person meeting is still offered, at the visio
    duration, with every candidate flagged visio-only.
    """

    def __init__(
            self,
            interval: FreeInterval,
            config: BookingConfig,
            now: Optional[datetime] = None,
            mode: Optional[MeetingMode] = None,
            zone_id: Optional[int] = None
    ):
        self.interval = interval
        self.config = config
        self.now = now
        self.mode = mode
        self.zone_id = zone_id

    @property
    def interval_visio_only(self) -> bool:
        span = self.interval.end - self.interval.start
        return span < timedelta(minutes=self.config.physical_duration_min)

    def __iter__(self) -> Iterator[SlotCandidate]:
        interval = self.interval
        config = self.config
        visio_only_interval = self.interval_visio_only

        if visio_only_interval and self.mode == MeetingMode.PHYSIQUE:
            return

        mode = self.mode
        if visio_only_interval and mode is None:
            mode = MeetingMode.VISIO
        timing = config.timing_for(mode)

        step = timedelta(minutes=config.booking_step_min)
        duration = timedelta(minutes=timing.duration_min)
        physical = timedelta(minutes=config.physical_duration_min)

        earliest = interval.start + timedelta(minutes=timing.buffer_before_min)
        if self.now is not None:
            earliest = max(earliest, self.now + timedelta(minutes=config.notice_min))
        latest_end = interval.end - timedelta(minutes=timing.buffer_after_min)

        start = _first_grid_start(interval.start, earliest, step)
        while start + duration <= latest_end:
            yield SlotCandidate(
                start=start,
                end=start + duration,
                staff_ids=[interval.staff_id],
                zone_id=self.zone_id,
                visio_only=visio_only_interval or start + physical > interval.end,
            )
            start += step

    def to_list(self) -> List[SlotCandidate]:
        return list(self)


class SlotCandidateGenerator:
    """Slot candidates and display windows for a set of free intervals"""

    @staticmethod
    def candidates(
            intervals: Iterable[FreeInterval],
            config: BookingConfig,
            now: Optional[datetime] = None,
            mode: Optional[MeetingMode] = None,
            zone_id: Optional[int] = None
    ) -> Iterator[SlotCandidate]:
        for interval in intervals:
            yield from SlotCandidateSequence(interval, config, now=now, mode=mode, zone_id=zone_id)

    @staticmethod
    def display_window(interval: FreeInterval, config: BookingConfig) -> FreeInterval:
        """
        Annotate a free interval for calendar display.

        Intervals long enough for an in-person meeting get their displayed
        end pulled back by the physical duration, so any start shown still
        fits a full meeting. Shorter ones are kept and marked visio-only.
        Display only: bookability is decided by the ConstraintValidator.
        """
        physical = timedelta(minutes=config.physical_duration_min)
        if interval.end - interval.start < physical:
            return interval.model_copy(update={"display_end": interval.end, "visio_only": True})
        return interval.model_copy(update={"display_end": interval.end - physical, "visio_only": False})
