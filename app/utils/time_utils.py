# app/utils/time_utils.py
"""Wall-clock helpers shared by the engine and the API layer"""
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from app.schemas.engine_dto import HalfDay


def sunday_weekday(d: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday"""
    return (d.weekday() + 1) % 7


def half_day_of(dt: datetime, split_hour: int = 13) -> HalfDay:
    return HalfDay.MORNING if dt.hour < split_hour else HalfDay.AFTERNOON


def half_day_bounds(day: date, half: HalfDay, split_hour: int = 13):
    """[start, end) of a half-day on the given date"""
    split = datetime.combine(day, time(split_hour, 0))
    if half == HalfDay.MORNING:
        return datetime.combine(day, time.min), split
    return split, datetime.combine(day + timedelta(days=1), time.min)


def to_local_naive(dt: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime to naive wall-clock in tz_name; naive input is taken as local"""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def local_now(tz_name: str) -> datetime:
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None, microsecond=0)


def minutes_from_midnight(dt: datetime, day: Optional[date] = None) -> int:
    """Minutes between the start of `day` (default: dt's own date) and dt"""
    base = datetime.combine(day or dt.date(), time.min)
    return int((dt - base).total_seconds() // 60)


def daterange(start: date, end: date):
    """Every date from start to end inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
