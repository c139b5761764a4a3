# ===== app/services/availability/availability_merger.py =====
"""
Turns a staff member's eligible hours and existing appointments into free time.

Pure functions only: no database access, no shared state.
"""
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from app.schemas.engine_dto import BookedSlot, FreeInterval, TimeInterval

Span = Tuple[datetime, datetime]


def merge_intervals(intervals: Iterable[Span]) -> List[Span]:
    """
    Union of half-open intervals.

    Inverted or zero-length intervals are dropped; overlapping or touching
    ones are fused, so duplicate rule rows never add duration.
    """
    valid = sorted((s, e) for s, e in intervals if e > s)
    merged: List[Span] = []
    for start, end in valid:
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def subtract_intervals(spans: Sequence[Span], busy: Iterable[Span]) -> List[Span]:
    """
    Interval difference spans - busy, both walked in start order.

    `spans` must already be merged; `busy` is merged here. A busy interval
    reaching outside every span is still subtracted where it overlaps.
    """
    blocked = merge_intervals(busy)
    result: List[Span] = []
    j = 0
    for span_start, span_end in spans:
        cursor = span_start
        # Skip busy intervals that end before this span
        while j < len(blocked) and blocked[j][1] <= span_start:
            j += 1
        k = j
        while k < len(blocked) and blocked[k][0] < span_end:
            busy_start, busy_end = blocked[k]
            if busy_start > cursor:
                result.append((cursor, busy_start))
            cursor = max(cursor, busy_end)
            if cursor >= span_end:
                break
            k += 1
        if cursor < span_end:
            result.append((cursor, span_end))
    return result


def intersect_intervals(a: Sequence[Span], b: Sequence[Span]) -> List[Span]:
    """Intersection of two merged interval lists"""
    result: List[Span] = []
    i = j = 0
    while i < len(a) and j < len(b):
        start = max(a[i][0], b[j][0])
        end = min(a[i][1], b[j][1])
        if start < end:
            result.append((start, end))
        if a[i][1] < b[j][1]:
            i += 1
        else:
            j += 1
    return result


class AvailabilityMerger:
    """Free intervals for one staff member over a date range"""

    @staticmethod
    def free_intervals_for_day(
            staff_id: int,
            eligible: Iterable[TimeInterval],
            appointments: Iterable[BookedSlot]
    ) -> List[FreeInterval]:
        """Sorted, non-overlapping free intervals; appointments always win over eligibility"""
        spans = merge_intervals((i.start, i.end) for i in eligible)
        busy = [(a.start, a.end) for a in appointments if a.staff_id == staff_id]
        return [
            FreeInterval(staff_id=staff_id, start=start, end=end)
            for start, end in subtract_intervals(spans, busy)
        ]

    @staticmethod
    def free_intervals(
            staff_id: int,
            eligible_by_day: Dict[date, List[TimeInterval]],
            appointments: Iterable[BookedSlot]
    ) -> Dict[date, List[FreeInterval]]:
        """Per-day free intervals for every day present in eligible_by_day"""
        booked = [a for a in appointments if a.staff_id == staff_id]
        result: Dict[date, List[FreeInterval]] = {}
        for day in sorted(eligible_by_day):
            result[day] = AvailabilityMerger.free_intervals_for_day(
                staff_id, eligible_by_day[day], booked
            )
        return result
