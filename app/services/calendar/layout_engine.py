# ===== app/services/calendar/layout_engine.py =====
"""Packs a day's events into non-overlapping display lanes"""
from typing import Iterable, List, Optional, Sequence

from app.schemas.engine_dto import LayoutEvent, PlacedEvent


class CalendarLayoutEngine:

    @staticmethod
    def layout(
            events: Iterable[LayoutEvent],
            tracks: Optional[Sequence[str]] = None
    ) -> List[PlacedEvent]:
        """
        Assign a lane to every event.

        Without tracks this is greedy interval colouring: events sorted by
        (start, end) take the first lane that is free at their start, which
        uses as many lanes as the largest set of simultaneous events.
        With fixed tracks (one column per staff member) the lane is simply
        the index of the event's track.
        """
        ordered = sorted(events, key=lambda e: (e.start_min, e.end_min, e.id))
        if tracks is not None or any(e.track is not None for e in ordered):
            return CalendarLayoutEngine._by_track(ordered, tracks)

        lane_ends: List[int] = []
        lanes: List[int] = []
        for event in ordered:
            for index, lane_end in enumerate(lane_ends):
                if lane_end <= event.start_min:
                    lane_ends[index] = event.end_min
                    lanes.append(index)
                    break
            else:
                lane_ends.append(event.end_min)
                lanes.append(len(lane_ends) - 1)

        count = len(lane_ends)
        return [
            PlacedEvent(**event.model_dump(), lane=lane, lanes_count=count)
            for event, lane in zip(ordered, lanes)
        ]

    @staticmethod
    def _by_track(ordered: List[LayoutEvent], tracks: Optional[Sequence[str]]) -> List[PlacedEvent]:
        names = list(tracks) if tracks is not None else []
        for event in ordered:
            track = event.track or ""
            if track not in names:
                names.append(track)
        count = len(names)
        return [
            PlacedEvent(**event.model_dump(), lane=names.index(event.track or ""), lanes_count=count)
            for event in ordered
        ]
