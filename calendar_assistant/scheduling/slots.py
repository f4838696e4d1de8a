"""
Slot search over the calendar snapshot.

Generates fixed-duration candidate slots on a fixed step inside a daily
working window, across a range of days, skipping non-working days and
anything that overlaps an event in the snapshot. Pure: no I/O, no clock.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple, Union

from .conflicts import overlaps
from .models import Event, Interval, SchedulingConstraints, TimeSlot

DateLike = Union[date, datetime]
Window = Tuple[time, time]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def find_free_slots(
    events: Sequence[Event],
    constraints: SchedulingConstraints,
    duration_minutes: int,
    start_date: DateLike,
    end_date: DateLike,
    window: Optional[Window] = None,
) -> List[TimeSlot]:
    """
    Find free slots between two dates (inclusive).

    Args:
        events: Calendar snapshot to avoid
        constraints: Working days, timezone and slot step
        duration_minutes: Length of each slot
        start_date: First day searched
        end_date: Last day searched
        window: (start, end) time of day; defaults to the working hours

    Returns:
        Available slots in chronological order
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    tz = constraints.tzinfo
    window_start, window_end = window or (constraints.work_start, constraints.work_end)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=constraints.slot_step_minutes)

    busy = [
        Interval(constraints.localize(e.start), constraints.localize(e.end))
        for e in events
    ]

    slots: List[TimeSlot] = []
    day = _as_date(start_date)
    last_day = _as_date(end_date)

    while day <= last_day:
        if constraints.is_working_day(day):
            day_end = datetime.combine(day, window_end, tzinfo=tz)
            boundary = datetime.combine(day, window_start, tzinfo=tz)

            while boundary + duration <= day_end:
                candidate = Interval(boundary, boundary + duration)
                if not any(overlaps(candidate, b) for b in busy):
                    slots.append(TimeSlot(start=candidate.start, end=candidate.end))
                boundary += step

        day += timedelta(days=1)

    return slots


def next_available_slot(
    events: Sequence[Event],
    constraints: SchedulingConstraints,
    duration_minutes: int,
    after: datetime,
    max_days: int = 7,
) -> Optional[TimeSlot]:
    """First free slot starting at or after ``after`` within ``max_days``."""
    after = constraints.localize(after)
    slots = find_free_slots(
        events,
        constraints,
        duration_minutes,
        after.date(),
        after.date() + timedelta(days=max_days),
    )
    for slot in slots:
        if slot.start >= after:
            return slot
    return None
