"""
Slot ranking by urgency and time-of-day preference.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from enum import Enum
from functools import cmp_to_key
from typing import Dict, List, Sequence, Tuple, Union

from .models import Event, SchedulingConstraints, TimeSlot
from .slots import find_free_slots


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


# Hour bands used when preferring slots: [start, end)
PREFERENCE_BANDS: Dict[TimeOfDay, Tuple[int, int]] = {
    TimeOfDay.MORNING: (9, 12),
    TimeOfDay.AFTERNOON: (13, 17),
    TimeOfDay.EVENING: (17, 19),
}

URGENCY_LIMITS: Dict[Urgency, int] = {
    Urgency.HIGH: 5,
    Urgency.MEDIUM: 3,
    Urgency.LOW: 2,
}

DAY_SECONDS = 24 * 3600


def _coerce_urgency(value: Union[str, Urgency, None]) -> Urgency:
    if isinstance(value, Urgency):
        return value
    try:
        return Urgency((value or "medium").lower())
    except ValueError:
        return Urgency.MEDIUM


def _coerce_preference(value: Union[str, TimeOfDay, None]) -> TimeOfDay:
    if isinstance(value, TimeOfDay):
        return value
    try:
        return TimeOfDay((value or "any").lower())
    except ValueError:
        return TimeOfDay.ANY


def search_window(preferred_time: Union[str, TimeOfDay, None], constraints: SchedulingConstraints) -> Tuple[time, time]:
    """Daily window searched for a given preference."""
    preference = _coerce_preference(preferred_time)
    band = PREFERENCE_BANDS.get(preference)
    if band is None:
        return constraints.work_start, constraints.work_end
    return time(band[0]), time(band[1])


def in_band(slot: TimeSlot, preferred_time: Union[str, TimeOfDay, None]) -> bool:
    band = PREFERENCE_BANDS.get(_coerce_preference(preferred_time))
    if band is None:
        return False
    return band[0] <= slot.start.hour < band[1]


def compare_slots(
    a: TimeSlot,
    b: TimeSlot,
    urgency: Union[str, Urgency] = Urgency.MEDIUM,
    preferred_time: Union[str, TimeOfDay, None] = None,
) -> int:
    """Comparator applying urgency, then preference band, then hour of day."""
    urgency = _coerce_urgency(urgency)
    preference = _coerce_preference(preferred_time)

    if urgency is Urgency.HIGH:
        diff = (a.start - b.start).total_seconds()
        if abs(diff) > DAY_SECONDS:
            return -1 if diff < 0 else 1

    if preference is not TimeOfDay.ANY:
        a_pref = in_band(a, preference)
        b_pref = in_band(b, preference)
        if a_pref and not b_pref:
            return -1
        if b_pref and not a_pref:
            return 1

    return a.start.hour - b.start.hour


def rank_slots(
    slots: Sequence[TimeSlot],
    urgency: Union[str, Urgency] = Urgency.MEDIUM,
    preferred_time: Union[str, TimeOfDay, None] = None,
) -> List[TimeSlot]:
    """
    Order slots and keep the top N for the urgency.

    Sorting is stable, so ties keep their chronological input order.
    """
    urgency = _coerce_urgency(urgency)
    ordered = sorted(
        slots,
        key=cmp_to_key(lambda a, b: compare_slots(a, b, urgency, preferred_time)),
    )
    return ordered[:URGENCY_LIMITS[urgency]]


def suggest_meeting_times(
    events: Sequence[Event],
    constraints: SchedulingConstraints,
    duration_minutes: int,
    now: datetime,
    preferred_time: Union[str, TimeOfDay, None] = None,
    urgency: Union[str, Urgency] = Urgency.MEDIUM,
    lookahead_days: int = 7,
) -> List[TimeSlot]:
    """
    Search the next ``lookahead_days`` and rank what is free.

    Slots starting before ``now`` are dropped before ranking.
    """
    now = constraints.localize(now)
    window = search_window(preferred_time, constraints)
    slots = find_free_slots(
        events,
        constraints,
        duration_minutes,
        now.date(),
        now.date() + timedelta(days=lookahead_days),
        window=window,
    )
    upcoming = [slot for slot in slots if slot.start >= now]
    return rank_slots(upcoming, urgency, preferred_time)
