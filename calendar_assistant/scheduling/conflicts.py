"""
Conflict predicates shared by slot search and availability checks.

Intervals are half-open: an event ending at 10:00 does not conflict with
a slot starting at 10:00.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from .models import Event, Interval


def overlaps(a, b) -> bool:
    """True iff two ``start``/``end`` intervals overlap."""
    return a.start < b.end and b.start < a.end


def _normalize_address(value: str) -> str:
    return value.strip().lower()


def attendee_conflict(event: Event, attendees: Iterable[str]) -> bool:
    """True iff any candidate attendee is already on the event."""
    wanted = {_normalize_address(a) for a in attendees if a and a.strip()}
    if not wanted:
        return False
    return any(_normalize_address(a) in wanted for a in event.attendees)


def find_conflicts(
    events: Sequence[Event],
    start: datetime,
    end: datetime,
    attendees: Iterable[str] = (),
) -> List[Event]:
    """
    Events that clash with a proposed interval.

    An event conflicts when it overlaps ``[start, end)`` or when it shares
    an attendee with the proposal.
    """
    attendees = list(attendees)
    candidate = Interval(start, end)
    return [
        event for event in events
        if overlaps(candidate, event) or attendee_conflict(event, attendees)
    ]


def check_availability(
    events: Sequence[Event],
    start: datetime,
    end: datetime,
    attendees: Iterable[str] = (),
) -> Tuple[bool, List[Event]]:
    """
    Check whether a time range is free.

    Returns:
        Tuple of (is_available, conflicting_events)
    """
    conflicts = find_conflicts(events, start, end, attendees)
    return len(conflicts) == 0, conflicts

