"""
Scheduling data model.

Events are the in-memory calendar snapshot; time slots are ephemeral
candidates produced by slot search. Weekdays follow the 0 = Sunday
convention throughout the package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, FrozenSet, List, Optional
from zoneinfo import ZoneInfo


WEEKDAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def weekday_index(day: date) -> int:
    """Day of week with Sunday = 0."""
    return (day.weekday() + 1) % 7


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" string."""
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class SchedulingConstraints:
    """Process-wide scheduling constraints."""
    min_duration: int = 15
    max_duration: int = 480
    working_days: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})
    timezone: str = "America/Los_Angeles"
    work_start: time = time(9, 0)
    work_end: time = time(17, 0)
    slot_step_minutes: int = 30

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def localize(self, value: datetime) -> datetime:
        """Return ``value`` as an aware datetime in the configured timezone."""
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tzinfo)
        return value.astimezone(self.tzinfo)

    def is_working_day(self, day: date) -> bool:
        return weekday_index(day) in self.working_days


@dataclass(frozen=True)
class Interval:
    """A half-open ``[start, end)`` interval."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError("interval end precedes start")


@dataclass
class Event:
    """A calendar event in the snapshot."""
    id: str
    title: str
    start: datetime
    end: datetime
    attendees: List[str] = field(default_factory=list)
    location: Optional[str] = None
    description: Optional[str] = None
    is_all_day: bool = False
    organizer: Optional[str] = None
    url: Optional[str] = None
    source: str = "local"

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def format_display(self) -> str:
        """One-line summary used in tool output."""
        if self.is_all_day:
            when = f"{self.start.strftime('%a %b')} {self.start.day} (all day)"
        else:
            when = (
                f"{self.start.strftime('%a %b')} {self.start.day} at "
                f"{_clock(self.start)}-{_clock(self.end)}"
            )
        line = f"**{self.title}** - {when}"
        if self.location:
            line += f" @ {self.location}"
        if self.attendees:
            names = ", ".join(a.split("@")[0] for a in self.attendees)
            line += f" with {names}"
        return line

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "durationMinutes": self.duration_minutes,
            "attendees": list(self.attendees),
            "location": self.location,
            "description": self.description,
            "isAllDay": self.is_all_day,
            "organizer": self.organizer,
            "url": self.url,
        }


@dataclass
class TimeSlot:
    """A candidate meeting interval."""
    start: datetime
    end: datetime
    is_available: bool = True
    conflicting_events: List[Event] = field(default_factory=list)

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "durationMinutes": self.duration_minutes,
            "isAvailable": self.is_available,
            "conflictingEvents": [e.id for e in self.conflicting_events],
        }


def _clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_clock(value: datetime) -> str:
    """Format as ``h:mm AM``."""
    return _clock(value)
