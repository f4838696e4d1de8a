"""
Google Calendar deep links.

Builds ``calendar.google.com/calendar/render?action=TEMPLATE`` URLs that
open a pre-filled event form. Used as the fallback when an event cannot
be created through the API, and for "add to calendar" proposals.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlencode

GOOGLE_CALENDAR_RENDER_URL = "https://calendar.google.com/calendar/render"

FOCUS_TIME_DETAILS = "Protected focus time - please do not schedule meetings during this period."


class Recurrence(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def rrule(self) -> str:
        return f"RRULE:FREQ={self.value.upper()}"


def format_local(value: datetime) -> str:
    """``YYYYMMDDTHHMMSS`` in the datetime's own wall-clock time."""
    return value.strftime("%Y%m%dT%H%M%S")


def format_date_range(start: datetime, end: datetime) -> str:
    return f"{format_local(start)}/{format_local(end)}"


def build_calendar_link(
    title: str,
    start: datetime,
    end: datetime,
    attendees: Optional[Iterable[str]] = None,
    location: Optional[str] = None,
    description: Optional[str] = None,
    recurrence: Optional[str] = None,
) -> str:
    """
    Build a Google Calendar event-template URL.

    Args:
        title: Event title
        start: Event start
        end: Event end
        attendees: Guest email addresses
        location: Event location
        description: Event details
        recurrence: "daily", "weekly" or "monthly"

    Returns:
        Deep-link URL
    """
    params: List[Tuple[str, str]] = [
        ("action", "TEMPLATE"),
        ("text", title),
        ("dates", format_date_range(start, end)),
    ]

    if location:
        params.append(("location", location))
    if description:
        params.append(("details", description))

    guests = [a.strip() for a in (attendees or []) if a and a.strip()]
    if guests:
        params.append(("add", ",".join(guests)))

    if recurrence:
        params.append(("recur", Recurrence(recurrence.lower()).rrule))

    return f"{GOOGLE_CALENDAR_RENDER_URL}?{urlencode(params)}"


def build_focus_time_link(start: datetime, end: datetime, title: str = "Focus Time") -> str:
    """Deep link for a protected focus block."""
    return build_calendar_link(title, start, end, description=FOCUS_TIME_DETAILS)
