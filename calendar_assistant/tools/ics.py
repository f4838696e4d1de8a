"""
iCalendar (RFC 5545) export.

Produces ``VCALENDAR``/``VEVENT`` text with CRLF line endings, escaped
text fields and UTC timestamps, suitable for importing into any calendar
client when the Google Calendar API is unavailable.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..scheduling.models import Event

PRODID = "-//Calendar Assistant//EN"
UID_DOMAIN = "calendar-assistant"
CRLF = "\r\n"


def format_utc(value: datetime) -> str:
    """``YYYYMMDDTHHMMSSZ``; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_text(text: str) -> str:
    """Escape a TEXT value."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def ics_filename(title: str, start: datetime) -> str:
    """``team_sync_2025-03-04.ics`` style file name."""
    slug = re.sub(r"[^a-z0-9]", "_", title.lower())
    return f"{slug}_{start.strftime('%Y-%m-%d')}.ics"


def _event_lines(
    event: Event,
    stamp: datetime,
    recurrence: Optional[str] = None,
) -> List[str]:
    lines = [
        "BEGIN:VEVENT",
        f"UID:{event.id}@{UID_DOMAIN}",
        f"DTSTAMP:{format_utc(stamp)}",
    ]

    if event.is_all_day:
        last_day = event.end.date() if event.end.date() > event.start.date() else event.start.date() + timedelta(days=1)
        lines.append(f"DTSTART;VALUE=DATE:{event.start.strftime('%Y%m%d')}")
        lines.append(f"DTEND;VALUE=DATE:{last_day.strftime('%Y%m%d')}")
    else:
        lines.append(f"DTSTART:{format_utc(event.start)}")
        lines.append(f"DTEND:{format_utc(event.end)}")

    lines.append(f"SUMMARY:{escape_text(event.title)}")

    if recurrence:
        lines.append(f"RRULE:FREQ={recurrence.upper()}")
    if event.description:
        lines.append(f"DESCRIPTION:{escape_text(event.description)}")
    if event.location:
        lines.append(f"LOCATION:{escape_text(event.location)}")
    for attendee in event.attendees:
        lines.append(f"ATTENDEE;ROLE=REQ-PARTICIPANT;PARTSTAT=NEEDS-ACTION;RSVP=TRUE:mailto:{attendee}")
    if event.organizer:
        lines.append(f"ORGANIZER;CN={escape_text(event.organizer)}:mailto:{event.organizer}")
    if event.url:
        lines.append(f"URL:{event.url}")

    lines.append("END:VEVENT")
    return lines


def generate_ics(
    events: Iterable[Event],
    stamp: Optional[datetime] = None,
    recurrence: Optional[str] = None,
) -> str:
    """
    Serialize events into one calendar.

    Args:
        events: Events to export
        stamp: DTSTAMP value (default: now)
        recurrence: Optional "daily" / "weekly" / "monthly" rule applied to every event

    Returns:
        ICS text joined with CRLF
    """
    stamp = stamp or datetime.now(timezone.utc)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for event in events:
        lines.extend(_event_lines(event, stamp, recurrence))
    lines.append("END:VCALENDAR")
    return CRLF.join(lines)
