"""
Calendar Assistant Tools

Provides the external boundaries and pure builders used by tool handlers:
- Calendar: Google Calendar API (FREE)
- Calendar links: Google Calendar event-template deep links
- ICS: iCalendar export for manual import
- Email: templates, Gmail compose and mailto links
- Recipients: single / group / fanout classification
"""

from .calendar import (
    CalendarBackend,
    GoogleCalendarBackend,
    GOOGLE_API_AVAILABLE,
    build_event_body,
    create_calendar_backend,
    fetch_snapshot,
    normalize_google_event,
)
from .calendar_links import build_calendar_link
from .ics import generate_ics, ics_filename
from .email import EmailTemplate, create_email_template, gmail_compose_url, mailto_link
from .recipients import RecipientResolver, Resolution, ResolutionMode

__all__ = [
    "CalendarBackend",
    "GoogleCalendarBackend",
    "GOOGLE_API_AVAILABLE",
    "build_event_body",
    "create_calendar_backend",
    "fetch_snapshot",
    "normalize_google_event",
    "build_calendar_link",
    "generate_ics",
    "ics_filename",
    "EmailTemplate",
    "create_email_template",
    "gmail_compose_url",
    "mailto_link",
    "RecipientResolver",
    "Resolution",
    "ResolutionMode",
]
