"""
Google Calendar boundary for the Calendar Assistant.

Provides calendar integration using Google Calendar API (FREE for personal use).

Features:
- List events in a time range (snapshot refresh)
- Create events with attendees and reminders
- Normalize API events into the snapshot's Event model
- Map 401/403/other HTTP failures to typed errors

Setup:
1. Go to Google Cloud Console (https://console.cloud.google.com/)
2. Create a new project or select existing
3. Enable Google Calendar API
4. Create OAuth 2.0 credentials (Desktop app)
5. Download credentials.json to config/google_credentials.json
6. Run the assistant - it will prompt for authorization on first use

API Documentation: https://developers.google.com/calendar/api/v3/reference
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ..core.errors import RemoteTransientError, get_error_message, handle_api_error
from ..scheduling.models import Event, SchedulingConstraints

# Google API imports (optional)
try:
    from google.auth.transport.requests import Request
    from google.oauth2.credentials import Credentials
    from google_auth_oauthlib.flow import InstalledAppFlow
    from googleapiclient.discovery import build
    from googleapiclient.errors import HttpError
    GOOGLE_API_AVAILABLE = True
except ImportError:
    GOOGLE_API_AVAILABLE = False
    logger.debug("Google API libraries not installed. Install with: pip install google-api-python-client google-auth-oauthlib")


# OAuth scopes for Calendar API
SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

DEFAULT_REMINDERS = {
    "useDefault": False,
    "overrides": [
        {"method": "email", "minutes": 24 * 60},
        {"method": "popup", "minutes": 10},
    ],
}


def _parse_google_time(data: Dict[str, Any], constraints: SchedulingConstraints) -> datetime:
    if "dateTime" in data:
        return constraints.localize(datetime.fromisoformat(data["dateTime"].replace("Z", "+00:00")))
    return constraints.localize(datetime.fromisoformat(data["date"]))


def normalize_google_event(
    raw: Dict[str, Any],
    constraints: SchedulingConstraints,
    fallback: Optional[Dict[str, Any]] = None,
) -> Event:
    """
    Create an Event from a Google Calendar API resource.

    Args:
        raw: API event resource
        constraints: Supplies the timezone for all-day and naive times
        fallback: Values used when the resource omits them (title, attendees, ...)
    """
    fallback = fallback or {}
    start_data = raw.get("start", {})
    end_data = raw.get("end", {})

    attendees = [a.get("email", "") for a in raw.get("attendees", []) if a.get("email")]

    return Event(
        id=raw.get("id", ""),
        title=raw.get("summary") or fallback.get("title") or "(No title)",
        start=_parse_google_time(start_data, constraints),
        end=_parse_google_time(end_data, constraints),
        attendees=attendees or list(fallback.get("attendees", [])),
        location=raw.get("location") or fallback.get("location"),
        description=raw.get("description") or fallback.get("description"),
        is_all_day="dateTime" not in start_data,
        organizer=(raw.get("organizer") or {}).get("email"),
        url=raw.get("htmlLink"),
        source="remote",
    )


def build_event_body(
    title: str,
    start: datetime,
    end: datetime,
    attendees: Optional[List[str]] = None,
    location: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Google Calendar ``events.insert`` request body."""
    body: Dict[str, Any] = {
        "summary": title,
        "description": description or "",
        "location": location or "",
        "start": {"dateTime": start.isoformat(), "timeZone": str(start.tzinfo) if start.tzinfo else "UTC"},
        "end": {"dateTime": end.isoformat(), "timeZone": str(end.tzinfo) if end.tzinfo else "UTC"},
        "reminders": DEFAULT_REMINDERS,
    }
    if attendees:
        body["attendees"] = [{"email": email} for email in attendees]
    return body


class CalendarBackend(ABC):
    """Remote calendar the snapshot is refreshed from and events are created in."""

    @abstractmethod
    async def create_event(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an event.

        Returns:
            The created API resource ({id, htmlLink, start, end, attendees, organizer, ...})

        Raises:
            RemoteAuthError: 401/403
            RemoteTransientError: Any other failure
        """
        pass

    @abstractmethod
    async def list_events(self, start: datetime, end: datetime, max_results: int = 250) -> List[Dict[str, Any]]:
        """List raw API events in a time range."""
        pass


class GoogleCalendarBackend(CalendarBackend):
    """
    Google Calendar API backend.

    Blocking client calls run in the default executor.
    """

    def __init__(
        self,
        credentials_file: str = "config/google_credentials.json",
        token_file: str = "config/calendar_token.json",
        calendar_id: str = "primary",
    ):
        """
        Initialize calendar backend.

        Args:
            credentials_file: Path to Google OAuth credentials JSON
            token_file: Path to store OAuth token
            calendar_id: Calendar ID (usually "primary")
        """
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)
        self.calendar_id = calendar_id
        self._service = None

    def _get_credentials(self):
        """Get or refresh OAuth credentials."""
        if not GOOGLE_API_AVAILABLE:
            logger.error("Google API libraries not installed")
            return None

        creds = None

        if self.token_file.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(self.token_file), SCOPES)
            except (ValueError, OSError) as e:
                logger.warning(f"Failed to load token: {e}")

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                except Exception as e:
                    logger.warning(f"Failed to refresh token: {e}")
                    creds = None

            if not creds:
                if not self.credentials_file.exists():
                    logger.error(f"Credentials file not found: {self.credentials_file}")
                    return None

                try:
                    flow = InstalledAppFlow.from_client_secrets_file(str(self.credentials_file), SCOPES)
                    creds = flow.run_local_server(port=0)
                except Exception as e:
                    logger.error(f"Failed to get credentials: {e}")
                    return None

            try:
                self.token_file.parent.mkdir(parents=True, exist_ok=True)
                self.token_file.write_text(creds.to_json(), encoding="utf-8")
            except OSError as e:
                logger.warning(f"Failed to save token: {e}")

        return creds

    def _get_service(self):
        """Get or create Calendar API service."""
        if self._service is None:
            creds = self._get_credentials()
            if creds is None:
                return None

            try:
                self._service = build("calendar", "v3", credentials=creds)
            except Exception as e:
                logger.error(f"Failed to build calendar service: {e}")
                return None

        return self._service

    def is_available(self) -> bool:
        """Check if calendar service is available."""
        if not GOOGLE_API_AVAILABLE:
            return False
        return self._get_service() is not None

    def _require_service(self):
        service = self._get_service()
        if service is None:
            raise RemoteTransientError(get_error_message("calendar_credentials"))
        return service

    async def create_event(self, body: Dict[str, Any]) -> Dict[str, Any]:
        service = self._require_service()

        try:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(
                None,
                lambda: service.events().insert(
                    calendarId=self.calendar_id,
                    body=body,
                    sendUpdates="all",
                ).execute()
            )
        except HttpError as e:
            raise handle_api_error("Calendar", e) from e
        except OSError as e:
            raise handle_api_error("Calendar", e) from e

    async def list_events(self, start: datetime, end: datetime, max_results: int = 250) -> List[Dict[str, Any]]:
        service = self._require_service()

        try:
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(
                None,
                lambda: service.events().list(
                    calendarId=self.calendar_id,
                    timeMin=start.isoformat(),
                    timeMax=end.isoformat(),
                    maxResults=max_results,
                    singleEvents=True,
                    orderBy="startTime",
                ).execute()
            )
        except HttpError as e:
            raise handle_api_error("Calendar", e) from e
        except OSError as e:
            raise handle_api_error("Calendar", e) from e

        return result.get("items", [])


async def fetch_snapshot(
    backend: CalendarBackend,
    constraints: SchedulingConstraints,
    start: datetime,
    days: int = 30,
) -> List[Event]:
    """
    Load events for ``days`` from ``start`` and normalize them.

    Events that fail to parse are skipped with a warning.
    """
    raw_events = await backend.list_events(start, start + timedelta(days=days))

    events = []
    for raw in raw_events:
        try:
            events.append(normalize_google_event(raw, constraints))
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to parse event: {e}")
    return events


def create_calendar_backend(calendar_config, env_settings) -> Optional[CalendarBackend]:
    """Build the Google backend when it is enabled and configured."""
    if not calendar_config.enabled or not GOOGLE_API_AVAILABLE:
        return None

    credentials_file = env_settings.google_calendar_credentials_path or calendar_config.credentials_file
    if not Path(credentials_file).exists():
        logger.info(get_error_message("calendar_credentials"))
        return None

    return GoogleCalendarBackend(
        credentials_file=credentials_file,
        token_file=env_settings.google_calendar_token_path or calendar_config.token_file,
        calendar_id=calendar_config.calendar_id,
    )
