"""
Shared fixtures for Calendar Assistant tests.

All tests run against a fixed clock: Monday 2 June 2025, 10:00 in
America/Los_Angeles (no DST change inside the one-week lookahead).
"""

import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from calendar_assistant.agents.context import ToolContext
from calendar_assistant.agents.router import ToolRouter
from calendar_assistant.scheduling.models import Event, SchedulingConstraints

TZ = ZoneInfo("America/Los_Angeles")
NOW = datetime(2025, 6, 2, 10, 0, tzinfo=TZ)


def _at(day: int, hour: int, minute: int = 0, month: int = 6) -> datetime:
    return datetime(2025, month, day, hour, minute, tzinfo=TZ)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def at():
    """Factory for aware datetimes in June 2025."""
    return _at


@pytest.fixture
def make_event():
    """Factory for snapshot events."""
    def factory(event_id, title, start, end, attendees=None, **kwargs):
        return Event(
            id=event_id,
            title=title,
            start=start,
            end=end,
            attendees=list(attendees or []),
            **kwargs,
        )
    return factory


@pytest.fixture
def constraints():
    return SchedulingConstraints()


@pytest.fixture
def context(constraints):
    return ToolContext(constraints=constraints, clock=lambda: NOW)


@pytest.fixture
def router(context):
    return ToolRouter(context)
