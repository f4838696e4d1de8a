"""
Shared state handed to every tool handler.

The context owns the in-memory calendar snapshot, the scheduling
constraints, the duplicate-call cache and the optional remote calendar.
Handlers never reach for globals; tests build a context directly with a
fixed clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from loguru import logger

from ..core.cache import DuplicateCallCache
from ..core.errors import ToolError
from ..scheduling.dates import DateRecalculator
from ..scheduling.models import Event, SchedulingConstraints
from ..tools.calendar import CalendarBackend, create_calendar_backend, fetch_snapshot
from ..tools.recipients import RecipientResolver


@dataclass
class ToolContext:
    constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)
    events: List[Event] = field(default_factory=list)
    calendar: Optional[CalendarBackend] = None
    resolver: RecipientResolver = field(default_factory=RecipientResolver)
    cache: DuplicateCallCache = field(default_factory=DuplicateCallCache)
    clock: Optional[Callable[[], datetime]] = None
    lookahead_days: int = 7
    fetch_days: int = 30
    organizer_email: Optional[str] = None

    def now(self) -> datetime:
        if self.clock is not None:
            return self.constraints.localize(self.clock())
        return datetime.now(self.constraints.tzinfo)

    @property
    def dates(self) -> DateRecalculator:
        return DateRecalculator(self.constraints, clock=self.now)

    def add_event(self, event: Event) -> None:
        self.events.append(event)
        self.events.sort(key=lambda e: e.start)

    def find_event_by_title(self, title: str) -> Optional[Event]:
        """Exact title match, ignoring case and surrounding whitespace."""
        wanted = (title or "").strip().lower()
        for event in self.events:
            if event.title.strip().lower() == wanted:
                return event
        return None

    def events_by_ids(self, ids: Iterable[str]) -> List[Event]:
        wanted = set(ids)
        return [e for e in self.events if e.id in wanted]

    async def refresh_events(self, days: Optional[int] = None) -> int:
        """
        Replace the snapshot with events from the remote calendar.

        Returns:
            Number of events loaded (0 and snapshot unchanged when there is
            no calendar or the fetch fails)
        """
        if self.calendar is None:
            logger.debug("No calendar backend; keeping local snapshot")
            return 0

        start = self.now().replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=1)
        try:
            events = await fetch_snapshot(self.calendar, self.constraints, start, days or self.fetch_days)
        except ToolError as e:
            logger.warning(f"Calendar refresh failed ({e.kind.value}): {e.message}")
            return 0

        self.events = sorted(events, key=lambda e: e.start)
        logger.info(f"Loaded {len(self.events)} events from calendar")
        return len(self.events)

    @classmethod
    def from_config(cls, assistant_config, env_settings=None, clock=None, events=None) -> "ToolContext":
        """Build a context from ``AssistantConfig`` and ``EnvSettings``."""
        calendar = None
        if env_settings is not None:
            calendar = create_calendar_backend(assistant_config.calendar, env_settings)

        return cls(
            constraints=assistant_config.scheduling.to_constraints(),
            events=sorted(events or [], key=lambda e: e.start),
            calendar=calendar,
            resolver=RecipientResolver.from_config(assistant_config.recipients),
            cache=DuplicateCallCache(
                window_seconds=assistant_config.dispatch.duplicate_window_seconds,
                max_size=assistant_config.dispatch.duplicate_cache_size,
            ),
            clock=clock,
            lookahead_days=assistant_config.scheduling.lookahead_days,
            fetch_days=assistant_config.calendar.fetch_days,
            organizer_email=env_settings.organizer_email if env_settings is not None else None,
        )
