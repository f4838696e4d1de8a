"""
Date recalculation for LLM-proposed meeting times.

Language models tend to echo memorized dates ("2024-01-10") or compute
relative dates incorrectly. When the user's own words carry a relative
date ("next Friday at 3pm"), the start/end are recomputed from the text.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from loguru import logger

from .models import WEEKDAY_NAMES, SchedulingConstraints, weekday_index

# Dates models commonly hallucinate from training data
TRAINING_ARTIFACT_DATES = ("2024-01-10", "2024-01-11")

RELATIVE_KEYWORDS = (
    "next", "tomorrow", "today", "this", "upcoming", "following",
) + tuple(WEEKDAY_NAMES)

_KEYWORD_RE = re.compile(r"\b(" + "|".join(RELATIVE_KEYWORDS) + r")\b", re.IGNORECASE)
_WEEKDAY_RE = re.compile(r"\b(" + "|".join(WEEKDAY_NAMES) + r")\b", re.IGNORECASE)
_NEXT_RE = re.compile(r"\bnext\b", re.IGNORECASE)
_TIME_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
_DURATION_RE = re.compile(r"(\d+)\s*hours?\b", re.IGNORECASE)


def parse_iso(value: str, constraints: SchedulingConstraints) -> Optional[datetime]:
    """Parse an ISO 8601 string into an aware datetime, or None."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return constraints.localize(parsed)


class DateRecalculator:
    """
    Detects untrustworthy proposed dates and recomputes them from text.

    Args:
        constraints: Supplies the timezone dates are resolved in
        clock: Returns "now" (default: current time in the timezone)
    """

    def __init__(
        self,
        constraints: SchedulingConstraints,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.constraints = constraints
        self._clock = clock or (lambda: datetime.now(constraints.tzinfo))

    def now(self) -> datetime:
        return self.constraints.localize(self._clock())

    def should_recalculate(
        self,
        proposed_start_iso: str,
        original_message: Optional[str],
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Decide whether a proposed start time should be recomputed.

        Returns False without a user message. Otherwise True when the
        proposed start is in the past or unparseable, is a known training
        artifact, or the message uses a relative date keyword.
        """
        if not original_message:
            return False

        now = now or self.now()
        proposed = parse_iso(proposed_start_iso, self.constraints)
        if proposed is None or proposed < now:
            return True

        if any(artifact in (proposed_start_iso or "") for artifact in TRAINING_ARTIFACT_DATES):
            return True

        return _KEYWORD_RE.search(original_message) is not None

    def recompute(
        self,
        original_message: str,
        now: Optional[datetime] = None,
    ) -> Optional[Tuple[datetime, datetime]]:
        """
        Resolve "[next] <weekday> at H[:MM] am|pm [for N hours]".

        Returns:
            (start, end) in the configured timezone, or None when the
            message has no weekday or no time
        """
        if not original_message:
            return None

        weekday_match = _WEEKDAY_RE.search(original_message)
        time_match = _TIME_RE.search(original_message)
        if weekday_match is None or time_match is None:
            return None

        now = now or self.now()
        target = WEEKDAY_NAMES.index(weekday_match.group(1).lower())
        is_next = _NEXT_RE.search(original_message) is not None

        hour = int(time_match.group(1))
        minute = int(time_match.group(2) or 0)
        if hour > 12 or minute > 59:
            return None
        is_pm = time_match.group(3).lower() == "pm"
        if is_pm and hour != 12:
            hour += 12
        elif not is_pm and hour == 12:
            hour = 0

        duration_match = _DURATION_RE.search(original_message)
        duration_hours = int(duration_match.group(1)) if duration_match else 1

        today = weekday_index(now.date())
        if is_next:
            # Walk forward from tomorrow until the weekday matches
            days_ahead = 1
            while (today + days_ahead) % 7 != target:
                days_ahead += 1
        else:
            days_ahead = (target - today + 7) % 7

        day = now.date() + timedelta(days=days_ahead)
        start = datetime(day.year, day.month, day.day, hour, minute, tzinfo=self.constraints.tzinfo)
        end = start + timedelta(hours=duration_hours)

        logger.debug(
            f"Recomputed '{original_message}' -> {start.isoformat()} ({duration_hours}h, next={is_next})"
        )
        return start, end

    def resolve(
        self,
        proposed_start_iso: str,
        proposed_end_iso: Optional[str],
        original_message: Optional[str],
        now: Optional[datetime] = None,
    ) -> Tuple[Optional[datetime], Optional[datetime], bool]:
        """
        Pick the start/end to use for an event.

        Returns:
            (start, end, recalculated). start/end are None when neither the
            proposal nor the message yields a usable time.
        """
        now = now or self.now()
        if self.should_recalculate(proposed_start_iso, original_message, now):
            recomputed = self.recompute(original_message or "", now)
            if recomputed is not None:
                return recomputed[0], recomputed[1], True

        start = parse_iso(proposed_start_iso, self.constraints)
        end = parse_iso(proposed_end_iso, self.constraints) if proposed_end_iso else None
        if start is not None and end is None:
            end = start + timedelta(hours=1)
        return start, end, False
