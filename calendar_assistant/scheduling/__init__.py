"""Scheduling: conflicts, slot search, ranking, date recalculation, analytics."""

from .models import (
    Event,
    Interval,
    SchedulingConstraints,
    TimeSlot,
    WEEKDAY_NAMES,
    weekday_index,
)
from .conflicts import attendee_conflict, check_availability, find_conflicts, overlaps
from .slots import find_free_slots, next_available_slot
from .ranking import TimeOfDay, Urgency, rank_slots, suggest_meeting_times
from .dates import DateRecalculator
from .analytics import analyze_schedule, build_productivity_report, optimize_schedule

__all__ = [
    "Event",
    "Interval",
    "SchedulingConstraints",
    "TimeSlot",
    "WEEKDAY_NAMES",
    "weekday_index",
    "attendee_conflict",
    "check_availability",
    "find_conflicts",
    "overlaps",
    "find_free_slots",
    "next_available_slot",
    "TimeOfDay",
    "Urgency",
    "rank_slots",
    "suggest_meeting_times",
    "DateRecalculator",
    "analyze_schedule",
    "build_productivity_report",
    "optimize_schedule",
]
