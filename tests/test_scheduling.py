"""
Unit tests for the scheduling package.

Tests:
- Conflict predicates (half-open overlap, attendee clashes)
- Slot search over working days and hours
- Slot ranking by urgency and time-of-day preference
- Meeting suggestions against a fixed clock
"""

from datetime import date, time

import pytest

from calendar_assistant.scheduling.conflicts import (
    attendee_conflict,
    check_availability,
    find_conflicts,
    overlaps,
)
from calendar_assistant.scheduling.models import (
    Interval,
    SchedulingConstraints,
    TimeSlot,
    weekday_index,
)
from calendar_assistant.scheduling.ranking import (
    URGENCY_LIMITS,
    Urgency,
    rank_slots,
    search_window,
    suggest_meeting_times,
)
from calendar_assistant.scheduling.slots import find_free_slots, next_available_slot


class TestModels:
    """Tests for model helpers."""

    def test_weekday_index_sunday_is_zero(self):
        assert weekday_index(date(2025, 6, 1)) == 0  # Sunday
        assert weekday_index(date(2025, 6, 2)) == 1  # Monday
        assert weekday_index(date(2025, 6, 7)) == 6  # Saturday

    def test_interval_rejects_inverted_range(self, at):
        with pytest.raises(ValueError):
            Interval(at(2, 11), at(2, 10))

    def test_localize_naive_datetime(self, constraints, at):
        naive = at(2, 9).replace(tzinfo=None)
        assert constraints.localize(naive) == at(2, 9)


class TestConflicts:
    """Tests for conflict predicates."""

    def test_overlap_is_symmetric(self, at):
        pairs = [
            (Interval(at(2, 9), at(2, 10)), Interval(at(2, 9, 30), at(2, 10, 30))),
            (Interval(at(2, 9), at(2, 10)), Interval(at(2, 10), at(2, 11))),
            (Interval(at(2, 9), at(2, 12)), Interval(at(2, 10), at(2, 11))),
            (Interval(at(2, 9), at(2, 10)), Interval(at(3, 9), at(3, 10))),
        ]
        for a, b in pairs:
            assert overlaps(a, b) == overlaps(b, a)

    def test_touching_intervals_do_not_overlap(self, at):
        assert not overlaps(Interval(at(2, 9), at(2, 10)), Interval(at(2, 10), at(2, 11)))

    def test_contained_interval_overlaps(self, at):
        assert overlaps(Interval(at(2, 9), at(2, 12)), Interval(at(2, 10), at(2, 11)))

    def test_attendee_conflict_ignores_case(self, make_event, at):
        event = make_event("e1", "Sync", at(2, 14), at(2, 15), ["joe@gmail.com"])
        assert attendee_conflict(event, ["JOE@gmail.com"])
        assert not attendee_conflict(event, ["dan@gmail.com"])
        assert not attendee_conflict(event, [])

    def test_find_conflicts_time_and_attendee(self, make_event, at):
        events = [
            make_event("e1", "Standup", at(2, 9), at(2, 9, 30)),
            make_event("e2", "1:1", at(3, 15), at(3, 16), ["dan@gmail.com"]),
        ]
        conflicts = find_conflicts(events, at(2, 9, 15), at(2, 9, 45), ["dan@gmail.com"])
        assert [e.id for e in conflicts] == ["e1", "e2"]

    def test_check_availability(self, make_event, at):
        events = [make_event("e1", "Review", at(2, 14), at(2, 15), ["joe@gmail.com"])]

        free, conflicts = check_availability(events, at(2, 15), at(2, 16))
        assert free is True
        assert conflicts == []

        free, conflicts = check_availability(events, at(2, 14, 30), at(2, 15, 30))
        assert free is False
        assert conflicts[0].id == "e1"


class TestSlotSearch:
    """Tests for find_free_slots."""

    def test_full_week_empty_calendar(self, constraints):
        slots = find_free_slots([], constraints, 30, date(2025, 6, 1), date(2025, 6, 7))

        # 09:00 .. 16:30 on every weekday
        assert len(slots) == 5 * 16
        assert {s.start.date() for s in slots} == {date(2025, 6, d) for d in range(2, 7)}
        assert all(s.start.weekday() < 5 for s in slots)

        monday = [s for s in slots if s.start.date() == date(2025, 6, 2)]
        assert monday[0].start.time() == time(9, 0)
        assert monday[-1].end.time() == time(17, 0)
        assert all(s.duration_minutes == 30 for s in slots)

    def test_slots_avoid_events(self, constraints, make_event, at):
        events = [
            make_event("e1", "Standup", at(2, 10), at(2, 11)),
            make_event("e2", "Planning", at(3, 13), at(3, 14, 30)),
        ]
        slots = find_free_slots(events, constraints, 60, date(2025, 6, 2), date(2025, 6, 3))

        assert slots
        for slot in slots:
            assert slot.is_available
            assert not any(overlaps(slot, e) for e in events)

        monday_starts = [s.start.time() for s in slots if s.start.date() == date(2025, 6, 2)]
        assert time(9, 0) in monday_starts
        assert time(9, 30) not in monday_starts
        assert time(11, 0) in monday_starts

    def test_slot_must_fit_before_window_end(self, constraints):
        slots = find_free_slots([], constraints, 120, date(2025, 6, 2), date(2025, 6, 2))
        assert slots[-1].start.time() == time(15, 0)
        assert slots[-1].end.time() == time(17, 0)

    def test_custom_working_days(self):
        weekend_only = SchedulingConstraints(working_days=frozenset({0, 6}))
        slots = find_free_slots([], weekend_only, 60, date(2025, 6, 1), date(2025, 6, 7))
        assert {s.start.date() for s in slots} == {date(2025, 6, 1), date(2025, 6, 7)}

    def test_invalid_duration(self, constraints):
        with pytest.raises(ValueError):
            find_free_slots([], constraints, 0, date(2025, 6, 2), date(2025, 6, 2))

    def test_next_available_slot(self, constraints, make_event, at):
        events = [make_event("e1", "Busy", at(2, 10), at(2, 12))]
        slot = next_available_slot(events, constraints, 30, at(2, 10))
        assert slot.start == at(2, 12)


class TestRanking:
    """Tests for slot ranking."""

    @staticmethod
    def _slots(at, specs):
        return [TimeSlot(start=at(day, hour), end=at(day, hour, 30)) for day, hour in specs]

    def test_urgency_limits(self, at):
        slots = self._slots(at, [(d, h) for d in (2, 3, 4) for h in (9, 10, 11, 14)])
        assert len(rank_slots(slots, "high")) == 5
        assert len(rank_slots(slots, "medium")) == 3
        assert len(rank_slots(slots, "low")) == 2
        for urgency in Urgency:
            assert len(rank_slots(slots, urgency)) <= URGENCY_LIMITS[urgency]

    def test_preferred_band_first(self, at):
        slots = self._slots(at, [(2, 9), (2, 14), (2, 10)])
        ranked = rank_slots(slots, "medium", "afternoon")
        assert ranked[0].start == at(2, 14)

    def test_high_urgency_prefers_earlier_day(self, at):
        slots = self._slots(at, [(4, 9), (2, 15)])
        assert rank_slots(slots, "high")[0].start == at(2, 15)
        assert rank_slots(slots, "medium")[0].start == at(4, 9)

    def test_ties_keep_chronological_order(self, at):
        slots = self._slots(at, [(2, 9), (3, 9), (4, 9)])
        assert [s.start for s in rank_slots(slots, "medium")] == [at(2, 9), at(3, 9), at(4, 9)]

    def test_search_window(self, constraints):
        assert search_window("morning", constraints) == (time(9), time(12))
        assert search_window("evening", constraints) == (time(17), time(19))
        assert search_window("any", constraints) == (constraints.work_start, constraints.work_end)
        assert search_window("bogus", constraints) == (constraints.work_start, constraints.work_end)


class TestSuggestMeetingTimes:
    """Tests for suggest_meeting_times against a fixed clock."""

    def test_empty_calendar_medium_urgency(self, constraints, now, at):
        slots = suggest_meeting_times([], constraints, 30, now)
        assert [s.start for s in slots] == [at(3, 9), at(3, 9, 30), at(4, 9)]

    def test_never_suggests_past_slots(self, constraints, now):
        slots = suggest_meeting_times([], constraints, 30, now, urgency="high")
        assert all(s.start >= now for s in slots)

    def test_afternoon_preference(self, constraints, now, at):
        slots = suggest_meeting_times([], constraints, 30, now, preferred_time="afternoon")
        assert [s.start for s in slots] == [at(2, 13), at(2, 13, 30), at(3, 13)]

    def test_busy_day_is_skipped(self, constraints, now, make_event, at):
        events = [make_event("e1", "Offsite", at(3, 8), at(3, 18))]
        slots = suggest_meeting_times(events, constraints, 60, now)
        assert all(s.start.date() != date(2025, 6, 3) for s in slots)
