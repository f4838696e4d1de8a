"""
Unit tests for date recalculation.

The clock is fixed to Monday 2 June 2025, 10:00 America/Los_Angeles.
"""

import pytest

from calendar_assistant.scheduling.dates import DateRecalculator, parse_iso


@pytest.fixture
def recalculator(constraints, now):
    return DateRecalculator(constraints, clock=lambda: now)


class TestParseIso:
    """Tests for parse_iso."""

    def test_naive_string_gets_configured_zone(self, constraints, at):
        assert parse_iso("2025-06-03T14:00:00", constraints) == at(3, 14)

    def test_utc_suffix(self, constraints, at):
        assert parse_iso("2025-06-03T21:00:00Z", constraints) == at(3, 14)

    def test_garbage(self, constraints):
        assert parse_iso("next tuesday", constraints) is None
        assert parse_iso("", constraints) is None


class TestShouldRecalculate:
    """Tests for should_recalculate."""

    def test_training_artifact_with_keyword(self, recalculator):
        assert recalculator.should_recalculate("2024-01-10T09:00:00", "let's meet next Friday") is True

    def test_no_message_never_recalculates(self, recalculator):
        assert recalculator.should_recalculate("2024-01-10T09:00:00", None) is False
        assert recalculator.should_recalculate("2024-01-10T09:00:00", "") is False

    def test_past_start(self, recalculator):
        assert recalculator.should_recalculate("2025-05-30T09:00:00", "book a review") is True

    def test_unparseable_start(self, recalculator):
        assert recalculator.should_recalculate("soon", "book a review") is True

    def test_future_start_without_keywords(self, recalculator):
        assert recalculator.should_recalculate("2025-06-05T09:00:00", "book a review at 9am") is False

    def test_relative_keyword(self, recalculator):
        assert recalculator.should_recalculate("2025-06-05T09:00:00", "book it for tomorrow") is True
        assert recalculator.should_recalculate("2025-06-05T09:00:00", "Thursday works") is True

    def test_keyword_must_be_whole_word(self, recalculator):
        assert recalculator.should_recalculate("2025-06-05T09:00:00", "discuss nextgen roadmap") is False


class TestRecompute:
    """Tests for recompute."""

    def test_next_weekday(self, recalculator, at):
        start, end = recalculator.recompute("next Wednesday at 11 AM for 1 hour")
        assert start == at(4, 11)
        assert end == at(4, 12)

    def test_next_same_weekday_is_a_week_out(self, recalculator, at):
        start, _ = recalculator.recompute("next monday at 9am")
        assert start == at(9, 9)

    def test_plain_weekday_this_week(self, recalculator, at):
        start, end = recalculator.recompute("friday at 2:30 pm for 2 hours")
        assert start == at(6, 14, 30)
        assert end == at(6, 16, 30)

    def test_plain_same_weekday_is_today(self, recalculator, at):
        start, _ = recalculator.recompute("monday at 4pm")
        assert start == at(2, 16)

    def test_noon_and_midnight(self, recalculator, at):
        assert recalculator.recompute("tuesday at 12pm")[0] == at(3, 12)
        assert recalculator.recompute("tuesday at 12am")[0] == at(3, 0)

    def test_missing_parts(self, recalculator):
        assert recalculator.recompute("next wednesday") is None
        assert recalculator.recompute("at 3pm") is None
        assert recalculator.recompute("") is None


class TestResolve:
    """Tests for resolve."""

    def test_recalculated_from_message(self, recalculator, at):
        start, end, recalculated = recalculator.resolve(
            "2024-01-10T11:00:00", "2024-01-10T12:00:00", "next Wednesday at 11 AM"
        )
        assert recalculated is True
        assert (start, end) == (at(4, 11), at(4, 12))

    def test_keeps_trustworthy_proposal(self, recalculator, at):
        start, end, recalculated = recalculator.resolve(
            "2025-06-05T15:00:00", "2025-06-05T15:45:00", "book the design review"
        )
        assert recalculated is False
        assert (start, end) == (at(5, 15), at(5, 15, 45))

    def test_default_one_hour(self, recalculator, at):
        start, end, _ = recalculator.resolve("2025-06-05T15:00:00", None, None)
        assert end == at(5, 16)

    def test_keyword_without_time_falls_back_to_proposal(self, recalculator, at):
        start, _, recalculated = recalculator.resolve("2025-06-05T15:00:00", None, "sometime this week")
        assert recalculated is False
        assert start == at(5, 15)
