"""
Schedule analytics for the calendar snapshot.

Provides:
- Schedule statistics (counts, durations, time-of-day distribution)
- Optimization suggestions per focus area
- Plain-text productivity reports with recommendations
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .models import Event


class OptimizationFocus(Enum):
    REDUCE_MEETINGS = "reduce_meetings"
    CONSOLIDATE_MEETINGS = "consolidate_meetings"
    IMPROVE_PRODUCTIVITY = "improve_productivity"
    BLOCK_FOCUS_TIME = "block_focus_time"


class ReportType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    MEETING_ANALYSIS = "meeting_analysis"
    TIME_DISTRIBUTION = "time_distribution"


# Days covered by period reports, counted from now
REPORT_PERIOD_DAYS = {
    ReportType.DAILY: 1,
    ReportType.WEEKLY: 7,
    ReportType.MONTHLY: 30,
}

TITLE_SIMILARITY_THRESHOLD = 0.7


def time_of_day(value: datetime) -> str:
    """Bucket a start time into morning / afternoon / evening."""
    if value.hour < 12:
        return "morning"
    if value.hour < 17:
        return "afternoon"
    return "evening"


@dataclass
class ScheduleStats:
    """Aggregate numbers over a set of events."""
    total_events: int = 0
    total_minutes: int = 0
    total_hours: int = 0
    average_duration: float = 0.0
    most_active_day: str = "None"
    most_active_time: str = "None"
    time_distribution: Dict[str, int] = field(
        default_factory=lambda: {"morning": 0, "afternoon": 0, "evening": 0}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalEvents": self.total_events,
            "totalMinutes": self.total_minutes,
            "totalHours": self.total_hours,
            "averageDuration": round(self.average_duration, 1),
            "mostActiveDay": self.most_active_day,
            "mostActiveTime": self.most_active_time,
            "timeDistribution": dict(self.time_distribution),
        }


def _most_common(counts: Dict[str, int]) -> str:
    best, best_count = "None", 0
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


def analyze_schedule(events: Sequence[Event]) -> ScheduleStats:
    """Compute statistics for a set of events."""
    stats = ScheduleStats()
    stats.total_events = len(events)
    stats.total_minutes = sum(e.duration_minutes for e in events)
    stats.total_hours = int(round(stats.total_minutes / 60))
    stats.average_duration = stats.total_minutes / stats.total_events if events else 0.0

    day_counts: Dict[str, int] = {}
    for event in events:
        day = event.start.strftime("%A")
        day_counts[day] = day_counts.get(day, 0) + 1
        stats.time_distribution[time_of_day(event.start)] += 1

    stats.most_active_day = _most_common(day_counts)
    stats.most_active_time = _most_common(stats.time_distribution)
    return stats


def title_similarity(first: str, second: str) -> float:
    """Shared words over distinct words."""
    words1 = first.lower().split()
    words2 = second.lower().split()
    total = len(set(words1) | set(words2))
    if total == 0:
        return 0.0
    common = [w for w in words1 if w in words2]
    return len(common) / total


def find_similar_meetings(events: Sequence[Event]) -> List[List[Event]]:
    """Group events whose titles look alike."""
    groups: List[List[Event]] = []
    processed = set()

    for event in events:
        if event.id in processed:
            continue
        similar = [
            other for other in events
            if other.id != event.id
            and other.id not in processed
            and title_similarity(event.title, other.title) > TITLE_SIMILARITY_THRESHOLD
        ]
        if similar:
            groups.append([event] + similar)
            processed.add(event.id)
            processed.update(s.id for s in similar)

    return groups


def optimize_schedule(events: Sequence[Event], focus: str) -> List[str]:
    """
    Suggest schedule changes for a focus area.

    Args:
        events: Calendar snapshot
        focus: One of reduce_meetings, consolidate_meetings,
            improve_productivity, block_focus_time

    Returns:
        Suggestions, possibly empty
    """
    focus = OptimizationFocus(focus)
    stats = analyze_schedule(events)
    suggestions: List[str] = []

    if focus is OptimizationFocus.REDUCE_MEETINGS:
        if stats.total_events > 20:
            suggestions.append("Consider declining meetings without clear agendas")
            suggestions.append('Set "no meeting" blocks in your calendar')
        if stats.average_duration > 60:
            suggestions.append("Try reducing meeting duration to 30 minutes")

    elif focus is OptimizationFocus.CONSOLIDATE_MEETINGS:
        if find_similar_meetings(events):
            suggestions.append("Consider consolidating similar meetings")
            suggestions.append("Batch related discussions into single meetings")

    elif focus is OptimizationFocus.IMPROVE_PRODUCTIVITY:
        if stats.time_distribution["morning"] < 2:
            suggestions.append("Schedule important meetings in the morning when energy is high")
        if stats.total_hours > 25:
            suggestions.append("Consider blocking focus time between meetings")

    elif focus is OptimizationFocus.BLOCK_FOCUS_TIME:
        suggestions.append("Schedule 2-hour focus blocks for deep work")
        suggestions.append("Protect focus time from meeting requests")
        suggestions.append('Use "Do Not Disturb" during focus periods')

    return suggestions


def generate_recommendations(stats: ScheduleStats) -> List[str]:
    recommendations = []

    if stats.average_duration > 60:
        recommendations.append(
            "Consider breaking longer meetings into shorter, focused sessions for better engagement."
        )
    if stats.total_hours > 20:
        recommendations.append("Your schedule is quite busy. Consider blocking focus time for deep work.")
    if stats.total_events > 15:
        recommendations.append(
            "You have many meetings scheduled. Look for opportunities to consolidate or eliminate unnecessary ones."
        )
    if stats.most_active_day in ("Monday", "Friday"):
        recommendations.append(
            "Consider spreading meetings more evenly throughout the week to avoid Monday/Friday overload."
        )
    if stats.total_events > 0:
        recommendations.append("Schedule buffer time between meetings to allow for preparation and follow-up.")
        recommendations.append("Use the 80/20 rule: focus on the 20% of meetings that drive 80% of your results.")

    return recommendations or ["Your schedule looks well-balanced. Keep up the good work!"]


def events_for_report(events: Sequence[Event], report_type: str, now: datetime) -> List[Event]:
    """Events covered by a report; period reports look forward from now."""
    days = REPORT_PERIOD_DAYS.get(ReportType(report_type))
    ordered = sorted(events, key=lambda e: e.start)
    if days is None:
        return ordered
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=days)
    return [e for e in ordered if start <= e.start < end]


@dataclass
class ProductivityReport:
    report_type: str
    stats: ScheduleStats
    recommendations: List[str]
    content: str
    filename: str
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportType": self.report_type,
            "stats": self.stats.to_dict(),
            "recommendations": list(self.recommendations),
            "reportContent": self.content,
            "filename": self.filename,
            "generatedAt": self.generated_at.isoformat(),
        }


def build_productivity_report(
    events: Sequence[Event],
    report_type: str,
    now: datetime,
    include_recommendations: bool = True,
    title: Optional[str] = "CALENDAR PRODUCTIVITY REPORT",
) -> ProductivityReport:
    """Assemble statistics, recommendations and the text report."""
    covered = events_for_report(events, report_type, now)
    stats = analyze_schedule(covered)
    recommendations = generate_recommendations(stats) if include_recommendations else []

    lines = [
        title,
        f"Generated on {now.strftime('%Y-%m-%d')} at {now.strftime('%H:%M')}",
        f"Report Type: {report_type.replace('_', ' ').title()}",
        "=" * 42,
        "",
        "CALENDAR STATISTICS:",
        f"- Total Events: {stats.total_events}",
        f"- Total Time: {stats.total_hours} hours ({stats.total_minutes} minutes)",
        f"- Average Duration: {round(stats.average_duration)} minutes per event",
        f"- Most Active Day: {stats.most_active_day}",
        f"- Most Active Time: {stats.most_active_time}",
        "",
    ]

    if recommendations:
        lines.append("RECOMMENDATIONS:")
        lines.extend(f"{i}. {rec}" for i, rec in enumerate(recommendations, 1))
        lines.append("")

    lines.append("UPCOMING EVENTS:")
    for i, event in enumerate(covered[:10], 1):
        lines.append(
            f"{i}. {event.title} - {event.start.strftime('%Y-%m-%d at %H:%M')} ({event.duration_minutes} min)"
        )

    return ProductivityReport(
        report_type=report_type,
        stats=stats,
        recommendations=recommendations,
        content="\n".join(lines) + "\n",
        filename=f"productivity_report_{report_type}_{now.strftime('%Y-%m-%d')}.txt",
        generated_at=now,
    )
