"""
Tool handlers.

Each handler takes the shared ToolContext, the normalized argument dict and
the user's original message, and returns a ToolResult. Handlers raise
ToolError subclasses for expected failures; the router turns them into
error results.

Provides:
- Event listing and availability checks
- Ranked meeting suggestions with calendar links and ICS files
- Event creation with link/ICS fallback when the calendar is unreachable
- Email drafts (single, group and per-person), follow-ups and templates
- Productivity reports and schedule optimization tips
"""

from __future__ import annotations

import secrets
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..core.errors import NotFoundError, ToolError, ValidationError
from ..scheduling.analytics import build_productivity_report, optimize_schedule as optimize
from ..scheduling.conflicts import check_availability as check_range
from ..scheduling.dates import parse_iso
from ..scheduling.models import Event, format_clock, weekday_index
from ..scheduling.ranking import suggest_meeting_times as rank_meeting_times
from ..scheduling.slots import find_free_slots
from ..tools.calendar import build_event_body, normalize_google_event
from ..tools.calendar_links import build_calendar_link, build_focus_time_link
from ..tools.email import (
    EmailTemplate,
    compose_links,
    create_email_template as fill_template,
    find_outreach_slots,
    group_scheduling_email,
    meeting_confirmation_template,
    meeting_followup_template,
    personal_scheduling_email,
)
from ..tools.ics import generate_ics as render_ics, ics_filename
from ..tools.recipients import ResolutionMode
from .base import ToolResult
from .context import ToolContext

Handler = Callable[[ToolContext, Dict[str, Any], Optional[str]], Awaitable[ToolResult]]


class EventCreationState(Enum):
    REQUESTED = "Requested"
    REMOTE_CREATE_ATTEMPTED = "RemoteCreateAttempted"
    COMMITTED = "Committed"
    FALLBACK_LINK_GENERATED = "FallbackLinkGenerated"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _when(start: datetime, end: datetime) -> str:
    return f"{start.strftime('%a %b')} {start.day} at {format_clock(start)}-{format_clock(end)}"


def _require_range(ctx: ToolContext, start_iso: str, end_iso: str) -> Tuple[datetime, datetime]:
    start = parse_iso(start_iso, ctx.constraints)
    end = parse_iso(end_iso, ctx.constraints)
    if start is None or end is None:
        raise ValidationError(
            "Start and end times must be ISO 8601 date-times",
            context={"start_time": start_iso, "end_time": end_iso},
        )
    if end <= start:
        raise ValidationError(
            "End time must be after start time",
            context={"start_time": start_iso, "end_time": end_iso},
        )
    return start, end


def _resolve_times(ctx: ToolContext, args: Dict[str, Any], message: Optional[str]) -> Tuple[datetime, datetime, bool]:
    start, end, recalculated = ctx.dates.resolve(args["start_time"], args.get("end_time"), message, ctx.now())
    if start is None or end is None:
        raise ValidationError(
            "Could not determine the event time. Please give a date and time.",
            context={"start_time": args.get("start_time"), "end_time": args.get("end_time")},
        )
    if end <= start:
        raise ValidationError(
            "End time must be after start time",
            context={"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
    if recalculated:
        logger.info(f"Recalculated event time from message: {start.isoformat()}")
    return start, end, recalculated


# =============================================================================
# Calendar reads
# =============================================================================

RANGE_LABELS = {
    "today": "today",
    "this_week": "this week",
    "next_week": "next week",
    "this_month": "this month",
}


def date_range_for(time_range: str, today: date) -> Tuple[date, date]:
    """Inclusive first and last day of a named range. Weeks start on Sunday."""
    if time_range == "today":
        return today, today
    if time_range == "this_week":
        first = today - timedelta(days=weekday_index(today))
        return first, first + timedelta(days=6)
    if time_range == "next_week":
        first = today + timedelta(days=7 - weekday_index(today))
        return first, first + timedelta(days=6)
    if time_range == "this_month":
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return first, next_month - timedelta(days=1)
    raise ValidationError(f"Unknown time range: {time_range}", context={"time_range": time_range})


async def fetch_events(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    time_range = args["time_range"]
    max_results = max(1, int(args.get("max_results", 10)))
    first, last = date_range_for(time_range, ctx.now().date())

    matching = [
        e for e in sorted(ctx.events, key=lambda e: e.start)
        if first <= ctx.constraints.localize(e.start).date() <= last
    ][:max_results]

    label = RANGE_LABELS[time_range]
    data = {
        "timeRange": time_range,
        "events": [e.to_dict() for e in matching],
        "count": len(matching),
    }
    if not matching:
        return ToolResult.ok(f"No events found for {label}.", data)

    lines = [f"Found {_plural(len(matching), 'event')} for {label}:", ""]
    lines.extend(f"- {e.format_display()}" for e in matching)
    return ToolResult.ok("\n".join(lines), data)


async def check_availability(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    start, end = _require_range(ctx, args["start_time"], args["end_time"])
    available, conflicts = check_range(ctx.events, start, end, args.get("attendees", []))

    data = {
        "available": available,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "conflicts": [e.to_dict() for e in conflicts],
    }
    if available:
        return ToolResult.ok(f"You're free {_when(start, end)}.", data)

    lines = [f"Not available {_when(start, end)}. Conflicts with:"]
    lines.extend(f"- {e.format_display()}" for e in conflicts)
    return ToolResult.ok("\n".join(lines), data)


async def suggest_meeting_times(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    """Ranked open slots, each with a calendar link and an ICS file."""
    duration = args.get("duration", 30)
    constraints = ctx.constraints
    if not constraints.min_duration <= duration <= constraints.max_duration:
        raise ValidationError(
            f"Duration must be between {constraints.min_duration} and {constraints.max_duration} minutes",
            context={"duration": duration},
        )

    now = ctx.now()
    slots = rank_meeting_times(
        ctx.events,
        constraints,
        int(duration),
        now,
        preferred_time=args.get("preferred_time", "any"),
        urgency=args.get("urgency", "medium"),
        lookahead_days=ctx.lookahead_days,
    )

    title = args["title"]
    attendees = args.get("attendees", [])
    location = args.get("location")
    description = args.get("description")

    if not slots:
        return ToolResult.ok(
            f"No available slots found in the next {ctx.lookahead_days} days.",
            {"suggestions": [], "title": title},
        )

    suggestions = []
    lines = [f"Suggested times for \"{title}\":", ""]
    for number, slot in enumerate(slots, 1):
        proposal = Event(
            id=f"proposal-{int(slot.start.timestamp())}",
            title=title,
            start=slot.start,
            end=slot.end,
            attendees=list(attendees),
            location=location,
            description=description,
            organizer=ctx.organizer_email,
        )
        suggestion = slot.to_dict()
        suggestion.update({
            "slotNumber": number,
            "calendarUrl": build_calendar_link(title, slot.start, slot.end, attendees, location, description),
            "icsContent": render_ics([proposal], stamp=now),
            "icsFilename": ics_filename(title, slot.start),
        })
        suggestions.append(suggestion)
        lines.append(f"{number}. {_when(slot.start, slot.end)}")

    return ToolResult.ok("\n".join(lines), {"suggestions": suggestions, "title": title})


# =============================================================================
# Calendar writes
# =============================================================================

def _fallback_event_id(now: datetime) -> str:
    return f"event-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


async def create_calendar_event(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    """
    Create an event remotely, or fall back to a link and ICS file.

    The remote failure becomes a warning on a successful result; the event
    is still added to the local snapshot either way.
    """
    start, end, recalculated = _resolve_times(ctx, args, message)
    title = args["title"]
    attendees = args.get("attendees", [])
    location = args.get("location")
    description = args.get("description")
    now = ctx.now()

    state = EventCreationState.REQUESTED
    warning = None

    if ctx.calendar is not None:
        state = EventCreationState.REMOTE_CREATE_ATTEMPTED
        body = build_event_body(title, start, end, attendees, location, description)
        try:
            raw = await ctx.calendar.create_event(body)
        except ToolError as e:
            logger.warning(f"Remote event creation failed ({e.kind.value}): {e.message}")
            warning = e.message
        except Exception as e:
            logger.exception(f"Unexpected calendar error: {e}")
            warning = f"Calendar error: {e}."
        else:
            event = normalize_google_event(
                raw,
                ctx.constraints,
                fallback={"title": title, "attendees": attendees, "location": location, "description": description},
            )
            ctx.add_event(event)
            state = EventCreationState.COMMITTED
            logger.info(f"Created calendar event {event.id}: {title}")
            return ToolResult.ok(
                f"Created \"{title}\" on {_when(event.start, event.end)}.",
                {
                    "state": state.value,
                    "event": event.to_dict(),
                    "eventId": event.id,
                    "htmlLink": event.url,
                    "recalculated": recalculated,
                },
            )
    else:
        warning = "Calendar is not connected."

    event = Event(
        id=_fallback_event_id(now),
        title=title,
        start=start,
        end=end,
        attendees=list(attendees),
        location=location,
        description=description,
        organizer=ctx.organizer_email,
    )
    ctx.add_event(event)
    state = EventCreationState.FALLBACK_LINK_GENERATED

    calendar_url = build_calendar_link(title, start, end, attendees, location, description)
    warning = f"{warning} Use the calendar link or ICS file to add the event."
    logger.info(f"Generated fallback link for {event.id}: {title}")

    return ToolResult.ok(
        f"Prepared \"{title}\" for {_when(start, end)}. {warning}",
        {
            "state": state.value,
            "event": event.to_dict(),
            "eventId": event.id,
            "calendarUrl": calendar_url,
            "icsContent": render_ics([event], stamp=now),
            "icsFilename": ics_filename(title, start),
            "recalculated": recalculated,
        },
        warning=warning,
    )


async def create_calendar_link(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    start, end, recalculated = _resolve_times(ctx, args, message)
    title = args["title"]
    recurrence = args.get("recurrence", "none")
    recurrence = None if recurrence == "none" else recurrence

    url = build_calendar_link(
        title,
        start,
        end,
        args.get("attendees", []),
        args.get("location"),
        args.get("description"),
        recurrence,
    )
    return ToolResult.ok(
        f"Calendar link for \"{title}\" on {_when(start, end)}:\n{url}",
        {
            "calendarUrl": url,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "recurrence": recurrence,
            "recalculated": recalculated,
        },
    )


async def generate_ics(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    events = ctx.events_by_ids(args["event_ids"])
    if not events:
        raise NotFoundError(
            "No events found with the given IDs",
            context={"event_ids": args["event_ids"], "available_ids": [e.id for e in ctx.events]},
        )

    filename = args.get("filename") or "calendar.ics"
    if not filename.lower().endswith(".ics"):
        filename += ".ics"

    return ToolResult.ok(
        f"Generated {filename} with {_plural(len(events), 'event')}.",
        {
            "icsContent": render_ics(events, stamp=ctx.now()),
            "filename": filename,
            "eventCount": len(events),
        },
    )


# =============================================================================
# Email
# =============================================================================

def _draft(recipient: str, template: EmailTemplate) -> Dict[str, Any]:
    draft = template.to_dict()
    draft["to"] = recipient
    draft.update(compose_links(recipient, template))
    return draft


async def create_email_draft(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    """
    Draft email(s) according to the resolved recipient mode.

    GROUP produces one shared email, FANOUT one per recipient and SINGLE a
    template of the requested type.
    """
    email_type = args["email_type"]
    context = args["context"]
    tone = args.get("tone", "professional")

    resolution = ctx.resolver.resolve(args.get("to"), context, message)
    recipients = resolution.recipients

    if resolution.mode == ResolutionMode.GROUP:
        slots = find_outreach_slots(ctx.events, ctx.constraints, ctx.now())
        template = group_scheduling_email(recipients, context, slots, tone)
        drafts = [_draft(",".join(recipients), template)]
        output = f"Drafted one group email to {', '.join(recipients)}."
    elif resolution.mode == ResolutionMode.FANOUT:
        slots = find_outreach_slots(ctx.events, ctx.constraints, ctx.now())
        drafts = [
            _draft(recipient, personal_scheduling_email(recipient, context, slots, tone))
            for recipient in recipients
        ]
        output = f"Drafted {_plural(len(drafts), 'personalized email')}: {', '.join(recipients)}."
    else:
        recipient = recipients[0]
        if email_type == "meeting_confirmation":
            template = meeting_confirmation_template(recipient, context)
        else:
            template = fill_template(email_type, context, tone)
        drafts = [_draft(recipient, template)]
        output = f"Drafted email to {recipient}: {template.subject}"

    if resolution.used_fallback:
        output += " No recipients were named, so the default contacts were used."

    return ToolResult.ok(
        output,
        {
            "emailType": email_type,
            "resolution": resolution.to_dict(),
            "emailTemplates": drafts,
        },
    )


async def create_meeting_followup(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    event = ctx.find_event_by_title(args["event_title"])
    if event is None:
        raise NotFoundError(
            f"Event \"{args['event_title']}\" not found",
            context={"available_events": [e.title for e in ctx.events]},
        )

    attendee = args["attendee_email"]
    draft = _draft(attendee, meeting_followup_template(event, attendee))
    return ToolResult.ok(
        f"Drafted follow-up for \"{event.title}\" to {attendee}.",
        {"eventId": event.id, "emailTemplate": draft},
    )


async def create_email_template(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    template = fill_template(args["template_type"], args.get("context", ""), args.get("tone", "professional"))
    return ToolResult.ok(
        f"Subject: {template.subject}\n\n{template.body}",
        {"template": template.to_dict()},
    )


# =============================================================================
# Analytics
# =============================================================================

# Focus blocks offered with block_focus_time suggestions
FOCUS_BLOCK_MINUTES = 120
MAX_FOCUS_BLOCKS = 3


def focus_blocks(ctx: ToolContext) -> List[Dict[str, Any]]:
    """First free two-hour block on each upcoming working day."""
    today = ctx.now().date()
    slots = find_free_slots(
        ctx.events,
        ctx.constraints,
        FOCUS_BLOCK_MINUTES,
        today + timedelta(days=1),
        today + timedelta(days=ctx.lookahead_days),
    )

    blocks: List[Dict[str, Any]] = []
    seen_days = set()
    for slot in slots:
        if slot.start.date() in seen_days:
            continue
        seen_days.add(slot.start.date())
        blocks.append({
            "start": slot.start.isoformat(),
            "end": slot.end.isoformat(),
            "calendarUrl": build_focus_time_link(slot.start, slot.end),
        })
        if len(blocks) >= MAX_FOCUS_BLOCKS:
            break
    return blocks


async def generate_productivity_report(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    report = build_productivity_report(
        ctx.events,
        args["report_type"],
        ctx.now(),
        include_recommendations=args.get("include_recommendations", True),
    )
    return ToolResult.ok(report.content, report.to_dict())


async def optimize_schedule(ctx: ToolContext, args: Dict[str, Any], message: Optional[str] = None) -> ToolResult:
    focus = args["focus"]
    suggestions: List[str] = optimize(ctx.events, focus)
    data = {"focus": focus, "suggestions": suggestions, "generatedAt": ctx.now().isoformat()}

    if not suggestions:
        return ToolResult.ok(f"No changes suggested for {focus.replace('_', ' ')}.", data)
    lines = [f"Suggestions to {focus.replace('_', ' ')}:"]
    lines.extend(f"- {s}" for s in suggestions)

    if focus == "block_focus_time":
        blocks = focus_blocks(ctx)
        data["focusBlocks"] = blocks
        if blocks:
            lines.extend(["", "Open focus blocks:"])
            lines.extend(f"- {b['start']} to {b['end']}: {b['calendarUrl']}" for b in blocks)
    return ToolResult.ok("\n".join(lines), data)


HANDLERS: Dict[str, Handler] = {
    "fetch_events": fetch_events,
    "check_availability": check_availability,
    "suggest_meeting_times": suggest_meeting_times,
    "create_calendar_event": create_calendar_event,
    "create_calendar_link": create_calendar_link,
    "generate_ics": generate_ics,
    "create_email_draft": create_email_draft,
    "create_meeting_followup": create_meeting_followup,
    "create_email_template": create_email_template,
    "generate_productivity_report": generate_productivity_report,
    "optimize_schedule": optimize_schedule,
}
