"""
Tool registry: the static catalog of operations the model may call.

Each definition publishes a name, a description for the model, a JSON
schema for its parameters and whether it has side effects (side-effecting
calls go through the duplicate-call cache).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from ..core.errors import UnknownOperationError

TONE_ENUM = ["formal", "casual", "friendly", "professional"]
EMAIL_TYPE_ENUM = [
    "meeting_followup",
    "meeting_reminder",
    "meeting_confirmation",
    "action_items",
    "schedule_update",
    "custom",
]


@dataclass(frozen=True)
class ToolDefinition:
    """A registered operation."""
    name: str
    description: str
    parameters: Dict[str, Any]
    side_effecting: bool = False

    @property
    def required(self) -> List[str]:
        return list(self.parameters.get("required", []))

    def to_llm_tool(self) -> Dict[str, Any]:
        """OpenAI/Groq function-calling schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def _object(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name="fetch_events",
        description="List calendar events for today, this week, next week, or this month. Use this when the user asks about their schedule.",
        parameters=_object(
            {
                "time_range": {
                    "type": "string",
                    "enum": ["today", "this_week", "next_week", "this_month"],
                    "description": "Time range to list",
                },
                "max_results": {
                    "type": "integer",
                    "description": "Maximum number of events to return (default 10)",
                    "default": 10,
                },
            },
            ["time_range"],
        ),
    ),
    ToolDefinition(
        name="check_availability",
        description="Check whether a time range is free, optionally for specific attendees. Use this when the user asks if they are free at a certain time.",
        parameters=_object(
            {
                "start_time": {"type": "string", "description": "Start time (ISO 8601)"},
                "end_time": {"type": "string", "description": "End time (ISO 8601)"},
                "attendees": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Attendee email addresses",
                    "default": [],
                },
            },
            ["start_time", "end_time"],
        ),
    ),
    ToolDefinition(
        name="suggest_meeting_times",
        description="Find and rank open meeting slots over the next week. Use this when the user wants to schedule a meeting but has not fixed a time.",
        parameters=_object(
            {
                "title": {"type": "string", "description": "Meeting title"},
                "duration": {
                    "type": "number",
                    "description": "Duration in minutes (default 30)",
                    "default": 30,
                },
                "attendees": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Attendee email addresses",
                    "default": [],
                },
                "preferred_time": {
                    "type": "string",
                    "enum": ["morning", "afternoon", "evening", "any"],
                    "description": "Preferred time of day",
                    "default": "any",
                },
                "urgency": {
                    "type": "string",
                    "enum": ["low", "medium", "high"],
                    "description": "How soon the meeting should happen",
                    "default": "medium",
                },
                "location": {"type": "string", "description": "Meeting location (optional)"},
                "description": {"type": "string", "description": "Meeting description (optional)"},
            },
            ["title"],
        ),
    ),
    ToolDefinition(
        name="create_calendar_event",
        description="Create a calendar event. Falls back to a calendar link and ICS file when the calendar API is unavailable.",
        parameters=_object(
            {
                "title": {"type": "string", "description": "Event title"},
                "start_time": {"type": "string", "description": "Start time (ISO 8601)"},
                "end_time": {"type": "string", "description": "End time (ISO 8601)"},
                "attendees": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Attendee email addresses",
                    "default": [],
                },
                "location": {"type": "string", "description": "Event location (optional)"},
                "description": {"type": "string", "description": "Event description (optional)"},
            },
            ["title", "start_time", "end_time"],
        ),
        side_effecting=True,
    ),
    ToolDefinition(
        name="create_calendar_link",
        description="Build a Google Calendar link that opens a pre-filled event. Relative dates in the user's message take precedence.",
        parameters=_object(
            {
                "title": {"type": "string", "description": "Event title"},
                "start_time": {"type": "string", "description": "Start time (ISO 8601)"},
                "end_time": {"type": "string", "description": "End time (ISO 8601)"},
                "attendees": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Attendee email addresses",
                    "default": [],
                },
                "location": {"type": "string", "description": "Event location (optional)"},
                "description": {"type": "string", "description": "Event description (optional)"},
                "recurrence": {
                    "type": "string",
                    "enum": ["none", "daily", "weekly", "monthly"],
                    "description": "Repeat rule (default none)",
                    "default": "none",
                },
            },
            ["title", "start_time", "end_time"],
        ),
    ),
    ToolDefinition(
        name="generate_ics",
        description="Export events from the calendar as an ICS file for import into another calendar.",
        parameters=_object(
            {
                "event_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "IDs of the events to export",
                },
                "filename": {
                    "type": "string",
                    "description": "File name (default calendar.ics)",
                    "default": "calendar.ics",
                },
            },
            ["event_ids"],
        ),
    ),
    ToolDefinition(
        name="create_email_draft",
        description="Draft an email as Gmail compose and mailto links. Handles one shared email to several people or one personalized email per person.",
        parameters=_object(
            {
                "to": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Recipient email addresses",
                },
                "email_type": {
                    "type": "string",
                    "enum": EMAIL_TYPE_ENUM,
                    "description": "Kind of email",
                },
                "context": {"type": "string", "description": "What the email is about"},
                "tone": {
                    "type": "string",
                    "enum": TONE_ENUM,
                    "description": "Writing tone (default professional)",
                    "default": "professional",
                },
            },
            ["email_type", "context"],
        ),
        side_effecting=True,
    ),
    ToolDefinition(
        name="create_meeting_followup",
        description="Draft a follow-up email for a meeting in the calendar.",
        parameters=_object(
            {
                "event_title": {"type": "string", "description": "Exact title of the meeting"},
                "attendee_email": {"type": "string", "description": "Who to follow up with"},
            },
            ["event_title", "attendee_email"],
        ),
        side_effecting=True,
    ),
    ToolDefinition(
        name="create_email_template",
        description="Fill an email template of a given type and tone without addressing it.",
        parameters=_object(
            {
                "template_type": {
                    "type": "string",
                    "enum": [
                        "meeting_followup",
                        "meeting_reminder",
                        "meeting_confirmation",
                        "action_items",
                        "schedule_update",
                    ],
                    "description": "Template type",
                },
                "context": {"type": "string", "description": "What the email is about", "default": ""},
                "tone": {
                    "type": "string",
                    "enum": TONE_ENUM,
                    "description": "Writing tone (default professional)",
                    "default": "professional",
                },
            },
            ["template_type"],
        ),
    ),
    ToolDefinition(
        name="generate_productivity_report",
        description="Summarize calendar load with statistics and recommendations as a downloadable text report.",
        parameters=_object(
            {
                "report_type": {
                    "type": "string",
                    "enum": ["daily", "weekly", "monthly", "meeting_analysis", "time_distribution"],
                    "description": "Report period or focus",
                },
                "include_recommendations": {
                    "type": "boolean",
                    "description": "Include recommendations (default true)",
                    "default": True,
                },
            },
            ["report_type"],
        ),
    ),
    ToolDefinition(
        name="optimize_schedule",
        description="Suggest schedule improvements for a focus area.",
        parameters=_object(
            {
                "focus": {
                    "type": "string",
                    "enum": [
                        "reduce_meetings",
                        "consolidate_meetings",
                        "improve_productivity",
                        "block_focus_time",
                    ],
                    "description": "What to optimize for",
                },
            },
            ["focus"],
        ),
    ),
]


class ToolRegistry:
    """Lookup over tool definitions."""

    def __init__(self, definitions: Optional[List[ToolDefinition]] = None):
        self._definitions: Dict[str, ToolDefinition] = {
            d.name: d for d in (TOOL_DEFINITIONS if definitions is None else definitions)
        }

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._definitions.get(name)

    def require(self, name: str) -> ToolDefinition:
        """Definition for ``name``; raises UnknownOperationError when absent."""
        definition = self._definitions.get(name)
        if definition is None:
            raise UnknownOperationError(
                f"Unknown operation: {name}",
                context={"available": self.names},
            )
        return definition

    @property
    def names(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def to_llm_tools(self) -> List[Dict[str, Any]]:
        return [d.to_llm_tool() for d in self._definitions.values()]
