"""
Email drafting for the Calendar Assistant.

Provides:
- Static email templates by type and tone
- Gmail compose URLs and mailto: links (no Gmail API calls needed)
- Meeting follow-up and confirmation drafts
- Scheduling emails that list open afternoon/evening slots

Drafts are returned as links the user opens in their own mail client;
nothing is sent from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from ..scheduling.models import Event, SchedulingConstraints, format_clock

GMAIL_COMPOSE_URL = "https://mail.google.com/mail/"

TONES = ("formal", "casual", "friendly", "professional")

SIGN_OFF = {
    "formal": "Best regards,\n[Your Name]",
    "professional": "Best regards,\n[Your Name]",
    "casual": "Thanks!\n[Your Name]",
    "friendly": "Best,\n[Your Name]",
}

GREETING = {
    "formal": "Dear [Name],\n\nI hope this email finds you well.",
    "professional": "Dear [Name],\n\nI hope this email finds you well.",
    "casual": "Hi [Name],",
    "friendly": "Hi [Name],\n\nHope you're doing well!",
}


# =============================================================================
# Templates
# =============================================================================

# (subject, body) per template type and tone; {context} is substituted
EMAIL_TEMPLATES: Dict[str, Dict[str, Tuple[str, str]]] = {
    "meeting_request": {
        "formal": (
            "Meeting Request - {context}",
            "I would like to schedule a meeting to discuss {context}.\n\n"
            "I am available on [date options] and would appreciate 30 minutes of your time.\n\n"
            "Please let me know what works best for your schedule.",
        ),
        "casual": (
            "Quick chat about {context}",
            "I'd love to catch up about {context}.\n\n"
            "Are you free for a quick 30-minute chat on [date options]?",
        ),
        "friendly": (
            "Let's meet to discuss {context}",
            "I'd really appreciate the chance to discuss {context} with you.\n\n"
            "Would you be available for a 30-minute meeting on [date options]?\n\n"
            "Looking forward to hearing from you!",
        ),
    },
    "follow_up": {
        "formal": (
            "Follow-up: {context}",
            "Thank you for taking the time to meet with me regarding {context}.\n\n"
            "I wanted to follow up on the key points we discussed:\n"
            "- [Key point 1]\n- [Key point 2]\n- [Action items]\n\n"
            "Please let me know if you have any questions.",
        ),
        "casual": (
            "Quick follow-up on {context}",
            "Thanks for the great meeting about {context}!\n\n"
            "Just wanted to follow up on:\n"
            "- [Key point 1]\n- [Key point 2]\n- [Next steps]\n\n"
            "Let me know if you need anything else!",
        ),
        "friendly": (
            "Following up on our {context} discussion",
            "It was great meeting with you about {context}!\n\n"
            "Here's a quick summary of what we covered:\n"
            "- [Key point 1]\n- [Key point 2]\n- [Action items]\n\n"
            "Feel free to reach out if you have any questions!",
        ),
    },
    "project_update": {
        "formal": (
            "Project Update - {context}",
            "I wanted to provide you with an update on the {context} project.\n\n"
            "Current Status:\n- [Status update]\n- [Progress made]\n- [Next steps]\n\n"
            "Please let me know if you require additional information.",
        ),
        "casual": (
            "Quick update on {context}",
            "Just wanted to give you a quick update on {context}:\n\n"
            "- [Status update]\n- [Progress made]\n- [Next steps]",
        ),
        "friendly": (
            "Update on {context}",
            "Here's the latest on {context}:\n\n"
            "- [Status update]\n- [Progress made]\n- [Next steps]\n\n"
            "Feel free to reach out with any questions!",
        ),
    },
    "meeting_confirmation": {
        "formal": (
            "Meeting Confirmation - {context}",
            "This email confirms our meeting regarding {context}.\n\n"
            "Meeting Details:\n- Date: [Meeting Date]\n- Time: [Meeting Time]\n"
            "- Location: [Meeting Location/Virtual Platform]\n\n"
            "Please confirm your attendance. If you need to reschedule, let me know as soon as possible.",
        ),
        "casual": (
            "Confirming our meeting about {context}",
            "Just wanted to confirm our meeting about {context}.\n\n"
            "When: [Meeting Date & Time]\nWhere: [Meeting Location/Virtual Platform]\n\n"
            "Can you confirm you'll be there?",
        ),
        "friendly": (
            "Meeting confirmation for {context}",
            "I'm confirming our meeting about {context}.\n\n"
            "Details:\n- Date: [Meeting Date]\n- Time: [Meeting Time]\n"
            "- Location: [Meeting Location/Virtual Platform]\n\n"
            "Please confirm you can make it. Looking forward to it!",
        ),
    },
    "general": {
        "formal": (
            "{context}",
            "{context}\n\nPlease let me know if you have any questions or require additional information.",
        ),
        "casual": ("{context}", "{context}\n\nLet me know if you need anything!"),
        "friendly": ("{context}", "{context}\n\nFeel free to reach out with any questions!"),
    },
}

# Tool-facing email types mapped onto the template table
TEMPLATE_ALIASES = {
    "meeting_followup": "follow_up",
    "action_items": "follow_up",
    "meeting_reminder": "meeting_request",
    "schedule_update": "project_update",
    "custom": "general",
}


@dataclass
class EmailTemplate:
    """A drafted email."""
    subject: str
    body: str
    type: str
    tone: str = "professional"
    to: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"subject": self.subject, "body": self.body, "type": self.type, "tone": self.tone}
        if self.to is not None:
            data["to"] = self.to
        return data


def create_email_template(template_type: str, context: str, tone: str = "professional") -> EmailTemplate:
    """
    Fill a template.

    Unknown types fall back to the general template; unknown tones to
    professional. "professional" shares the formal wording.
    """
    key = TEMPLATE_ALIASES.get(template_type, template_type)
    tone = tone if tone in TONES else "professional"
    table = EMAIL_TEMPLATES.get(key) or EMAIL_TEMPLATES["general"]
    subject, body = table.get("formal" if tone == "professional" else tone, table["formal"])

    context = context or "our meeting"
    text = f"{GREETING[tone]}\n\n{body}\n\n{SIGN_OFF[tone]}"
    return EmailTemplate(
        subject=subject.replace("{context}", context),
        body=text.replace("{context}", context),
        type=template_type,
        tone=tone,
    )


# =============================================================================
# Compose links
# =============================================================================

def gmail_compose_url(to: str, subject: str, body: str) -> str:
    """Gmail web compose window pre-filled with recipient, subject and body."""
    params = urlencode({"view": "cm", "fs": "1", "to": to, "su": subject, "body": body})
    return f"{GMAIL_COMPOSE_URL}?{params}"


def mailto_link(to: str, subject: str, body: str) -> str:
    """mailto: link for any mail client."""
    query = urlencode({"subject": subject, "body": body}, quote_via=quote)
    return f"mailto:{quote(to, safe='@,')}?{query}"


def compose_links(to: str, template: EmailTemplate) -> Dict[str, str]:
    return {
        "gmailComposeUrl": gmail_compose_url(to, template.subject, template.body),
        "mailtoUrl": mailto_link(to, template.subject, template.body),
    }


def first_name(address: str) -> str:
    """Local part of an address, used as a greeting."""
    return address.split("@")[0].strip() or "there"


# =============================================================================
# Meeting emails
# =============================================================================

def meeting_followup_template(event: Event, attendee_email: str) -> EmailTemplate:
    """Follow-up note for a past meeting."""
    body = (
        f"Hi {first_name(attendee_email)},\n\n"
        f"Thank you for attending our meeting about \"{event.title}\" on {event.start.strftime('%B')} {event.start.day}.\n\n"
        "I wanted to follow up on the key points we discussed:\n"
        "- [Key point 1]\n- [Key point 2]\n- [Action items]\n\n"
        "Please let me know if you have any questions or if there's anything else you'd like to discuss.\n\n"
        f"{SIGN_OFF['professional']}"
    )
    return EmailTemplate(
        subject=f"Follow-up: {event.title}",
        body=body,
        type="follow_up",
        tone="professional",
        to=attendee_email,
    )


def meeting_confirmation_template(to: str, context: str) -> EmailTemplate:
    """Confirmation draft that asks the recipient to pick a time."""
    body = (
        f"Dear {first_name(to)},\n\n"
        f"I hope this email finds you well. This email confirms our meeting regarding {context}.\n\n"
        "Meeting Details:\n"
        f"- Topic: {context}\n"
        "- Date: [Please confirm your preferred date]\n"
        "- Time: [Please confirm your preferred time - I'm available afternoons and evenings]\n"
        "- Location: [Virtual meeting or in-person - please let me know your preference]\n\n"
        "Please confirm your availability and let me know if you need to reschedule.\n\n"
        f"{SIGN_OFF['professional']}"
    )
    return EmailTemplate(
        subject=f"Meeting Confirmation - {context}",
        body=body,
        type="meeting_confirmation",
        tone="professional",
        to=to,
    )


# Hours offered in scheduling emails: afternoons 1-5 PM, evenings 6-8 PM
OUTREACH_HOURS = (13, 14, 15, 16, 17, 18, 19, 20)


def find_outreach_slots(
    events: Sequence[Event],
    constraints: SchedulingConstraints,
    now: datetime,
    days: int = 14,
    limit: int = 10,
) -> List[Dict[str, str]]:
    """
    Open hour marks over the next ``days`` weekdays for scheduling emails.

    An hour mark is open when it does not fall inside any event.
    """
    now = constraints.localize(now)
    slots: List[Dict[str, str]] = []

    for offset in range(days):
        day = now.date() + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for hour in OUTREACH_HOURS:
            mark = datetime(day.year, day.month, day.day, hour, tzinfo=constraints.tzinfo)
            busy = any(
                constraints.localize(e.start) <= mark < constraints.localize(e.end)
                for e in events
            )
            if not busy:
                slots.append({
                    "date": f"{day.strftime('%A, %b')} {day.day}",
                    "time": format_clock(mark),
                })
            if len(slots) >= limit:
                return slots

    return slots


def scheduling_subject(context: str) -> str:
    context = context.lower()
    if "project" in context:
        return "Project Meeting Scheduling"
    if "discussion" in context:
        return "Meeting Discussion Scheduling"
    if "kickoff" in context:
        return "Project Kickoff Meeting"
    return "Meeting Scheduling Request"


def _slots_text(slots: Sequence[Dict[str, str]]) -> str:
    if not slots:
        return "- [No open slots found - please suggest a time]"
    return "\n".join(f"- {slot['date']} at {slot['time']}" for slot in slots)


def _scheduling_body(greeting: str, audience: str, context: str, slots: Sequence[Dict[str, str]]) -> str:
    return (
        f"Dear {greeting},\n\n"
        f"I hope this email finds you well. I'd like to schedule a meeting with {audience} regarding {context}.\n\n"
        "I'm keeping my mornings for focused work, so I'm looking for afternoon or evening slots.\n\n"
        "Based on my current availability, these times work for me:\n"
        f"{_slots_text(slots)}\n\n"
        "Meeting Details:\n"
        "- Duration: 30-60 minutes (flexible)\n"
        "- Preferred Times: Afternoons (1-5 PM) or evenings (6-8 PM)\n"
        "- Format: Virtual or in-person, whichever works better\n\n"
        "Please let me know which of these slots works best, or suggest another time.\n\n"
        f"{SIGN_OFF['professional']}"
    )


def personal_scheduling_email(
    recipient: str,
    context: str,
    slots: Sequence[Dict[str, str]],
    tone: str = "professional",
) -> EmailTemplate:
    """One personalized scheduling email (fanout mode)."""
    return EmailTemplate(
        subject=scheduling_subject(context),
        body=_scheduling_body(first_name(recipient), "you", context, slots),
        type="meeting_request",
        tone=tone,
        to=recipient,
    )


def group_scheduling_email(
    recipients: Sequence[str],
    context: str,
    slots: Sequence[Dict[str, str]],
    tone: str = "professional",
) -> EmailTemplate:
    """One shared scheduling email addressed to everyone (group mode)."""
    names = ", ".join(first_name(r) for r in recipients)
    audience = "you" if len(recipients) == 1 else f"the {len(recipients)} of you"
    return EmailTemplate(
        subject=scheduling_subject(context),
        body=_scheduling_body(names, audience, context, slots),
        type="meeting_request",
        tone=tone,
        to=", ".join(recipients),
    )
