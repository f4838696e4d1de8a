"""
Recipient resolution for email drafting.

Decides whether an email request produces one message to one person
(single), one shared message to many (group), or one personalized
message per person (fanout). The decision is an ordered rule table;
the first matching rule wins and its order is the precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from ..agents.arguments import coerce_list
from ..core.errors import AmbiguousIntentError

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

DEFAULT_FALLBACK = ["joe@gmail.com", "dan@gmail.com", "sally@gmail.com"]
DEFAULT_CONTACTS = {
    "joe": "joe@gmail.com",
    "dan": "dan@gmail.com",
    "sally": "sally@gmail.com",
}

# Explicit "one shared email" wording in the user's message
GROUP_PHRASES = (
    "one email for all",
    "one email to all",
    "email for all of them",
    "email to all of them",
    "single email to all",
    "email to all three",
    "group email",
    "one email",
    "single email",
)

# Context is model-written; only unambiguous wording counts there
CONTEXT_GROUP_PHRASES = (
    "one email to all",
    "email to all three",
    "group email",
    "single email to all",
)

INDIVIDUAL_PHRASES = (
    "each of them",
    "each person",
    "for each",
    "individually",
    "individual email",
    "separately",
    "separate email",
)


class ResolutionMode(Enum):
    SINGLE = "single"
    GROUP = "group"
    FANOUT = "fanout"


@dataclass
class RecipientRequest:
    """Inputs to the rule table, pre-digested."""
    to: List[str]
    raw_to: Any
    context: str
    message: str
    known_names: List[str] = field(default_factory=list)

    @property
    def explicit_multiple(self) -> bool:
        return len(self.to) > 1 or (isinstance(self.raw_to, str) and "," in self.raw_to)

    @property
    def has_group_phrase(self) -> bool:
        message = self.message.lower()
        context = self.context.lower()
        return (
            any(p in message for p in GROUP_PHRASES)
            or any(p in context for p in CONTEXT_GROUP_PHRASES)
        )

    @property
    def has_individual_phrase(self) -> bool:
        message = self.message.lower()
        return any(p in message for p in INDIVIDUAL_PHRASES)


@dataclass
class Resolution:
    """Outcome of recipient resolution."""
    mode: ResolutionMode
    recipients: List[str]
    rule: str
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "recipients": list(self.recipients),
            "rule": self.rule,
            "usedFallback": self.used_fallback,
        }


@dataclass
class RecipientRule:
    name: str
    predicate: Callable[[RecipientRequest], bool]
    mode: ResolutionMode


RULES: List[RecipientRule] = [
    RecipientRule("explicit_list", lambda r: r.explicit_multiple, ResolutionMode.GROUP),
    RecipientRule("group_phrase", lambda r: r.has_group_phrase, ResolutionMode.GROUP),
    RecipientRule(
        "individual_phrase",
        lambda r: r.has_individual_phrase or (len(r.known_names) >= 1 and not r.has_group_phrase),
        ResolutionMode.FANOUT,
    ),
    RecipientRule("multiple_known_names", lambda r: len(r.known_names) > 1, ResolutionMode.FANOUT),
]


def extract_emails(text: Optional[str]) -> List[str]:
    """RFC-like addresses in order of appearance, de-duplicated."""
    seen: List[str] = []
    for match in EMAIL_RE.findall(text or ""):
        if match.lower() not in (s.lower() for s in seen):
            seen.append(match)
    return seen


class RecipientResolver:
    """
    Classifies an email request and produces a non-empty recipient list.

    Args:
        known_contacts: Lower-case first name -> address
        fallback: Used when nothing can be extracted (non-strict mode)
        strict: Raise AmbiguousIntentError instead of using the fallback
    """

    def __init__(
        self,
        known_contacts: Optional[Dict[str, str]] = None,
        fallback: Optional[Sequence[str]] = None,
        strict: bool = False,
    ):
        self.known_contacts = {
            k.lower(): v for k, v in (DEFAULT_CONTACTS if known_contacts is None else known_contacts).items()
        }
        self.fallback = list(DEFAULT_FALLBACK if fallback is None else fallback)
        self.strict = strict
        self._name_re = None
        if self.known_contacts:
            names = sorted(self.known_contacts, key=len, reverse=True)
            self._name_re = re.compile(r"\b(" + "|".join(re.escape(n) for n in names) + r")\b", re.IGNORECASE)

    @classmethod
    def from_config(cls, recipients_config) -> "RecipientResolver":
        return cls(
            known_contacts=recipients_config.known_contacts,
            fallback=recipients_config.fallback,
            strict=recipients_config.strict,
        )

    def known_names(self, text: Optional[str]) -> List[str]:
        """Known contact names mentioned in text, in order, de-duplicated."""
        if not text or self._name_re is None:
            return []
        names: List[str] = []
        for match in self._name_re.findall(text):
            name = match.lower()
            if name not in names:
                names.append(name)
        return names

    def extract(self, to: Any, context: Optional[str], message: Optional[str] = None) -> List[str]:
        """
        Recipient list in priority order.

        Explicit ``to`` entries, then addresses in the context, then known
        contact names in the context, then the same two in the user's
        message, then the fallback triple.
        """
        explicit = coerce_list(to)
        if explicit:
            return explicit

        for text in (context, message):
            emails = extract_emails(text)
            if emails:
                return emails
            names = self.known_names(text)
            if names:
                return [self.known_contacts[n] for n in names]

        if self.strict:
            raise AmbiguousIntentError(
                "Could not determine who the email is for. Please name the recipients.",
                context={"to": to, "context": context},
            )

        logger.info("No recipients found in request, using fallback list")
        return list(self.fallback)

    def build_request(self, to: Any, context: Optional[str], message: Optional[str]) -> RecipientRequest:
        return RecipientRequest(
            to=coerce_list(to),
            raw_to=to,
            context=context or "",
            message=message or "",
            known_names=self.known_names(context),
        )

    def resolve(self, to: Any, context: Optional[str], message: Optional[str] = None) -> Resolution:
        """
        Classify the request.

        Args:
            to: Explicit recipients (list, JSON/comma string, or single address)
            context: Model-written description of the email
            message: The user's original message

        Returns:
            Resolution with mode, non-empty recipients and the rule that matched
        """
        request = self.build_request(to, context, message)

        for rule in RULES:
            if rule.predicate(request):
                if rule.name == "explicit_list":
                    recipients = request.to
                else:
                    recipients = self.extract(request.to, context, message)
                return self._resolution(rule.mode, recipients, rule.name)

        recipients = self.extract(request.to, context, message)
        mode = ResolutionMode.SINGLE if len(recipients) == 1 else ResolutionMode.FANOUT
        return self._resolution(mode, recipients, "default")

    def _resolution(self, mode: ResolutionMode, recipients: List[str], rule: str) -> Resolution:
        used_fallback = recipients == self.fallback
        logger.debug(f"Recipients resolved by '{rule}': {mode.value} -> {recipients}")
        return Resolution(mode=mode, recipients=recipients, rule=rule, used_fallback=used_fallback)

    def fingerprint(self, to: Any, context: Optional[str]) -> List[str]:
        """
        Sorted set of every recipient named by a call.

        Two email requests naming the same people are duplicates no matter
        how the names were encoded.
        """
        names = {a.lower() for a in coerce_list(to)}
        names.update(e.lower() for e in extract_emails(context))
        names.update(self.known_contacts[n].lower() for n in self.known_names(context))
        return sorted(names)
