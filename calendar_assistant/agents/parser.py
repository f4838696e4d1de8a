"""
Text-form tool call parser.

Some models answer with a pseudo function call in plain text instead of a
structured tool call, e.g.::

    create_email_draft(to=["joe@gmail.com", "dan@gmail.com"], email_type="custom", context="Q3 planning")

``parse_function_calls`` recovers those calls. The scan is bracket-aware
and quote-aware, so commas inside lists, objects and strings do not split
parameters.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from .base import ToolCall

_CALL_START_RE = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_QUOTES = ("'", '"')


def _find_closing(text: str, open_index: int) -> Optional[int]:
    """Index of the ``)`` matching the ``(`` at ``open_index``, or None."""
    stack: List[str] = []
    quote: Optional[str] = None
    i = open_index
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif stack and char == stack[-1]:
            stack.pop()
            if not stack:
                return i
        i += 1
    return None


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` outside brackets and quotes."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            current.append(char)
            if char == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
            current.append(char)
        elif char in "([{":
            depth += 1
            current.append(char)
        elif char in ")]}":
            depth = max(0, depth - 1)
            current.append(char)
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    if "".join(current).strip():
        parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _split_pair(part: str) -> Optional[Tuple[str, str]]:
    """Split ``key=value`` or ``key: value`` at the first top-level sign."""
    match = re.match(r"\s*[\"']?([A-Za-z_][A-Za-z0-9_]*)[\"']?\s*[=:]\s*(.*)\Z", part, re.DOTALL)
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_value(raw: str) -> Any:
    """
    Decode one parameter value.

    Quoted strings are unwrapped, JSON arrays and objects are decoded, and
    anything else is kept as stripped text for the argument normalizer.
    """
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        inner = value[1:-1]
        if value[0] == '"':
            try:
                return json.loads(value)
            except ValueError:
                return inner
        return inner.replace("\\'", "'")

    if value[:1] in ("[", "{"):
        try:
            return json.loads(value)
        except ValueError:
            pass
        # Python-style single-quoted lists
        try:
            return json.loads(re.sub(r"'([^'\\]*)'", r'"\1"', value))
        except ValueError:
            return value

    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    return value


def parse_parameters(text: str) -> Dict[str, Any]:
    """Parse the inside of a call's parentheses into an argument dict."""
    body = text.strip()
    if not body:
        return {}

    if body.startswith("{") and body.endswith("}"):
        try:
            decoded = json.loads(body)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded

    arguments: Dict[str, Any] = {}
    for part in split_top_level(body):
        pair = _split_pair(part)
        if pair is None:
            logger.debug(f"Skipping positional parameter in text tool call: {part!r}")
            continue
        key, raw = pair
        arguments[key] = parse_value(raw)
    return arguments


def parse_function_calls(text: str, known_names: Optional[Iterable[str]] = None) -> List[ToolCall]:
    """
    Extract pseudo function calls from model text.

    Args:
        text: Assistant message content
        known_names: Only names in this set are treated as calls (default:
            any identifier followed by a parenthesis)

    Returns:
        Calls in order of appearance
    """
    if not text:
        return []

    names = set(known_names) if known_names is not None else None
    calls: List[ToolCall] = []
    position = 0

    while True:
        match = _CALL_START_RE.search(text, position)
        if match is None:
            break

        name = match.group(1)
        open_index = match.end() - 1
        if names is not None and name not in names:
            position = match.end()
            continue

        close_index = _find_closing(text, open_index)
        if close_index is None:
            logger.debug(f"Unterminated text tool call: {name}")
            break

        calls.append(ToolCall(name=name, arguments=parse_parameters(text[open_index + 1:close_index])))
        position = close_index + 1

    if calls:
        logger.info(f"Parsed {len(calls)} tool call(s) from text: {[c.name for c in calls]}")
    return calls
