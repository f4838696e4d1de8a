"""
Argument normalization for tool calls.

LLM-produced arguments arrive in whatever shape the model chose: a list
parameter may be a JSON array, a JSON-array string, a comma-separated
string or a bare scalar; numbers may be strings. ``normalize_arguments``
coerces a raw bag against the tool's JSON schema. It is idempotent.
"""

from __future__ import annotations

import copy
import json
import math
from typing import Any, Dict, List, Optional

from loguru import logger

from ..core.errors import ValidationError

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}


def coerce_list(value: Any) -> List[str]:
    """
    Coerce a list-typed argument to ``List[str]``.

    Accepts a native list, a JSON-array string, a comma-separated string
    or a bare scalar. A string that looks like a JSON array but does not
    parse is kept whole as a single entry.
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("[") and text.endswith("]"):
            try:
                decoded = json.loads(text)
            except ValueError:
                return [text]
            if isinstance(decoded, list):
                return coerce_list(decoded)
            return [text]
        if "," in text:
            return [part.strip() for part in text.split(",") if part.strip()]
        return [text]

    return [str(value)]


def coerce_number(value: Any, name: str, integer: bool = False):
    if isinstance(value, bool):
        raise ValidationError(f"'{name}' must be a number", context={"parameter": name, "value": value})
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            raise ValidationError(
                f"'{name}' must be a number, got {value!r}",
                context={"parameter": name, "value": value},
            )
    if isinstance(number, int):
        return number
    if not math.isfinite(number):
        raise ValidationError(
            f"'{name}' must be a finite number, got {value!r}",
            context={"parameter": name, "value": value},
        )
    if integer or number.is_integer():
        return int(number)
    return float(number)


def coerce_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"'{name}' must be true or false", context={"parameter": name, "value": value})


def coerce_object(value: Any, name: str) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        decoded = None
    if not isinstance(decoded, dict):
        raise ValidationError(f"'{name}' must be an object", context={"parameter": name, "value": value})
    return decoded


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_enum(value: str, name: str, spec: Dict[str, Any]) -> str:
    allowed = spec["enum"]
    candidate = value.strip().lower().replace(" ", "_")
    for option in allowed:
        if candidate == str(option).lower():
            return option
    if "default" in spec:
        logger.debug(f"Invalid value {value!r} for '{name}', using default {spec['default']!r}")
        return spec["default"]
    raise ValidationError(
        f"'{name}' must be one of: {', '.join(map(str, allowed))}",
        context={"parameter": name, "value": value, "allowed": list(allowed)},
    )


def coerce_value(value: Any, name: str, spec: Dict[str, Any]) -> Any:
    """Coerce one argument according to its schema."""
    kind = spec.get("type", "string")

    if kind == "array":
        return coerce_list(value)
    if kind == "integer":
        return coerce_number(value, name, integer=True)
    if kind == "number":
        return coerce_number(value, name)
    if kind == "boolean":
        return coerce_bool(value, name)
    if kind == "object":
        return coerce_object(value, name)

    if isinstance(value, (list, tuple)):
        text = ", ".join(str(v) for v in value)
    else:
        text = str(value).strip()
    if "enum" in spec:
        return _coerce_enum(text, name, spec)
    return text


def normalize_arguments(
    parameters: Dict[str, Any],
    arguments: Optional[Dict[str, Any]],
    tool_name: str = "",
) -> Dict[str, Any]:
    """
    Normalize a raw argument bag against a JSON-schema ``parameters`` block.

    Args:
        parameters: ``{"type": "object", "properties": ..., "required": [...]}``
        arguments: Raw arguments from the model
        tool_name: Used in log and error messages

    Returns:
        New dict with defaults applied, types coerced and unknown keys dropped

    Raises:
        ValidationError: A required argument is missing or cannot be coerced
    """
    arguments = dict(arguments or {})
    properties: Dict[str, Dict[str, Any]] = parameters.get("properties", {})
    required = set(parameters.get("required", []))
    normalized: Dict[str, Any] = {}

    for key in arguments:
        if key not in properties:
            logger.debug(f"Dropping unknown argument '{key}' for {tool_name or 'tool'}")

    missing = []
    for name, spec in properties.items():
        value = arguments.get(name)
        if _is_blank(value) or (spec.get("type") == "array" and not coerce_list(value)):
            if "default" in spec:
                normalized[name] = copy.deepcopy(spec["default"])
            elif name in required:
                missing.append(name)
            continue
        normalized[name] = coerce_value(value, name, spec)

    if missing:
        raise ValidationError(
            f"Missing required argument(s) for {tool_name or 'tool'}: {', '.join(missing)}",
            context={"missing": missing},
        )

    return normalized
