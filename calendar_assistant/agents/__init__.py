"""
Agent layer for the Calendar Assistant.

Modules:
- arguments: Argument normalization for model-produced tool calls
- registry: Tool catalog and LLM tool schemas
- handlers: Tool implementations
- router: Validation, duplicate suppression and dispatch
- parser: Text-form tool call recovery
- assistant: Tool-calling chat loop

Import ``router`` and ``assistant`` directly; this package only re-exports
the leaf modules so ``tools`` can depend on ``agents.arguments``.
"""

from .arguments import coerce_list, normalize_arguments
from .base import ToolCall, ToolResult
from .registry import TOOL_DEFINITIONS, ToolDefinition, ToolRegistry

__all__ = [
    "coerce_list",
    "normalize_arguments",
    "ToolCall",
    "ToolResult",
    "TOOL_DEFINITIONS",
    "ToolDefinition",
    "ToolRegistry",
]
