"""
Tool call and tool result types shared by the router, handlers and chat layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..core.errors import ErrorKind, ToolError


@dataclass
class ToolCall:
    """A named operation with an untyped argument bag."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class ToolResult:
    """Result from a tool execution."""
    success: bool
    output: str
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    context: Dict[str, Any] = field(default_factory=dict)
    warning: Optional[str] = None
    execution_time: float = 0.0

    @classmethod
    def ok(cls, output: str, data: Optional[Dict[str, Any]] = None, warning: Optional[str] = None) -> "ToolResult":
        return cls(success=True, output=output, data=data or {}, warning=warning)

    @classmethod
    def failure(cls, error: ToolError) -> "ToolResult":
        return cls(
            success=False,
            output=error.message,
            error=error.message,
            error_kind=error.kind,
            context=dict(error.context),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "output": self.output,
            "data": self.data,
        }
        if self.error is not None:
            data["error"] = {
                "message": self.error,
                "errorKind": self.error_kind.value if self.error_kind else None,
                "context": self.context,
            }
        if self.warning:
            data["warning"] = self.warning
        return data
