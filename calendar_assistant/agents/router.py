"""
Tool router: the single entry point for executing a tool call.

Pipeline per call:
1. Look up the operation (unknown names raise UnknownOperationError)
2. Normalize arguments against the operation's schema
3. For side-effecting operations, return the cached result of an
   identical call made within the duplicate window
4. Dispatch to the handler and convert ToolErrors into error results
5. Remember side-effecting results in the duplicate-call cache
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from loguru import logger

from ..core.errors import ErrorKind, ToolError
from .arguments import normalize_arguments
from .base import ToolCall, ToolResult
from .context import ToolContext
from .handlers import HANDLERS, Handler
from .registry import ToolDefinition, ToolRegistry


class ToolRouter:
    """
    Validates, de-duplicates and dispatches tool calls.

    Args:
        context: Shared handler state
        registry: Tool catalog (default: all built-in tools)
        handlers: Operation name -> handler (default: built-in handlers)
    """

    def __init__(
        self,
        context: ToolContext,
        registry: Optional[ToolRegistry] = None,
        handlers: Optional[Dict[str, Handler]] = None,
    ):
        self.context = context
        self.registry = registry or ToolRegistry()
        self.handlers = dict(HANDLERS if handlers is None else handlers)

    def dedupe_arguments(
        self,
        definition: ToolDefinition,
        arguments: Dict[str, Any],
        original_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        The subset of arguments that identifies a duplicate call.

        Email drafts are keyed on who they go to and their type, so the same
        people encoded differently still collide. Everything else is keyed on
        all normalized arguments.
        """
        if definition.name != "create_email_draft":
            return arguments

        resolver = self.context.resolver
        recipients = resolver.fingerprint(arguments.get("to"), arguments.get("context"))
        if not recipients:
            recipients = resolver.fingerprint(None, original_message)

        relevant: Dict[str, Any] = {
            "recipients": recipients,
            "email_type": arguments.get("email_type"),
        }
        if not recipients:
            relevant["context"] = arguments.get("context")
        return relevant

    async def execute(self, call: ToolCall, original_message: Optional[str] = None) -> ToolResult:
        """
        Execute a tool call.

        Args:
            call: Operation name and raw arguments
            original_message: The user's message, used for date recalculation
                and recipient resolution

        Returns:
            ToolResult (errors are reported in the result)

        Raises:
            UnknownOperationError: The operation is not registered
        """
        definition = self.registry.require(call.name)
        started = time.time()
        logger.debug(f"Executing tool {call.name} with {call.arguments}")

        try:
            arguments = normalize_arguments(definition.parameters, call.arguments, definition.name)
        except ToolError as e:
            logger.warning(f"Invalid arguments for {call.name}: {e.message}")
            result = ToolResult.failure(e)
            result.execution_time = time.time() - started
            return result
        except Exception as e:
            logger.exception(f"Unexpected error normalizing arguments for {call.name}: {e}")
            result = ToolResult(
                success=False,
                output=f"Error executing {call.name}: {e}",
                error=str(e),
                error_kind=ErrorKind.VALIDATION,
                context={"operation": call.name},
            )
            result.execution_time = time.time() - started
            return result

        key = None
        if definition.side_effecting:
            key = self.context.cache.make_key(
                definition.name,
                self.dedupe_arguments(definition, arguments, original_message),
            )
            entry = self.context.cache.get(key)
            if entry is not None:
                logger.info(f"Duplicate {call.name} call within window, returning cached result")
                return entry.cached_result

        try:
            handler = self.handlers[definition.name]
            result = await handler(self.context, arguments, original_message)
        except ToolError as e:
            logger.warning(f"Tool {call.name} failed ({e.kind.value}): {e.message}")
            result = ToolResult.failure(e)
        except Exception as e:
            logger.exception(f"Unexpected error in tool {call.name}: {e}")
            result = ToolResult(
                success=False,
                output=f"Error executing {call.name}: {e}",
                error=str(e),
                error_kind=ErrorKind.INTERNAL,
                context={"operation": call.name},
            )

        result.execution_time = time.time() - started

        if key is not None:
            self.context.cache.put(key, definition.name, arguments, result)

        logger.info(f"Tool {call.name} {'succeeded' if result.success else 'failed'} in {result.execution_time:.3f}s")
        return result
