"""
Conversational layer for the Calendar Assistant.

Sends the user's message and the tool catalog to the LLM, executes the
tool calls it returns through the router, and feeds results back until
the model answers in text or the round limit is reached. When the model
writes a call as text instead of a structured tool call, the call is
parsed out of the text and executed once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from loguru import logger

from ..core.errors import UnknownOperationError
from ..core.llm import BaseLLMClient, LLMResponse, Message
from .base import ToolCall, ToolResult
from .parser import parse_function_calls
from .router import ToolRouter

SYSTEM_PROMPT = """You are a calendar assistant. You help the user see their schedule, find meeting times, create events, and draft emails.

Today is {today}. The user's timezone is {timezone}.

Guidelines:
- Use the tools to read the calendar before answering questions about it
- Give times in ISO 8601 with the user's timezone when calling tools
- Only pass email addresses the user actually mentioned
- Keep answers short and include links from tool results"""


class ConversationStore(ABC):
    """Persistence for chat history."""

    @abstractmethod
    def append(self, message: Message) -> None:
        pass

    @abstractmethod
    def load(self) -> List[Message]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class InMemoryConversationStore(ConversationStore):
    """Sliding window of recent messages."""

    def __init__(self, max_messages: int = 20):
        self._messages: Deque[Message] = deque(maxlen=max_messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def load(self) -> List[Message]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()


@dataclass
class AssistantReply:
    """What one chat turn produced."""
    text: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    results: List[ToolResult] = field(default_factory=list)
    rounds: int = 0
    used_text_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "toolCalls": [{"name": c.name, "arguments": c.arguments} for c in self.tool_calls],
            "results": [r.to_dict() for r in self.results],
            "rounds": self.rounds,
            "usedTextFallback": self.used_text_fallback,
        }


class ChatAssistant:
    """
    Tool-calling chat loop.

    Args:
        llm: Client used for generation
        router: Executes tool calls
        store: Chat history (default: in-memory window)
        max_tool_rounds: Upper bound on model/tool round trips per message
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        router: ToolRouter,
        store: Optional[ConversationStore] = None,
        max_tool_rounds: int = 3,
    ):
        self.llm = llm
        self.router = router
        self.store = store or InMemoryConversationStore()
        self.max_tool_rounds = max_tool_rounds

    def system_prompt(self, now: Optional[datetime] = None) -> str:
        now = now or self.router.context.now()
        return SYSTEM_PROMPT.format(
            today=now.strftime("%A, %B %d, %Y"),
            timezone=self.router.context.constraints.timezone,
        )

    async def _run(self, call: ToolCall, user_message: str) -> ToolResult:
        try:
            return await self.router.execute(call, user_message)
        except UnknownOperationError as e:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return ToolResult.failure(e)

    async def chat(self, user_message: str) -> AssistantReply:
        """
        Handle one user message.

        Args:
            user_message: The user's text

        Returns:
            AssistantReply with the final text and every executed call
        """
        messages = [Message(role="system", content=self.system_prompt())]
        messages.extend(self.store.load())
        messages.append(Message(role="user", content=user_message))

        tools = self.router.registry.to_llm_tools()
        reply = AssistantReply(text="")

        response: LLMResponse = await self.llm.agenerate(messages, tools=tools)

        while response.has_tool_calls and reply.rounds < self.max_tool_rounds:
            reply.rounds += 1
            messages.append(Message(role="assistant", content=response.content or "", tool_calls=response.tool_calls))

            for raw in response.tool_calls:
                call = ToolCall(name=raw["name"], arguments=raw.get("arguments", {}), id=raw.get("id"))
                result = await self._run(call, user_message)
                reply.tool_calls.append(call)
                reply.results.append(result)
                messages.append(Message(
                    role="tool",
                    content=result.output,
                    tool_call_id=call.id,
                    name=call.name,
                ))

            response = await self.llm.agenerate(messages, tools=tools)

        if response.has_tool_calls:
            logger.warning(f"Stopped after {self.max_tool_rounds} tool rounds")
            reply.text = self._summarize(reply.results) or response.content
        elif reply.rounds:
            reply.text = response.content or self._summarize(reply.results)
        else:
            reply.text = await self._text_fallback(response.content, user_message, reply)

        self.store.append(Message(role="user", content=user_message))
        self.store.append(Message(role="assistant", content=reply.text))
        return reply

    async def _text_fallback(self, content: str, user_message: str, reply: AssistantReply) -> str:
        calls = parse_function_calls(content, self.router.registry.names)
        if not calls:
            return content

        reply.used_text_fallback = True
        reply.rounds = 1
        for call in calls:
            result = await self._run(call, user_message)
            reply.tool_calls.append(call)
            reply.results.append(result)

        return self._summarize(reply.results)

    @staticmethod
    def _summarize(results: List[ToolResult]) -> str:
        return "\n\n".join(r.output for r in results if r.output)
