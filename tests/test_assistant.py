"""
Tests for the tool-calling chat loop.

Uses a scripted LLM client so no provider is contacted.

Tests:
- Native tool calls and result feedback
- Text-form call recovery
- Round limit and unknown tools
- Conversation history
- Registry and message serialization
"""

import json
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from calendar_assistant.agents.assistant import (
    ChatAssistant,
    InMemoryConversationStore,
)
from calendar_assistant.agents.registry import ToolRegistry
from calendar_assistant.core.errors import ErrorKind
from calendar_assistant.core.llm import (
    BaseLLMClient,
    GroqClient,
    LLMProvider,
    LLMResponse,
    Message,
    create_llm_client,
)


class ScriptedClient(BaseLLMClient):
    """Replays canned responses; the last one repeats."""

    def __init__(self, responses: List[LLMResponse]):
        super().__init__(model="scripted")
        self.responses = list(responses)
        self.requests: List[List[Message]] = []

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.GROQ

    def is_available(self) -> bool:
        return True

    async def agenerate(self, messages, tools=None, **kwargs) -> LLMResponse:
        self.requests.append(list(messages))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def text(content: str) -> LLMResponse:
    return LLMResponse(content=content, provider=LLMProvider.GROQ, model="scripted")


def calls(*items: Dict[str, Any]) -> LLMResponse:
    return LLMResponse(
        content="",
        provider=LLMProvider.GROQ,
        model="scripted",
        tool_calls=list(items),
        finish_reason="tool_calls",
    )


def tool_call(call_id: str, name: str, **arguments) -> Dict[str, Any]:
    return {"id": call_id, "name": name, "arguments": arguments}


def make_assistant(router, responses, max_tool_rounds=3, store=None):
    llm = ScriptedClient(responses)
    return ChatAssistant(llm, router, store=store, max_tool_rounds=max_tool_rounds), llm


class TestChatLoop:
    """Tests for ChatAssistant.chat."""

    @pytest.mark.asyncio
    async def test_plain_answer(self, router):
        assistant, llm = make_assistant(router, [text("Happy to help!")])
        reply = await assistant.chat("hi")

        assert reply.text == "Happy to help!"
        assert reply.rounds == 0
        assert reply.tool_calls == []
        assert len(llm.requests) == 1

    @pytest.mark.asyncio
    async def test_native_tool_call(self, router):
        assistant, llm = make_assistant(router, [
            calls(tool_call("c1", "fetch_events", time_range="today")),
            text("Your day is clear."),
        ])
        reply = await assistant.chat("what's on today?")

        assert reply.text == "Your day is clear."
        assert reply.rounds == 1
        assert reply.results[0].success

        second = llm.requests[1]
        assert second[-2].role == "assistant"
        assert second[-2].tool_calls[0]["id"] == "c1"
        assert second[-1].role == "tool"
        assert second[-1].tool_call_id == "c1"
        assert second[-1].content == "No events found for today."

    @pytest.mark.asyncio
    async def test_empty_final_answer_uses_results(self, router):
        assistant, _ = make_assistant(router, [
            calls(tool_call("c1", "fetch_events", time_range="today")),
            text(""),
        ])
        reply = await assistant.chat("what's on today?")
        assert reply.text == "No events found for today."

    @pytest.mark.asyncio
    async def test_text_form_call_is_executed_once(self, router):
        assistant, llm = make_assistant(router, [text(
            'Here you go: create_calendar_link(title="Lunch", '
            'start_time="2025-06-04T12:00:00", end_time="2025-06-04T13:00:00")'
        )])
        reply = await assistant.chat("give me a link for lunch")

        assert reply.used_text_fallback is True
        assert reply.rounds == 1
        assert [c.name for c in reply.tool_calls] == ["create_calendar_link"]
        assert reply.text.startswith('Calendar link for "Lunch"')
        assert len(llm.requests) == 1

    @pytest.mark.asyncio
    async def test_round_limit(self, router):
        assistant, llm = make_assistant(
            router,
            [calls(tool_call("c1", "optimize_schedule", focus="block_focus_time"))],
            max_tool_rounds=2,
        )
        reply = await assistant.chat("help me focus")

        assert reply.rounds == 2
        assert len(llm.requests) == 3
        assert reply.text.startswith("Suggestions to block focus time:")

    @pytest.mark.asyncio
    async def test_unknown_tool_is_reported_to_model(self, router):
        assistant, llm = make_assistant(router, [
            calls(tool_call("c1", "teleport", destination="mars")),
            text("I can't do that."),
        ])
        reply = await assistant.chat("teleport me")

        assert reply.results[0].success is False
        assert reply.results[0].error_kind == ErrorKind.UNKNOWN_OPERATION
        assert llm.requests[1][-1].role == "tool"
        assert reply.text == "I can't do that."

    @pytest.mark.asyncio
    async def test_repeated_draft_in_one_turn(self, router):
        draft = dict(email_type="custom", context="Offsite planning with Joe and Dan")
        assistant, _ = make_assistant(router, [
            calls(
                tool_call("c1", "create_email_draft", **draft),
                tool_call("c2", "create_email_draft", **draft),
            ),
            text("Drafted."),
        ])
        reply = await assistant.chat("email joe and dan about the offsite")

        first, second = reply.results
        assert second is first
        assert len(first.data["emailTemplates"]) == 2

    @pytest.mark.asyncio
    async def test_message_drives_date_recalculation(self, router, at):
        assistant, _ = make_assistant(router, [
            calls(tool_call(
                "c1", "create_calendar_event",
                title="Sync", start_time="2024-01-10T11:00:00", end_time="2024-01-10T12:00:00",
            )),
            text("Done."),
        ])
        await assistant.chat("book a sync next Wednesday at 11 AM")
        assert router.context.events[0].start == at(4, 11)


class TestHistory:
    """Tests for the conversation store."""

    @pytest.mark.asyncio
    async def test_history_is_sent_with_next_message(self, router):
        assistant, llm = make_assistant(router, [text("First answer"), text("Second answer")])
        await assistant.chat("first question")
        await assistant.chat("second question")

        sent = llm.requests[1]
        assert [m.role for m in sent] == ["system", "user", "assistant", "user"]
        assert sent[1].content == "first question"
        assert sent[2].content == "First answer"

    def test_window(self):
        store = InMemoryConversationStore(max_messages=2)
        for i in range(3):
            store.append(Message(role="user", content=str(i)))
        assert [m.content for m in store.load()] == ["1", "2"]
        store.clear()
        assert store.load() == []

    def test_system_prompt(self, router, now):
        assistant, _ = make_assistant(router, [text("")])
        prompt = assistant.system_prompt()
        assert "Monday, June 02, 2025" in prompt
        assert "America/Los_Angeles" in prompt


class TestRegistry:
    """Tests for the tool catalog."""

    def test_catalog(self):
        registry = ToolRegistry()
        assert len(registry) == 11
        assert "create_email_draft" in registry
        assert {d.name for d in registry if d.side_effecting} == {
            "create_calendar_event",
            "create_email_draft",
            "create_meeting_followup",
        }

    def test_llm_schema(self):
        tools = ToolRegistry().to_llm_tools()
        fetch = next(t for t in tools if t["function"]["name"] == "fetch_events")
        assert fetch["type"] == "function"
        assert fetch["function"]["parameters"]["required"] == ["time_range"]

    def test_get_unknown(self):
        assert ToolRegistry().get("nope") is None


class TestLLMTypes:
    """Tests for messages and client construction."""

    def test_message_with_tool_calls(self):
        message = Message(
            role="assistant",
            content="",
            tool_calls=[{"id": "c1", "name": "fetch_events", "arguments": {"time_range": "today"}}],
        )
        data = message.to_dict()
        function = data["tool_calls"][0]["function"]
        assert data["tool_calls"][0]["type"] == "function"
        assert function["name"] == "fetch_events"
        assert json.loads(function["arguments"]) == {"time_range": "today"}

    def test_tool_message(self):
        data = Message(role="tool", content="ok", tool_call_id="c1", name="fetch_events").to_dict()
        assert data == {"role": "tool", "content": "ok", "tool_call_id": "c1", "name": "fetch_events"}

    def test_providers(self):
        assert [p.value for p in LLMProvider] == ["groq"]

    def test_groq_without_key_is_unavailable(self):
        assert GroqClient(api_key=None).is_available() is False

    def test_unsupported_provider(self):
        with pytest.raises(ValueError):
            create_llm_client(SimpleNamespace(provider="other"), None)

    def test_factory_builds_groq(self):
        llm_config = SimpleNamespace(
            provider="groq", model="llama-3.3-70b-versatile", temperature=0.3, max_tokens=512, timeout=10,
        )
        client = create_llm_client(llm_config, "key")
        assert client.provider == LLMProvider.GROQ
        assert client.max_tokens == 512
