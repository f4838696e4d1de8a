"""
End-to-End Integration Tests for the Calendar Assistant.

Tests the complete pipeline from configuration to chat output with a
scripted model and no Google credentials, validating that all components
work together correctly.

Usage:
    pytest tests/integration/test_e2e_pipeline.py -v
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo

import pytest
import yaml

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from calendar_assistant.agents.assistant import ChatAssistant
from calendar_assistant.app import CalendarAssistant, main
from calendar_assistant.core.config import get_config
from calendar_assistant.core.llm import BaseLLMClient, LLMProvider, LLMResponse

TZ = ZoneInfo("America/New_York")
NOW = datetime(2025, 6, 2, 10, 0, tzinfo=TZ)


class ScriptedLLM(BaseLLMClient):
    """Plays back a fixed list of responses."""

    def __init__(self, responses: List[LLMResponse]):
        super().__init__(model="scripted")
        self.responses = list(responses)

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.GROQ

    def is_available(self) -> bool:
        return True

    async def agenerate(self, messages, tools=None, **kwargs) -> LLMResponse:
        return self.responses.pop(0)


def response(content: str = "", tool_calls=None) -> LLMResponse:
    return LLMResponse(
        content=content,
        provider=LLMProvider.GROQ,
        model="scripted",
        tool_calls=tool_calls or [],
    )


@pytest.fixture
def config_file(tmp_path):
    settings = {
        "general": {"log_level": "DEBUG"},
        "scheduling": {"timezone": "America/New_York", "lookahead_days": 5},
        "dispatch": {"duplicate_window_seconds": 30, "duplicate_cache_size": 3},
        "recipients": {
            "known_contacts": {"priya": "priya@example.com", "marco": "marco@example.com"},
            "fallback": ["team@example.com"],
        },
        "calendar": {"enabled": False},
    }
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(settings), encoding="utf-8")
    return path


@pytest.fixture
def app(config_file, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
    monkeypatch.setenv("ORGANIZER_EMAIL", "me@example.com")
    assistant = CalendarAssistant(config_file)
    assistant.context.clock = lambda: NOW
    return assistant


class TestConfiguration:
    """Tests for configuration loading and validation."""

    def test_yaml_overrides_defaults(self, config_file):
        config = get_config(config_file)
        assert config.scheduling.timezone == "America/New_York"
        assert config.scheduling.work_start == "09:00"
        assert config.dispatch.duplicate_cache_size == 3
        assert config.llm.provider == "groq"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = get_config(tmp_path / "missing.yaml")
        assert config.scheduling.timezone == "America/Los_Angeles"
        assert config.recipients.fallback == ["joe@gmail.com", "dan@gmail.com", "sally@gmail.com"]

    def test_context_built_from_config(self, app):
        context = app.context
        assert context.calendar is None
        assert context.constraints.timezone == "America/New_York"
        assert context.lookahead_days == 5
        assert context.cache.max_size == 3
        assert context.organizer_email == "me@example.com"
        assert context.resolver.fallback == ["team@example.com"]

    def test_validation_with_key(self, app):
        result = app.validate_config()
        assert result.valid is True
        assert result.features_enabled["LLM: Groq"] is True
        assert result.features_enabled["Google Calendar"] is False
        assert "Configuration valid" in str(result)

    def test_validation_without_key(self, config_file, monkeypatch):
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        result = CalendarAssistant(config_file).validate_config()
        assert result.valid is False
        assert any("Groq LLM provider is not configured" in e for e in result.errors)
        assert any("GROQ_API_KEY=" in e for e in result.errors)

    def test_placeholder_key_is_unset(self, config_file, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "your_key_here")
        assert CalendarAssistant(config_file).validate_config().valid is False


class TestPipeline:
    """Tests for full chat turns through the application object."""

    @pytest.mark.asyncio
    async def test_schedule_then_draft(self, app):
        llm = ScriptedLLM([
            response(tool_calls=[{
                "id": "c1",
                "name": "create_calendar_event",
                "arguments": {
                    "title": "Roadmap Review",
                    "start_time": "2025-06-04T14:00:00",
                    "end_time": "2025-06-04T15:00:00",
                    "attendees": ["priya@example.com"],
                },
            }]),
            response("Booked. Calendar isn't connected, so use the link."),
            response(tool_calls=[{
                "id": "c2",
                "name": "create_meeting_followup",
                "arguments": {"event_title": "roadmap review", "attendee_email": "priya@example.com"},
            }]),
            response("Follow-up drafted."),
        ])
        app._assistant = ChatAssistant(llm, app.router)

        first = await app.chat("book the roadmap review with priya wednesday 2-3")
        assert first.startswith("Booked.")
        event = app.context.events[0]
        assert event.organizer == "me@example.com"
        assert event.start == datetime(2025, 6, 4, 14, 0, tzinfo=TZ)

        second = await app.chat("draft a follow-up to priya")
        assert second == "Follow-up drafted."
        assert app.context.cache.size == 2

    @pytest.mark.asyncio
    async def test_configured_contacts_drive_fanout(self, app):
        llm = ScriptedLLM([response(
            'create_email_draft(email_type="custom", context="Launch retro with Priya and Marco")'
        )])
        app._assistant = ChatAssistant(llm, app.router)

        text = await app.chat("email priya and marco about the launch retro")
        assert "Drafted 2 personalized emails: priya@example.com, marco@example.com." in text

    @pytest.mark.asyncio
    async def test_suggestions_respect_timezone(self, app):
        llm = ScriptedLLM([
            response(tool_calls=[{
                "id": "c1",
                "name": "suggest_meeting_times",
                "arguments": {"title": "Sync", "duration": 60},
            }]),
            response("Here are some options."),
        ])
        assistant = ChatAssistant(llm, app.router)
        reply = await assistant.chat("when can we meet?")

        first = reply.results[0].data["suggestions"][0]
        assert first["start"] == "2025-06-03T09:00:00-04:00"


class TestCommandLine:
    """Tests for the argparse entry point."""

    def test_tools_listing(self, config_file, monkeypatch, capsys):
        monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
        main(["--tools", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert out.startswith("Available tools:")
        assert "- create_email_draft (side-effecting):" in out
        assert "time_range (string, required)" in out

    def test_check_config_exit_code(self, config_file, monkeypatch, capsys):
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        with pytest.raises(SystemExit) as exc:
            main(["--check-config", "--config", str(config_file)])
        assert exc.value.code == 1
        assert "Configuration has errors" in capsys.readouterr().out
