"""
Calendar Assistant application wiring.

Builds the tool context, router and chat assistant from configuration and
provides the text-mode chat loop and the configuration check used by
``run.py``.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from . import __version__
from .agents.assistant import ChatAssistant
from .agents.context import ToolContext
from .agents.registry import ToolRegistry
from .agents.router import ToolRouter
from .core.config import get_config, get_env_settings, ensure_directories, set_config
from .core.errors import get_error_message, handle_missing_config
from .core.llm import create_llm_client
from .core.logger import setup_logging
from .tools.calendar import GOOGLE_API_AVAILABLE


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    features_enabled: Dict[str, bool] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = []
        if self.valid:
            lines.append("✅ Configuration valid")
        else:
            lines.append("❌ Configuration invalid")

        if self.errors:
            lines.append("\nErrors:")
            for e in self.errors:
                lines.append(f"  ❌ {e}")

        if self.warnings:
            lines.append("\nWarnings:")
            for w in self.warnings:
                lines.append(f"  ⚠️ {w}")

        lines.append("\nFeatures:")
        for feature, enabled in self.features_enabled.items():
            status = "✅" if enabled else "❌"
            lines.append(f"  {status} {feature}")

        return "\n".join(lines)


class CalendarAssistant:
    """Top-level application object."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config = get_config(config_path)
        set_config(self._config)
        self._env = get_env_settings()

        self.context = ToolContext.from_config(self._config, self._env)
        self.router = ToolRouter(self.context, ToolRegistry())
        self._assistant: Optional[ChatAssistant] = None

    def validate_config(self) -> ConfigValidationResult:
        """
        Validate configuration and check available features.

        Returns:
            ConfigValidationResult with validation status.
        """
        result = ConfigValidationResult(valid=True)

        if self._env.groq_api_key:
            result.features_enabled["LLM: Groq"] = True
        else:
            result.features_enabled["LLM: Groq"] = False
            result.valid = False
            result.errors.append(handle_missing_config("Groq", "groq_key", "GROQ_API_KEY"))

        if not GOOGLE_API_AVAILABLE:
            result.features_enabled["Google Calendar"] = False
            result.warnings.append("Google API libraries not installed - events will be created as links")
        elif self.context.calendar is None:
            result.features_enabled["Google Calendar"] = False
            result.warnings.append(get_error_message("calendar_credentials"))
        else:
            result.features_enabled["Google Calendar"] = True

        if self._config.recipients.strict:
            result.features_enabled["Strict recipients"] = True
        elif not self._config.recipients.fallback:
            result.valid = False
            result.errors.append("recipients.fallback must not be empty unless recipients.strict is set")

        result.features_enabled["Calendar links & ICS"] = True
        result.features_enabled["Email drafts"] = True
        return result

    def _init_assistant(self) -> ChatAssistant:
        if self._assistant is None:
            llm = create_llm_client(self._config.llm, self._env.groq_api_key)
            self._assistant = ChatAssistant(
                llm,
                self.router,
                max_tool_rounds=self._config.llm.max_tool_rounds,
            )
        return self._assistant

    async def chat(self, message: str) -> str:
        reply = await self._init_assistant().chat(message)
        return reply.text

    def describe_tools(self) -> str:
        lines = ["Available tools:", ""]
        for definition in self.router.registry:
            marker = " (side-effecting)" if definition.side_effecting else ""
            lines.append(f"- {definition.name}{marker}: {definition.description}")
            for name, spec in definition.parameters.get("properties", {}).items():
                required = "required" if name in definition.required else f"default {spec.get('default')!r}" if "default" in spec else "optional"
                lines.append(f"    {name} ({spec.get('type', 'string')}, {required})")
        return "\n".join(lines)

    def run_text_mode(self) -> None:
        """Interactive chat loop."""
        logger.info("Starting Calendar Assistant in text mode...")

        validation = self.validate_config()
        if not validation.valid:
            logger.error("Configuration validation failed")
            print(validation)
            sys.exit(1)

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(self.context.refresh_events())

        print("\n" + "=" * 60)
        print(f"Calendar Assistant v{__version__} - Text Mode")
        print("Type 'quit' or 'exit' to stop")
        print("Type 'tools' to list available tools")
        print("=" * 60 + "\n")

        while True:
            try:
                user_input = input("You: ").strip()

                if not user_input:
                    continue

                if user_input.lower() in ["quit", "exit", "bye"]:
                    print("\nAssistant: Goodbye!")
                    break

                if user_input.lower() == "tools":
                    print(f"\n{self.describe_tools()}\n")
                    continue

                response = loop.run_until_complete(self.chat(user_input))
                print(f"\nAssistant: {response}\n")

            except KeyboardInterrupt:
                print("\n\nAssistant: Goodbye!")
                break
            except Exception as e:
                logger.error(f"Error: {e}")
                print(f"\nAssistant: I encountered an error: {e}\n")

        logger.info(f"Duplicate cache stats: {self.context.cache.stats.to_dict()}")
        loop.close()


def check_config(config_path: Optional[Path] = None) -> None:
    """Check configuration and print status."""
    print("\n" + "=" * 60)
    print("Calendar Assistant Configuration Check")
    print("=" * 60 + "\n")

    assistant = CalendarAssistant(config_path)
    result = assistant.validate_config()
    print(result)

    if result.valid:
        print("\n✅ Configuration is valid. The assistant is ready to run.")
        sys.exit(0)
    else:
        print("\n❌ Configuration has errors. Please fix them before running.")
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Calendar Assistant - scheduling and email drafting over chat")
    parser.add_argument("--text", action="store_true", help="Run the interactive chat loop")
    parser.add_argument("--check-config", action="store_true", help="Validate configuration and exit")
    parser.add_argument("--tools", action="store_true", help="Print the tool catalog and exit")
    parser.add_argument("--config", type=str, help="Path to configuration file")

    args = parser.parse_args(argv)
    config_path = Path(args.config) if args.config else None

    ensure_directories()
    setup_logging(get_config(config_path), log_to_file=args.text)

    if args.check_config:
        check_config(config_path)
        return

    assistant = CalendarAssistant(config_path)

    if args.tools:
        print(assistant.describe_tools())
        return

    if args.text:
        assistant.run_text_mode()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
