"""
LLM Integration Module for the Calendar Assistant.

Provides a small interface over chat-completion providers with native
function calling. Only the contract matters to the rest of the package:
given messages and a tool catalog, a client returns text and/or
``{id, name, arguments}`` tool calls.

Supported providers (FREE ONLY):
- Groq (llama models with tool use)
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger


class LLMProvider(Enum):
    """Supported LLM providers."""
    GROQ = "groq"


@dataclass
class Message:
    """A chat message."""
    role: str  # "system", "user", "assistant", "tool"
    content: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [
                {
                    "id": call["id"],
                    "type": "function",
                    "function": {
                        "name": call["name"],
                        "arguments": json.dumps(call.get("arguments", {})),
                    },
                }
                for call in self.tool_calls
            ]
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.name:
            data["name"] = self.name
        return data


@dataclass
class LLMResponse:
    """Response from an LLM."""
    content: str
    provider: LLMProvider
    model: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    def __init__(
        self,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout: int = 30,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    @abstractmethod
    def provider(self) -> LLMProvider:
        """Get the provider type."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available."""
        pass

    @abstractmethod
    async def agenerate(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """Generate a response asynchronously, optionally offering tools."""
        pass


def _decode_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Tool call arguments are not valid JSON: {raw!r}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


class GroqClient(BaseLLMClient):
    """Groq API client with tool calling."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "llama-3.3-70b-versatile",
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout: int = 30,
    ):
        super().__init__(model, temperature, max_tokens, timeout)
        self.api_key = api_key
        self._async_client = None

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.GROQ

    def _get_async_client(self):
        if self._async_client is None:
            try:
                from groq import AsyncGroq
                self._async_client = AsyncGroq(api_key=self.api_key, timeout=self.timeout)
            except ImportError:
                logger.error("groq package not installed")
                return None
        return self._async_client

    def is_available(self) -> bool:
        if not self.api_key:
            return False
        try:
            from groq import AsyncGroq  # noqa: F401
            return True
        except ImportError:
            return False

    async def agenerate(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        client = self._get_async_client()
        if client is None:
            raise RuntimeError("Groq async client not available")

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        response = await client.chat.completions.create(**request)
        choice = response.choices[0]

        tool_calls = []
        for call in choice.message.tool_calls or []:
            tool_calls.append({
                "id": call.id,
                "name": call.function.name,
                "arguments": _decode_arguments(call.function.arguments),
            })

        return LLMResponse(
            content=choice.message.content or "",
            provider=self.provider,
            model=self.model,
            tool_calls=tool_calls,
            tokens_used=response.usage.total_tokens if response.usage else None,
            finish_reason=choice.finish_reason,
        )


def create_llm_client(llm_config, api_key: Optional[str]) -> BaseLLMClient:
    """Build the configured client."""
    if llm_config.provider == "groq":
        return GroqClient(
            api_key=api_key,
            model=llm_config.model,
            temperature=llm_config.temperature,
            max_tokens=llm_config.max_tokens,
            timeout=llm_config.timeout,
        )
    raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


__all__ = [
    "LLMProvider",
    "Message",
    "LLMResponse",
    "BaseLLMClient",
    "GroqClient",
    "create_llm_client",
]
