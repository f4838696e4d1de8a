"""Core modules for the Calendar Assistant."""

from .config import config, env, ensure_directories, DATA_DIR, PROJECT_ROOT
from .logger import setup_logging
from .errors import (
    ErrorKind,
    ToolError,
    UnknownOperationError,
    ValidationError,
    RemoteAuthError,
    RemoteTransientError,
    NotFoundError,
    AmbiguousIntentError,
)
from .cache import DuplicateCallCache
from .llm import BaseLLMClient, GroqClient, LLMResponse, Message

__all__ = [
    "config",
    "env",
    "ensure_directories",
    "DATA_DIR",
    "PROJECT_ROOT",
    "setup_logging",
    "ErrorKind",
    "ToolError",
    "UnknownOperationError",
    "ValidationError",
    "RemoteAuthError",
    "RemoteTransientError",
    "NotFoundError",
    "AmbiguousIntentError",
    "DuplicateCallCache",
    "BaseLLMClient",
    "GroqClient",
    "LLMResponse",
    "Message",
]
