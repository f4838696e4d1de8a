"""
Centralized Error Handling for the Calendar Assistant.

Provides:
- Error kinds carried on structured tool results
- Exception hierarchy raised by tool handlers
- User-friendly error messages with setup guidance
- HTTP status mapping for calendar/email API failures
"""

from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger


class ErrorKind(Enum):
    """Stable error tags attached to failed tool results."""
    UNKNOWN_OPERATION = "UnknownOperation"
    VALIDATION = "ValidationError"
    REMOTE_AUTH = "RemoteAuthError"
    REMOTE_TRANSIENT = "RemoteTransientError"
    NOT_FOUND = "NotFound"
    AMBIGUOUS_INTENT = "AmbiguousIntent"
    INTERNAL = "InternalError"


class ToolError(Exception):
    """Base class for errors raised inside tool handlers."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class UnknownOperationError(ToolError):
    """Raised when a tool name is not in the registry."""
    kind = ErrorKind.UNKNOWN_OPERATION


class ValidationError(ToolError):
    """Raised when an argument is missing or cannot be coerced."""
    kind = ErrorKind.VALIDATION


class RemoteAuthError(ToolError):
    """Raised on 401/403 from a remote API."""
    kind = ErrorKind.REMOTE_AUTH

    def __init__(self, message: str, status: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.status = status


class RemoteTransientError(ToolError):
    """Raised on any other remote failure."""
    kind = ErrorKind.REMOTE_TRANSIENT

    def __init__(self, message: str, status: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.status = status


class NotFoundError(ToolError):
    """Raised when a referenced event is not in the snapshot."""
    kind = ErrorKind.NOT_FOUND


class AmbiguousIntentError(ToolError):
    """Raised when recipient grouping cannot be decided (strict mode only)."""
    kind = ErrorKind.AMBIGUOUS_INTENT


# User-friendly error messages with setup instructions
ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "calendar_credentials": {
        "short": "Google Calendar not configured",
        "detailed": """Google Calendar is not configured.

To enable calendar integration:
1. Go to console.cloud.google.com
2. Enable the Google Calendar API
3. Create OAuth 2.0 credentials (Desktop app)
4. Add to your .env file:
   GOOGLE_CALENDAR_CREDENTIALS_PATH=config/google_credentials.json

Events will still be created as calendar links and ICS files until then.""",
    },
    "groq_key": {
        "short": "Groq API not configured",
        "detailed": """Groq LLM provider is not configured.

To enable chat:
1. Go to console.groq.com
2. Create an API key
3. Add to your .env file:
   GROQ_API_KEY=your_key_here""",
    },
    "calendar_unauthorized": {
        "short": "Calendar access denied. Please sign in again.",
        "detailed": "Calendar access denied. Please sign in again.",
    },
    "calendar_forbidden": {
        "short": "Calendar permissions required.",
        "detailed": "Calendar permissions required. Re-authorize with the calendar.events scope.",
    },
    "network_error": {
        "short": "Network error",
        "detailed": """Unable to connect to the service.

Please check:
1. Your internet connection
2. The service might be temporarily down

Try again in a few moments.""",
    },
}


def get_error_message(error_key: str, detailed: bool = False) -> str:
    """
    Get user-friendly error message.

    Args:
        error_key: Key for the error type
        detailed: Whether to return detailed message with setup instructions

    Returns:
        User-friendly error message
    """
    if error_key not in ERROR_MESSAGES:
        return f"An error occurred: {error_key}"

    msg = ERROR_MESSAGES[error_key]
    return msg["detailed"] if detailed else msg["short"]


def handle_missing_config(service_name: str, config_key: str, env_var: str) -> str:
    """Log a missing setting and return its setup instructions."""
    logger.warning(f"{service_name} not configured: {env_var} not set")
    return get_error_message(config_key, detailed=True)


def _extract_status(error: Exception) -> Optional[int]:
    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status
    # googleapiclient.errors.HttpError keeps the response on .resp
    resp = getattr(error, "resp", None)
    if resp is not None:
        try:
            return int(getattr(resp, "status", None))
        except (TypeError, ValueError):
            return None
    return None


def handle_api_error(service_name: str, error: Exception) -> ToolError:
    """
    Map a remote API failure to a typed tool error.

    Args:
        service_name: Name of the service ("Calendar", "Gmail")
        error: The exception that occurred

    Returns:
        RemoteAuthError for 401/403, RemoteTransientError otherwise
    """
    if isinstance(error, ToolError):
        return error

    status = _extract_status(error)
    error_str = str(error).lower()

    if status == 401 or (status is None and ("401" in error_str or "unauthorized" in error_str)):
        return RemoteAuthError(f"{service_name} access denied. Please sign in again.", status=401)

    if status == 403 or (status is None and ("403" in error_str or "forbidden" in error_str)):
        return RemoteAuthError(f"{service_name} permissions required.", status=403)

    if status is None and ("timeout" in error_str or "timed out" in error_str):
        return RemoteTransientError(f"{service_name} request timed out. Please try again.")

    if status is None and ("connection" in error_str or "network" in error_str):
        return RemoteTransientError(get_error_message("network_error"))

    logger.error(f"{service_name} error: {error}")
    label = status if status is not None else "unknown"
    return RemoteTransientError(f"{service_name} API error: {label}", status=status)


__all__ = [
    "ErrorKind",
    "ToolError",
    "UnknownOperationError",
    "ValidationError",
    "RemoteAuthError",
    "RemoteTransientError",
    "NotFoundError",
    "AmbiguousIntentError",
    "ERROR_MESSAGES",
    "get_error_message",
    "handle_missing_config",
    "handle_api_error",
]
