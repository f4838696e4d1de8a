"""
Configuration management for the Calendar Assistant.

This module handles loading and validating configuration from YAML files
and environment variables using Pydantic for type safety.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"


class GeneralConfig(BaseModel):
    """General configuration."""
    name: str = "Calendar Assistant"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    data_dir: str = "data"


class SchedulingConfig(BaseModel):
    """Slot search configuration."""
    timezone: str = "America/Los_Angeles"
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])  # 0 = Sunday
    min_duration: int = Field(default=15, ge=1)
    max_duration: int = Field(default=480, ge=1)
    work_start: str = Field(default="09:00", pattern=r"^\d{2}:\d{2}$")
    work_end: str = Field(default="17:00", pattern=r"^\d{2}:\d{2}$")
    slot_step_minutes: int = Field(default=30, ge=5)
    lookahead_days: int = Field(default=7, ge=1)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"working day out of range 0..6: {day}")
        return sorted(set(v))

    def to_constraints(self):
        """Build the immutable constraints object used by slot search."""
        from ..scheduling.models import SchedulingConstraints, parse_hhmm

        return SchedulingConstraints(
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            working_days=frozenset(self.working_days),
            timezone=self.timezone,
            work_start=parse_hhmm(self.work_start),
            work_end=parse_hhmm(self.work_end),
            slot_step_minutes=self.slot_step_minutes,
        )


class DispatchConfig(BaseModel):
    """Tool router configuration."""
    duplicate_window_seconds: float = Field(default=10.0, gt=0)
    duplicate_cache_size: int = Field(default=5, ge=1)


class RecipientsConfig(BaseModel):
    """Email recipient resolution configuration."""
    strict: bool = False
    fallback: List[str] = Field(
        default_factory=lambda: ["joe@gmail.com", "dan@gmail.com", "sally@gmail.com"]
    )
    known_contacts: Dict[str, str] = Field(
        default_factory=lambda: {
            "joe": "joe@gmail.com",
            "dan": "dan@gmail.com",
            "sally": "sally@gmail.com",
        }
    )


class LLMConfig(BaseModel):
    """LLM configuration."""
    provider: str = Field(default="groq", pattern="^(groq)$")
    model: str = "llama-3.3-70b-versatile"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, ge=1)
    timeout: int = Field(default=30, ge=1)
    max_tool_rounds: int = Field(default=3, ge=1)


class CalendarConfig(BaseModel):
    """Google Calendar boundary configuration."""
    enabled: bool = True
    calendar_id: str = "primary"
    credentials_file: str = "config/google_credentials.json"
    token_file: str = "config/calendar_token.json"
    fetch_days: int = Field(default=30, ge=1)


class AssistantConfig(BaseModel):
    """Main Calendar Assistant configuration."""
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    recipients: RecipientsConfig = Field(default_factory=RecipientsConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)


class EnvSettings(BaseSettings):
    """Environment variables settings."""

    groq_api_key: Optional[str] = Field(default=None, alias="GROQ_API_KEY")
    google_calendar_credentials_path: Optional[str] = Field(default=None, alias="GOOGLE_CALENDAR_CREDENTIALS_PATH")
    google_calendar_token_path: Optional[str] = Field(default=None, alias="GOOGLE_CALENDAR_TOKEN_PATH")
    organizer_email: Optional[str] = Field(default=None, alias="ORGANIZER_EMAIL")

    @field_validator("groq_api_key", mode="before")
    @classmethod
    def validate_api_key(cls, v):
        """Treat placeholder values as unset."""
        if isinstance(v, str) and (not v.strip() or v.startswith("your_")):
            return None
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_yaml_config(config_path: Path | str | None = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = CONFIG_DIR / "settings.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_config(config_path: Path | str | None = None) -> AssistantConfig:
    """
    Load and return the assistant configuration.

    Merges YAML configuration with defaults.
    """
    yaml_config = load_yaml_config(config_path)
    return AssistantConfig(**yaml_config)


def get_env_settings() -> EnvSettings:
    """Get environment settings."""
    return EnvSettings()


# Global configuration instances (lazy loaded)
_config: Optional[AssistantConfig] = None
_env_settings: Optional[EnvSettings] = None


def config() -> AssistantConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = get_config()
    return _config


def set_config(new_config: AssistantConfig) -> None:
    """Replace the global configuration (used by run.py --config)."""
    global _config
    _config = new_config


def env() -> EnvSettings:
    """Get the global environment settings instance."""
    global _env_settings
    if _env_settings is None:
        _env_settings = get_env_settings()
    return _env_settings


def ensure_directories() -> None:
    """Ensure required directories exist."""
    directories = [
        DATA_DIR,
        DATA_DIR / "logs",
        DATA_DIR / "exports",
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
