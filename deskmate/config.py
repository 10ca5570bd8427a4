"""Application configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOGGER = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Environment-driven settings validated at startup."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Optional so a missing key is a startup warning rather than a crash.
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        alias="OPENAI_BASE_URL",
    )
    request_timeout_seconds: float = Field(default=30.0, alias="REQUEST_TIMEOUT_SECONDS")
    source_timeout_seconds: float = Field(default=10.0, alias="SOURCE_TIMEOUT_SECONDS")
    history_window_messages: int = Field(default=20, alias="HISTORY_WINDOW_MESSAGES")
    local_timezone: str = Field(default="UTC", alias="LOCAL_TIMEZONE")
    snapshot_path: Path | None = Field(default=None, alias="SNAPSHOT_PATH")
    user_id: str = Field(default="local-user", alias="DESKMATE_USER_ID")

    @field_validator("local_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())


def load_settings() -> Settings:
    """Load and validate settings."""

    return Settings()


def warn_if_unconfigured(settings: Settings) -> bool:
    """Log a warning when no provider API key is set.

    Returns True when the key is present.
    """
    if settings.is_configured:
        return True
    LOGGER.warning(
        "OPENAI_API_KEY is not set; every assistant request will fail until it is configured"
    )
    return False
