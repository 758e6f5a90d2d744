"""Configuration management with Pydantic Settings."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DELAY_SECONDS = 20
UPDATE_PATH = "/v1/update"
_DECIMAL_INT = re.compile(r"[+-]?\d+", re.ASCII)


class Settings(BaseSettings):
    """Process-wide settings, read once from the environment at startup."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    webhook_id: str = Field(min_length=1)
    watchtower_api_key: str = Field(min_length=1)
    watchtower_url: str = "localhost:8080"
    bind: str = "0.0.0.0"
    port: int = 3000
    watch_only_for_latest_tag: bool = False
    delay_seconds: int = DEFAULT_DELAY_SECONDS
    max_body_bytes: int = 1024 * 1024
    shutdown_grace_seconds: float = 60.0
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("watchtower_url", "port", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("watch_only_for_latest_tag", mode="before")
    @classmethod
    def _only_literal_true(cls, value: Any) -> Any:
        # Anything but a case-insensitive "true" leaves filtering off
        if isinstance(value, str):
            return value.lower() == "true"
        return value

    @field_validator("delay_seconds", mode="before")
    @classmethod
    def _positive_delay_or_default(cls, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            parsed = value
        elif isinstance(value, str) and _DECIMAL_INT.fullmatch(value):
            parsed = int(value)
        else:
            return DEFAULT_DELAY_SECONDS
        return parsed if parsed > 0 else DEFAULT_DELAY_SECONDS

    @property
    def update_url(self) -> str:
        """Full Watchtower update endpoint, e.g. ``http://localhost:8080/v1/update``."""
        base = self.watchtower_url.rstrip("/")
        if "://" not in base:
            base = f"http://{base}"
        return base + UPDATE_PATH

    @property
    def webhook_path(self) -> str:
        return f"/api/webhooks/{self.webhook_id}"


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally reading a dotenv file first.

    Variables already present in the process environment win over the file.
    """
    return Settings(_env_file=env_file)
