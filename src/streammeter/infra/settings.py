"""
Application settings for StreamMeter.

This module defines all configuration settings for StreamMeter using Pydantic BaseSettings.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings using Pydantic BaseSettings."""

    # Billing defaults
    default_rate: float = Field(default=0.0001, alias="METER_DEFAULT_RATE")  # per second
    initial_balance: float = Field(default=1.0, alias="METER_INITIAL_BALANCE")
    demo_balance: float = Field(default=5.0, alias="METER_DEMO_BALANCE")
    default_quality: str = Field(default="720p", alias="METER_DEFAULT_QUALITY")

    # Autopilot
    min_balance: float = Field(default=2.0, alias="METER_MIN_BALANCE")
    autopilot_enabled: bool = Field(default=False, alias="METER_AUTOPILOT_ENABLED")

    # Event log / ticking
    event_log_capacity: int = Field(default=50, alias="METER_EVENT_LOG_CAPACITY")
    tick_ms: int = Field(default=1000, alias="METER_TICK_MS")
    max_catch_up_ticks: int = Field(default=3, alias="METER_MAX_CATCH_UP_TICKS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")
    env: str = Field(default="dev", alias="ENV")  # dev|prod|test

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("default_rate", "initial_balance", "demo_balance", "min_balance")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError("must be a finite number")
        if value < 0:
            raise ValueError("must be non-negative")
        return value

    @field_validator("event_log_capacity", "tick_ms", "max_catch_up_ticks")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @property
    def tick_interval(self) -> float:
        """Wall-clock tick interval in seconds."""
        return self.tick_ms / 1000.0


def _resolve_env_file() -> str | None:
    # 1) Explicit override
    explicit = os.getenv("STREAMMETER_ENV_FILE")
    if explicit and Path(explicit).is_file():
        return explicit

    # 2) CWD .env
    cwd_env = Path.cwd() / ".env"
    if cwd_env.is_file():
        return str(cwd_env)

    # 3) Walk up from this file to find nearest .env
    here = Path(__file__).resolve()
    for parent in here.parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)
    return None


# Global settings instance (load from best-effort .env discovery)
_env_file = _resolve_env_file()
settings = Settings(_env_file=_env_file) if _env_file else Settings()  # type: ignore[call-arg]
