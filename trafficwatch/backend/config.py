"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    DATA_FILE=data/TrafficDataFile.txt
    QUEUE_CAPACITY=50
    WINDOW_SECONDS=3600
    TOP_N=3
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Input
    DATA_FILE: str = "TrafficDataFile.txt"

    # Pipeline
    QUEUE_CAPACITY: int = Field(default=50, gt=0)
    WINDOW_SECONDS: float = Field(default=3600.0, gt=0)   # hourly, like the classic report
    TOP_N: int = Field(default=3, ge=1)
    RUN_MODE: Literal["threaded", "sequential"] = "threaded"

    # API
    API_ENABLED: bool = False
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    RECENT_WINDOWS: int = Field(default=100, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalise_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
                raise ValueError(f"unknown log level {v!r}")
        return v


def load_settings(**overrides) -> Settings:
    """
    Build Settings, applying keyword overrides (e.g. from the CLI).

    Overrides whose value is None are ignored so argparse defaults don't
    shadow environment values. Validation failures surface as ConfigError.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"invalid configuration — {problems}") from exc
