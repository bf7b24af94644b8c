# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
Environment variable names are the upper-cased field names
(BUILDKITE_ORG, CACHE_BACKEND, LOG_LEVEL ...).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Buildkite ===
    buildkite_org: str = ""
    buildkite_api_token: str = ""
    buildkite_api_url: str = "https://api.buildkite.com/v2"
    buildkite_timeout_s: float = 30.0

    # === Cache ===
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.kitebuilds/cache")
    cache_redis_url: str = ""
    cache_key_prefix: str = "kitebuilds:builds:"

    # === TTL policy ===
    ttl_settled_after_hours: int = 12
    ttl_settled_base_days: int = 60
    ttl_jitter_hours: int = 7 * 24
    ttl_recent_minutes: int = 10

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "ttl_settled_base_days", "ttl_jitter_hours", "ttl_recent_minutes"
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("TTL settings must be > 0")
        return v

    @field_validator("ttl_settled_after_hours")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("ttl_settled_after_hours must be >= 0")
        return v

    @field_validator("buildkite_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.buildkite_timeout_s <= 0:
            errors.append("BUILDKITE_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or one-off runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
