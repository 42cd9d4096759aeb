# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider credentials, hosting targets, retry
policies, snapshot location and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is missing or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: Literal["google", "anthropic", "openai"] = "google"
    llm_default_model: str = "gemini-2.5-flash"
    llm_default_temperature: float = 0.7
    llm_max_tokens: int = 8192

    # Provider API keys
    google_api_key: str = ""
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # === GitHub hosting ===
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    github_repo: str = ""
    github_branch: str = "main"
    github_path: str = "docs"
    github_commit_prefix: str = "Deploy"
    http_timeout_s: float = 30.0

    # === Generation retry policy ===
    retry_max_attempts: int = 5
    retry_initial_delay_s: float = 2.0
    retry_backoff_factor: float = 1.5
    retry_max_delay_s: float | None = None

    # === Hosting retry policy ===
    hosting_retry_max_attempts: int = 3
    hosting_retry_initial_delay_s: float = 1.0
    hosting_retry_backoff_factor: float = 2.0
    hosting_retry_server_errors: bool = True

    # === Project snapshot ===
    state_file: Path = Path("~/.sitegen/state.json")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("retry_max_attempts", "hosting_retry_max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max attempts must be >= 1")
        return v

    @field_validator("retry_backoff_factor", "hosting_retry_backoff_factor")
    @classmethod
    def validate_backoff(cls, v: float) -> float:  # noqa: N805
        if v < 1.0:
            raise ValueError("backoff factor must be >= 1.0")
        return v

    @field_validator("github_path")
    @classmethod
    def strip_path(cls, v: str) -> str:  # noqa: N805
        return v.strip().strip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.retry_initial_delay_s < 0 or self.hosting_retry_initial_delay_s < 0:
            errors.append("Retry initial delays must be >= 0")

        if (
            self.retry_max_delay_s is not None
            and self.retry_max_delay_s < self.retry_initial_delay_s
        ):
            errors.append("RETRY_MAX_DELAY_S must be >= RETRY_INITIAL_DELAY_S")

        if self.http_timeout_s <= 0:
            errors.append("HTTP_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def api_key_for(self, provider: str) -> str:
        """Return the configured API key for ``provider`` ("" if unset)."""
        return {
            "google": self.google_api_key,
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }.get(provider, "")


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
