"""Configuration management for n8n_workflow_mcp.

Loads settings from environment variables (and an optional ``.env`` file)
with sensible defaults.
"""

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_N8N_URL = "https://your-n8n-instance.com"
DEFAULT_TIMEOUT_S = 30.0
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigurationError(Exception):
    """Raised when the server cannot start because of missing settings."""


def _default_timeout() -> float:
    """Parse timeout from environment, falling back to 30s on empty values."""
    raw = os.getenv("N8N_TIMEOUT_S")
    if raw is None or raw.strip() == "":
        return DEFAULT_TIMEOUT_S
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError("N8N_TIMEOUT_S must be numeric") from exc


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    n8n_url: str = Field(
        default_factory=lambda: os.getenv("N8N_URL") or DEFAULT_N8N_URL,
        description="Base address of the n8n instance, without /api/v1",
    )
    api_key: str | None = Field(
        default_factory=lambda: os.getenv("N8N_API_KEY") or None,
        description="n8n API key, sent as the X-N8N-API-KEY header",
    )
    timeout_seconds: float = Field(
        default_factory=_default_timeout,
        description="HTTP request timeout in seconds",
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("N8N_LOG_LEVEL") or "INFO",
        validate_default=True,
        description="Root log level used by the entrypoints",
    )

    model_config = {"frozen": True}

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"N8N_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def api_base_url(self) -> str:
        """Base URL of the n8n public REST API."""
        return f"{self.n8n_url.rstrip('/')}/api/v1"


def get_settings(load_env_file: bool = True) -> Settings:
    """Create settings instance from current environment.

    Args:
        load_env_file: Read a ``.env`` file first. Variables already set in
            the environment take precedence.

    Returns:
        Settings instance with values from environment variables.

    Raises:
        ConfigurationError: If N8N_API_KEY is missing or blank.
    """
    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True))

    settings = Settings()
    if not settings.api_key or not settings.api_key.strip():
        raise ConfigurationError("N8N_API_KEY environment variable is required")
    return settings
