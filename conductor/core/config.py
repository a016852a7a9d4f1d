"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # Anthropic API
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key for Claude access",
    )

    # Conductor Configuration
    conductor_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    conductor_log_dir: str = Field(
        default="logs",
        description="Directory for rotating log files",
    )
    conductor_state_dir: str = Field(
        default=".orchestrator",
        description="Directory holding the resumable run snapshot",
    )
    conductor_retry_delay: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait before retrying a failed sub-task",
    )

    # Models
    conductor_default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for roles without an explicit override",
    )
    conductor_model_research: str | None = Field(default=None)
    conductor_model_implement: str | None = Field(default=None)
    conductor_model_test: str | None = Field(default=None)
    conductor_model_review: str | None = Field(default=None)
    conductor_max_tokens: int = Field(
        default=8192,
        ge=1,
        description="Maximum tokens per completion",
    )

    def model_for(self, role: str) -> str:
        """Get the model name configured for an agent role.

        Args:
            role: Agent role value, e.g. "research".

        Returns:
            The role override if set, otherwise the default model.
        """
        override = getattr(self, f"conductor_model_{role}", None)
        return override or self.conductor_default_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.conductor_state_dir
        '.orchestrator'
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
