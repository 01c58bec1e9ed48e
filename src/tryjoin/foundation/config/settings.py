"""Environment-based configuration using pydantic-settings.

Example:
    >>> from tryjoin.foundation.config import get_settings
    >>> get_settings().small_batch_threshold
    30

    # Or with environment variables:
    # TRYJOIN_SMALL_BATCH_THRESHOLD=64
    # TRYJOIN_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRYJOIN_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = Field(default=None, description="Force console colors (None = detect TTY)")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class JoinSettings(BaseSettings):
    """Root settings for tryjoin.

    Example environment variables:
        TRYJOIN_SMALL_BATCH_THRESHOLD=16
        TRYJOIN_DEBUG=true
        TRYJOIN_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="TRYJOIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    small_batch_threshold: NonNegativeInt = Field(
        default=30,
        description="Largest known operand count that uses the rescanning fixed batch",
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> JoinSettings:
    """Get the global settings instance (cached)."""
    return JoinSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
