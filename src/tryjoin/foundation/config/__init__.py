"""Configuration management using pydantic-settings."""

from .settings import JoinSettings, LoggingSettings, clear_settings_cache, get_settings

__all__ = [
    "JoinSettings",
    "LoggingSettings",
    "clear_settings_cache",
    "get_settings",
]
