"""Configuration package."""

from journalme.config.settings import (
    AppSettings,
    GamificationSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GamificationSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
