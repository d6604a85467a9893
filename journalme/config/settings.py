"""
Configuration Management for JournalMe

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The app runs fully offline; the only external dependency is the
optional Gemini key used by the task advisor.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the task advisor."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    daily_request_limit: int = Field(
        default=50,
        ge=0,
        description="How many advisor calls are allowed per calendar day"
    )


class GamificationSettings(BaseSettings):
    """Point values for the discipline tracker."""

    model_config = SettingsConfigDict(
        env_prefix="GAME_",
        extra="ignore"
    )

    starting_points: int = Field(
        default=100,
        description="Score a fresh database starts with"
    )
    task_completed_points: int = Field(
        default=5,
        ge=0,
        description="Awarded when a task is completed (revoked if un-completed)"
    )
    task_deleted_penalty: int = Field(
        default=2,
        ge=0,
        description="Charged when an uncompleted task is deleted"
    )
    missed_task_penalty: int = Field(
        default=5,
        ge=0,
        description="Charged per uncompleted task at the day boundary"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )

    # Local database
    data_path: Optional[str] = Field(
        default=None,
        description="JSON file backing the local database (unset = memory only)"
    )
    backup_path: Optional[str] = Field(
        default=None,
        description="Folder for the once-a-day automatic backup (unset = no auto backup)"
    )

    # Finance display and defaults
    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Symbol used when formatting amounts"
    )
    no_obligation_window_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Days the balance is spread over when no bills are tracked"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def data_file(self) -> Optional[Path]:
        """Get the database file as a Path, if configured."""
        return Path(self.data_path) if self.data_path else None

    @property
    def backup_dir(self) -> Optional[Path]:
        """Get the automatic backup folder as a Path, if configured."""
        return Path(self.backup_path) if self.backup_path else None


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def gamification(self) -> GamificationSettings:
        return GamificationSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "gemini": lambda: settings.gemini,
        "gamification": lambda: settings.gamification,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
