"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, snapshot key names and validation thresholds are all
visible in one place and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Keys become file names, so keep them to a safe character set
STORAGE_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"


class StorageSettings(BaseSettings):
    """Durable key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Storage backend: 'file' (JSON files) or 'memory' (no persistence)"
    )
    data_dir: Path = Field(
        default=Path.home() / ".expense_tracker",
        description="Directory holding the JSON snapshot files"
    )

    # Snapshot keys
    expenses_key: str = Field(
        default="expenseTrackerData",
        pattern=STORAGE_KEY_PATTERN,
        description="Key of the expense collection snapshot"
    )
    filters_key: str = Field(
        default="expenseTrackerFilters",
        pattern=STORAGE_KEY_PATTERN,
        description="Key of the filter state snapshot"
    )
    view_key: str = Field(
        default="expenseTrackerActiveTab",
        pattern=STORAGE_KEY_PATTERN,
        description="Key of the active view snapshot"
    )

    # Retry behaviour for transient file errors
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per storage operation before giving up"
    )
    retry_wait_multiplier: float = Field(
        default=0.2,
        ge=0.0,
        le=5.0,
        description="Exponential backoff multiplier in seconds"
    )

    @field_validator("data_dir")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return v.expanduser()


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    currency_symbol: str = Field(
        default="₹",
        description="Symbol prefixed to amounts in the UI"
    )
    max_notes_length: int = Field(
        default=500,
        ge=1,
        description="Longest notes text accepted on an expense"
    )

    # Validation thresholds (warnings only, never blocking)
    max_expense_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this are flagged as suspicious"
    )
    future_date_tolerance_days: int = Field(
        default=0,
        ge=0,
        description="How many days in the future an expense date can be before it is flagged"
    )


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
