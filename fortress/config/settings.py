"""
Configuration Management for Fortress Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage locations, reminder cadence and export naming are all
validated once at startup instead of being scattered as constants.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATA_DIR = Path.home() / ".fortress"


class StorageSettings(BaseSettings):
    """Primary and fallback store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FORTRESS_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Sandbox directory for the primary file store"
    )
    document_key: str = Field(
        default="fortress_ledger",
        min_length=1,
        max_length=100,
        description="Key under which the ledger document is persisted"
    )
    fallback_path: Optional[Path] = Field(
        default=None,
        description="Path of the fallback key-value store file"
    )
    fallback_capacity_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Maximum total size of the fallback store"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a primary store write before giving up"
    )

    @field_validator('document_key')
    @classmethod
    def validate_document_key(cls, v: str) -> str:
        """The key becomes a file name, so path separators are not allowed."""
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"Invalid document key: {v!r}")
        return v

    @property
    def resolved_fallback_path(self) -> Path:
        """Fallback file location, defaulting to a file inside data_dir."""
        if self.fallback_path is not None:
            return self.fallback_path
        return self.data_dir / "fallback_store.json"


class ReminderSettings(BaseSettings):
    """Milestone reminder loop configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FORTRESS_REMINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Run the periodic reminder check"
    )
    interval_seconds: float = Field(
        default=3600.0,
        ge=1.0,
        description="Seconds between reminder checks"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORTRESS_",
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

    # Export
    export_prefix: str = Field(
        default="fortress_backup_",
        min_length=1,
        description="File name prefix for exported snapshots"
    )

    # Audit
    audit_buffer_size: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="How many recent audit events to keep in memory"
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
    def reminders(self) -> ReminderSettings:
        return ReminderSettings()

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


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings sections.

    Returns a dict of {section_name: is_valid}, plus a
    "<section>_error" entry for each section that failed.
    Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("storage", "reminders", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
