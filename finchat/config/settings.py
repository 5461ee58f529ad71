"""
Configuration Management for finchat

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Tuning knobs for classification (fuzzy thresholds, history window) live
next to the data-source credentials so a deployment can see every
external dependency in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_LOCALES = ("en", "el")


class ChatSettings(BaseSettings):
    """Intent engine and response configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINCHAT_",
        extra="ignore"
    )

    default_locale: str = Field(
        default="en",
        description="Locale used when the caller does not send one"
    )
    history_window: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Number of recent conversation turns used for context"
    )

    # Fuzzy fallback
    fuzzy_trigger_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Below this confidence the fuzzy matcher is consulted"
    )
    fuzzy_accept_confidence: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Fuzzy matches must score strictly above this"
    )

    # Multi-intent handling
    multi_intent_min_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Fragments of a compound query must score strictly above this"
    )
    max_combined_intents: int = Field(
        default=2,
        ge=1,
        le=5,
        description="How many detected intents are answered in one reply"
    )

    money_tips_seed: int = Field(
        default=20240101,
        description="Seed for the money tips selection (keeps replies reproducible)"
    )
    patterns_dir: Optional[str] = Field(
        default=None,
        description="Override directory for pattern tables (defaults to packaged data)"
    )

    @field_validator('default_locale')
    @classmethod
    def validate_locale(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in SUPPORTED_LOCALES:
            raise ValueError(
                f"Unsupported locale '{v}'. Expected one of: {', '.join(SUPPORTED_LOCALES)}"
            )
        return v

    @field_validator('patterns_dir')
    @classmethod
    def validate_patterns_dir(cls, v: Optional[str]) -> Optional[str]:
        """Fail early if an override directory was given but does not exist."""
        if v is not None and not Path(v).is_dir():
            raise ValueError(f"Pattern directory not found: {v}")
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets data source configuration (read-only)."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to read"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet holding income and expense rows"
    )
    loans_sheet_name: str = Field(
        default="Loans",
        description="Name of the sheet holding loans"
    )
    goals_sheet_name: str = Field(
        default="SavingsGoals",
        description="Name of the sheet holding savings goals"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet holding budgets"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    data_source: str = Field(
        default="memory",
        description="Which data source backs the app: 'memory' or 'sheets'"
    )

    @field_validator('data_source')
    @classmethod
    def validate_data_source(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "sheets"):
            raise ValueError("data_source must be 'memory' or 'sheets'")
        return v


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def chat(self) -> ChatSettings:
        return ChatSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}, plus an
    "<name>_error" entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    sections = {
        "chat": lambda: settings.chat,
        "google_sheets": lambda: settings.google_sheets,
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
