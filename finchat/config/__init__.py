"""Configuration package."""

from finchat.config.settings import (
    SUPPORTED_LOCALES,
    AppSettings,
    ChatSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SUPPORTED_LOCALES",
    "AppSettings",
    "ChatSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
