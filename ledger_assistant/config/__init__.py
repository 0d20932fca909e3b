"""Configuration package."""

from ledger_assistant.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LabelSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LabelSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
