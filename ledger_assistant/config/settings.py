"""
Configuration Management for Ledger Assistant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The reporting engine itself never reads settings; it receives a
ReportLabels value object, built here by `LabelSettings.to_labels()`.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ledger_assistant.models.report import ReportLabels


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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
        description="ID of the Google Sheets spreadsheet holding the ledger"
    )

    # One worksheet per table
    transactions_sheet_name: str = Field(default="transactions")
    line_items_sheet_name: str = Field(default="transaction_line_items")
    categories_sheet_name: str = Field(default="categories")
    credit_cards_sheet_name: str = Field(default="credit_cards")
    family_members_sheet_name: str = Field(default="family_members")
    profiles_sheet_name: str = Field(default="profiles")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
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


class LabelSettings(BaseSettings):
    """
    Display strings written into the dashboard view.

    Defaults are the Traditional Chinese labels of the ledger app; any of
    them can be overridden, e.g. LEDGER_LABEL_CASH=Cash.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_LABEL_",
        extra="ignore"
    )

    cash: str = Field(default="現金")
    credit_card: str = Field(default="信用卡")
    multiple_payers: str = Field(default="多人")
    transaction: str = Field(default="交易")
    split_suffix: str = Field(default=" (分)")
    more_items_suffix: str = Field(default=" 等...")
    currency_symbol: str = Field(default="$")
    default_user_name: str = Field(default="使用者")

    def to_labels(self) -> ReportLabels:
        return ReportLabels(**self.model_dump())


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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structlog output"
    )

    # Ledger defaults
    default_monthly_limit: float = Field(
        default=10000.0,
        ge=0.0,
        description="Budget used when the profile has no monthly limit"
    )
    default_user_id: str = Field(
        default="",
        description="User whose ledger is shown when none is given"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def labels(self) -> LabelSettings:
        return LabelSettings()

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

    Returns a dict of {setting_name: is_valid}, plus a `<name>_error`
    entry holding the message for each section that failed to load.
    """
    results = {}
    settings = get_settings()

    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "labels": lambda: settings.labels,
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
