"""
Configuration Management for PagaPues

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The settlement engine itself never reads settings; the ledger session
passes the relevant values (epsilon, formatting) down explicitly.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    participants_sheet_name: str = Field(
        default="Participants",
        description="Name of the sheet for participants"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
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
    app_title: str = Field(
        default="PagaPues",
        description="Name shown in the UI and in shared reports"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    # Money handling
    settlement_epsilon: float = Field(
        default=0.01,
        ge=0.005,
        le=1.0,
        description="Amounts below this are treated as zero; at least half a cent"
    )
    currency_code: str = Field(
        default="COP",
        min_length=3,
        max_length=3,
        description="ISO currency code shown next to amounts"
    )
    currency_symbol: str = Field(
        default="$",
        description="Symbol prefixed to formatted amounts"
    )
    thousands_separator: str = Field(
        default=".",
        max_length=1,
        description="Digit group separator for formatted amounts"
    )

    # Validation
    min_participants_for_expense: int = Field(
        default=2,
        ge=1,
        description="Participants needed before an expense can be added"
    )
    strict_validation: bool = Field(
        default=True,
        description="Reject invalid participants/expenses instead of only logging them"
    )

    # Storage
    storage_backend: str = Field(
        default="json",
        pattern="^(json|memory|google_sheets)$",
        description="Where the ledger state is persisted"
    )
    storage_path: str = Field(
        default="pagapues_state.json",
        description="File used by the json storage backend"
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

    # Note: These are loaded lazily to allow partial configuration

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

    Returns a dict of {setting_name: is_valid}, plus
    `<setting_name>_error` entries describing failures.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
