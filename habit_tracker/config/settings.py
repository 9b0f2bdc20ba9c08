"""
Configuration Management for Habit Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Billing constants (threshold and charge amount) live here too, so the
engine never hard-codes money values.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingSettings(BaseSettings):
    """Charge assessment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BILLING_",
        extra="ignore"
    )

    charge_amount: Decimal = Field(
        default=Decimal("3"),
        ge=0,
        description="Fixed charge when a user misses the threshold in a month"
    )
    completion_threshold: float = Field(
        default=0.80,
        gt=0.0,
        le=1.0,
        description="Completion rate below which the charge applies"
    )
    currency_symbol: str = Field(
        default="£",
        description="Currency symbol used in table headers"
    )


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
    users_sheet_name: str = Field(
        default="User Habits",
        description="Name of the sheet holding users and their habits"
    )
    summary_sheet_name: str = Field(
        default="Summary View",
        description="Name of the sheet for per-month summary rows"
    )
    audit_sheet_name: str = Field(
        default="Audit Log",
        description="Name of the sheet for audit logs"
    )
    tracking_sheet_prefix: str = Field(
        default="Tracking ",
        description="Prefix of monthly tracking sheet names"
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
    def billing(self) -> BillingSettings:
        return BillingSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()


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

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("billing", "google_sheets"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
