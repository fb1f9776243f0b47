"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each concern gets its own settings class with an env prefix, so the
storage backend, the HTTP surface and the dashboard can be configured
independently and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class StorageSettings(BaseSettings):
    """Which Entity Store backend to use."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Entity store backend"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
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

    # One worksheet per entity kind
    projects_sheet_name: str = Field(default="Projects")
    expenses_sheet_name: str = Field(default="Expenses")
    income_sheet_name: str = Field(default="Income")
    project_expenses_sheet_name: str = Field(default="ProjectExpenses")
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


class ApiSettings(BaseSettings):
    """HTTP surface configuration (server side and dashboard client side)."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )
    base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Where the dashboard reaches the API"
    )
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def cors_origins_list(self) -> list[str]:
        return _split_csv(self.cors_origins)


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

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False renders for the console)"
    )

    # Dashboard figures
    currency: str = Field(default="INR", min_length=3, max_length=3)
    monthly_budget: float = Field(
        default=2000.0,
        ge=0,
        description="Overall spending budget shown on the dashboard"
    )
    trend_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Months in the monthly trend window"
    )
    comparison_months: int = Field(
        default=3,
        ge=1,
        le=24,
        description="Months in the expense vs income comparison window"
    )
    recent_transactions_limit: int = Field(default=8, ge=1, le=100)

    # Form suggestions; the server does not restrict categories
    expense_categories: str = Field(
        default="Groceries,Transport,Bills,Entertainment,Health,Other"
    )
    income_sources: str = Field(
        default="Salary,Freelance,Investment,Business,Gift,Other"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def expense_categories_list(self) -> list[str]:
        return _split_csv(self.expense_categories)

    @property
    def income_sources_list(self) -> list[str]:
        return _split_csv(self.income_sources)


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

    # Sub-settings are loaded lazily so a partially configured
    # environment (e.g. no Google credentials) still works.

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

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


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus
    {setting_name}_error entries for the failures.
    Google Sheets is only checked when it is the selected backend.
    """
    results: dict[str, bool | str] = {}

    settings = get_settings()

    checks = {
        "app": lambda: settings.app,
        "api": lambda: settings.api,
        "storage": lambda: settings.storage,
    }

    for name, load in checks.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    if results.get("storage") and settings.storage.backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results
