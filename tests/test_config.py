"""Tests for configuration and component wiring."""

import pytest

from finance_tracker.config import ApiSettings, AppSettings, Settings, StorageSettings
from finance_tracker.orchestrator import create_app_components
from finance_tracker.services.storage import InMemoryEntityStore


class TestSettings:
    """Tests for environment-driven settings."""

    def test_app_defaults(self):
        """Test dashboard defaults."""
        settings = AppSettings()
        assert settings.monthly_budget == 2000
        assert settings.trend_months == 6
        assert settings.comparison_months == 3
        assert settings.recent_transactions_limit == 8
        assert settings.expense_categories_list == [
            "Groceries", "Transport", "Bills", "Entertainment", "Health", "Other"
        ]
        assert "Freelance" in settings.income_sources_list

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        """Test a bad log level fails fast."""
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_env_override(self, monkeypatch):
        """Test values come from the environment."""
        monkeypatch.setenv("MONTHLY_BUDGET", "3500")
        monkeypatch.setenv("API_PORT", "9000")
        assert AppSettings().monthly_budget == 3500
        assert ApiSettings().port == 9000

    def test_cors_origins_list(self):
        """Test comma-separated origins are split."""
        api = ApiSettings(cors_origins="http://a.test, http://b.test ,")
        assert api.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_storage_backend_choices(self):
        """Test only known backends are accepted."""
        assert StorageSettings().backend == "memory"
        with pytest.raises(ValueError):
            StorageSettings(backend="postgres")


class TestComponents:
    """Tests for create_app_components."""

    def test_memory_backend(self):
        """Test the default wiring uses in-memory storage."""
        service, sheets_client = create_app_components(Settings())
        assert isinstance(service.store, InMemoryEntityStore)
        assert sheets_client is None

    def test_unconfigured_sheets_falls_back(self, monkeypatch):
        """Test a missing Sheets configuration falls back to memory."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        service, sheets_client = create_app_components(Settings())
        assert isinstance(service.store, InMemoryEntityStore)
        assert sheets_client is None
