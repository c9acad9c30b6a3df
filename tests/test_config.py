"""Tests for environment-driven configuration."""

import importlib
import logging

import pytest
import structlog
from pydantic import ValidationError

from splitledger.config import (
    AppSettings,
    SupabaseSettings,
    get_settings,
    configure_logging,
    resolve_log_level,
    validate_all_settings,
)


class TestSupabaseSettings:
    """Store connection settings."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co/")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")

        settings = SupabaseSettings()

        assert settings.url == "https://abc.supabase.co"
        assert settings.key == "anon-key"
        assert settings.expenses_table == "expenses"

    def test_rejects_non_http_url(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "abc.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")
        with pytest.raises(ValidationError):
            SupabaseSettings()

    def test_validate_all_reports_missing(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)

        results = validate_all_settings()

        assert results["supabase"] is False
        assert "supabase_error" in results
        assert results["app"] is True


class TestAppSettings:
    """Local behaviour settings."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = AppSettings()
        assert settings.currency_symbol == "€"
        assert settings.settled_tolerance == 0.01
        assert settings.log_level == "INFO"

    def test_rejects_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_lowercase_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " debug ")
        assert AppSettings().log_level == "DEBUG"

    def test_preferences_file_expands_home(self):
        settings = AppSettings(preferences_path="~/prefs.json")
        assert "~" not in str(settings.preferences_file)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    """Structured logging setup."""

    def test_configured_on_package_import(self):
        import splitledger
        importlib.reload(splitledger)
        assert structlog.is_configured()

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert resolve_log_level() == logging.WARNING

    def test_bad_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        assert resolve_log_level() == logging.INFO

    def test_configure_tolerates_bad_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        configure_logging()
        assert structlog.is_configured()

    def test_engine_logs_after_settlement_import(self):
        from splitledger.settlement import compute_balance
        compute_balance([{"user_id": 1, "amount": "bad", "split_type": "50-50"}], 1, 2)
        assert structlog.is_configured()
