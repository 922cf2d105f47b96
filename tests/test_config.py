"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from fintrack.config import AppSettings, ExchangeRateSettings, GeminiSettings, get_settings, validate_all_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """No .env file and none of our variables set."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "GEMINI_API_KEY",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "STORAGE_BACKEND",
        "KEY_PREFIX",
        "LOG_LEVEL",
        "EXCHANGE_RATE_MAX_CARDS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:
    """Tests for runtime switches."""

    def test_defaults_need_no_environment(self):
        """Test that the app starts on the memory backend with nothing set."""
        app = AppSettings()
        assert app.storage_backend == "memory"
        assert app.key_prefix == "fintrack_"
        assert app.log_level == "INFO"

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_bad_values_are_rejected(self, monkeypatch):
        monkeypatch.setenv("KEY_PREFIX", "my app_")
        with pytest.raises(ValidationError):
            AppSettings()

        monkeypatch.delenv("KEY_PREFIX")
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()


class TestSections:
    """Tests for the per-integration sections."""

    def test_gemini_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        gemini = GeminiSettings()
        assert gemini.api_key == "test-key"
        assert gemini.advice_transaction_limit == 50

    def test_card_cap_cannot_exceed_three(self, monkeypatch):
        monkeypatch.setenv("EXCHANGE_RATE_MAX_CARDS", "5")
        with pytest.raises(ValidationError):
            ExchangeRateSettings()

    def test_validate_all_reports_missing_sections(self):
        """Test that optional integrations fail on their own."""
        results = validate_all_settings()
        assert results["app"] is True
        assert results["exchange"] is True
        assert results["gemini"] is False
        assert "gemini_error" in results
        assert results["google_sheets"] is False
