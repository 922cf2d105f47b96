"""
FinTrack Configuration

One pydantic-settings class per concern, read from the environment and .env.

DESIGN DECISION: Only the sections a feature actually touches are loaded.
The app runs on the in-memory backend with no variables set at all; the
Gemini key is read the first time advice is requested and the Sheets
credentials only when GOOGLE_SHEETS storage is selected.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets key/value backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
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

    # One worksheet holds every persisted record as a key/value row
    records_sheet_name: str = Field(
        default="Records",
        description="Name of the sheet holding key/value records"
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


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the financial advisor."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    advice_transaction_limit: int = Field(
        default=50,
        ge=1,
        le=50,
        description="How many recent transactions the advisor may see"
    )


class ExchangeRateSettings(BaseSettings):
    """Exchange-rate endpoint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATE_",
        env_file=".env",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest",
        description="Endpoint returning {'rates': {...}} for a base currency"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="HTTP timeout for a single rate fetch"
    )
    max_cards: int = Field(
        default=3,
        ge=1,
        le=3,
        description="Hard ceiling on live exchange cards per profile"
    )


class AppSettings(BaseSettings):
    """Runtime switches: which backend, which key namespace, how loud."""

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

    # Persistence
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Key/value backend: memory or google_sheets"
    )
    key_prefix: str = Field(
        default="fintrack_",
        description="Prefix for every persisted record key"
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    @field_validator("key_prefix")
    @classmethod
    def prefix_has_no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("key_prefix must be non-empty and contain no spaces")
        return v

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Entry point for every settings section.

    Each property builds its section on access, so a missing GEMINI_API_KEY
    only fails the code path that asks for `settings.gemini`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def exchange(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings; tests call get_settings.cache_clear() after patching the env."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every section.

    Returns {section: loaded} plus "{section}_error" for the ones that failed,
    so the UI can say which optional integration is unavailable.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "gemini", "exchange", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
