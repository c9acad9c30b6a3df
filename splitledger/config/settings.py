"""
Configuration Management for Split Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The only external dependency is the Supabase REST store; everything
else is local behaviour (currency symbol, tolerances, preference file).
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (PostgREST) data store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL (https://<ref>.supabase.co)"
    )
    key: str = Field(
        ...,
        description="Supabase API key (anon or service role)"
    )

    # Table names
    users_table: str = Field(default="users")
    categories_table: str = Field(default="categories")
    expenses_table: str = Field(default="expenses")
    audit_table: str = Field(
        default="audit_events",
        description="Table for persisted audit events"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Supabase URLs are always http(s)."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Supabase URL must start with http:// or https://, got: {v}")
        return v.rstrip("/")


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
        pattern="^(DEBUG|INFO|WARNING|ERROR)$",
        description="Minimum level for local structured logs"
    )

    # Presentation
    currency_symbol: str = Field(
        default="€",
        max_length=3,
        description="Symbol prefixed to formatted amounts"
    )
    settled_tolerance: float = Field(
        default=0.01,
        ge=0.0,
        description="Net balances below this are shown as settled up"
    )

    # Primary viewer preference
    preferences_path: str = Field(
        default=".splitledger/preferences.json",
        description="Where the primary viewer choice is stored"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=10000.0,
        gt=0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an expense date can be"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @property
    def preferences_file(self) -> Path:
        """Preference path as a Path, with ~ expanded."""
        return Path(self.preferences_path).expanduser()


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
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.supabase
        results["supabase"] = True
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
