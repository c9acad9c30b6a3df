"""Configuration package."""

from splitledger.config.logging_config import configure_logging, resolve_log_level
from splitledger.config.settings import (
    AppSettings,
    Settings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "configure_logging",
    "resolve_log_level",
    "AppSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
