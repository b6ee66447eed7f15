"""Configuration package."""

from vittas.config.settings import (
    AppSettings,
    RazorpaySettings,
    Settings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "RazorpaySettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
