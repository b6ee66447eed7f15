"""
Configuration Management for Vittas

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every external dependency (Supabase, Razorpay) has its own settings class
with its own env prefix, and the whole tree is validated at startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (PostgREST + Auth) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Project URL, e.g. https://xyz.supabase.co"
    )
    anon_key: str = Field(
        ...,
        description="Public anon key (used with a user's access token)"
    )
    service_role_key: Optional[str] = Field(
        default=None,
        description="Service role key for backend functions"
    )

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def backend_key(self) -> str:
        """Key used by backend functions: service role if set, else anon."""
        return self.service_role_key or self.anon_key


class RazorpaySettings(BaseSettings):
    """
    Razorpay payment gateway configuration.

    Credentials are optional at load time. Operations that need them
    raise ConfigurationError when they are missing.
    """

    model_config = SettingsConfigDict(
        env_prefix="RAZORPAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    key_id: Optional[str] = Field(
        default=None,
        description="Publishable key id (also handed to the checkout widget)"
    )
    key_secret: Optional[str] = Field(
        default=None,
        description="Secret key used for basic auth"
    )
    webhook_secret: Optional[str] = Field(
        default=None,
        description="Secret for verifying X-Razorpay-Signature on webhooks"
    )
    api_base: str = Field(
        default="https://api.razorpay.com",
        description="Razorpay API base URL"
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.key_id and self.key_secret)


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
        description="Log level for structured logging"
    )

    # Money
    default_currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="Currency used for display and for processor orders"
    )

    # Subscriptions
    default_tier: str = Field(
        default="Individual",
        description="Tier a user falls back to when not subscribed"
    )
    subscription_length_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Length of one paid subscription period"
    )

    # UPI
    upi_id: str = Field(
        default="vittas@razorpay",
        description="UPI id payments are collected on"
    )
    upi_payee_name: str = Field(
        default="Vittas",
        description="Payee name shown in UPI apps"
    )

    # Dashboard
    recent_transactions_limit: int = Field(
        default=4,
        ge=1,
        le=50,
        description="How many transactions the dashboard shows as recent"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()


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

    # Sub-settings are loaded lazily so a missing Razorpay key
    # does not stop the dashboard from starting.

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def razorpay(self) -> RazorpaySettings:
        return RazorpaySettings()

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
    {setting_name}_error entries for the ones that failed.
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
        razorpay = settings.razorpay
        results["razorpay"] = razorpay.has_credentials
        if not razorpay.has_credentials:
            results["razorpay_error"] = "Razorpay credentials not configured"
    except Exception as e:
        results["razorpay"] = False
        results["razorpay_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
