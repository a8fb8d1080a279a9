"""
Application settings and configuration management using Pydantic Settings.
"""
from typing import Optional

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="Restaurant Booking Core", description="Application name")
    app_env: str = Field(default="development", description="Environment (development, staging, production)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./restaurant_booking.db",
        description="Database connection URL"
    )
    database_echo: bool = Field(default=False, description="Log all SQL statements")

    # Scheduling
    default_timezone: str = Field(
        default="Asia/Bangkok",
        description="IANA zone used when a restaurant has none configured"
    )

    # Reservation Policy
    max_active_reservations: int = Field(
        default=3, ge=1, description="Booked reservations a non-admin may hold system-wide"
    )
    allow_terminal_reopen: bool = Field(
        default=False, description="Let admins move completed/cancelled reservations back to booked"
    )
    quota_counts_finished: bool = Field(
        default=False, description="Count completed/cancelled reservations toward the quota as well"
    )

    # Reviews & Ratings
    rating_decimal_places: int = Field(default=2, ge=0, le=6, description="Precision of averageRating")
    review_message_max_length: int = Field(default=500, ge=1, description="Maximum review message length")
    reviews_page_size: int = Field(default=10, ge=1, le=100, description="Default reviews per page")
    aggregate_async: bool = Field(
        default=False, description="Recompute rating aggregates on a background executor"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "testing", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v_lower

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        """Validate the default zone is a known IANA identifier."""
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"


# Singleton instance
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
