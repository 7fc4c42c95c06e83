"""
Configuration settings for the Postia generation layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from typing import TYPE_CHECKING

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from postia_generation.retry.policy import RetryPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Postia Generation"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Default Retry Policy ===
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_MS: float = 1000.0
    RETRY_MAX_DELAY_MS: float = 30000.0
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    RETRY_JITTER_ENABLED: bool = True

    # === Gemini Configuration ===
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TEXT_MODEL: str = "gemini-2.5-flash"
    GEMINI_IMAGE_MODEL: str = "gemini-2.5-flash-image"
    GEMINI_TIMEOUT: int = 30  # seconds

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    # === Notifications ===
    NOTIFICATIONS_MAX: int = 50
    NOTIFICATION_DEFAULT_DURATION_MS: int = 5000
    NOTIFICATIONS_GROUP_SIMILAR: bool = True


def default_policy(settings: Settings) -> "RetryPolicy":
    """Build the base retry policy from the RETRY_* settings."""
    from postia_generation.retry.policy import RetryPolicy

    return RetryPolicy(
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        base_delay_ms=settings.RETRY_BASE_DELAY_MS,
        max_delay_ms=settings.RETRY_MAX_DELAY_MS,
        backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
        jitter_enabled=settings.RETRY_JITTER_ENABLED,
    )


# Global settings instance
settings = Settings()
