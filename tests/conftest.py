"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from postia_generation.config import Settings
from postia_generation.retry.policy import RetryPolicy


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.RETRY_MAX_ATTEMPTS = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="Postia Generation (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Retry ===
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY_MS=100,
        RETRY_MAX_DELAY_MS=1000,
        RETRY_BACKOFF_MULTIPLIER=2.0,
        RETRY_JITTER_ENABLED=False,

        # === Gemini ===
        GEMINI_API_KEY="AIza-test-key",
        GEMINI_BASE_URL="https://generativelanguage.test/v1beta",

        # === Monitoring ===
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def deterministic_policy() -> RetryPolicy:
    """Policy from the reference scenario: 3 attempts, 100ms base, x2, no jitter."""
    return RetryPolicy(
        max_attempts=3,
        base_delay_ms=100,
        max_delay_ms=1000,
        backoff_multiplier=2,
        jitter_enabled=False,
    )
