"""
Pre-tuned retry policies.

Two presets encode the provider call shapes (text vs. image generation);
two encode generic risk profiles (conservative, aggressive).
"""

from postia_generation.models.enums import ErrorKind
from postia_generation.retry.policy import RetryPolicy


def text_generation() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=3,
        base_delay_ms=1000,
        max_delay_ms=15000,
        backoff_multiplier=2,
        jitter_enabled=True,
        retryable_kinds=frozenset(
            {
                ErrorKind.PROVIDER_TEXT_FAILURE,
                ErrorKind.NETWORK,
                ErrorKind.TIMEOUT,
                ErrorKind.RATE_LIMIT,
            }
        ),
    )


def image_generation() -> RetryPolicy:
    """Image calls are slower and flakier: more attempts, longer waits."""
    return RetryPolicy(
        max_attempts=4,
        base_delay_ms=2000,
        max_delay_ms=60000,
        backoff_multiplier=2.5,
        jitter_enabled=True,
        retryable_kinds=frozenset(
            {
                ErrorKind.PROVIDER_IMAGE_FAILURE,
                ErrorKind.PROVIDER_TEXT_FAILURE,
                ErrorKind.NETWORK,
                ErrorKind.TIMEOUT,
                ErrorKind.RATE_LIMIT,
            }
        ),
    )


def conservative() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=2,
        base_delay_ms=500,
        max_delay_ms=5000,
        backoff_multiplier=1.5,
        jitter_enabled=False,
        retryable_kinds=frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT}),
    )


def aggressive() -> RetryPolicy:
    """Retries everything transient, including unclassified failures."""
    return RetryPolicy(
        max_attempts=5,
        base_delay_ms=2000,
        max_delay_ms=120000,
        backoff_multiplier=3,
        jitter_enabled=True,
        retryable_kinds=frozenset(
            {
                ErrorKind.PROVIDER_TEXT_FAILURE,
                ErrorKind.PROVIDER_IMAGE_FAILURE,
                ErrorKind.NETWORK,
                ErrorKind.TIMEOUT,
                ErrorKind.RATE_LIMIT,
                ErrorKind.UNKNOWN,
            }
        ),
    )
