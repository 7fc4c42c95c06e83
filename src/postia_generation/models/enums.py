"""
Enumerations for the generation layer data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """
    Closed taxonomy of generation failure kinds.

    Drives every retry/no-retry decision. VALIDATION is never retried;
    UNKNOWN is retried only when a policy opts in explicitly.
    """

    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    PROVIDER_TEXT_FAILURE = "provider_text_failure"
    PROVIDER_IMAGE_FAILURE = "provider_image_failure"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


DEFAULT_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMIT,
        ErrorKind.PROVIDER_TEXT_FAILURE,
        ErrorKind.PROVIDER_IMAGE_FAILURE,
    }
)


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
