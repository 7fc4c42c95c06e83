"""
Typed exceptions for generative-AI calls.

These exceptions are raised at the call site (the HTTP client layer) with
their ErrorKind set explicitly, so the classifier does not have to guess
from the message text. Anything that is not a GenerationError falls back
to message heuristics in ErrorClassifier.
"""

from typing import Any, ClassVar, Optional

from postia_generation.models.enums import DEFAULT_RETRYABLE_KINDS, ErrorKind


class GenerationError(Exception):
    """
    Base exception for all generation failures.

    Subclasses fix ``kind``. ``retryable`` defaults to the kind's default
    retryability and can be forced off for a specific failure (e.g. an
    authentication error reported by the provider).
    """

    kind: ClassVar[ErrorKind] = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if retryable is None:
            retryable = self.kind in DEFAULT_RETRYABLE_KINDS
        self.retryable = retryable and self.kind is not ErrorKind.VALIDATION


class GenerationNetworkError(GenerationError):
    """Unable to reach the provider (DNS, connection reset, TLS, ...)."""

    kind = ErrorKind.NETWORK


class GenerationTimeoutError(GenerationError):
    """The provider did not answer within the configured timeout."""

    kind = ErrorKind.TIMEOUT


class RateLimitError(GenerationError):
    """
    The provider rejected the request with a rate-limit or quota error.

    ``retry_after`` carries the provider's Retry-After hint in seconds when
    one was sent.
    """

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        retryable: Optional[bool] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, details, retryable)
        self.retry_after = retry_after
        if retry_after is not None:
            self.details.setdefault("retry_after", retry_after)


class TextProviderError(GenerationError):
    """The text-generation provider returned an error or an unusable response."""

    kind = ErrorKind.PROVIDER_TEXT_FAILURE


class ImageProviderError(GenerationError):
    """The image-generation provider returned an error or an unusable response."""

    kind = ErrorKind.PROVIDER_IMAGE_FAILURE


class GenerationValidationError(GenerationError):
    """The request or its output is invalid. Never retried."""

    kind = ErrorKind.VALIDATION
