"""
Error classifier.

Maps heterogeneous failures from the generative-AI provider to the bounded
ErrorKind decision space used by retry policies.

Classification order:
    1. GenerationError subclasses carry their kind explicitly (pass-through)
    2. Built-in TimeoutError / ConnectionError are mapped by type
    3. Anything else: first-match-wins substring heuristics on the
       lower-cased message (network, timeout, rate limit, text provider,
       image provider, validation), falling back to UNKNOWN
"""

import asyncio

import structlog

from postia_generation.errors.exceptions import GenerationError
from postia_generation.models.enums import DEFAULT_RETRYABLE_KINDS, ErrorKind
from postia_generation.models.error_models import ClassifiedError

logger = structlog.get_logger(__name__)


# Ordered: the first group with a matching token wins.
MESSAGE_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.NETWORK, ("network", "connection", "fetch")),
    (ErrorKind.TIMEOUT, ("timeout", "aborted")),
    (ErrorKind.RATE_LIMIT, ("rate limit", "quota", "429")),
    (ErrorKind.PROVIDER_TEXT_FAILURE, ("gemini", "generativelanguage")),
    (ErrorKind.PROVIDER_IMAGE_FAILURE, ("nano banana", "image generation")),
    (ErrorKind.VALIDATION, ("validation", "invalid", "malformed")),
)


def kind_from_message(message: str) -> ErrorKind:
    """Classify a bare message using the ordered substring rules."""
    lowered = message.lower()
    for kind, tokens in MESSAGE_RULES:
        if any(token in lowered for token in tokens):
            return kind
    return ErrorKind.UNKNOWN


class ErrorClassifier:
    """
    Stateless classifier: ``classify(error) -> ClassifiedError``.

    Has no side effects besides a debug log line, so one instance can be
    shared by any number of concurrent executors.
    """

    def classify(self, error: BaseException) -> ClassifiedError:
        context: dict = {"error_type": type(error).__name__}

        if isinstance(error, GenerationError):
            kind = error.kind
            retryable = error.retryable
            context["source"] = "typed"
            if error.details:
                context["details"] = error.details
            message = error.message
        else:
            message = str(error)
            if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
                kind = ErrorKind.TIMEOUT
                context["source"] = "type"
            elif isinstance(error, ConnectionError):
                kind = ErrorKind.NETWORK
                context["source"] = "type"
            else:
                kind = kind_from_message(message)
                context["source"] = "message"
            retryable = kind in DEFAULT_RETRYABLE_KINDS

        if kind is ErrorKind.VALIDATION:
            retryable = False

        logger.debug(
            "Classified error",
            error_kind=kind.value,
            retryable=retryable,
            error_type=context["error_type"],
            source=context["source"],
        )

        return ClassifiedError(
            kind=kind,
            message=message,
            retryable=retryable,
            context=context,
            error=error,
        )
