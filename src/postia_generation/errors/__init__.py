"""
Error taxonomy for generative-AI calls.

Typed exceptions are raised by the client layer with an explicit ErrorKind;
the ErrorClassifier turns any exception (typed or not) into a
ClassifiedError that retry policies decide on.
"""

from postia_generation.errors.classifier import ErrorClassifier, kind_from_message
from postia_generation.errors.exceptions import (
    GenerationError,
    GenerationNetworkError,
    GenerationTimeoutError,
    GenerationValidationError,
    ImageProviderError,
    RateLimitError,
    TextProviderError,
)
from postia_generation.errors.messages import error_title, is_critical, user_message

__all__ = [
    "ErrorClassifier",
    "kind_from_message",
    "GenerationError",
    "GenerationNetworkError",
    "GenerationTimeoutError",
    "GenerationValidationError",
    "ImageProviderError",
    "RateLimitError",
    "TextProviderError",
    "error_title",
    "is_critical",
    "user_message",
]
