"""Data models for the generation layer."""

from postia_generation.models.enums import (
    DEFAULT_RETRYABLE_KINDS,
    ErrorKind,
    NotificationLevel,
)
from postia_generation.models.error_models import ClassifiedError
from postia_generation.models.llm_models import (
    ImageGenerationRequest,
    ImageGenerationResponse,
    TextGenerationRequest,
    TextGenerationResponse,
)

__all__ = [
    "DEFAULT_RETRYABLE_KINDS",
    "ErrorKind",
    "NotificationLevel",
    "ClassifiedError",
    "TextGenerationRequest",
    "TextGenerationResponse",
    "ImageGenerationRequest",
    "ImageGenerationResponse",
]
