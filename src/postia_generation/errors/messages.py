"""User-facing messages and titles per error kind."""

from postia_generation.models.enums import ErrorKind
from postia_generation.models.error_models import ClassifiedError

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.PROVIDER_TEXT_FAILURE: "The text generation service had a temporary error. Retrying...",
    ErrorKind.PROVIDER_IMAGE_FAILURE: "The image generation service had a temporary error. Retrying...",
    ErrorKind.NETWORK: "Connection error. Checking connectivity...",
    ErrorKind.TIMEOUT: "The operation is taking longer than expected. Retrying...",
    ErrorKind.RATE_LIMIT: "Usage limit reached. Waiting before continuing...",
    ErrorKind.VALIDATION: "The provided data is invalid. Review the configuration.",
    ErrorKind.UNKNOWN: "Unexpected error. Contact support if it persists.",
}

FAILURE_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.PROVIDER_TEXT_FAILURE: "The text generation service kept failing. Try again in a few minutes.",
    ErrorKind.PROVIDER_IMAGE_FAILURE: "The image generation service kept failing. Try again in a few minutes.",
    ErrorKind.NETWORK: "Could not reach the generation service. Check your connection and try again.",
    ErrorKind.TIMEOUT: "The operation took too long and was stopped. Try again later.",
    ErrorKind.RATE_LIMIT: "Usage limit reached. Wait a moment before trying again.",
    ErrorKind.VALIDATION: "The provided data is invalid. Review the configuration.",
    ErrorKind.UNKNOWN: "Unexpected error. Contact support if it persists.",
}

ERROR_TITLES: dict[ErrorKind, str] = {
    ErrorKind.PROVIDER_TEXT_FAILURE: "Text generation error",
    ErrorKind.PROVIDER_IMAGE_FAILURE: "Image generation error",
    ErrorKind.NETWORK: "Connection error",
    ErrorKind.TIMEOUT: "Timed out",
    ErrorKind.RATE_LIMIT: "Usage limit reached",
    ErrorKind.VALIDATION: "Invalid data",
    ErrorKind.UNKNOWN: "Unexpected error",
}


def user_message(kind: ErrorKind, terminal: bool = False) -> str:
    """Message while retrying, or once the operation has given up (``terminal``)."""
    messages = FAILURE_MESSAGES if terminal else USER_MESSAGES
    return messages.get(kind, messages[ErrorKind.UNKNOWN])


def error_title(kind: ErrorKind) -> str:
    return ERROR_TITLES.get(kind, ERROR_TITLES[ErrorKind.UNKNOWN])


def is_critical(classified: ClassifiedError) -> bool:
    """Critical errors need user action; retrying cannot fix them."""
    return classified.kind is ErrorKind.VALIDATION
