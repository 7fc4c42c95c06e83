"""
Retry/backoff for generative-AI calls.

Main Components:
    - RetryExecutor: Drives the attempt loop and backoff sleeps
    - RetryPolicy: Immutable configuration + retry/delay decisions
    - presets: text_generation, image_generation, conservative, aggressive
    - RetryResult / RetryContext: Attempt metadata
    - RetryExhausted: Terminal error wrapping the last failure

Usage:
    >>> from postia_generation.retry import RetryExecutor
    >>> executor = RetryExecutor.for_image_generation()
    >>> result = await executor.execute_with_retry(make_image, "post-image")
"""

from postia_generation.retry import presets
from postia_generation.retry.context import RetryContext, RetryResult
from postia_generation.retry.exceptions import RetryExhausted
from postia_generation.retry.executor import RetryExecutor, with_retry
from postia_generation.retry.policy import RetryPolicy

__all__ = [
    "RetryContext",
    "RetryExecutor",
    "RetryExhausted",
    "RetryPolicy",
    "RetryResult",
    "presets",
    "with_retry",
]
