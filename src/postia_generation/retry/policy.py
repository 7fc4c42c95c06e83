"""
Retry policy: configuration plus the two decisions made from it.

A RetryPolicy is immutable. Executors snapshot the policy at call start,
so replacing an executor's policy never affects an in-flight retry loop.
"""

import random
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from postia_generation.models.enums import DEFAULT_RETRYABLE_KINDS, ErrorKind
from postia_generation.models.error_models import ClassifiedError

JITTER_RATIO = 0.10


class RetryPolicy(BaseModel):
    """
    Retry configuration.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        base_delay_ms: Delay before the second attempt
        max_delay_ms: Upper bound for every computed delay
        backoff_multiplier: Growth factor between successive delays
        jitter_enabled: Apply symmetric +/-10% random jitter
        retryable_kinds: Error kinds this policy is willing to retry
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    base_delay_ms: float = Field(default=1000.0, ge=0)
    max_delay_ms: float = Field(default=30000.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    jitter_enabled: bool = True
    retryable_kinds: frozenset[ErrorKind] = Field(default=DEFAULT_RETRYABLE_KINDS)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryPolicy":
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= base_delay_ms ({self.base_delay_ms})"
            )
        return self

    def is_retryable(self, classified: ClassifiedError) -> bool:
        """
        Decide whether a classified failure should be retried.

        VALIDATION is never retried, whatever the policy says. UNKNOWN is
        non-retryable by default and only retried when the policy lists it.
        """
        if classified.kind is ErrorKind.VALIDATION:
            return False
        if classified.kind is ErrorKind.UNKNOWN:
            return ErrorKind.UNKNOWN in self.retryable_kinds
        return classified.retryable and classified.kind in self.retryable_kinds

    def compute_delay(self, attempt_number: int, rng: Optional[random.Random] = None) -> float:
        """
        Delay in milliseconds to wait after failed attempt ``attempt_number``.

        delay = min(base * multiplier^(attempt-1), max), then +/-10% jitter,
        then clamped to [0, max_delay_ms].
        """
        if attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {attempt_number}")

        source = rng if rng is not None else random
        delay = min(self._exponential_delay(attempt_number), self.max_delay_ms)

        if self.jitter_enabled:
            jitter = delay * JITTER_RATIO * source.random()
            delay = delay + jitter if source.random() > 0.5 else delay - jitter

        return min(max(delay, 0.0), self.max_delay_ms)

    def _exponential_delay(self, attempt_number: int) -> float:
        if self.base_delay_ms == 0:
            return 0.0
        try:
            return self.base_delay_ms * self.backoff_multiplier ** (attempt_number - 1)
        except OverflowError:
            # Past the float range the cap applies anyway
            return self.max_delay_ms

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "RetryPolicy":
        """Return a new validated policy with the given fields replaced."""
        if not overrides:
            return self
        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown retry policy fields: {', '.join(sorted(unknown))}")
        data = self.model_dump()
        data.update(overrides)
        return type(self).model_validate(data)
