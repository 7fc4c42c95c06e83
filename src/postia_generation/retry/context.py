"""
Retry execution state and result.

RetryContext is the mutable per-call state owned by a single
``execute_with_retry`` invocation. RetryResult is the frozen success
wrapper handed back to the caller.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class RetryContext:
    """
    Per-execution retry state.

    Invariants (maintained by RetryExecutor):
    - 0 <= attempt <= total_attempts
    - len(delays_applied) == attempt - 1 until the call returns or raises

    Attributes:
        attempt: Current attempt number (1-based; 0 before the first attempt)
        total_attempts: Attempt ceiling from the effective policy
        delays_applied: Milliseconds actually waited, in order
        start_time: Monotonic clock reading at call start (seconds)
        started_at: Wall-clock start time, for audit
        last_error: Last exception raised by the operation
        end_time: Monotonic clock reading when the call finished
    """

    total_attempts: int
    attempt: int = 0
    delays_applied: list[float] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_error: Optional[BaseException] = None
    end_time: Optional[float] = None

    def finish(self) -> None:
        """Freeze elapsed time once the call returns or raises."""
        if self.end_time is None:
            self.end_time = time.monotonic()

    @property
    def elapsed_ms(self) -> int:
        end = self.end_time if self.end_time is not None else time.monotonic()
        return int((end - self.start_time) * 1000)

    @property
    def average_delay_ms(self) -> float:
        if not self.delays_applied:
            return 0.0
        return sum(self.delays_applied) / len(self.delays_applied)


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """
    Successful outcome of ``execute_with_retry``.

    Attributes:
        value: Value returned by the wrapped operation
        context: Retry state at the moment of success
        succeeded_on_attempt: Attempt number that succeeded (1-based)
    """

    value: T
    context: RetryContext
    succeeded_on_attempt: int

    @property
    def delays_applied(self) -> list[float]:
        return list(self.context.delays_applied)

    @property
    def elapsed_ms(self) -> int:
        return self.context.elapsed_ms
