"""
Retry executor exceptions.

RetryExhausted is the single terminal error raised by RetryExecutor, either
because the attempt ceiling was reached or because the failure was not
retryable. The last raw exception is chained as ``__cause__``.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from postia_generation.models.error_models import ClassifiedError
    from postia_generation.retry.context import RetryContext


def _format_ms(value: float) -> str:
    return f"{value:.0f}"


class RetryExhausted(Exception):
    """
    Raised when a wrapped operation fails terminally.

    The message is a multi-line summary of the whole execution, e.g.::

        [generate-caption] Failed after 3 attempts in 3012 ms
        Last error: Network error
        Average delay: 150 ms
        Delays: [100, 200] ms

    Attributes:
        label: Operation label passed to execute_with_retry
        context: Final RetryContext (attempts, delays, timing)
        last_error: Last exception raised by the operation
        classified: Classification of the last exception
    """

    def __init__(
        self,
        label: str,
        context: "RetryContext",
        last_error: BaseException,
        classified: "ClassifiedError",
    ) -> None:
        self.label = label
        self.context = context
        self.last_error = last_error
        self.classified = classified

        attempts = context.attempt
        noun = "attempt" if attempts == 1 else "attempts"
        delays = ", ".join(_format_ms(d) for d in context.delays_applied)

        super().__init__(
            f"[{label}] Failed after {attempts} {noun} in {context.elapsed_ms} ms\n"
            f"Last error: {last_error}\n"
            f"Average delay: {_format_ms(context.average_delay_ms)} ms\n"
            f"Delays: [{delays}] ms"
        )

    @property
    def attempts(self) -> int:
        return self.context.attempt

    @property
    def error_kind(self):
        return self.classified.kind
