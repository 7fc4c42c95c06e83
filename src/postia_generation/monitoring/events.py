"""
Retry events and event sinks.

RetryExecutor reports one RetryEvent per attempt outcome to an injected
EventSink. Sinks are fire-and-forget: the executor logs and ignores any
exception a sink raises.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import structlog

from postia_generation.monitoring.metrics import (
    generation_attempts_total,
    generation_operation_duration_seconds,
    generation_retries_total,
    generation_retry_delay_seconds,
    generation_retry_exhausted_total,
)

logger = structlog.get_logger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_RETRY = "retry"
OUTCOME_FAILURE = "failure"


@dataclass(frozen=True)
class RetryEvent:
    """
    One attempt outcome.

    Attributes:
        label: Operation label
        outcome: success, retry or failure
        attempt: Attempt number the event refers to (1-based)
        error_kind: Classified kind of the failure (None on success)
        delay_ms: Backoff scheduled after this attempt (retry only)
        elapsed_ms: Time since the execution started
    """

    label: str
    outcome: str
    attempt: int
    error_kind: Optional[str] = None
    delay_ms: Optional[float] = None
    elapsed_ms: int = 0


class EventSink(Protocol):
    def record(self, event: RetryEvent) -> None:
        ...


class PrometheusEventSink:
    """Translate RetryEvents into the Prometheus metrics in ``metrics``."""

    def record(self, event: RetryEvent) -> None:
        generation_attempts_total.labels(
            operation=event.label, outcome=event.outcome
        ).inc()

        if event.outcome == OUTCOME_RETRY:
            generation_retries_total.labels(
                operation=event.label, error_kind=event.error_kind or "unknown"
            ).inc()
            if event.delay_ms is not None:
                generation_retry_delay_seconds.labels(operation=event.label).observe(
                    event.delay_ms / 1000.0
                )
        elif event.outcome == OUTCOME_FAILURE:
            generation_retry_exhausted_total.labels(
                operation=event.label, error_kind=event.error_kind or "unknown"
            ).inc()
            generation_operation_duration_seconds.labels(
                operation=event.label, success="false"
            ).observe(event.elapsed_ms / 1000.0)
        elif event.outcome == OUTCOME_SUCCESS:
            generation_operation_duration_seconds.labels(
                operation=event.label, success="true"
            ).observe(event.elapsed_ms / 1000.0)


class NullEventSink:
    """Discards events (used when PROMETHEUS_ENABLED is false)."""

    def record(self, event: RetryEvent) -> None:
        logger.debug("Retry event discarded", label=event.label, outcome=event.outcome)
