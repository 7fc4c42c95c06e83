"""
Retry executor with exponential backoff.

This module implements RetryExecutor, the single entry point for running
a generative-AI call with automatic retries. It drives the attempt loop,
classifies each failure, consults the effective RetryPolicy and either
sleeps and retries or raises RetryExhausted.

Attempt loop:
    1. Snapshot the policy (base policy + optional per-call override)
    2. Invoke the operation; return RetryResult on success
    3. On failure: classify -> policy.is_retryable?
    4. Not retryable or last attempt: raise RetryExhausted (cause = last error)
    5. Otherwise compute the backoff delay (a rate limit's Retry-After hint
       stretches it, up to max_delay_ms), record it, sleep, go to 2

Usage:
    executor = RetryExecutor.for_text_generation(event_sink=PrometheusEventSink())
    result = await executor.execute_with_retry(lambda: client.generate_text(req), "caption")
    caption = result.value
"""

import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

import structlog

from postia_generation.config import Settings, default_policy
from postia_generation.errors.classifier import ErrorClassifier
from postia_generation.errors.exceptions import RateLimitError
from postia_generation.errors.messages import is_critical
from postia_generation.logging_config import operation_context
from postia_generation.models.enums import NotificationLevel
from postia_generation.monitoring.events import (
    OUTCOME_FAILURE,
    OUTCOME_RETRY,
    OUTCOME_SUCCESS,
    EventSink,
    PrometheusEventSink,
    RetryEvent,
)
from postia_generation.monitoring.notifications import GenerationNotice, Notifier
from postia_generation.retry import presets
from postia_generation.retry.context import RetryContext, RetryResult
from postia_generation.retry.exceptions import RetryExhausted
from postia_generation.retry.policy import RetryPolicy

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[Any]]
PolicyOverride = Union[RetryPolicy, Mapping[str, Any]]


class RetryExecutor:
    """
    Runs async operations under a RetryPolicy.

    Executions are independent: each call builds its own RetryContext and
    snapshots the policy at start, so concurrent calls on one executor share
    nothing mutable. Collaborators are injected and optional:

    Attributes:
        classifier: Maps exceptions to ClassifiedError
        event_sink: Receives one RetryEvent per attempt outcome (metrics)
        notifier: Receives GenerationNotice on retries and terminal failures

    Cancellation is not modeled. Cancelling the task running
    execute_with_retry propagates through the backoff sleep untouched.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        classifier: Optional[ErrorClassifier] = None,
        event_sink: Optional[EventSink] = None,
        notifier: Optional[Notifier] = None,
        sleep: SleepFn = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self._policy = policy if policy is not None else RetryPolicy()
        self.classifier = classifier if classifier is not None else ErrorClassifier()
        self.event_sink = event_sink
        self.notifier = notifier
        self._sleep = sleep
        self._rng = rng

    # === Construction ===

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "RetryExecutor":
        """Executor with the RETRY_* policy and Prometheus metrics if enabled."""
        if settings.PROMETHEUS_ENABLED:
            kwargs.setdefault("event_sink", PrometheusEventSink())
        return cls(default_policy(settings), **kwargs)

    @classmethod
    def for_text_generation(cls, **kwargs: Any) -> "RetryExecutor":
        return cls(presets.text_generation(), **kwargs)

    @classmethod
    def for_image_generation(cls, **kwargs: Any) -> "RetryExecutor":
        return cls(presets.image_generation(), **kwargs)

    @classmethod
    def conservative(cls, **kwargs: Any) -> "RetryExecutor":
        return cls(presets.conservative(), **kwargs)

    @classmethod
    def aggressive(cls, **kwargs: Any) -> "RetryExecutor":
        return cls(presets.aggressive(), **kwargs)

    # === Configuration ===

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def update_config(self, **changes: Any) -> RetryPolicy:
        """
        Replace the base policy with a copy carrying ``changes``.

        Takes effect for executions started afterwards; in-flight executions
        keep the snapshot they started with.
        """
        self._policy = self._policy.with_overrides(changes)
        logger.info(
            "Retry policy updated",
            changes=sorted(changes),
            max_attempts=self._policy.max_attempts,
        )
        return self._policy

    def effective_policy(self, override_policy: Optional[PolicyOverride] = None) -> RetryPolicy:
        if override_policy is None:
            return self._policy
        if isinstance(override_policy, RetryPolicy):
            overrides = override_policy.model_dump(exclude_unset=True)
        else:
            overrides = dict(override_policy)
        return self._policy.with_overrides(overrides)

    # === Execution ===

    async def execute_with_retry(
        self,
        operation: Operation[T],
        label: str,
        override_policy: Optional[PolicyOverride] = None,
        notice_context: Optional[Mapping[str, Any]] = None,
    ) -> RetryResult[T]:
        """
        Run ``operation`` until it succeeds or fails terminally.

        Args:
            operation: Zero-argument callable returning an awaitable
            label: Human-readable operation name for logs, metrics and errors
            override_policy: Partial policy (mapping or RetryPolicy with only
                some fields set) applied over the executor's policy
            notice_context: Identifiers attached to notifications
                (publication_id, campaign_id, ...)

        Returns:
            RetryResult with the operation's value and attempt metadata

        Raises:
            RetryExhausted: Non-retryable failure or attempts exhausted;
                ``__cause__`` is the last exception raised by the operation
        """
        policy = self.effective_policy(override_policy)
        context = RetryContext(total_attempts=policy.max_attempts)
        extra_context = dict(notice_context or {})

        with operation_context(label):
            while True:
                context.attempt += 1

                logger.info(
                    f"[{label}] Attempt {context.attempt}/{policy.max_attempts}",
                    label=label,
                    attempt=context.attempt,
                    max_attempts=policy.max_attempts,
                )

                try:
                    value = await operation()
                except Exception as exc:
                    context.last_error = exc
                    classified = self.classifier.classify(exc)
                    retryable = policy.is_retryable(classified)
                    final_attempt = context.attempt >= policy.max_attempts

                    logger.warning(
                        f"[{label}] Attempt {context.attempt} failed",
                        label=label,
                        attempt=context.attempt,
                        error=str(exc),
                        error_kind=classified.kind.value,
                        retryable=retryable,
                    )

                    if not retryable or final_attempt:
                        context.finish()
                        logger.error(
                            f"[{label}] Giving up",
                            label=label,
                            attempts=context.attempt,
                            reason="not_retryable" if not retryable else "attempts_exhausted",
                            error_kind=classified.kind.value,
                            elapsed_ms=context.elapsed_ms,
                            delays_ms=list(context.delays_applied),
                        )
                        self._record(
                            RetryEvent(
                                label=label,
                                outcome=OUTCOME_FAILURE,
                                attempt=context.attempt,
                                error_kind=classified.kind.value,
                                elapsed_ms=context.elapsed_ms,
                            )
                        )
                        self._notify(
                            GenerationNotice(
                                label=label,
                                level=NotificationLevel.ERROR,
                                error_kind=classified.kind,
                                attempt=context.attempt,
                                total_attempts=policy.max_attempts,
                                retryable=classified.retryable,
                                critical=is_critical(classified),
                                context=extra_context,
                            )
                        )
                        raise RetryExhausted(label, context, exc, classified) from exc

                    delay_ms = self._backoff_delay(policy, context.attempt, exc)
                    context.delays_applied.append(delay_ms)

                    logger.info(
                        f"[{label}] Waiting {delay_ms:.0f}ms before retry",
                        label=label,
                        attempt=context.attempt,
                        delay_ms=delay_ms,
                    )
                    self._record(
                        RetryEvent(
                            label=label,
                            outcome=OUTCOME_RETRY,
                            attempt=context.attempt,
                            error_kind=classified.kind.value,
                            delay_ms=delay_ms,
                            elapsed_ms=context.elapsed_ms,
                        )
                    )
                    self._notify(
                        GenerationNotice(
                            label=label,
                            level=NotificationLevel.WARNING,
                            error_kind=classified.kind,
                            attempt=context.attempt,
                            total_attempts=policy.max_attempts,
                            retryable=True,
                            context=extra_context,
                        )
                    )

                    await self._sleep(delay_ms / 1000.0)
                    continue

                context.finish()
                logger.info(
                    f"[{label}] Success on attempt {context.attempt}",
                    label=label,
                    attempt=context.attempt,
                    elapsed_ms=context.elapsed_ms,
                )
                self._record(
                    RetryEvent(
                        label=label,
                        outcome=OUTCOME_SUCCESS,
                        attempt=context.attempt,
                        elapsed_ms=context.elapsed_ms,
                    )
                )
                return RetryResult(value=value, context=context, succeeded_on_attempt=context.attempt)

    def _backoff_delay(self, policy: RetryPolicy, attempt: int, error: Exception) -> float:
        """Backoff delay in ms, stretched to a rate limit's Retry-After (capped)."""
        delay_ms = policy.compute_delay(attempt, self._rng)
        if isinstance(error, RateLimitError) and error.retry_after:
            delay_ms = min(max(delay_ms, error.retry_after * 1000.0), policy.max_delay_ms)
        return delay_ms

    # === Collaborators ===

    def _record(self, event: RetryEvent) -> None:
        if self.event_sink is None:
            return
        try:
            self.event_sink.record(event)
        except Exception:
            logger.warning("Retry event sink failed", label=event.label, exc_info=True)

    def _notify(self, notice: GenerationNotice) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(notice)
        except Exception:
            logger.warning("Retry notifier failed", label=notice.label, exc_info=True)


def with_retry(
    func: Callable[..., Awaitable[T]],
    executor: RetryExecutor,
    label: Optional[str] = None,
    override_policy: Optional[PolicyOverride] = None,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async callable so every call runs under ``executor``.

    The wrapped function takes the same arguments as ``func`` and returns
    the bare value; failures surface as RetryExhausted.
    """
    operation_label = label or getattr(func, "__qualname__", repr(func))

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        result = await executor.execute_with_retry(
            lambda: func(*args, **kwargs),
            operation_label,
            override_policy,
        )
        return result.value

    return wrapper
