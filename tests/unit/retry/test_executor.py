"""
Unit tests for RetryExecutor.

Tests the attempt loop, backoff bookkeeping, terminal error aggregation
and collaborator handling with an injected recording sleep.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from postia_generation.errors.exceptions import (
    GenerationValidationError,
    RateLimitError,
    TextProviderError,
)
from postia_generation.models.enums import ErrorKind, NotificationLevel
from postia_generation.retry.executor import RetryExecutor, with_retry
from postia_generation.retry.exceptions import RetryExhausted
from postia_generation.retry.policy import RetryPolicy
from postia_generation.retry.presets import aggressive


@pytest.fixture
def executor(deterministic_policy, fake_sleep, event_sink, mock_notifier) -> RetryExecutor:
    return RetryExecutor(
        deterministic_policy,
        event_sink=event_sink,
        notifier=mock_notifier,
        sleep=fake_sleep,
    )


# ============================================================================
# Success paths
# ============================================================================


@pytest.mark.asyncio
async def test_success_first_attempt(executor, fake_sleep, event_sink):
    operation = AsyncMock(return_value="caption")

    result = await executor.execute_with_retry(operation, "caption")

    assert result.value == "caption"
    assert result.succeeded_on_attempt == 1
    assert result.delays_applied == []
    assert result.context.total_attempts == 3
    assert operation.await_count == 1
    assert fake_sleep.calls == []
    assert event_sink.outcomes == ["success"]


@pytest.mark.asyncio
async def test_network_errors_then_success(executor, fake_sleep):
    """Fails twice with a network error, then returns "ok"."""
    operation = AsyncMock(
        side_effect=[Exception("Network error"), Exception("Network error"), "ok"]
    )

    result = await executor.execute_with_retry(operation, "caption")

    assert result.value == "ok"
    assert result.succeeded_on_attempt == 3
    assert result.delays_applied == [100, 200]
    assert fake_sleep.calls == [0.1, 0.2]
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_success_short_circuits_remaining_attempts(fake_sleep):
    executor = RetryExecutor(
        RetryPolicy(max_attempts=5, base_delay_ms=10, max_delay_ms=100, jitter_enabled=False),
        sleep=fake_sleep,
    )
    operation = AsyncMock(side_effect=[ConnectionError("reset"), "done"])

    result = await executor.execute_with_retry(operation, "hashtags")

    assert result.succeeded_on_attempt == 2
    assert operation.await_count == 2
    assert len(fake_sleep.calls) == 1
    assert len(result.delays_applied) == result.succeeded_on_attempt - 1


# ============================================================================
# Terminal failures
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
async def test_retryable_failure_invoked_exactly_max_attempts(max_attempts, fake_sleep):
    executor = RetryExecutor(
        RetryPolicy(max_attempts=max_attempts, base_delay_ms=1, max_delay_ms=10),
        sleep=fake_sleep,
    )
    operation = AsyncMock(side_effect=TimeoutError("timeout"))

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "image")

    assert operation.await_count == max_attempts
    assert exc_info.value.attempts == max_attempts
    assert len(exc_info.value.context.delays_applied) == max_attempts - 1
    assert len(fake_sleep.calls) == max_attempts - 1


@pytest.mark.asyncio
async def test_validation_error_fails_fast(executor, fake_sleep):
    operation = AsyncMock(side_effect=Exception("Invalid request format"))

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 1
    assert fake_sleep.calls == []
    assert "1 attempt" in str(exc_info.value)
    assert exc_info.value.error_kind is ErrorKind.VALIDATION


@pytest.mark.asyncio
async def test_validation_error_fails_fast_with_large_budget(fake_sleep):
    executor = RetryExecutor(
        RetryPolicy(max_attempts=10, retryable_kinds=frozenset(ErrorKind)),
        sleep=fake_sleep,
    )
    operation = AsyncMock(side_effect=GenerationValidationError("prompt too long"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_unknown_error_fails_fast_by_default(executor):
    operation = AsyncMock(side_effect=RuntimeError("something odd happened"))

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 1
    assert exc_info.value.error_kind is ErrorKind.UNKNOWN


@pytest.mark.asyncio
async def test_aggressive_policy_retries_unknown(fake_sleep):
    executor = RetryExecutor(aggressive(), sleep=fake_sleep)
    operation = AsyncMock(side_effect=RuntimeError("something odd happened"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(operation, "carousel")

    assert operation.await_count == 5
    assert len(fake_sleep.calls) == 4


@pytest.mark.asyncio
async def test_exhausted_error_aggregates_attempts(executor):
    errors = [RateLimitError("quota"), RateLimitError("quota"), RateLimitError("quota again")]
    operation = AsyncMock(side_effect=errors)

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "generate-caption")

    exc = exc_info.value
    message = str(exc)
    assert "[generate-caption]" in message
    assert "Failed after 3 attempts" in message
    assert "Last error: quota again" in message
    assert "Average delay: 150 ms" in message
    assert "Delays: [100, 200] ms" in message
    assert exc.__cause__ is errors[-1]
    assert exc.last_error is errors[-1]
    assert exc.label == "generate-caption"
    assert exc.context.last_error is errors[-1]


@pytest.mark.asyncio
async def test_retry_after_stretches_backoff(executor, fake_sleep):
    operation = AsyncMock(side_effect=[RateLimitError("quota", retry_after=0.5), "ok"])

    result = await executor.execute_with_retry(operation, "caption")

    assert result.delays_applied == [500]
    assert fake_sleep.calls == [0.5]


@pytest.mark.asyncio
async def test_retry_after_capped_at_max_delay(executor, fake_sleep):
    operation = AsyncMock(side_effect=[RateLimitError("quota", retry_after=20.0), "ok"])

    result = await executor.execute_with_retry(operation, "caption")

    assert result.delays_applied == [1000]
    assert fake_sleep.calls == [1.0]


@pytest.mark.asyncio
async def test_short_retry_after_keeps_backoff(executor, fake_sleep):
    operation = AsyncMock(
        side_effect=[RateLimitError("quota"), RateLimitError("quota", retry_after=0.05), "ok"]
    )

    result = await executor.execute_with_retry(operation, "caption")

    assert result.delays_applied == [100, 200]
    assert fake_sleep.calls == [0.1, 0.2]


@pytest.mark.asyncio
async def test_non_retryable_typed_error_fails_fast(executor):
    error = TextProviderError("Gemini client error: 401", retryable=False)
    operation = AsyncMock(side_effect=error)

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 1
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_kind_not_in_policy_fails_fast(fake_sleep):
    executor = RetryExecutor(
        RetryPolicy(retryable_kinds=frozenset({ErrorKind.TIMEOUT})), sleep=fake_sleep
    )
    operation = AsyncMock(side_effect=Exception("Network error"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 1


# ============================================================================
# Policy overrides and updates
# ============================================================================


@pytest.mark.asyncio
async def test_override_policy_mapping(executor):
    operation = AsyncMock(side_effect=Exception("Network error"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(operation, "caption", {"max_attempts": 1})

    assert operation.await_count == 1
    assert executor.policy.max_attempts == 3


@pytest.mark.asyncio
async def test_override_policy_partial_model(executor, fake_sleep):
    operation = AsyncMock(side_effect=Exception("Network error"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(
            operation, "caption", RetryPolicy(max_attempts=2)
        )

    # Only max_attempts was set explicitly; base delay (100ms) is kept
    assert operation.await_count == 2
    assert fake_sleep.calls == [0.1]


def test_update_config_replaces_policy(executor):
    before = executor.policy

    updated = executor.update_config(max_attempts=6, jitter_enabled=True)

    assert updated is executor.policy
    assert executor.policy.max_attempts == 6
    assert executor.policy.base_delay_ms == before.base_delay_ms
    assert before.max_attempts == 3


def test_update_config_rejects_unknown_fields(executor):
    with pytest.raises(ValueError):
        executor.update_config(attempts=2)


@pytest.mark.asyncio
async def test_update_during_execution_does_not_affect_in_flight_call(deterministic_policy):
    executor = RetryExecutor(deterministic_policy)

    async def sleep_and_reconfigure(seconds: float) -> None:
        executor.update_config(max_attempts=1)

    executor._sleep = sleep_and_reconfigure
    operation = AsyncMock(side_effect=Exception("Network error"))

    with pytest.raises(RetryExhausted) as exc_info:
        await executor.execute_with_retry(operation, "caption")

    assert operation.await_count == 3
    assert exc_info.value.context.total_attempts == 3
    assert executor.policy.max_attempts == 1


# ============================================================================
# Concurrency and cancellation
# ============================================================================


@pytest.mark.asyncio
async def test_concurrent_executions_are_independent(deterministic_policy):
    executor = RetryExecutor(deterministic_policy, sleep=lambda s: asyncio.sleep(0))
    flaky = AsyncMock(side_effect=[Exception("Network error"), "second"])
    steady = AsyncMock(return_value="first")

    flaky_result, steady_result = await asyncio.gather(
        executor.execute_with_retry(flaky, "flaky"),
        executor.execute_with_retry(steady, "steady"),
    )

    assert flaky_result.succeeded_on_attempt == 2
    assert steady_result.succeeded_on_attempt == 1
    assert flaky_result.context is not steady_result.context
    assert steady_result.delays_applied == []


@pytest.mark.asyncio
async def test_cancellation_propagates_through_backoff(deterministic_policy):
    sleeping = asyncio.Event()

    async def blocking_sleep(seconds: float) -> None:
        sleeping.set()
        await asyncio.Event().wait()

    executor = RetryExecutor(deterministic_policy, sleep=blocking_sleep)
    operation = AsyncMock(side_effect=Exception("Network error"))

    task = asyncio.create_task(executor.execute_with_retry(operation, "caption"))
    await sleeping.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert operation.await_count == 1


# ============================================================================
# Collaborators
# ============================================================================


@pytest.mark.asyncio
async def test_events_recorded_per_attempt(executor, event_sink):
    operation = AsyncMock(side_effect=[Exception("Network error"), "ok"])

    await executor.execute_with_retry(operation, "caption")

    assert event_sink.outcomes == ["retry", "success"]
    retry_event = event_sink.events[0]
    assert retry_event.label == "caption"
    assert retry_event.attempt == 1
    assert retry_event.error_kind == "network"
    assert retry_event.delay_ms == 100


@pytest.mark.asyncio
async def test_failure_event_and_notice_on_exhaustion(executor, event_sink, mock_notifier):
    operation = AsyncMock(side_effect=Exception("Gemini API failure"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(
            operation, "caption", notice_context={"publication_id": "pub-1"}
        )

    assert event_sink.outcomes == ["retry", "retry", "failure"]
    notices = [call.args[0] for call in mock_notifier.notify.call_args_list]
    assert [n.level for n in notices] == [
        NotificationLevel.WARNING,
        NotificationLevel.WARNING,
        NotificationLevel.ERROR,
    ]
    final = notices[-1]
    assert final.error_kind is ErrorKind.PROVIDER_TEXT_FAILURE
    assert final.attempt == 3
    assert final.retryable is True
    assert final.critical is False
    assert final.context == {"publication_id": "pub-1"}


@pytest.mark.asyncio
async def test_validation_notice_is_critical(executor, mock_notifier):
    operation = AsyncMock(side_effect=Exception("malformed payload"))

    with pytest.raises(RetryExhausted):
        await executor.execute_with_retry(operation, "caption")

    notice = mock_notifier.notify.call_args.args[0]
    assert notice.critical is True
    assert notice.retryable is False


@pytest.mark.asyncio
async def test_failing_collaborators_never_break_execution(deterministic_policy, fake_sleep):
    sink = Mock()
    sink.record = Mock(side_effect=RuntimeError("metrics backend down"))
    notifier = Mock()
    notifier.notify = Mock(side_effect=RuntimeError("ui gone"))
    executor = RetryExecutor(
        deterministic_policy, event_sink=sink, notifier=notifier, sleep=fake_sleep
    )
    operation = AsyncMock(side_effect=[Exception("Network error"), "ok"])

    result = await executor.execute_with_retry(operation, "caption")

    assert result.value == "ok"
    assert sink.record.call_count == 2
    assert notifier.notify.call_count == 1


@pytest.mark.asyncio
async def test_default_sleep_is_used_when_not_injected():
    executor = RetryExecutor(
        RetryPolicy(max_attempts=2, base_delay_ms=1, max_delay_ms=1, jitter_enabled=False)
    )
    operation = AsyncMock(side_effect=[Exception("Network error"), "ok"])

    result = await executor.execute_with_retry(operation, "caption")

    assert result.delays_applied == [1]


def test_from_settings_uses_retry_settings(test_settings):
    executor = RetryExecutor.from_settings(test_settings)

    assert executor.policy.max_attempts == 3
    assert executor.policy.base_delay_ms == 100
    assert executor.policy.jitter_enabled is False
    assert executor.event_sink is None


# ============================================================================
# with_retry
# ============================================================================


@pytest.mark.asyncio
async def test_with_retry_wraps_callable(executor):
    calls = []

    async def write_caption(topic: str, *, tone: str = "friendly") -> str:
        calls.append((topic, tone))
        if len(calls) == 1:
            raise ConnectionError("connection reset")
        return f"{tone} caption about {topic}"

    wrapped = with_retry(write_caption, executor)

    assert await wrapped("coffee", tone="bold") == "bold caption about coffee"
    assert calls == [("coffee", "bold"), ("coffee", "bold")]
    assert wrapped.__name__ == "write_caption"


@pytest.mark.asyncio
async def test_with_retry_uses_qualname_as_label(executor):
    async def publish_post():
        raise GenerationValidationError("bad schedule")

    wrapped = with_retry(publish_post, executor)

    with pytest.raises(RetryExhausted) as exc_info:
        await wrapped()

    assert "publish_post" in exc_info.value.label


@pytest.mark.asyncio
async def test_with_retry_applies_override(executor):
    operation = AsyncMock(side_effect=Exception("Network error"))
    wrapped = with_retry(operation, executor, label="hashtags", override_policy={"max_attempts": 2})

    with pytest.raises(RetryExhausted) as exc_info:
        await wrapped()

    assert operation.await_count == 2
    assert exc_info.value.label == "hashtags"
