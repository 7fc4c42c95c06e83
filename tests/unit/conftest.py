"""Unit test fixtures (fakes and stubs).

Provides in-memory collaborators for testing RetryExecutor without real
sleeping, metrics registries or notification UIs.
"""

from unittest.mock import Mock

import pytest

from postia_generation.monitoring.events import RetryEvent


class RecordingSleep:
    """Async sleep replacement that records requested durations (seconds)."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingEventSink:
    """EventSink that keeps every RetryEvent in memory."""

    def __init__(self):
        self.events: list[RetryEvent] = []

    def record(self, event: RetryEvent) -> None:
        self.events.append(event)

    @property
    def outcomes(self) -> list[str]:
        return [event.outcome for event in self.events]


class SequenceRandom:
    """random.Random stand-in returning a fixed sequence of values."""

    def __init__(self, values):
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def mock_notifier():
    """Mock Notifier; inspect mock_notifier.notify.call_args_list."""
    mock = Mock()
    mock.notify = Mock(return_value="notif_test")
    return mock


@pytest.fixture
def sequence_random():
    """Factory fixture: sequence_random([0.5, 0.9]) -> SequenceRandom."""
    return SequenceRandom
