"""Monitoring, metrics and notification sinks for the generation layer.

Exports the RetryEvent/EventSink pair consumed by RetryExecutor, the
Prometheus-backed sink and the in-memory NotificationCenter.
"""

from postia_generation.monitoring.events import (
    EventSink,
    NullEventSink,
    PrometheusEventSink,
    RetryEvent,
)
from postia_generation.monitoring.notifications import (
    GenerationNotice,
    Notification,
    NotificationAction,
    NotificationCenter,
    Notifier,
)

__all__ = [
    "EventSink",
    "NullEventSink",
    "PrometheusEventSink",
    "RetryEvent",
    "GenerationNotice",
    "Notification",
    "NotificationAction",
    "NotificationCenter",
    "Notifier",
]
