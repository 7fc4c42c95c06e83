"""
User-facing notifications for generation retries and failures.

RetryExecutor pushes a GenerationNotice to an injected Notifier when a
retry is scheduled and when an operation fails terminally.
NotificationCenter is the in-memory Notifier the application layer reads
from: it turns notices into Notification records with a title, a
localized message and the actions the UI should offer (manual retry,
view details).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

import structlog
from pydantic import BaseModel, Field

from postia_generation.config import Settings
from postia_generation.errors.messages import error_title, user_message
from postia_generation.models.enums import ErrorKind, NotificationLevel

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GenerationNotice:
    """
    Payload handed to a Notifier.

    Attributes:
        label: Operation label
        level: Severity (warning while retrying, error when terminal)
        error_kind: Classified kind of the failure (None for success notices)
        attempt: Attempt the notice refers to
        total_attempts: Attempt ceiling of the effective policy
        retryable: Whether re-running the operation could help
        critical: Failure needs user action (bad input), not a retry
        context: Caller-supplied identifiers (publication_id, campaign_id, ...)
    """

    label: str
    level: NotificationLevel
    error_kind: Optional[ErrorKind] = None
    attempt: int = 0
    total_attempts: int = 0
    retryable: bool = False
    critical: bool = False
    message: Optional[str] = None
    context: dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    def notify(self, notice: GenerationNotice) -> Any:
        ...


class NotificationAction(BaseModel):
    label: str
    action: str = Field(..., description="retry, cancel, view-details, contact-support")
    primary: bool = False


class Notification(BaseModel):
    """Stored notification, as rendered by the UI."""

    id: str
    level: NotificationLevel
    title: str
    message: str
    label: str
    timestamp: datetime
    duration_ms: Optional[int] = None
    actions: list[NotificationAction] = Field(default_factory=list)
    persistent: bool = False
    dismissed: bool = False
    context: dict[str, Any] = Field(default_factory=dict)

    def is_expired(self, now: datetime) -> bool:
        if self.persistent or not self.duration_ms:
            return False
        return now - self.timestamp >= timedelta(milliseconds=self.duration_ms)


Listener = Callable[[Notification], None]


class NotificationCenter:
    """
    Bounded in-memory notification store.

    Similar active notifications (same level, title and operation label)
    are merged instead of stacked, so a retry loop produces one updating
    entry rather than one per attempt.
    """

    def __init__(
        self,
        max_notifications: int = 50,
        default_duration_ms: int = 5000,
        group_similar: bool = True,
    ):
        self.max_notifications = max_notifications
        self.default_duration_ms = default_duration_ms
        self.group_similar = group_similar
        self._notifications: list[Notification] = []
        self._listeners: list[Listener] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationCenter":
        return cls(
            max_notifications=settings.NOTIFICATIONS_MAX,
            default_duration_ms=settings.NOTIFICATION_DEFAULT_DURATION_MS,
            group_similar=settings.NOTIFICATIONS_GROUP_SIMILAR,
        )

    def notify(self, notice: GenerationNotice) -> str:
        """Store a notice and return the id of the notification it landed in."""
        kind = notice.error_kind or ErrorKind.UNKNOWN

        if notice.level is NotificationLevel.SUCCESS:
            title = "Content generated"
            message = notice.message or f"{notice.label} completed"
        else:
            title = error_title(kind)
            terminal = notice.level is NotificationLevel.ERROR
            message = notice.message or user_message(kind, terminal=terminal)
            if notice.level is NotificationLevel.WARNING and notice.total_attempts:
                message = f"{message} (attempt {notice.attempt + 1}/{notice.total_attempts})"

        actions: list[NotificationAction] = []
        if notice.level is NotificationLevel.ERROR:
            if notice.retryable:
                actions.append(NotificationAction(label="Retry", action="retry", primary=True))
            if notice.critical:
                actions.append(NotificationAction(label="View details", action="view-details"))
            if notice.attempt > 2:
                actions.append(NotificationAction(label="Contact support", action="contact-support"))
            self._retire_warnings(notice.label)

        persistent = notice.critical
        duration_ms = None if persistent else self.default_duration_ms

        if self.group_similar:
            similar = self._find_similar(notice.level, title, notice.label)
            if similar is not None:
                similar.message = message
                similar.actions = actions
                similar.persistent = persistent
                similar.duration_ms = duration_ms
                similar.timestamp = datetime.now(timezone.utc)
                similar.context = {**similar.context, **notice.context}
                self._emit(similar)
                return similar.id

        notification = Notification(
            id=f"notif_{uuid.uuid4().hex[:12]}",
            level=notice.level,
            title=title,
            message=message,
            label=notice.label,
            timestamp=datetime.now(timezone.utc),
            duration_ms=duration_ms,
            actions=actions,
            persistent=persistent,
            context=dict(notice.context),
        )
        self._notifications.append(notification)

        if len(self._notifications) > self.max_notifications:
            self._notifications = self._notifications[-self.max_notifications:]

        self._emit(notification)
        return notification.id

    def notify_success(self, label: str, message: Optional[str] = None, **context: Any) -> str:
        return self.notify(
            GenerationNotice(
                label=label,
                level=NotificationLevel.SUCCESS,
                message=message,
                context=context,
            )
        )

    def dismiss(self, notification_id: str) -> None:
        for notification in self._notifications:
            if notification.id == notification_id and not notification.dismissed:
                notification.dismissed = True
                self._emit(notification)

    def dismiss_all(self) -> None:
        for notification in self._notifications:
            if not notification.dismissed:
                notification.dismissed = True
                self._emit(notification)

    def dismiss_by_label(self, label: str) -> None:
        for notification in self._notifications:
            if notification.label == label and not notification.dismissed:
                notification.dismissed = True
                self._emit(notification)

    def active(self) -> list[Notification]:
        """Undismissed, unexpired notifications, newest first."""
        now = datetime.now(timezone.utc)
        for notification in self._notifications:
            if not notification.dismissed and notification.is_expired(now):
                notification.dismissed = True
        return sorted(
            (n for n in self._notifications if not n.dismissed),
            key=lambda n: n.timestamp,
            reverse=True,
        )

    def all(self) -> list[Notification]:
        return sorted(self._notifications, key=lambda n: n.timestamp, reverse=True)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _find_similar(
        self, level: NotificationLevel, title: str, label: str
    ) -> Optional[Notification]:
        for notification in self._notifications:
            if (
                not notification.dismissed
                and notification.level is level
                and notification.title == title
                and notification.label == label
            ):
                return notification
        return None

    def _retire_warnings(self, label: str) -> None:
        """A terminal error supersedes the retry warnings of the same operation."""
        for notification in self._notifications:
            if (
                notification.label == label
                and notification.level is NotificationLevel.WARNING
                and not notification.dismissed
            ):
                notification.dismissed = True
                self._emit(notification)

    def _emit(self, notification: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.warning(
                    "Notification listener failed",
                    notification_id=notification.id,
                    exc_info=True,
                )
