from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from ..core.enums import NotificationKind
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    """A state change worth showing to someone."""

    kind: NotificationKind
    recipient_id: int
    subject_id: Optional[int]
    message: str
    created_at: datetime
    actor_id: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    def publish(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotificationSink:
    """Default sink: the display side re-polls, so we only record the event."""

    def publish(self, notification: Notification) -> None:
        logger.info(
            "notify %s -> user %s: %s",
            notification.kind.value,
            notification.recipient_id,
            notification.message,
        )


def publish_quietly(sink: NotificationSink, notification: Notification) -> None:
    """Publish after the state change has committed; a sink outage is logged, not raised."""
    try:
        sink.publish(notification)
    except Exception:
        logger.exception("Notification sink failed for %s", notification.kind.value)
