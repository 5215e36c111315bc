from __future__ import annotations

from typing import Any, Iterable

from hrms.core.logging import get_logger

logger = get_logger(__name__)


class NotificationSink:
    """Accepts business events for delivery to the listed employees."""

    def publish(self, event: str, recipients: Iterable[int], payload: dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    def publish(self, event: str, recipients: Iterable[int], payload: dict[str, Any]) -> None:
        logger.info("notification_published", notification=event, recipients=list(recipients), **payload)


def notify(sink: NotificationSink | None, event: str, recipients: Iterable[int | None], **payload: Any) -> None:
    """Fire-and-forget publish; a failing sink never affects the caller."""
    if sink is None:
        return
    targets = [recipient for recipient in recipients if recipient is not None]
    if not targets:
        return
    try:
        sink.publish(event, targets, payload)
    except Exception:
        logger.exception("notification_failed", notification=event, recipients=targets)


default_sink = LoggingNotificationSink()
