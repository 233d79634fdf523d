from __future__ import annotations

from collections.abc import Callable

from dashboard_client.utils.log import logger

from .base import Notification, Notifier


class LogNotifier:
    """
    Default sink: writes notifications to the structured log.
    """

    def notify(self, notification: Notification) -> None:
        log = logger.warning if notification.level == "warning" else logger.error
        if notification.level == "info":
            log = logger.info
        log(
            "user_notification",
            title=notification.title,
            description=notification.description,
            closable=bool(notification.closable),
        )


class CallbackNotifier:
    def __init__(self, callback: Callable[[Notification], None]) -> None:
        self._callback = callback

    def notify(self, notification: Notification) -> None:
        self._callback(notification)


class NullNotifier:
    def notify(self, notification: Notification) -> None:
        return None


def safe_notify(notifier: Notifier | None, notification: Notification) -> None:
    """
    Fire-and-forget delivery; a broken sink never fails the request that triggered it.
    """
    if notifier is None:
        return
    try:
        notifier.notify(notification)
    except Exception as ex:
        logger.warning("notify_failed", title=notification.title, error=str(ex)[:200])
