from __future__ import annotations

import asyncio

from dashboard_client.api.token_store import TokenStore
from dashboard_client.config import get_settings
from dashboard_client.notify.base import Notification, Notifier
from dashboard_client.notify.sinks import safe_notify
from dashboard_client.utils.log import logger

SESSION_WARNING_TITLE = "Session Warning"
INACTIVITY_EXPIRED_TITLE = "Session Expired"


class SessionTimeout:
    """
    Inactivity logout.

    Every touch() re-arms two timers on the running loop: a warning at
    (idle - warning) minutes and a logout at idle minutes. Nothing is armed
    while disabled or logged out.
    """

    def __init__(
        self,
        *,
        token_store: TokenStore,
        notifier: Notifier | None = None,
        idle_minutes: float | None = None,
        warning_minutes: float | None = None,
        enabled: bool | None = None,
    ) -> None:
        s = get_settings()
        self.token_store = token_store
        self.notifier = notifier
        self.idle_minutes = float(idle_minutes if idle_minutes is not None else s.session_idle_minutes)
        self.warning_minutes = float(
            warning_minutes if warning_minutes is not None else s.session_warning_minutes
        )
        self.enabled = bool(s.session_timeout_enabled if enabled is None else enabled)
        if self.idle_minutes <= 0:
            raise ValueError("idle_minutes must be > 0")
        if not 0 <= self.warning_minutes < self.idle_minutes:
            raise ValueError("warning_minutes must be in [0, idle_minutes)")
        self._warn_handle: asyncio.TimerHandle | None = None
        self._logout_handle: asyncio.TimerHandle | None = None
        # Any logout (refresh failure, explicit logout) disarms the timers.
        add_listener = getattr(token_store, "add_logout_listener", None)
        if callable(add_listener):
            add_listener(self.stop)

    @property
    def armed(self) -> bool:
        return self._logout_handle is not None

    def touch(self) -> None:
        self.stop()
        if not self.enabled or self.token_store.get_tokens() is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("session_timeout_no_loop")
            return
        if self.warning_minutes > 0:
            warn_after = (self.idle_minutes - self.warning_minutes) * 60.0
            self._warn_handle = loop.call_later(warn_after, self._warn)
        self._logout_handle = loop.call_later(self.idle_minutes * 60.0, self._expire)

    def stop(self) -> None:
        for handle in (self._warn_handle, self._logout_handle):
            if handle is not None:
                handle.cancel()
        self._warn_handle = None
        self._logout_handle = None

    def _warn(self) -> None:
        self._warn_handle = None
        if self.token_store.get_tokens() is None:
            return
        minutes = f"{self.warning_minutes:g}"
        logger.info("session_idle_warning", warning_minutes=self.warning_minutes)
        safe_notify(
            self.notifier,
            Notification(
                title=SESSION_WARNING_TITLE,
                description=f"Your session will expire in {minutes} minutes due to inactivity.",
                closable=True,
                level="warning",
            ),
        )

    def _expire(self) -> None:
        self.stop()
        if self.token_store.get_tokens() is None:
            return
        logger.warning("session_idle_expired", idle_minutes=self.idle_minutes)
        safe_notify(
            self.notifier,
            Notification(
                title=INACTIVITY_EXPIRED_TITLE,
                description="Your session has expired due to inactivity. Please login again.",
                closable=True,
            ),
        )
        self.token_store.logout()
