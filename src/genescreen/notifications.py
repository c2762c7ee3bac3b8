"""Transient user-visible notifications.

The ``Notifier`` holds a single current notification (like a toast) and
broadcasts every change to its subscribers.  Success and error
notifications hide themselves after a short delay; pending ones stay until
replaced.  Replacing a notification cancels the previous auto-dismiss.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from genescreen.constants import NOTIFY_ERROR_SECONDS, NOTIFY_SUCCESS_SECONDS
from genescreen.models.notification import Notification

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], None]


class Notifier:
    def __init__(
        self,
        *,
        success_seconds: float = NOTIFY_SUCCESS_SECONDS,
        error_seconds: float = NOTIFY_ERROR_SECONDS,
    ) -> None:
        self._success_seconds = success_seconds
        self._error_seconds = error_seconds
        self._current = Notification()
        self._listeners: list[Listener] = []
        self._dismiss_handle: asyncio.TimerHandle | None = None

    @property
    def current(self) -> Notification:
        return self._current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; return a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def pending(self, message: str) -> None:
        self._show(Notification(visible=True, status="pending", message=message), None)

    def success(self, message: str) -> None:
        self._show(
            Notification(visible=True, status="success", message=message),
            self._success_seconds,
        )

    def error(self, message: str) -> None:
        self._show(
            Notification(visible=True, status="error", message=message),
            self._error_seconds,
        )

    def dismiss(self) -> None:
        self._cancel_dismiss()
        self._publish(Notification())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _show(self, notification: Notification, hide_after: float | None) -> None:
        self._cancel_dismiss()
        self._publish(notification)
        if hide_after is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop there is nothing to schedule on; the
            # notification stays until the next one replaces it.
            return
        self._dismiss_handle = loop.call_later(hide_after, self.dismiss)

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _publish(self, notification: Notification) -> None:
        self._current = notification
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed")
