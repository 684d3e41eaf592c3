"""Sound and notification sinks that forward timer side effects to UI clients."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from contracts.ui_protocol import (
    EVENT_NOTIFICATION,
    EVENT_NOTIFICATION_CLEARED,
    EVENT_SOUND,
    SOUND_COMPLETE,
    SOUND_START,
)
from pomodoro.constants import NOTIFICATION_CLEAR_SECONDS

from .ui import RuntimeUIPublisher


class UISoundSink:
    """Asks connected UIs to play the start or completion sound."""
    def __init__(self, ui: RuntimeUIPublisher):
        self._ui = ui

    def play_start(self) -> None:
        self._ui.publish(EVENT_SOUND, sound=SOUND_START)

    def play_complete(self) -> None:
        self._ui.publish(EVENT_SOUND, sound=SOUND_COMPLETE)


class UINotificationSink:
    """Publishes a notification and clears it again after a short delay.

    Only the most recent notification is auto-cleared; a newer one cancels the
    pending clear of the previous one.
    """

    def __init__(
        self,
        ui: RuntimeUIPublisher,
        *,
        clear_after_seconds: float = NOTIFICATION_CLEAR_SECONDS,
        forget_sticky: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._ui = ui
        self._clear_after_seconds = clear_after_seconds
        self._forget_sticky = forget_sticky
        self._logger = logger or logging.getLogger("runtime.notifications")
        self._lock = threading.Lock()
        self._clear_timer: Optional[threading.Timer] = None
        self._generation = 0

    def notify(self, title: str, body: str) -> None:
        self._logger.info("Notification: %s - %s", title, body)
        with self._lock:
            if self._clear_timer is not None:
                self._clear_timer.cancel()
            self._generation += 1
            self._ui.publish(EVENT_NOTIFICATION, title=title, body=body)
            timer = threading.Timer(
                self._clear_after_seconds,
                self._clear,
                args=(self._generation,),
            )
            timer.daemon = True
            self._clear_timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._clear_timer is not None:
                self._clear_timer.cancel()
                self._clear_timer = None

    def _clear(self, generation: int) -> None:
        with self._lock:
            # A newer notification owns the sticky slot now.
            if generation != self._generation:
                return
            self._clear_timer = None
            if self._forget_sticky is not None:
                self._forget_sticky(EVENT_NOTIFICATION)
            self._ui.publish(EVENT_NOTIFICATION_CLEARED)


class LoggingNotificationSink:
    """Fallback sink used when no UI server is running."""
    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("runtime.notifications")

    def notify(self, title: str, body: str) -> None:
        self._logger.info("Notification: %s - %s", title, body)
