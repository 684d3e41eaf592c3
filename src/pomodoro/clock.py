"""Wall-clock helpers and the cooperative tick scheduler driving the timer."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

TickCallback = Callable[[datetime], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_day(moment: datetime) -> date:
    """Return the calendar day of `moment` in the local timezone."""
    return moment.astimezone().date()


def start_of_local_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day).astimezone()


class TickSubscription:
    """Handle returned by `TickScheduler.subscribe`; cancel to stop ticks."""

    def __init__(
        self,
        scheduler: "TickScheduler",
        interval_seconds: float,
        callback: TickCallback,
        next_due: datetime,
    ):
        self._scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.next_due = next_due
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._scheduler._discard(self)


class TickScheduler:
    """Periodic tick source polled by the host loop on a single thread.

    Callbacks receive the current wall-clock time. A subscription that falls
    behind (e.g. after system sleep) fires once and is rescheduled relative to
    the current time rather than replaying every missed tick.
    """

    def __init__(
        self,
        now_fn: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._now = now_fn or utc_now
        self._logger = logger or logging.getLogger("pomodoro.clock")
        self._subscriptions: list[TickSubscription] = []

    def now(self) -> datetime:
        return self._now()

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, interval_seconds: float, callback: TickCallback) -> TickSubscription:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        subscription = TickSubscription(
            self,
            float(interval_seconds),
            callback,
            self._now() + timedelta(seconds=interval_seconds),
        )
        self._subscriptions.append(subscription)
        return subscription

    def run_pending(self) -> int:
        """Fire every due subscription once; return the number of callbacks run."""
        fired = 0
        for subscription in tuple(self._subscriptions):
            if subscription.cancelled:
                continue
            now = self._now()
            if now < subscription.next_due:
                continue
            subscription.next_due = now + timedelta(seconds=subscription.interval_seconds)
            fired += 1
            try:
                subscription.callback(now)
            except Exception as error:
                self._logger.error("Tick callback failed: %s", error, exc_info=True)
        return fired

    def seconds_until_next(self) -> Optional[float]:
        if not self._subscriptions:
            return None
        now = self._now()
        earliest = min(subscription.next_due for subscription in self._subscriptions)
        return max(0.0, (earliest - now).total_seconds())

    def _discard(self, subscription: TickSubscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass
