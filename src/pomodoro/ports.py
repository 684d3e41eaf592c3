"""Protocols describing the collaborators the timer calls out to."""

from __future__ import annotations

from typing import Optional, Protocol

from .types import DailyCounters, SessionRecord, TimerSettings


class SoundSink(Protocol):
    def play_start(self) -> None:
        ...

    def play_complete(self) -> None:
        ...


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class SettingsStoreLike(Protocol):
    """Subset of the settings store used by the timer state machine."""
    def load_timer_settings(self) -> TimerSettings:
        ...

    def save_timer_settings(self, settings: TimerSettings) -> None:
        ...

    def load_counters(self) -> DailyCounters:
        ...

    def save_counters(
        self,
        *,
        completed_sessions: int,
        work_sessions_completed: int,
        last_active_day: Optional[str] = None,
    ) -> None:
        ...

    def save_runtime_state(
        self,
        *,
        remaining_seconds: float,
        is_running: bool,
        is_break_time: Optional[bool] = None,
    ) -> None:
        ...


class RecordStoreLike(Protocol):
    def insert_session(self, record: SessionRecord) -> SessionRecord:
        ...


class TaskRegistryLike(Protocol):
    def increment_pomodoro_count(self, task_id: int) -> None:
        ...
