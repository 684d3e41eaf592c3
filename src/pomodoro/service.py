"""Work/break session state machine with wall-clock timing and write-through persistence."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Optional

from .clock import TickScheduler, TickSubscription, local_day
from .constants import (
    COMMAND_END_SESSION,
    COMMAND_PAUSE,
    COMMAND_QUICK_BREAK,
    COMMAND_RESET,
    COMMAND_SET_TASK,
    COMMAND_SKIP_BREAK,
    COMMAND_START,
    COMMAND_UPDATE_SETTINGS,
    COMPLETION_TOLERANCE_SECONDS,
    DEFAULT_TICK_INTERVAL_SECONDS,
    EVENT_COMPLETED,
    EVENT_INTERRUPTED,
    EVENT_MASTER_SESSION_ENDED,
    EVENT_PAUSED,
    EVENT_QUICK_BREAK,
    EVENT_RESET,
    EVENT_SETTINGS_CHANGED,
    EVENT_SKIPPED,
    EVENT_STARTED,
    EVENT_TASK_CHANGED,
    EVENT_TICK,
    MIN_REMAINING_DELTA_SECONDS,
    REASON_ALREADY_RUNNING,
    REASON_ENDED,
    REASON_NOT_IN_BREAK,
    REASON_NOT_RUNNING,
    REASON_PAUSED,
    REASON_QUICK_BREAK,
    REASON_RESET,
    REASON_SETTINGS_CHANGED,
    REASON_SKIPPED,
    REASON_STARTED,
    REASON_TASK_CHANGED,
)
from .errors import PersistenceError
from .messages import completion_notification, focus_sessions_text
from .ports import (
    NotificationSink,
    RecordStoreLike,
    SettingsStoreLike,
    SoundSink,
    TaskRegistryLike,
)
from .types import (
    DailyCounters,
    MasterSession,
    MasterSessionSummary,
    Phase,
    SessionKind,
    SessionRecord,
    Task,
    TimerEvent,
    TimerSettings,
    TimerSnapshot,
)

TimerListener = Callable[[TimerEvent], None]

_DURATION_FIELDS = frozenset({"work_duration", "short_break_duration", "long_break_duration"})


@dataclass(frozen=True)
class TimerActionResult:
    """Result envelope returned after applying a timer command."""
    command: str
    accepted: bool
    reason: str
    snapshot: TimerSnapshot
    summary: Optional[MasterSessionSummary] = None


class PomodoroTimer:
    """Pomodoro state machine driving work, short/long break, and quick break sessions.

    All commands and ticks run on the host loop thread; the re-entrant lock only
    keeps snapshot reads from other threads consistent. Store and collaborator
    failures are logged and never block a transition.
    """

    def __init__(
        self,
        *,
        settings_store: SettingsStoreLike,
        record_store: RecordStoreLike,
        clock: TickScheduler,
        task_registry: Optional[TaskRegistryLike] = None,
        sound: Optional[SoundSink] = None,
        notifier: Optional[NotificationSink] = None,
        tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        if tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be greater than zero")

        self._settings_store = settings_store
        self._record_store = record_store
        self._task_registry = task_registry
        self._clock = clock
        self._sound = sound
        self._notifier = notifier
        self._tick_interval_seconds = float(tick_interval_seconds)
        self._logger = logger or logging.getLogger("pomodoro")
        self._lock = threading.RLock()
        self._listeners: list[TimerListener] = []

        self._settings = self._load_settings()
        counters = self._load_counters()
        self._completed_sessions = counters.completed_sessions
        self._work_sessions_completed = counters.work_sessions_completed
        self._last_active_day = counters.last_active_day

        self._phase = Phase.IDLE
        self._kind = SessionKind.WORK
        self._remaining = float(self._settings.work_duration)
        self._anchor_remaining = self._remaining
        self._session_started_at: Optional[datetime] = None
        self._quick_break_seconds: Optional[float] = None
        self._record: Optional[SessionRecord] = None
        self._current_task: Optional[Task] = None
        self._master: Optional[MasterSession] = None
        self._subscription: Optional[TickSubscription] = None

        self._reset_daily_counters_if_needed()

    # ----- Read surface -----
    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return self._snapshot_locked()

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def kind(self) -> SessionKind:
        return self._kind

    @property
    def remaining_seconds(self) -> float:
        return self._remaining

    @property
    def progress(self) -> float:
        return self.snapshot().progress

    @property
    def time_string(self) -> str:
        return self.snapshot().time_string

    @property
    def label(self) -> str:
        return self._kind.label

    @property
    def emoji(self) -> str:
        return self._kind.emoji

    @property
    def current_task(self) -> Optional[Task]:
        return self._current_task

    @property
    def master_session(self) -> Optional[MasterSession]:
        with self._lock:
            return replace(self._master) if self._master is not None else None

    @property
    def focus_sessions_text(self) -> str:
        with self._lock:
            count = self._master.work_sessions_count if self._master else 0
            return focus_sessions_text(count, self._settings.work_duration)

    def should_use_long_break(self) -> bool:
        with self._lock:
            return self._should_use_long_break_locked()

    def subscribe(self, listener: TimerListener) -> Callable[[], None]:
        """Register an event listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ----- Commands -----
    def start(self) -> TimerActionResult:
        with self._lock:
            if self._phase is Phase.RUNNING:
                return self._result_locked(COMMAND_START, False, REASON_ALREADY_RUNNING)

            now = self._clock.now()
            if self._master is None:
                self._master = MasterSession(started_at=now)
                self._logger.info("Master session started")
            if self._record is None:
                self._open_record_locked(self._kind, self._remaining, now)

            self._begin_running_locked(now)
            self._play_start()
            self._persist_runtime_locked()
            self._logger.info(
                "Session started: kind=%s remaining=%.1fs",
                self._kind.value,
                self._remaining,
            )
            self._emit_locked(EVENT_STARTED)
            return self._result_locked(COMMAND_START, True, REASON_STARTED)

    def pause(self) -> TimerActionResult:
        with self._lock:
            if self._phase is not Phase.RUNNING:
                return self._result_locked(COMMAND_PAUSE, False, REASON_NOT_RUNNING)

            self._pause_locked(self._clock.now())
            self._persist_runtime_locked()
            self._logger.info(
                "Session paused: kind=%s remaining=%.1fs",
                self._kind.value,
                self._remaining,
            )
            self._emit_locked(EVENT_PAUSED)
            return self._result_locked(COMMAND_PAUSE, True, REASON_PAUSED)

    def toggle(self) -> TimerActionResult:
        with self._lock:
            if self._phase is Phase.RUNNING:
                return self.pause()
            return self.start()

    def reset(self) -> TimerActionResult:
        with self._lock:
            now = self._clock.now()
            was_idle = self._phase is Phase.IDLE and self._record is None
            if self._phase is Phase.RUNNING:
                self._pause_locked(now)

            cleared_kind = self._kind
            self._finalize_record_locked(now, completed=False)
            self._session_started_at = None
            if cleared_kind is SessionKind.WORK:
                self._play_complete()

            self._remaining = self._phase_duration_locked()
            self._anchor_remaining = self._remaining
            if not was_idle:
                self._phase = Phase.PAUSED
            self._persist_runtime_locked()
            self._logger.info("Session reset: kind=%s", cleared_kind.value)
            self._emit_locked(EVENT_RESET)
            return self._result_locked(COMMAND_RESET, True, REASON_RESET)

    def skip_break(self) -> TimerActionResult:
        with self._lock:
            if not self._kind.is_break:
                self._logger.debug("Skip break ignored: no break in progress")
                return self._result_locked(COMMAND_SKIP_BREAK, False, REASON_NOT_IN_BREAK)

            now = self._clock.now()
            skipped_kind = self._kind
            self._cancel_tick_locked()
            self._finalize_record_locked(now, completed=True)
            if self._master is not None and skipped_kind is not SessionKind.QUICK_BREAK:
                self._master.break_sessions_count += 1

            self._kind = SessionKind.WORK
            self._quick_break_seconds = None
            self._remaining = float(self._settings.work_duration)
            self._anchor_remaining = self._remaining
            self._session_started_at = None
            self._phase = Phase.PAUSED
            self._open_record_locked(SessionKind.WORK, self._remaining, now)

            self._persist_runtime_locked()
            self._logger.info("Break skipped: kind=%s", skipped_kind.value)
            self._emit_locked(EVENT_SKIPPED, skipped_kind=skipped_kind.value)
            return self._result_locked(COMMAND_SKIP_BREAK, True, REASON_SKIPPED)

    def set_quick_break(self, minutes: int) -> TimerActionResult:
        if (
            isinstance(minutes, bool)
            or not isinstance(minutes, (int, float))
            or not math.isfinite(minutes)
            or minutes <= 0
        ):
            raise ValueError(f"minutes must be a finite number greater than zero, got: {minutes!r}")

        with self._lock:
            now = self._clock.now()
            self._cancel_tick_locked()
            self._finalize_record_locked(now, completed=False)

            duration = float(minutes) * 60.0
            self._kind = SessionKind.QUICK_BREAK
            self._quick_break_seconds = duration
            self._remaining = duration
            self._open_record_locked(SessionKind.QUICK_BREAK, duration, now)
            self._begin_running_locked(now)
            self._play_start()
            self._persist_runtime_locked()
            self._logger.info("Quick break started: %.0f minutes", float(minutes))
            self._emit_locked(EVENT_QUICK_BREAK)
            return self._result_locked(COMMAND_QUICK_BREAK, True, REASON_QUICK_BREAK)

    def end_master_session(self) -> TimerActionResult:
        with self._lock:
            now = self._clock.now()
            master = self._master
            summary = MasterSessionSummary(
                work_sessions=master.work_sessions_count if master else 0,
                break_sessions=master.break_sessions_count if master else 0,
                total_focus_seconds=master.total_focus_seconds if master else 0.0,
                duration_seconds=(
                    max(0.0, (now - master.started_at).total_seconds()) if master else 0.0
                ),
            )

            self._cancel_tick_locked()
            self._finalize_record_locked(now, completed=False)

            self._master = None
            self._kind = SessionKind.WORK
            self._quick_break_seconds = None
            self._remaining = float(self._settings.work_duration)
            self._anchor_remaining = self._remaining
            self._session_started_at = None
            self._phase = Phase.IDLE

            self._persist_runtime_locked()
            self._logger.info(
                "Master session ended: work=%d breaks=%d focus=%.0fs duration=%.0fs",
                summary.work_sessions,
                summary.break_sessions,
                summary.total_focus_seconds,
                summary.duration_seconds,
            )
            self._emit_locked(EVENT_MASTER_SESSION_ENDED, summary=summary)
            return self._result_locked(
                COMMAND_END_SESSION,
                True,
                REASON_ENDED,
                summary=summary,
            )

    def set_current_task(self, task: Optional[Task]) -> TimerActionResult:
        with self._lock:
            self._current_task = task
            record = self._record
            if record is not None and record.kind is SessionKind.WORK:
                record.task_id = task.id if task is not None else None
                record.task_title = task.title if task is not None else None
            self._logger.info(
                "Current task set: %s",
                task.title if task is not None else None,
            )
            self._emit_locked(EVENT_TASK_CHANGED)
            return self._result_locked(COMMAND_SET_TASK, True, REASON_TASK_CHANGED)

    def forget_task(self, task_id: int) -> None:
        """Drop the current-task binding if it points at a deleted task."""
        with self._lock:
            if self._current_task is not None and self._current_task.id == task_id:
                self.set_current_task(None)

    def update_settings(self, **changes: Any) -> TimerActionResult:
        """Apply validated setting changes; invalid values raise and keep the old ones."""
        with self._lock:
            previous = self._settings
            updated = previous.with_changes(**changes)
            self._settings = updated
            try:
                self._settings_store.save_timer_settings(updated)
            except PersistenceError as error:
                self._logger.warning("Failed to persist timer settings: %s", error)

            durations_changed = any(
                getattr(previous, name) != getattr(updated, name) for name in _DURATION_FIELDS
            )
            if durations_changed and self._phase is not Phase.RUNNING:
                self._finalize_record_locked(self._clock.now(), completed=False)
                self._kind = SessionKind.WORK
                self._quick_break_seconds = None
                self._remaining = float(updated.work_duration)
                self._anchor_remaining = self._remaining
                self._persist_runtime_locked()

            self._logger.info("Timer settings updated: %s", ", ".join(sorted(changes)))
            self._emit_locked(EVENT_SETTINGS_CHANGED)
            return self._result_locked(
                COMMAND_UPDATE_SETTINGS,
                True,
                REASON_SETTINGS_CHANGED,
            )

    # ----- Tick handling -----
    def _on_tick(self, now: datetime) -> None:
        with self._lock:
            if self._phase is not Phase.RUNNING or self._session_started_at is None:
                return

            new_remaining = self._running_remaining_locked(now)
            if abs(self._remaining - new_remaining) >= MIN_REMAINING_DELTA_SECONDS:
                self._remaining = new_remaining
                self._persist_runtime_locked()
                self._emit_locked(EVENT_TICK)

            if new_remaining <= COMPLETION_TOLERANCE_SECONDS:
                self._complete_session_locked(now)

    def _complete_session_locked(self, now: datetime) -> None:
        finished = self._kind
        self._remaining = 0.0
        record = self._finalize_record_locked(now, completed=True)
        self._session_started_at = None

        if finished is SessionKind.WORK:
            self._completed_sessions += 1
            self._work_sessions_completed += 1
            if self._master is not None:
                self._master.work_sessions_count += 1
                if record is not None:
                    self._master.total_focus_seconds += record.actual_duration
            self._credit_current_task_locked()
            next_kind = (
                SessionKind.LONG_BREAK
                if self._should_use_long_break_locked()
                else SessionKind.SHORT_BREAK
            )
            auto_start = self._settings.auto_start_breaks
        else:
            if self._master is not None and finished is not SessionKind.QUICK_BREAK:
                self._master.break_sessions_count += 1
            next_kind = SessionKind.WORK
            auto_start = self._settings.auto_start_work

        self._kind = next_kind
        self._quick_break_seconds = None
        self._remaining = self._phase_duration_locked()
        self._anchor_remaining = self._remaining

        if auto_start:
            self._open_record_locked(next_kind, self._remaining, now)
            self._session_started_at = now
        else:
            self._cancel_tick_locked()
            self._phase = Phase.PAUSED

        self._last_active_day = local_day(now).isoformat()
        self._persist_runtime_locked()
        self._persist_counters_locked()

        self._logger.info(
            "Session completed: kind=%s next=%s auto_start=%s",
            finished.value,
            next_kind.value,
            auto_start,
        )
        title, body = completion_notification(finished, next_kind)
        self._notify(title, body)
        self._play_complete()
        self._emit_locked(
            EVENT_COMPLETED,
            finished_kind=finished.value,
            next_kind=next_kind.value,
        )

    # ----- Internals -----
    def _begin_running_locked(self, now: datetime) -> None:
        self._phase = Phase.RUNNING
        self._session_started_at = now
        self._anchor_remaining = self._remaining
        self._cancel_tick_locked()
        self._subscription = self._clock.subscribe(
            self._tick_interval_seconds,
            self._on_tick,
        )

    def _pause_locked(self, now: datetime) -> None:
        self._remaining = self._running_remaining_locked(now)
        self._anchor_remaining = self._remaining
        self._cancel_tick_locked()
        self._session_started_at = None
        self._phase = Phase.PAUSED

    def _cancel_tick_locked(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _running_remaining_locked(self, now: datetime) -> float:
        started_at = self._session_started_at
        if started_at is None:
            return self._remaining
        elapsed = max(0.0, (now - started_at).total_seconds())
        return max(0.0, self._anchor_remaining - elapsed)

    def _phase_duration_locked(self) -> float:
        # An open record keeps the duration it started with.
        record = self._record
        if record is not None and record.kind is self._kind:
            return record.duration
        if self._kind is SessionKind.QUICK_BREAK:
            if self._quick_break_seconds is not None:
                return self._quick_break_seconds
            return float(self._settings.short_break_duration)
        return float(self._settings.duration_for(self._kind))

    def _should_use_long_break_locked(self) -> bool:
        completed = self._work_sessions_completed
        return completed > 0 and completed % self._settings.sessions_until_long_break == 0

    def _open_record_locked(self, kind: SessionKind, duration: float, now: datetime) -> None:
        task = self._current_task if kind is SessionKind.WORK else None
        self._record = SessionRecord(
            start_time=now,
            duration=float(duration),
            kind=kind,
            task_id=task.id if task is not None else None,
            task_title=task.title if task is not None else None,
        )

    def _finalize_record_locked(
        self,
        now: datetime,
        *,
        completed: bool,
    ) -> Optional[SessionRecord]:
        record = self._record
        if record is None:
            return None
        self._record = None
        if completed:
            record.complete(now)
        else:
            record.interrupt(now)

        try:
            stored = self._record_store.insert_session(record)
        except PersistenceError as error:
            self._logger.error(
                "Failed to persist %s session record: %s",
                record.kind.value,
                error,
            )
            stored = record

        if not completed:
            self._emit_locked(
                EVENT_INTERRUPTED,
                interrupted_kind=record.kind.value,
                elapsed_seconds=round(record.actual_duration, 1),
            )
        return stored

    def _credit_current_task_locked(self) -> None:
        task = self._current_task
        if task is None:
            return
        self._current_task = replace(task, actual_pomodoros=task.actual_pomodoros + 1)
        if self._task_registry is None:
            return
        try:
            self._task_registry.increment_pomodoro_count(task.id)
        except (PersistenceError, LookupError) as error:
            self._logger.warning(
                "Failed to credit pomodoro to task %s: %s",
                task.id,
                error,
            )

    def _load_settings(self) -> TimerSettings:
        try:
            return self._settings_store.load_timer_settings()
        except PersistenceError as error:
            self._logger.error("Failed to load timer settings, using defaults: %s", error)
            return TimerSettings()

    def _load_counters(self) -> DailyCounters:
        try:
            return self._settings_store.load_counters()
        except PersistenceError as error:
            self._logger.error("Failed to load session counters: %s", error)
            return DailyCounters()

    def _reset_daily_counters_if_needed(self) -> None:
        today = local_day(self._clock.now()).isoformat()
        last_day = self._last_active_day
        if last_day is None or last_day == today:
            return

        self._logger.info("New day since %s, resetting daily session counters", last_day)
        self._completed_sessions = 0
        self._work_sessions_completed = 0
        self._last_active_day = today
        self._persist_counters_locked()

    def _persist_runtime_locked(self) -> None:
        # Quick breaks are transient: only the running flag and remaining time are stored.
        is_break_time = (
            None if self._kind is SessionKind.QUICK_BREAK else self._kind.is_break
        )
        try:
            self._settings_store.save_runtime_state(
                remaining_seconds=self._remaining,
                is_running=self._phase is Phase.RUNNING,
                is_break_time=is_break_time,
            )
        except PersistenceError as error:
            self._logger.warning("Failed to persist timer state: %s", error)

    def _persist_counters_locked(self) -> None:
        try:
            self._settings_store.save_counters(
                completed_sessions=self._completed_sessions,
                work_sessions_completed=self._work_sessions_completed,
                last_active_day=self._last_active_day,
            )
        except PersistenceError as error:
            self._logger.warning("Failed to persist session counters: %s", error)

    def _play_start(self) -> None:
        if self._sound is None or not self._settings.sounds_enabled:
            return
        try:
            self._sound.play_start()
        except Exception as error:
            self._logger.warning("Start sound failed: %s", error)

    def _play_complete(self) -> None:
        if self._sound is None or not self._settings.sounds_enabled:
            return
        try:
            self._sound.play_complete()
        except Exception as error:
            self._logger.warning("Completion sound failed: %s", error)

    def _notify(self, title: str, body: str) -> None:
        if self._notifier is None or not self._settings.notifications_enabled:
            return
        try:
            self._notifier.notify(title, body)
        except Exception as error:
            self._logger.warning("Notification failed: %s", error)

    def _emit_locked(
        self,
        name: str,
        *,
        summary: Optional[MasterSessionSummary] = None,
        **details: Any,
    ) -> None:
        if not self._listeners:
            return
        event = TimerEvent(
            name=name,
            snapshot=self._snapshot_locked(),
            summary=summary,
            details=details,
        )
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception as error:
                self._logger.error(
                    "Timer listener failed for %s event: %s",
                    name,
                    error,
                    exc_info=True,
                )

    def _result_locked(
        self,
        command: str,
        accepted: bool,
        reason: str,
        *,
        summary: Optional[MasterSessionSummary] = None,
    ) -> TimerActionResult:
        return TimerActionResult(
            command=command,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(),
            summary=summary,
        )

    def _snapshot_locked(self) -> TimerSnapshot:
        phase_duration = self._phase_duration_locked()
        record = self._record
        task = self._current_task
        return TimerSnapshot(
            phase=self._phase,
            kind=self._kind,
            remaining_seconds=self._remaining,
            phase_duration=phase_duration,
            current_session_duration=record.duration if record is not None else phase_duration,
            session_started_at=self._session_started_at,
            work_sessions_completed_today=self._work_sessions_completed,
            completed_sessions_today=self._completed_sessions,
            sessions_until_long_break=self._settings.sessions_until_long_break,
            master_session=replace(self._master) if self._master is not None else None,
            current_task_id=task.id if task is not None else None,
            current_task_title=task.title if task is not None else None,
            has_active_record=record is not None,
        )
