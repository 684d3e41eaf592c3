"""Persisted key/value settings, counters, and runtime state for the timer."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, fields
from typing import Any, Optional

from pomodoro.errors import InvalidConfigurationError
from pomodoro.types import DailyCounters, TimerSettings

from .db import Database

KEY_WORK_DURATION = "timer.work_duration"
KEY_SHORT_BREAK_DURATION = "timer.short_break_duration"
KEY_LONG_BREAK_DURATION = "timer.long_break_duration"
KEY_AUTO_START_BREAKS = "timer.auto_start_breaks"
KEY_AUTO_START_WORK = "timer.auto_start_work"
KEY_SESSIONS_UNTIL_LONG_BREAK = "timer.sessions_until_long_break"
KEY_NOTIFICATIONS_ENABLED = "timer.notifications_enabled"
KEY_SOUNDS_ENABLED = "timer.sounds_enabled"

KEY_REMAINING = "timer.remaining"
KEY_IS_RUNNING = "timer.is_running"
KEY_IS_BREAK_TIME = "timer.is_break_time"
KEY_COMPLETED_SESSIONS = "timer.completed_sessions"
KEY_WORK_SESSIONS_COMPLETED = "timer.work_sessions_completed"
KEY_LAST_ACTIVE_DAY = "timer.last_session_date"

_SETTINGS_KEYS = {
    "work_duration": KEY_WORK_DURATION,
    "short_break_duration": KEY_SHORT_BREAK_DURATION,
    "long_break_duration": KEY_LONG_BREAK_DURATION,
    "auto_start_breaks": KEY_AUTO_START_BREAKS,
    "auto_start_work": KEY_AUTO_START_WORK,
    "sessions_until_long_break": KEY_SESSIONS_UNTIL_LONG_BREAK,
    "notifications_enabled": KEY_NOTIFICATIONS_ENABLED,
    "sounds_enabled": KEY_SOUNDS_ENABLED,
}


class SettingsStore:
    """String-keyed scalar store backed by the `app_state` table."""

    def __init__(self, db: Database, logger: Optional[logging.Logger] = None):
        self.db = db
        self._logger = logger or logging.getLogger("storage.settings")

    # ----- raw key/value -----
    def get(self, key: str) -> Optional[str]:
        row = self.db.fetch_one("SELECT value FROM app_state WHERE key=?", (key,))
        return row["value"] if row else None

    def set(self, key: str, value: Any) -> None:
        self.db.execute(
            """
            INSERT INTO app_state(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, _encode(value)),
        )

    def delete(self, key: str) -> None:
        self.db.execute("DELETE FROM app_state WHERE key=?", (key,))

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    # ----- timer settings -----
    def load_timer_settings(self) -> TimerSettings:
        """Load settings, falling back per field when a stored value is missing or invalid."""
        defaults = TimerSettings()
        values: dict[str, Any] = {}
        for field in fields(TimerSettings):
            default = getattr(defaults, field.name)
            raw = self.get(_SETTINGS_KEYS[field.name])
            values[field.name] = self._decode_setting(field.name, raw, default)

        try:
            return TimerSettings(**values)
        except InvalidConfigurationError as error:
            self._logger.warning("Stored timer settings invalid, using defaults: %s", error)
            return defaults

    def save_timer_settings(self, settings: TimerSettings) -> None:
        for name, value in asdict(settings).items():
            self.set(_SETTINGS_KEYS[name], value)

    def update_timer_settings(self, **changes: Any) -> TimerSettings:
        """Validate and persist changes; invalid input leaves stored values untouched."""
        updated = self.load_timer_settings().with_changes(**changes)
        self.save_timer_settings(updated)
        return updated

    def seed_timer_settings(self, settings: TimerSettings) -> None:
        """Write configured defaults for keys that have never been stored."""
        for name, value in asdict(settings).items():
            key = _SETTINGS_KEYS[name]
            if not self.has(key):
                self.set(key, value)

    # ----- counters and runtime state -----
    def load_counters(self) -> DailyCounters:
        return DailyCounters(
            completed_sessions=_as_non_negative_int(self.get(KEY_COMPLETED_SESSIONS)),
            work_sessions_completed=_as_non_negative_int(self.get(KEY_WORK_SESSIONS_COMPLETED)),
            last_active_day=self.get(KEY_LAST_ACTIVE_DAY) or None,
        )

    def save_counters(
        self,
        *,
        completed_sessions: int,
        work_sessions_completed: int,
        last_active_day: Optional[str] = None,
    ) -> None:
        self.set(KEY_COMPLETED_SESSIONS, completed_sessions)
        self.set(KEY_WORK_SESSIONS_COMPLETED, work_sessions_completed)
        if last_active_day:
            self.set(KEY_LAST_ACTIVE_DAY, last_active_day)

    def save_runtime_state(
        self,
        *,
        remaining_seconds: float,
        is_running: bool,
        is_break_time: Optional[bool] = None,
    ) -> None:
        self.set(KEY_REMAINING, remaining_seconds)
        self.set(KEY_IS_RUNNING, is_running)
        if is_break_time is not None:
            self.set(KEY_IS_BREAK_TIME, is_break_time)

    def load_runtime_state(self) -> dict[str, Any]:
        remaining = self.get(KEY_REMAINING)
        return {
            "remaining_seconds": _as_float(remaining) if remaining is not None else None,
            "is_running": _as_bool(self.get(KEY_IS_RUNNING)) or False,
            "is_break_time": _as_bool(self.get(KEY_IS_BREAK_TIME)) or False,
        }

    def _decode_setting(self, name: str, raw: Optional[str], default: Any) -> Any:
        if raw is None:
            return default
        if isinstance(default, bool):
            value = _as_bool(raw)
        elif isinstance(default, int):
            value = _as_int(raw)
            if value is not None and value <= 0:
                value = None
        else:
            value = _as_float(raw)
            if value is not None and (not math.isfinite(value) or value <= 0):
                value = None
        if value is None:
            self._logger.warning("Ignoring invalid stored value for %s: %r", name, raw)
            return default
        return value


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_bool(raw: Optional[str]) -> Optional[bool]:
    if raw is None:
        return None
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    return None


def _as_int(raw: str) -> Optional[int]:
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _as_float(raw: str) -> Optional[float]:
    try:
        return float(raw.strip())
    except ValueError:
        return None


def _as_non_negative_int(raw: Optional[str]) -> int:
    if raw is None:
        return 0
    value = _as_int(raw)
    return value if value is not None and value > 0 else 0
