"""Durations, event names, and reason constants used by the focus timer."""

from __future__ import annotations

DEFAULT_WORK_SECONDS = 25 * 60
DEFAULT_SHORT_BREAK_SECONDS = 5 * 60
DEFAULT_LONG_BREAK_SECONDS = 15 * 60
DEFAULT_SESSIONS_UNTIL_LONG_BREAK = 4
MIN_SESSIONS_UNTIL_LONG_BREAK = 2

DEFAULT_TICK_INTERVAL_SECONDS = 1.0
# Remaining-time changes smaller than this are not written through.
MIN_REMAINING_DELTA_SECONDS = 0.1
# A session counts as finished once remaining time drops to this value.
COMPLETION_TOLERANCE_SECONDS = 0.1

NOTIFICATION_CLEAR_SECONDS = 5.0
DEFAULT_TASK_RETENTION_HOURS = 24.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60

PHASE_IDLE = "idle"
PHASE_RUNNING = "running"
PHASE_PAUSED = "paused"

KIND_WORK = "work"
KIND_SHORT_BREAK = "short_break"
KIND_LONG_BREAK = "long_break"
KIND_QUICK_BREAK = "quick_break"

EVENT_STARTED = "started"
EVENT_PAUSED = "paused"
EVENT_RESET = "reset"
EVENT_TICK = "tick"
EVENT_COMPLETED = "completed"
EVENT_INTERRUPTED = "interrupted"
EVENT_SKIPPED = "skipped"
EVENT_QUICK_BREAK = "quick_break"
EVENT_MASTER_SESSION_ENDED = "master_session_ended"
EVENT_TASK_CHANGED = "task_changed"
EVENT_SETTINGS_CHANGED = "settings_changed"

COMMAND_START = "start"
COMMAND_PAUSE = "pause"
COMMAND_TOGGLE = "toggle"
COMMAND_RESET = "reset"
COMMAND_SKIP_BREAK = "skip_break"
COMMAND_QUICK_BREAK = "quick_break"
COMMAND_END_SESSION = "end_session"
COMMAND_SET_TASK = "set_task"
COMMAND_UPDATE_SETTINGS = "update_settings"
COMMAND_SYNC = "sync"

REASON_STARTED = "started"
REASON_PAUSED = "paused"
REASON_RESET = "reset"
REASON_SKIPPED = "skipped"
REASON_QUICK_BREAK = "quick_break"
REASON_ENDED = "ended"
REASON_TASK_CHANGED = "task_changed"
REASON_SETTINGS_CHANGED = "settings_changed"
REASON_SYNC = "sync"
REASON_ALREADY_RUNNING = "already_running"
REASON_NOT_RUNNING = "not_running"
REASON_NOT_IN_BREAK = "not_in_break"
REASON_INVALID_ARGUMENT = "invalid_argument"
REASON_INVALID_SETTINGS = "invalid_settings"
REASON_TASK_NOT_FOUND = "task_not_found"
REASON_UNSUPPORTED_COMMAND = "unsupported_command"
REASON_STORAGE_ERROR = "storage_error"
