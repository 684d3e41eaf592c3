"""Web UI websocket event and state constants."""

from __future__ import annotations

# Websocket event types
EVENT_HELLO = "hello"
EVENT_STATE_UPDATE = "state_update"
EVENT_POMODORO = "pomodoro"
EVENT_NOTIFICATION = "notification"
EVENT_NOTIFICATION_CLEARED = "notification_cleared"
EVENT_SOUND = "sound"
EVENT_SESSION_SUMMARY = "session_summary"
EVENT_COMMAND_RESULT = "command_result"
EVENT_TASKS = "tasks"
EVENT_STATS = "stats"
EVENT_ERROR = "error"

# UI runtime states
STATE_IDLE = "idle"
STATE_FOCUSING = "focusing"
STATE_ON_BREAK = "on_break"
STATE_PAUSED = "paused"
STATE_ERROR = "error"

# Task and stats commands accepted alongside the timer commands
COMMAND_CREATE_TASK = "create_task"
COMMAND_COMPLETE_TASK = "complete_task"
COMMAND_UNCOMPLETE_TASK = "uncomplete_task"
COMMAND_DELETE_TASK = "delete_task"
COMMAND_LIST_TASKS = "list_tasks"
COMMAND_STATS = "stats"

SOUND_START = "start"
SOUND_COMPLETE = "complete"

# Events replayed to newly connected clients, in replay order.
STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_POMODORO,
    EVENT_SESSION_SUMMARY,
    EVENT_TASKS,
    EVENT_NOTIFICATION,
    EVENT_ERROR,
    EVENT_STATE_UPDATE,
)
