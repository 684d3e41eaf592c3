"""Dispatcher that executes UI command payloads against the timer, tasks and stats."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Optional

from contracts.ui_protocol import (
    COMMAND_COMPLETE_TASK,
    COMMAND_CREATE_TASK,
    COMMAND_DELETE_TASK,
    COMMAND_LIST_TASKS,
    COMMAND_STATS,
    COMMAND_UNCOMPLETE_TASK,
    EVENT_STATS,
    EVENT_TASKS,
)
from pomodoro import (
    InvalidConfigurationError,
    PersistenceError,
    PomodoroTimer,
    Task,
    TimerActionResult,
)
from pomodoro.constants import (
    COMMAND_END_SESSION,
    COMMAND_PAUSE,
    COMMAND_QUICK_BREAK,
    COMMAND_RESET,
    COMMAND_SET_TASK,
    COMMAND_SKIP_BREAK,
    COMMAND_START,
    COMMAND_SYNC,
    COMMAND_TOGGLE,
    COMMAND_UPDATE_SETTINGS,
    REASON_INVALID_ARGUMENT,
    REASON_INVALID_SETTINGS,
    REASON_STORAGE_ERROR,
    REASON_SYNC,
    REASON_TASK_NOT_FOUND,
    REASON_UNSUPPORTED_COMMAND,
)
from stats import StatsService
from tasks import TaskNotFoundError, TaskRegistry, time_until_auto_delete

from .ui import RuntimeUIPublisher

_REJECTION_TEXT = {
    "already_running": "Timer is already running.",
    "not_running": "Timer is not running.",
    "not_in_break": "There is no break to skip.",
    REASON_INVALID_ARGUMENT: "Invalid command arguments.",
    REASON_INVALID_SETTINGS: "Invalid timer settings.",
    REASON_STORAGE_ERROR: "Could not save the change.",
    REASON_TASK_NOT_FOUND: "Task not found.",
    REASON_UNSUPPORTED_COMMAND: "Unsupported command.",
}


def rejection_text(reason: str) -> str:
    return _REJECTION_TEXT.get(reason, "Command rejected.")


class RuntimeCommandDispatcher:
    """Routes UI commands to timer, task and stats handlers.

    Every command is answered with a `command_result` event. Timer state
    changes themselves reach the UI through the timer's event listeners.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        timer: PomodoroTimer,
        ui: RuntimeUIPublisher,
        task_registry: Optional[TaskRegistry] = None,
        stats_service: Optional[StatsService] = None,
        publish_sync: Optional[Callable[[], None]] = None,
        retention_hours: float = 24.0,
    ):
        self._logger = logger
        self._timer = timer
        self._ui = ui
        self._tasks = task_registry
        self._stats = stats_service
        self._publish_sync = publish_sync
        self._retention_hours = retention_hours
        self._handlers: dict[str, Callable[[dict[str, Any]], tuple[bool, str]]] = {
            COMMAND_START: self._timer_command(timer.start),
            COMMAND_PAUSE: self._timer_command(timer.pause),
            COMMAND_TOGGLE: self._timer_command(timer.toggle),
            COMMAND_RESET: self._timer_command(timer.reset),
            COMMAND_SKIP_BREAK: self._timer_command(timer.skip_break),
            COMMAND_END_SESSION: self._timer_command(timer.end_master_session),
            COMMAND_QUICK_BREAK: self._handle_quick_break,
            COMMAND_SET_TASK: self._handle_set_task,
            COMMAND_UPDATE_SETTINGS: self._handle_update_settings,
            COMMAND_SYNC: self._handle_sync,
            COMMAND_CREATE_TASK: self._handle_create_task,
            COMMAND_COMPLETE_TASK: self._handle_complete_task,
            COMMAND_UNCOMPLETE_TASK: self._handle_uncomplete_task,
            COMMAND_DELETE_TASK: self._handle_delete_task,
            COMMAND_LIST_TASKS: self._handle_list_tasks,
            COMMAND_STATS: self._handle_stats,
        }

    @property
    def commands(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def handle_command(self, payload: dict[str, Any]) -> bool:
        """Execute one command payload; returns whether it was accepted."""
        raw_command = payload.get("command")
        command = raw_command.strip() if isinstance(raw_command, str) else ""
        handler = self._handlers.get(command)
        if handler is None:
            self._logger.warning("Unsupported command: %s", raw_command)
            return self._reply(command, False, REASON_UNSUPPORTED_COMMAND)

        try:
            accepted, reason = handler(payload)
        except InvalidConfigurationError as error:
            self._logger.warning("Rejected %s: %s", command, error)
            return self._reply(command, False, REASON_INVALID_SETTINGS, message=str(error))
        except TaskNotFoundError as error:
            self._logger.warning("Rejected %s: %s", command, error)
            return self._reply(command, False, REASON_TASK_NOT_FOUND, message=str(error))
        except (OverflowError, TypeError, ValueError) as error:
            self._logger.warning("Rejected %s: %s", command, error)
            return self._reply(command, False, REASON_INVALID_ARGUMENT, message=str(error))
        except PersistenceError as error:
            self._logger.error("Command %s failed to persist: %s", command, error)
            return self._reply(command, False, REASON_STORAGE_ERROR)

        return self._reply(command, accepted, reason)

    # ----- Timer commands -----
    def _timer_command(
        self,
        action: Callable[[], TimerActionResult],
    ) -> Callable[[dict[str, Any]], tuple[bool, str]]:
        def handle(payload: dict[str, Any]) -> tuple[bool, str]:
            del payload
            result = action()
            return result.accepted, result.reason

        return handle

    def _handle_quick_break(self, payload: dict[str, Any]) -> tuple[bool, str]:
        minutes = payload.get("minutes")
        if isinstance(minutes, str):
            minutes = _parse_number(minutes)
        result = self._timer.set_quick_break(minutes)
        return result.accepted, result.reason

    def _handle_set_task(self, payload: dict[str, Any]) -> tuple[bool, str]:
        task_id = payload.get("task_id")
        task: Optional[Task] = None
        if task_id is not None:
            task = self._require_registry().require(_parse_task_id(task_id))
        result = self._timer.set_current_task(task)
        return result.accepted, result.reason

    def _handle_update_settings(self, payload: dict[str, Any]) -> tuple[bool, str]:
        changes = payload.get("settings")
        if not isinstance(changes, dict) or not changes:
            raise ValueError("update_settings requires a non-empty 'settings' object")
        result = self._timer.update_settings(**changes)
        return result.accepted, result.reason

    def _handle_sync(self, payload: dict[str, Any]) -> tuple[bool, str]:
        del payload
        if self._publish_sync is not None:
            self._publish_sync()
        return True, REASON_SYNC

    # ----- Task commands -----
    def _handle_create_task(self, payload: dict[str, Any]) -> tuple[bool, str]:
        registry = self._require_registry()
        options: dict[str, Any] = {}
        if payload.get("estimated_pomodoros") is not None:
            options["estimated_pomodoros"] = int(payload["estimated_pomodoros"])
        registry.create_task(
            str(payload.get("title") or ""),
            str(payload.get("priority") or "Medium"),
            **options,
        )
        self.publish_tasks()
        return True, "task_created"

    def _handle_complete_task(self, payload: dict[str, Any]) -> tuple[bool, str]:
        self._require_registry().complete_task(_parse_task_id(payload.get("task_id")))
        self.publish_tasks()
        return True, "task_completed"

    def _handle_uncomplete_task(self, payload: dict[str, Any]) -> tuple[bool, str]:
        self._require_registry().uncomplete_task(_parse_task_id(payload.get("task_id")))
        self.publish_tasks()
        return True, "task_reopened"

    def _handle_delete_task(self, payload: dict[str, Any]) -> tuple[bool, str]:
        task_id = _parse_task_id(payload.get("task_id"))
        self._require_registry().delete_task(task_id)
        self._timer.forget_task(task_id)
        self.publish_tasks()
        return True, "task_deleted"

    def _handle_list_tasks(self, payload: dict[str, Any]) -> tuple[bool, str]:
        del payload
        self.publish_tasks()
        return True, REASON_SYNC

    def _handle_stats(self, payload: dict[str, Any]) -> tuple[bool, str]:
        del payload
        if self._stats is None:
            return False, REASON_UNSUPPORTED_COMMAND
        today = self._stats.today_stats()
        self._ui.publish(
            EVENT_STATS,
            today=asdict(today),
            daily=[_series_payload(point) for point in self._stats.daily_series()],
            weekly=[_series_payload(point) for point in self._stats.weekly_series()],
            monthly=[_series_payload(point) for point in self._stats.monthly_series()],
            tasks=[
                {
                    "label": point.label,
                    "start": point.start.isoformat(),
                    "completed_tasks": point.completed_tasks,
                }
                for point in self._stats.task_series()
            ],
        )
        return True, REASON_SYNC

    def publish_tasks(self) -> None:
        if self._tasks is None:
            return
        current = self._timer.current_task
        items = []
        for task in self._tasks.list_tasks():
            item: dict[str, Any] = {
                "id": task.id,
                "title": task.title,
                "priority": task.priority.value,
                "done": task.done,
                "estimated_pomodoros": task.estimated_pomodoros,
                "actual_pomodoros": task.actual_pomodoros,
                "is_current": current is not None and current.id == task.id,
                "created_at": task.created_at.isoformat() if task.created_at else None,
                "completed_at": task.completed_at.isoformat() if task.completed_at else None,
            }
            if task.completed_at is not None:
                hours, minutes = time_until_auto_delete(
                    task.completed_at,
                    self._tasks.now(),
                    self._retention_hours,
                )
                item["auto_delete_in"] = {"hours": hours, "minutes": minutes}
            items.append(item)
        self._ui.publish(EVENT_TASKS, tasks=items)

    # ----- Helpers -----
    def _require_registry(self) -> TaskRegistry:
        if self._tasks is None:
            raise ValueError("Task registry is not available")
        return self._tasks

    def _reply(
        self,
        command: str,
        accepted: bool,
        reason: str,
        *,
        message: Optional[str] = None,
    ) -> bool:
        if not accepted and message is None:
            message = rejection_text(reason)
        self._ui.publish_command_result(
            command,
            accepted=accepted,
            reason=reason,
            message=message,
        )
        return accepted


def _parse_task_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid task id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid task id: {value!r}")


def _parse_number(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid number: {value!r}") from error


def _series_payload(point) -> dict[str, Any]:
    return {
        "label": point.label,
        "start": point.start.isoformat(),
        "sessions": point.sessions,
        "hours": round(point.hours, 2),
    }
