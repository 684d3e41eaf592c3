"""Task CRUD backed by the shared SQLite database."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from pomodoro.clock import utc_now
from pomodoro.types import Task, TaskCompletion, TaskPriority
from storage.db import Database
from storage.record_store import RecordStore, task_from_row


class TaskNotFoundError(LookupError):
    """Raised when a task id does not exist."""


class TaskRegistry:
    """User tasks: creation, soft completion, deletion, and pomodoro credit."""

    def __init__(
        self,
        db: Database,
        record_store: RecordStore,
        *,
        now_fn: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db
        self._records = record_store
        self._now = now_fn or utc_now
        self._logger = logger or logging.getLogger("tasks")

    def now(self) -> datetime:
        return self._now()

    def create_task(
        self,
        title: str,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        *,
        estimated_pomodoros: int = 1,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("Task title cannot be empty.")
        if estimated_pomodoros < 1:
            raise ValueError("estimated_pomodoros must be at least 1.")
        level = _parse_priority(priority)

        task_id = self.db.execute(
            """
            INSERT INTO tasks(title, priority, created_at, estimated_pomodoros)
            VALUES(?,?,?,?)
            """,
            (title, level.value, self._now().timestamp(), estimated_pomodoros),
        )
        self._logger.info("Task created: id=%s priority=%s", task_id, level.value)
        return self.require(task_id)

    def get(self, task_id: int) -> Optional[Task]:
        row = self.db.fetch_one("SELECT * FROM tasks WHERE id=?", (task_id,))
        return task_from_row(row) if row else None

    def require(self, task_id: int) -> Task:
        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task not found: {task_id}")
        return task

    def list_tasks(self) -> list[Task]:
        """Open tasks first, then by priority rank, then newest first."""
        rows = self.db.fetch_all("SELECT * FROM tasks")
        tasks = [task_from_row(row) for row in rows]
        return sorted(
            tasks,
            key=lambda task: (
                task.done,
                task.priority.sort_order,
                -(task.created_at.timestamp() if task.created_at else 0.0),
            ),
        )

    def set_priority(self, task_id: int, priority: TaskPriority | str) -> Task:
        self.require(task_id)
        level = _parse_priority(priority)
        self.db.execute("UPDATE tasks SET priority=? WHERE id=?", (level.value, task_id))
        return self.require(task_id)

    def complete_task(self, task_id: int) -> Task:
        task = self.require(task_id)
        if task.done:
            return task
        completed_at = self._now()
        self.db.execute(
            "UPDATE tasks SET done=1, completed_at=? WHERE id=?",
            (completed_at.timestamp(), task_id),
        )
        self._records.insert_task_completion(
            TaskCompletion(
                task_id=task.id,
                task_title=task.title,
                task_priority=task.priority.value,
                pomodoros_spent=task.actual_pomodoros,
                completed_at=completed_at,
            )
        )
        self._logger.info("Task completed: id=%s", task_id)
        return self.require(task_id)

    def uncomplete_task(self, task_id: int) -> Task:
        task = self.require(task_id)
        if not task.done:
            return task
        self.db.execute(
            "UPDATE tasks SET done=0, completed_at=NULL WHERE id=?",
            (task_id,),
        )
        self._records.delete_task_completions(task_id)
        self._logger.info("Task reopened: id=%s", task_id)
        return self.require(task_id)

    def delete_task(self, task_id: int) -> None:
        task = self.require(task_id)
        if task.done:
            raise ValueError("Completed tasks are removed automatically after 24 hours.")
        self.db.execute("DELETE FROM tasks WHERE id=?", (task_id,))
        self._logger.info("Task deleted: id=%s", task_id)

    def increment_pomodoro_count(self, task_id: int) -> None:
        self.require(task_id)
        self.db.execute(
            "UPDATE tasks SET actual_pomodoros = actual_pomodoros + 1 WHERE id=?",
            (task_id,),
        )


def _parse_priority(priority: TaskPriority | str) -> TaskPriority:
    if isinstance(priority, TaskPriority):
        return priority
    text = (priority or "").strip().lower()
    for level in TaskPriority:
        if level.value.lower() == text:
            return level
    allowed = "/".join(level.value for level in TaskPriority)
    raise ValueError(f"Invalid priority. Use {allowed}.")
