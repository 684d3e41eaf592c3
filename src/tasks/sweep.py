"""Scheduled purge of tasks completed more than the retention window ago."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pomodoro.clock import utc_now
from pomodoro.constants import DEFAULT_TASK_RETENTION_HOURS
from pomodoro.errors import PersistenceError
from storage.record_store import RecordStore


class CompletedTaskSweeper:
    """Deletes completed tasks past retention; run on startup and on an interval."""

    def __init__(
        self,
        record_store: RecordStore,
        *,
        retention_hours: float = DEFAULT_TASK_RETENTION_HOURS,
        now_fn: Optional[Callable[[], datetime]] = None,
        on_deleted: Optional[Callable[[int], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if retention_hours <= 0:
            raise ValueError("retention_hours must be greater than zero")
        self._records = record_store
        self._retention = timedelta(hours=retention_hours)
        self._now = now_fn or utc_now
        self._on_deleted = on_deleted
        self._logger = logger or logging.getLogger("tasks.sweep")

    def run(self) -> int:
        """Delete expired completed tasks and return how many were removed."""
        cutoff = self._now() - self._retention
        try:
            expired = self._records.query_completed_tasks_older_than(cutoff)
        except PersistenceError as error:
            self._logger.error("Completed-task sweep query failed: %s", error)
            return 0

        removed = 0
        for task in expired:
            try:
                self._records.delete(task)
            except PersistenceError as error:
                self._logger.error("Failed to delete completed task %s: %s", task.id, error)
                continue
            removed += 1
            if self._on_deleted is not None:
                self._on_deleted(task.id)

        if removed:
            self._logger.info(
                "Cleaned up %d completed tasks older than %.0f hours",
                removed,
                self._retention.total_seconds() / 3600,
            )
        return removed


def time_until_auto_delete(
    completed_at: datetime,
    now: datetime,
    retention_hours: float = DEFAULT_TASK_RETENTION_HOURS,
) -> tuple[int, int]:
    """Return `(hours, minutes)` left before a completed task is purged."""
    delete_at = completed_at + timedelta(hours=retention_hours)
    remaining = int((delete_at - now).total_seconds())
    if remaining <= 0:
        return 0, 0
    return remaining // 3600, (remaining % 3600) // 60
