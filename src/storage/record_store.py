"""Append-only store for finalized session records and task completions."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from pomodoro.types import SessionKind, SessionRecord, Task, TaskCompletion, TaskPriority

from .db import Database


class RecordStore:
    """Persists finalized `SessionRecord`s; records are never updated after insert."""

    def __init__(self, db: Database, logger: Optional[logging.Logger] = None):
        self.db = db
        self._logger = logger or logging.getLogger("storage.records")

    # ----- sessions -----
    def insert_session(self, record: SessionRecord) -> SessionRecord:
        if not record.is_finalized:
            raise ValueError("Only completed or interrupted session records can be stored.")
        record_id = self.db.execute(
            """
            INSERT INTO sessions(
                kind, start_time, end_time, duration,
                task_id, task_title, completed, interrupted
            )
            VALUES(?,?,?,?,?,?,?,?)
            """,
            (
                record.kind.value,
                _to_ts(record.start_time),
                _to_ts(record.end_time),
                record.duration,
                record.task_id,
                record.task_title,
                int(record.completed),
                int(record.interrupted),
            ),
        )
        self._logger.debug(
            "Stored %s session record %s (completed=%s)",
            record.kind.value,
            record_id,
            record.completed,
        )
        return replace(record, id=record_id)

    def list_sessions(
        self,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        kind: Optional[SessionKind] = None,
        completed_only: bool = False,
    ) -> list[SessionRecord]:
        clauses: list[str] = []
        params: list[Any] = []
        if since is not None:
            clauses.append("start_time >= ?")
            params.append(_to_ts(since))
        if until is not None:
            clauses.append("start_time < ?")
            params.append(_to_ts(until))
        if kind is not None:
            clauses.append("kind = ?")
            params.append(kind.value)
        if completed_only:
            clauses.append("completed = 1")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.db.fetch_all(
            f"""
            SELECT id, kind, start_time, end_time, duration,
                   task_id, task_title, completed, interrupted
            FROM sessions {where}
            ORDER BY start_time ASC, id ASC
            """,
            params,
        )
        return [session_from_row(row) for row in rows]

    # ----- task completions -----
    def insert_task_completion(self, completion: TaskCompletion) -> TaskCompletion:
        completion_id = self.db.execute(
            """
            INSERT INTO task_completions(
                task_id, task_title, task_priority, pomodoros_spent, completed_at
            )
            VALUES(?,?,?,?,?)
            """,
            (
                completion.task_id,
                completion.task_title,
                completion.task_priority,
                completion.pomodoros_spent,
                _to_ts(completion.completed_at),
            ),
        )
        return replace(completion, id=completion_id)

    def delete_task_completions(self, task_id: int) -> None:
        self.db.execute("DELETE FROM task_completions WHERE task_id=?", (task_id,))

    def list_task_completions(
        self,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[TaskCompletion]:
        clauses: list[str] = []
        params: list[Any] = []
        if since is not None:
            clauses.append("completed_at >= ?")
            params.append(_to_ts(since))
        if until is not None:
            clauses.append("completed_at < ?")
            params.append(_to_ts(until))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.db.fetch_all(
            f"""
            SELECT id, task_id, task_title, task_priority, pomodoros_spent, completed_at
            FROM task_completions {where}
            ORDER BY completed_at ASC, id ASC
            """,
            params,
        )
        return [
            TaskCompletion(
                id=row["id"],
                task_id=row["task_id"],
                task_title=row["task_title"],
                task_priority=row["task_priority"],
                pomodoros_spent=row["pomodoros_spent"],
                completed_at=_from_ts(row["completed_at"]),
            )
            for row in rows
        ]

    # ----- completed-task maintenance -----
    def query_completed_tasks_older_than(self, cutoff: datetime) -> list[Task]:
        rows = self.db.fetch_all(
            """
            SELECT * FROM tasks
            WHERE done = 1 AND completed_at IS NOT NULL AND completed_at < ?
            ORDER BY completed_at ASC
            """,
            (_to_ts(cutoff),),
        )
        return [task_from_row(row) for row in rows]

    def delete(self, task: Task) -> None:
        self.db.execute("DELETE FROM tasks WHERE id=?", (task.id,))


def session_from_row(row: sqlite3.Row) -> SessionRecord:
    return SessionRecord(
        id=row["id"],
        kind=SessionKind(row["kind"]),
        start_time=_from_ts(row["start_time"]),
        end_time=_from_ts(row["end_time"]) if row["end_time"] is not None else None,
        duration=float(row["duration"]),
        task_id=row["task_id"],
        task_title=row["task_title"],
        completed=bool(row["completed"]),
        interrupted=bool(row["interrupted"]),
    )


def task_from_row(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        priority=TaskPriority(row["priority"]),
        created_at=_from_ts(row["created_at"]),
        done=bool(row["done"]),
        completed_at=_from_ts(row["completed_at"]) if row["completed_at"] is not None else None,
        estimated_pomodoros=row["estimated_pomodoros"],
        actual_pomodoros=row["actual_pomodoros"],
    )


def _to_ts(moment: Optional[datetime]) -> Optional[float]:
    if moment is None:
        return None
    return moment.timestamp()


def _from_ts(value: float) -> datetime:
    return datetime.fromtimestamp(float(value), tz=timezone.utc)
