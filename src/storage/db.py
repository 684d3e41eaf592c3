"""SQLite connection wrapper and schema for settings, sessions, and tasks."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Sequence

from pomodoro.errors import PersistenceError

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS app_state (
        key TEXT PRIMARY KEY,
        value TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        priority TEXT NOT NULL DEFAULT 'Medium',
        created_at REAL NOT NULL,
        done INTEGER NOT NULL DEFAULT 0,
        completed_at REAL,
        estimated_pomodoros INTEGER NOT NULL DEFAULT 1,
        actual_pomodoros INTEGER NOT NULL DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        kind TEXT NOT NULL,
        start_time REAL NOT NULL,
        end_time REAL,
        duration REAL NOT NULL,
        task_id INTEGER,
        task_title TEXT,
        completed INTEGER NOT NULL DEFAULT 0,
        interrupted INTEGER NOT NULL DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS task_completions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_id INTEGER,
        task_title TEXT NOT NULL,
        task_priority TEXT NOT NULL,
        pomodoros_spent INTEGER NOT NULL DEFAULT 0,
        completed_at REAL NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_sessions_start ON sessions(start_time);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_done ON tasks(done, completed_at);",
    "CREATE INDEX IF NOT EXISTS idx_completions_at ON task_completions(completed_at);",
)


class Database:
    """Owns the SQLite connection; every failure surfaces as `PersistenceError`."""

    def __init__(
        self,
        db_path: str = "pomodoro.db",
        logger: Optional[logging.Logger] = None,
    ):
        self.db_path = db_path
        self._logger = logger or logging.getLogger("storage")
        if db_path != ":memory:":
            Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(db_path)
        except sqlite3.Error as error:
            raise PersistenceError(f"Failed to open database {db_path}: {error}") from error
        self.conn.row_factory = sqlite3.Row

    def init_schema(self) -> None:
        try:
            cur = self.conn.cursor()
            for statement in _SCHEMA:
                cur.execute(statement)
            self.conn.commit()
        except sqlite3.Error as error:
            raise PersistenceError(f"Failed to initialize schema: {error}") from error
        self._logger.debug("Database schema ready: %s", self.db_path)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and commit; returns the last inserted row id."""
        try:
            cursor = self.conn.execute(sql, params)
            self.conn.commit()
        except sqlite3.Error as error:
            self._rollback()
            raise PersistenceError(f"Database write failed: {error}") from error
        return int(cursor.lastrowid or 0)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as error:
            raise PersistenceError(f"Database read failed: {error}") from error

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as error:
            raise PersistenceError(f"Database read failed: {error}") from error

    def close(self) -> None:
        try:
            self.conn.close()
        except sqlite3.Error as error:
            self._logger.warning("Failed to close database %s: %s", self.db_path, error)

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as error:
            self._logger.debug("Rollback failed: %s", error)


def open_database(db_path: str, logger: Optional[logging.Logger] = None) -> Database:
    database = Database(db_path=db_path, logger=logger)
    database.init_schema()
    return database
