"""SQLite-backed settings and record stores."""

from .db import Database, open_database
from .record_store import RecordStore
from .settings_store import SettingsStore

__all__ = [
    "Database",
    "RecordStore",
    "SettingsStore",
    "open_database",
]
