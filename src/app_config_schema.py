"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field

from pomodoro.constants import (
    DEFAULT_LONG_BREAK_SECONDS,
    DEFAULT_SESSIONS_UNTIL_LONG_BREAK,
    DEFAULT_SHORT_BREAK_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_TASK_RETENTION_HOURS,
    DEFAULT_TICK_INTERVAL_SECONDS,
    DEFAULT_WORK_SECONDS,
)
from pomodoro.types import TimerSettings

DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_DATABASE_FILE = "pomodoro.db"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class StorageSettings:
    """SQLite location from `[storage]`."""
    database_path: str = DEFAULT_DATABASE_FILE


@dataclass(frozen=True)
class TimerSection:
    """Initial timer settings from `[timer]`; only seeded into empty stores."""
    work_minutes: float = DEFAULT_WORK_SECONDS / 60
    short_break_minutes: float = DEFAULT_SHORT_BREAK_SECONDS / 60
    long_break_minutes: float = DEFAULT_LONG_BREAK_SECONDS / 60
    sessions_until_long_break: int = DEFAULT_SESSIONS_UNTIL_LONG_BREAK
    auto_start_breaks: bool = True
    auto_start_work: bool = True
    notifications_enabled: bool = True
    sounds_enabled: bool = True
    tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS

    def to_timer_settings(self) -> TimerSettings:
        return TimerSettings(
            work_duration=self.work_minutes * 60.0,
            short_break_duration=self.short_break_minutes * 60.0,
            long_break_duration=self.long_break_minutes * 60.0,
            auto_start_breaks=self.auto_start_breaks,
            auto_start_work=self.auto_start_work,
            sessions_until_long_break=self.sessions_until_long_break,
            notifications_enabled=self.notifications_enabled,
            sounds_enabled=self.sounds_enabled,
        )


@dataclass(frozen=True)
class MaintenanceSettings:
    """Completed-task cleanup settings from `[maintenance]`."""
    task_retention_hours: float = DEFAULT_TASK_RETENTION_HOURS
    sweep_interval_seconds: float = float(DEFAULT_SWEEP_INTERVAL_SECONDS)


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in websocket server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    storage: StorageSettings = field(default_factory=StorageSettings)
    timer: TimerSection = field(default_factory=TimerSection)
    maintenance: MaintenanceSettings = field(default_factory=MaintenanceSettings)
    ui_server: UIServerSettings = field(default_factory=UIServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source_file: str = ""
