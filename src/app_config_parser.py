"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Callable, Mapping

from app_config_schema import (
    DEFAULT_DATABASE_FILE,
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    MaintenanceSettings,
    StorageSettings,
    TimerSection,
    UIServerSettings,
)
from pomodoro.errors import InvalidConfigurationError

_MEMORY_DATABASE = ":memory:"
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_BOOL_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    storage = _parse_storage_settings(_section(raw, "storage"), base_dir=base_dir)
    timer = _parse_timer_section(_section(raw, "timer"))
    maintenance = _parse_maintenance_settings(_section(raw, "maintenance"))
    ui_server = _parse_ui_server_settings(_section(raw, "ui_server"))
    logging_settings = _parse_logging_settings(_section(raw, "logging"))

    return AppConfig(
        storage=storage,
        timer=timer,
        maintenance=maintenance,
        ui_server=ui_server,
        logging=logging_settings,
        source_file=source_file,
    )


def _parse_storage_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> StorageSettings:
    database_path = _as_str(
        section.get("database_path", DEFAULT_DATABASE_FILE),
        "storage.database_path",
    )
    if not database_path:
        raise AppConfigurationError("storage.database_path cannot be empty.")
    if database_path != _MEMORY_DATABASE:
        database_path = _resolve_path(base_dir, database_path)
    return StorageSettings(database_path=database_path)


def _parse_timer_section(section: Mapping[str, Any]) -> TimerSection:
    defaults = TimerSection()
    timer = TimerSection(
        work_minutes=_as_float(
            section.get("work_minutes", defaults.work_minutes),
            "timer.work_minutes",
        ),
        short_break_minutes=_as_float(
            section.get("short_break_minutes", defaults.short_break_minutes),
            "timer.short_break_minutes",
        ),
        long_break_minutes=_as_float(
            section.get("long_break_minutes", defaults.long_break_minutes),
            "timer.long_break_minutes",
        ),
        sessions_until_long_break=_as_int(
            section.get("sessions_until_long_break", defaults.sessions_until_long_break),
            "timer.sessions_until_long_break",
        ),
        auto_start_breaks=_as_bool(
            section.get("auto_start_breaks", defaults.auto_start_breaks),
            "timer.auto_start_breaks",
        ),
        auto_start_work=_as_bool(
            section.get("auto_start_work", defaults.auto_start_work),
            "timer.auto_start_work",
        ),
        notifications_enabled=_as_bool(
            section.get("notifications_enabled", defaults.notifications_enabled),
            "timer.notifications_enabled",
        ),
        sounds_enabled=_as_bool(
            section.get("sounds_enabled", defaults.sounds_enabled),
            "timer.sounds_enabled",
        ),
        tick_interval_seconds=_as_positive_float(
            section.get("tick_interval_seconds", defaults.tick_interval_seconds),
            "timer.tick_interval_seconds",
        ),
    )
    try:
        timer.to_timer_settings()
    except InvalidConfigurationError as error:
        raise AppConfigurationError(f"Invalid [timer] settings: {error}") from error
    return timer


def _parse_maintenance_settings(section: Mapping[str, Any]) -> MaintenanceSettings:
    defaults = MaintenanceSettings()
    return MaintenanceSettings(
        task_retention_hours=_as_positive_float(
            section.get("task_retention_hours", defaults.task_retention_hours),
            "maintenance.task_retention_hours",
        ),
        sweep_interval_seconds=_as_positive_float(
            section.get("sweep_interval_seconds", defaults.sweep_interval_seconds),
            "maintenance.sweep_interval_seconds",
        ),
    )


def _parse_ui_server_settings(section: Mapping[str, Any]) -> UIServerSettings:
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_int(section.get("port", 8765), "ui_server.port"),
    )


def _parse_logging_settings(section: Mapping[str, Any]) -> LoggingSettings:
    level = _as_str(section.get("level", "INFO"), "logging.level").upper()
    if level not in _LOG_LEVELS:
        allowed = ", ".join(sorted(_LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}.")
    return LoggingSettings(level=level)


def log_level_value(settings: LoggingSettings) -> int:
    return logging.getLevelName(settings.level)


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _BOOL_WORDS:
        return _BOOL_WORDS[value.strip().lower()]
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_number(value: Any, field: str, cast: Callable[[Any], Any], kind: str) -> Any:
    # bool is an int subclass.
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise AppConfigurationError(f"{field} must be {kind}.")
    if cast is int and isinstance(value, float):
        raise AppConfigurationError(f"{field} must be {kind}.")
    try:
        return cast(value.strip() if isinstance(value, str) else value)
    except ValueError as error:
        raise AppConfigurationError(f"{field} must be {kind}.") from error


def _as_int(value: Any, field: str) -> int:
    return _as_number(value, field, int, "an integer")


def _as_float(value: Any, field: str) -> float:
    return _as_number(value, field, float, "a number")


def _as_positive_float(value: Any, field: str) -> float:
    number = _as_float(value, field)
    if not math.isfinite(number) or number <= 0:
        raise AppConfigurationError(f"{field} must be a finite number greater than zero.")
    return number


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
