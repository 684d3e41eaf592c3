from .clock import TickScheduler, TickSubscription, local_day, start_of_local_day, utc_now
from .errors import (
    InvalidConfigurationError,
    PersistenceError,
    PomodoroError,
    RecordAlreadyFinalizedError,
)
from .service import PomodoroTimer, TimerActionResult, TimerListener
from .types import (
    DailyCounters,
    MasterSession,
    MasterSessionSummary,
    Phase,
    SessionKind,
    SessionRecord,
    Task,
    TaskCompletion,
    TaskPriority,
    TimerEvent,
    TimerSettings,
    TimerSnapshot,
    format_clock,
)

__all__ = [
    "DailyCounters",
    "InvalidConfigurationError",
    "MasterSession",
    "MasterSessionSummary",
    "PersistenceError",
    "Phase",
    "PomodoroError",
    "PomodoroTimer",
    "RecordAlreadyFinalizedError",
    "SessionKind",
    "SessionRecord",
    "Task",
    "TaskCompletion",
    "TaskPriority",
    "TickScheduler",
    "TickSubscription",
    "TimerActionResult",
    "TimerEvent",
    "TimerListener",
    "TimerSettings",
    "TimerSnapshot",
    "format_clock",
    "local_day",
    "start_of_local_day",
    "utc_now",
]
