"""Domain types shared by the timer, the stores, and their collaborators."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .constants import (
    DEFAULT_LONG_BREAK_SECONDS,
    DEFAULT_SESSIONS_UNTIL_LONG_BREAK,
    DEFAULT_SHORT_BREAK_SECONDS,
    DEFAULT_WORK_SECONDS,
    KIND_LONG_BREAK,
    KIND_QUICK_BREAK,
    KIND_SHORT_BREAK,
    KIND_WORK,
    MIN_SESSIONS_UNTIL_LONG_BREAK,
    PHASE_IDLE,
    PHASE_PAUSED,
    PHASE_RUNNING,
)
from .errors import InvalidConfigurationError, RecordAlreadyFinalizedError


class Phase(str, Enum):
    IDLE = PHASE_IDLE
    RUNNING = PHASE_RUNNING
    PAUSED = PHASE_PAUSED


class SessionKind(str, Enum):
    WORK = KIND_WORK
    SHORT_BREAK = KIND_SHORT_BREAK
    LONG_BREAK = KIND_LONG_BREAK
    QUICK_BREAK = KIND_QUICK_BREAK

    @property
    def is_break(self) -> bool:
        return self is not SessionKind.WORK

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]

    @property
    def emoji(self) -> str:
        return _KIND_EMOJI[self]


_KIND_LABELS = {
    SessionKind.WORK: "Focus Time",
    SessionKind.SHORT_BREAK: "Short Break",
    SessionKind.LONG_BREAK: "Long Break",
    SessionKind.QUICK_BREAK: "Quick Break",
}

_KIND_EMOJI = {
    SessionKind.WORK: "\U0001f345",
    SessionKind.SHORT_BREAK: "☕️",
    SessionKind.LONG_BREAK: "\U0001f334",
    SessionKind.QUICK_BREAK: "\U0001f9d8",
}


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"

    @property
    def sort_order(self) -> int:
        return _PRIORITY_SORT_ORDER[self]


_PRIORITY_SORT_ORDER = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


@dataclass(frozen=True)
class TimerSettings:
    """User-editable timer settings; invalid values are rejected on construction."""
    work_duration: float = float(DEFAULT_WORK_SECONDS)
    short_break_duration: float = float(DEFAULT_SHORT_BREAK_SECONDS)
    long_break_duration: float = float(DEFAULT_LONG_BREAK_SECONDS)
    auto_start_breaks: bool = True
    auto_start_work: bool = True
    sessions_until_long_break: int = DEFAULT_SESSIONS_UNTIL_LONG_BREAK
    notifications_enabled: bool = True
    sounds_enabled: bool = True

    def __post_init__(self) -> None:
        for name in ("work_duration", "short_break_duration", "long_break_duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidConfigurationError(f"{name} must be a number, got: {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise InvalidConfigurationError(
                    f"{name} must be a finite number greater than zero, got: {value}"
                )

        sessions = self.sessions_until_long_break
        if isinstance(sessions, bool) or not isinstance(sessions, int):
            raise InvalidConfigurationError(
                f"sessions_until_long_break must be an integer, got: {sessions!r}"
            )
        if sessions < MIN_SESSIONS_UNTIL_LONG_BREAK:
            raise InvalidConfigurationError(
                "sessions_until_long_break must be at least "
                f"{MIN_SESSIONS_UNTIL_LONG_BREAK}, got: {sessions}"
            )

    def with_changes(self, **changes: Any) -> "TimerSettings":
        unknown = sorted(set(changes) - set(self.__dataclass_fields__))
        if unknown:
            raise InvalidConfigurationError(f"Unknown timer settings: {', '.join(unknown)}")
        return replace(self, **changes)

    def duration_for(self, kind: SessionKind) -> float:
        if kind is SessionKind.WORK:
            return self.work_duration
        if kind is SessionKind.LONG_BREAK:
            return self.long_break_duration
        return self.short_break_duration


@dataclass(frozen=True)
class DailyCounters:
    completed_sessions: int = 0
    work_sessions_completed: int = 0
    last_active_day: Optional[str] = None


@dataclass
class MasterSession:
    """Umbrella over the work/break cycles between a start and an explicit end."""
    started_at: datetime
    work_sessions_count: int = 0
    break_sessions_count: int = 0
    total_focus_seconds: float = 0.0


@dataclass(frozen=True)
class MasterSessionSummary:
    work_sessions: int
    break_sessions: int
    total_focus_seconds: float
    duration_seconds: float


@dataclass
class SessionRecord:
    """One work or break session; finalized exactly once, then persisted."""
    start_time: datetime
    duration: float
    kind: SessionKind
    task_id: Optional[int] = None
    task_title: Optional[str] = None
    end_time: Optional[datetime] = None
    completed: bool = False
    interrupted: bool = False
    id: Optional[int] = None

    @property
    def is_finalized(self) -> bool:
        return self.completed or self.interrupted

    @property
    def actual_duration(self) -> float:
        if self.end_time is None:
            return 0.0
        return max(0.0, (self.end_time - self.start_time).total_seconds())

    def complete(self, at: datetime) -> None:
        self._finalize(at)
        self.completed = True

    def interrupt(self, at: datetime) -> None:
        self._finalize(at)
        self.interrupted = True

    def _finalize(self, at: datetime) -> None:
        if self.is_finalized:
            raise RecordAlreadyFinalizedError(
                f"Session record started at {self.start_time.isoformat()} is already finalized"
            )
        self.end_time = at


@dataclass(frozen=True)
class Task:
    id: int
    title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: Optional[datetime] = None
    done: bool = False
    completed_at: Optional[datetime] = None
    estimated_pomodoros: int = 1
    actual_pomodoros: int = 0


@dataclass(frozen=True)
class TaskCompletion:
    task_id: Optional[int]
    task_title: str
    task_priority: str
    completed_at: datetime
    pomodoros_spent: int = 0
    id: Optional[int] = None


@dataclass(frozen=True)
class TimerSnapshot:
    """Immutable timer view handed to UI publishers and event listeners."""
    phase: Phase
    kind: SessionKind
    remaining_seconds: float
    phase_duration: float
    current_session_duration: float
    session_started_at: Optional[datetime]
    work_sessions_completed_today: int
    completed_sessions_today: int
    sessions_until_long_break: int
    master_session: Optional[MasterSession]
    current_task_id: Optional[int] = None
    current_task_title: Optional[str] = None
    has_active_record: bool = False

    @property
    def is_running(self) -> bool:
        return self.phase is Phase.RUNNING

    @property
    def progress(self) -> float:
        if self.phase_duration <= 0:
            return 0.0
        elapsed = self.phase_duration - self.remaining_seconds
        return max(0.0, min(1.0, elapsed / self.phase_duration))

    @property
    def time_string(self) -> str:
        return format_clock(self.remaining_seconds)

    @property
    def label(self) -> str:
        return self.kind.label

    @property
    def emoji(self) -> str:
        return self.kind.emoji

    def to_payload(self) -> dict[str, Any]:
        master = self.master_session
        return {
            "phase": self.phase.value,
            "kind": self.kind.value,
            "label": self.label,
            "emoji": self.emoji,
            "remaining_seconds": round(self.remaining_seconds, 1),
            "time_string": self.time_string,
            "progress": round(self.progress, 4),
            "phase_duration": self.phase_duration,
            "work_sessions_completed_today": self.work_sessions_completed_today,
            "completed_sessions_today": self.completed_sessions_today,
            "current_task_id": self.current_task_id,
            "current_task_title": self.current_task_title,
            "master_session": (
                {
                    "started_at": master.started_at.isoformat(),
                    "work_sessions": master.work_sessions_count,
                    "break_sessions": master.break_sessions_count,
                    "total_focus_seconds": round(master.total_focus_seconds, 1),
                }
                if master is not None
                else None
            ),
        }


@dataclass(frozen=True)
class TimerEvent:
    name: str
    snapshot: TimerSnapshot
    summary: Optional[MasterSessionSummary] = None
    details: dict[str, Any] = field(default_factory=dict)


def format_clock(seconds: float) -> str:
    """Format a duration in seconds as `MM:SS`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"
