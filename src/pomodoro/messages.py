"""Notification and status text builders for timer flows."""

from __future__ import annotations

from .types import Phase, SessionKind, TimerSnapshot


def completion_notification(finished: SessionKind, next_kind: SessionKind) -> tuple[str, str]:
    """Return the `(title, body)` shown when a session runs out."""
    if finished is SessionKind.WORK:
        title = "Work Session Complete! \U0001f345"
        if next_kind is SessionKind.LONG_BREAK:
            return title, "Time for a long break! You've earned it."
        return title, "Time for a short break. Stretch and relax."
    return "Break Time Over! ⚡", "Ready to get back to work?"


def timer_status_message(snapshot: TimerSnapshot) -> str:
    """Build a one-line status text for the current snapshot."""
    if snapshot.phase is Phase.RUNNING:
        return f"{snapshot.label} running ({snapshot.time_string} remaining)"
    if snapshot.phase is Phase.PAUSED:
        return f"{snapshot.label} paused ({snapshot.time_string} remaining)"
    return "Ready"


def focus_sessions_text(work_sessions: int, work_duration_seconds: float) -> str:
    minutes = int(work_duration_seconds) // 60
    return f"{work_sessions}×{minutes} Mins"


def master_session_summary_text(
    work_sessions: int,
    break_sessions: int,
    total_focus_seconds: float,
    duration_seconds: float,
) -> str:
    focus_minutes = int(total_focus_seconds) // 60
    total_minutes = int(duration_seconds) // 60
    return (
        f"Session ended: {work_sessions} focus / {break_sessions} break sessions, "
        f"{focus_minutes} min focused over {total_minutes} min"
    )
