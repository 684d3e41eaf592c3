"""Timer event handler that mirrors lifecycle events and runtime state to the UI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from contracts.ui_protocol import (
    EVENT_SESSION_SUMMARY,
    STATE_FOCUSING,
    STATE_IDLE,
    STATE_ON_BREAK,
    STATE_PAUSED,
)
from pomodoro import Phase, TimerEvent, TimerSnapshot
from pomodoro.constants import EVENT_COMPLETED, EVENT_MASTER_SESSION_ENDED, EVENT_TICK
from pomodoro.messages import master_session_summary_text, timer_status_message

from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class TickDependencies:
    """Dependencies required for processing timer events."""
    logger: logging.Logger
    ui: RuntimeUIPublisher


def runtime_state_for(snapshot: TimerSnapshot) -> str:
    if snapshot.phase is Phase.RUNNING:
        return STATE_ON_BREAK if snapshot.kind.is_break else STATE_FOCUSING
    if snapshot.phase is Phase.PAUSED:
        return STATE_PAUSED
    return STATE_IDLE


class TickProcessor:
    """Timer listener publishing `pomodoro`, `state_update` and summary events."""
    def __init__(self, dependencies: TickDependencies):
        self._dependencies = dependencies
        self._last_state: Optional[str] = None

    def handle_timer_event(self, event: TimerEvent) -> None:
        deps = self._dependencies
        deps.ui.publish_timer_update(event.snapshot, event=event.name, **event.details)

        if event.name == EVENT_MASTER_SESSION_ENDED and event.summary is not None:
            summary = event.summary
            deps.ui.publish(
                EVENT_SESSION_SUMMARY,
                work_sessions=summary.work_sessions,
                break_sessions=summary.break_sessions,
                total_focus_seconds=round(summary.total_focus_seconds, 1),
                duration_seconds=round(summary.duration_seconds, 1),
                message=master_session_summary_text(
                    summary.work_sessions,
                    summary.break_sessions,
                    summary.total_focus_seconds,
                    summary.duration_seconds,
                ),
            )

        state = runtime_state_for(event.snapshot)
        if event.name == EVENT_TICK and state == self._last_state:
            return
        if event.name == EVENT_COMPLETED:
            deps.logger.debug("Completion mirrored to UI: %s", event.details)
        self.publish_state(event.snapshot)

    def publish_state(self, snapshot: TimerSnapshot) -> None:
        state = runtime_state_for(snapshot)
        self._last_state = state
        self._dependencies.ui.publish_state(
            state,
            message=timer_status_message(snapshot),
            kind=snapshot.kind.value,
        )
