import logging
import unittest
from datetime import datetime, timezone

from pomodoro import MasterSession, MasterSessionSummary, Phase, SessionKind, TimerEvent, TimerSnapshot
from runtime.ticks import TickDependencies, TickProcessor, runtime_state_for
from runtime.ui import RuntimeUIPublisher


class _UIServerStub:
    def __init__(self):
        self.events: list[tuple[str, dict[str, object]]] = []
        self.states: list[tuple[str, str | None, dict[str, object]]] = []
        self.trace: list[tuple[str, str]] = []

    def publish(self, event_type: str, **payload):
        self.events.append((event_type, payload))
        self.trace.append(("event", event_type))

    def publish_state(self, state: str, *, message=None, **payload):
        self.states.append((state, message, payload))
        self.trace.append(("state", state))


def _snapshot(
    phase: Phase = Phase.RUNNING,
    kind: SessionKind = SessionKind.WORK,
    remaining: float = 1200,
) -> TimerSnapshot:
    return TimerSnapshot(
        phase=phase,
        kind=kind,
        remaining_seconds=remaining,
        phase_duration=1500,
        current_session_duration=1500,
        session_started_at=None,
        work_sessions_completed_today=2,
        completed_sessions_today=3,
        sessions_until_long_break=4,
        master_session=MasterSession(started_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)),
    )


class TickStateFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ui = _UIServerStub()
        self.processor = TickProcessor(
            TickDependencies(logger=logging.getLogger("test"), ui=RuntimeUIPublisher(self.ui))
        )

    def test_runtime_state_for_each_phase(self) -> None:
        self.assertEqual("focusing", runtime_state_for(_snapshot()))
        self.assertEqual("on_break", runtime_state_for(_snapshot(kind=SessionKind.LONG_BREAK)))
        self.assertEqual("on_break", runtime_state_for(_snapshot(kind=SessionKind.QUICK_BREAK)))
        self.assertEqual("paused", runtime_state_for(_snapshot(phase=Phase.PAUSED)))
        self.assertEqual("idle", runtime_state_for(_snapshot(phase=Phase.IDLE)))

    def test_started_event_publishes_pomodoro_then_state(self) -> None:
        self.processor.handle_timer_event(TimerEvent(name="started", snapshot=_snapshot()))

        [(event_type, payload)] = self.ui.events
        self.assertEqual("pomodoro", event_type)
        self.assertEqual("started", payload["event"])
        self.assertEqual("running", payload["phase"])
        self.assertEqual("20:00", payload["time_string"])
        self.assertEqual(
            [("focusing", "Focus Time running (20:00 remaining)", {"kind": "work"})],
            self.ui.states,
        )
        self.assertEqual([("event", "pomodoro"), ("state", "focusing")], self.ui.trace)

    def test_ticks_skip_unchanged_state_updates(self) -> None:
        self.processor.handle_timer_event(TimerEvent(name="started", snapshot=_snapshot()))
        self.processor.handle_timer_event(TimerEvent(name="tick", snapshot=_snapshot(remaining=1199)))
        self.processor.handle_timer_event(TimerEvent(name="tick", snapshot=_snapshot(remaining=1198)))

        self.assertEqual(3, len(self.ui.events))
        self.assertEqual(1, len(self.ui.states))
        self.assertEqual(1198, self.ui.events[-1][1]["remaining_seconds"])

    def test_completion_details_are_forwarded(self) -> None:
        self.processor.handle_timer_event(
            TimerEvent(
                name="completed",
                snapshot=_snapshot(kind=SessionKind.SHORT_BREAK, remaining=300),
                details={"finished_kind": "work", "next_kind": "short_break"},
            )
        )

        payload = self.ui.events[0][1]
        self.assertEqual("work", payload["finished_kind"])
        self.assertEqual("short_break", payload["next_kind"])
        self.assertEqual("on_break", self.ui.states[-1][0])

    def test_master_session_end_publishes_summary(self) -> None:
        summary = MasterSessionSummary(
            work_sessions=3,
            break_sessions=2,
            total_focus_seconds=4500,
            duration_seconds=5400,
        )

        self.processor.handle_timer_event(
            TimerEvent(
                name="master_session_ended",
                snapshot=_snapshot(phase=Phase.IDLE, remaining=1500),
                summary=summary,
            )
        )

        event_types = [event_type for event_type, _ in self.ui.events]
        self.assertEqual(["pomodoro", "session_summary"], event_types)
        summary_payload = self.ui.events[1][1]
        self.assertEqual(3, summary_payload["work_sessions"])
        self.assertEqual(2, summary_payload["break_sessions"])
        self.assertEqual(
            "Session ended: 3 focus / 2 break sessions, 75 min focused over 90 min",
            summary_payload["message"],
        )
        self.assertEqual([("idle", "Ready", {"kind": "work"})], self.ui.states)

    def test_disabled_publisher_drops_everything(self) -> None:
        processor = TickProcessor(
            TickDependencies(logger=logging.getLogger("test"), ui=RuntimeUIPublisher(None))
        )

        processor.handle_timer_event(TimerEvent(name="started", snapshot=_snapshot()))

        self.assertEqual([], self.ui.events)


if __name__ == "__main__":
    unittest.main()
