import unittest
from datetime import datetime, timedelta, timezone

from pomodoro import (
    InvalidConfigurationError,
    Phase,
    RecordAlreadyFinalizedError,
    SessionKind,
    SessionRecord,
    TimerSettings,
    TimerSnapshot,
    format_clock,
)
from pomodoro.messages import (
    completion_notification,
    focus_sessions_text,
    master_session_summary_text,
    timer_status_message,
)


def _snapshot(phase: Phase, kind: SessionKind, remaining: float, duration: float) -> TimerSnapshot:
    return TimerSnapshot(
        phase=phase,
        kind=kind,
        remaining_seconds=remaining,
        phase_duration=duration,
        current_session_duration=duration,
        session_started_at=None,
        work_sessions_completed_today=0,
        completed_sessions_today=0,
        sessions_until_long_break=4,
        master_session=None,
    )


class TimerSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = TimerSettings()

        self.assertEqual(1500, settings.work_duration)
        self.assertEqual(300, settings.short_break_duration)
        self.assertEqual(900, settings.long_break_duration)
        self.assertEqual(4, settings.sessions_until_long_break)
        self.assertTrue(settings.auto_start_breaks)
        self.assertTrue(settings.auto_start_work)

    def test_rejects_invalid_values(self) -> None:
        for changes in (
            {"work_duration": 0},
            {"short_break_duration": -1},
            {"long_break_duration": "15"},
            {"work_duration": True},
            {"work_duration": float("nan")},
            {"long_break_duration": float("inf")},
            {"sessions_until_long_break": 1},
            {"sessions_until_long_break": 2.5},
        ):
            with self.subTest(changes=changes):
                with self.assertRaises(InvalidConfigurationError):
                    TimerSettings(**changes)

    def test_with_changes_rejects_unknown_fields(self) -> None:
        with self.assertRaises(InvalidConfigurationError):
            TimerSettings().with_changes(volume=3)

    def test_duration_for_each_kind(self) -> None:
        settings = TimerSettings(work_duration=100, short_break_duration=20, long_break_duration=40)

        self.assertEqual(100, settings.duration_for(SessionKind.WORK))
        self.assertEqual(20, settings.duration_for(SessionKind.SHORT_BREAK))
        self.assertEqual(40, settings.duration_for(SessionKind.LONG_BREAK))


class SessionRecordTests(unittest.TestCase):
    def setUp(self) -> None:
        self.start = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def test_finalize_exactly_once(self) -> None:
        record = SessionRecord(start_time=self.start, duration=1500, kind=SessionKind.WORK)
        self.assertFalse(record.is_finalized)
        self.assertEqual(0.0, record.actual_duration)

        record.complete(self.start + timedelta(minutes=25))

        self.assertTrue(record.is_finalized)
        self.assertEqual(1500.0, record.actual_duration)
        with self.assertRaises(RecordAlreadyFinalizedError):
            record.interrupt(self.start + timedelta(minutes=26))
        self.assertFalse(record.interrupted)

    def test_actual_duration_never_negative(self) -> None:
        record = SessionRecord(start_time=self.start, duration=300, kind=SessionKind.SHORT_BREAK)
        record.interrupt(self.start - timedelta(seconds=5))

        self.assertEqual(0.0, record.actual_duration)


class SnapshotAndMessageTests(unittest.TestCase):
    def test_format_clock(self) -> None:
        self.assertEqual("25:00", format_clock(1500))
        self.assertEqual("00:59", format_clock(59.9))
        self.assertEqual("00:00", format_clock(-3))
        self.assertEqual("90:05", format_clock(5405))

    def test_progress_is_clamped(self) -> None:
        self.assertEqual(0.0, _snapshot(Phase.IDLE, SessionKind.WORK, 1500, 1500).progress)
        self.assertEqual(0.5, _snapshot(Phase.RUNNING, SessionKind.WORK, 750, 1500).progress)
        self.assertEqual(1.0, _snapshot(Phase.RUNNING, SessionKind.WORK, -10, 1500).progress)
        self.assertEqual(0.0, _snapshot(Phase.RUNNING, SessionKind.WORK, 10, 0).progress)

    def test_payload_includes_display_fields(self) -> None:
        payload = _snapshot(Phase.PAUSED, SessionKind.LONG_BREAK, 600, 900).to_payload()

        self.assertEqual("paused", payload["phase"])
        self.assertEqual("long_break", payload["kind"])
        self.assertEqual("Long Break", payload["label"])
        self.assertEqual("10:00", payload["time_string"])
        self.assertIsNone(payload["master_session"])

    def test_completion_notification_texts(self) -> None:
        self.assertEqual(
            ("Work Session Complete! \U0001f345", "Time for a long break! You've earned it."),
            completion_notification(SessionKind.WORK, SessionKind.LONG_BREAK),
        )
        self.assertEqual(
            "Time for a short break. Stretch and relax.",
            completion_notification(SessionKind.WORK, SessionKind.SHORT_BREAK)[1],
        )
        self.assertEqual(
            ("Break Time Over! ⚡", "Ready to get back to work?"),
            completion_notification(SessionKind.QUICK_BREAK, SessionKind.WORK),
        )

    def test_status_and_summary_texts(self) -> None:
        self.assertEqual(
            "Short Break running (04:00 remaining)",
            timer_status_message(_snapshot(Phase.RUNNING, SessionKind.SHORT_BREAK, 240, 300)),
        )
        self.assertEqual("Ready", timer_status_message(_snapshot(Phase.IDLE, SessionKind.WORK, 1500, 1500)))
        self.assertEqual("4×25 Mins", focus_sessions_text(4, 1500))
        self.assertEqual(
            "Session ended: 0 focus / 0 break sessions, 0 min focused over 0 min",
            master_session_summary_text(0, 0, 0.0, 0.0),
        )


if __name__ == "__main__":
    unittest.main()
