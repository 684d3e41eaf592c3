import unittest
from datetime import datetime, timedelta, timezone

from pomodoro import TickScheduler


class TickSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        self.scheduler = TickScheduler(now_fn=lambda: self.now)
        self.fired: list[datetime] = []

    def test_callback_fires_once_per_interval(self) -> None:
        self.scheduler.subscribe(1.0, self.fired.append)

        self.assertEqual(0, self.scheduler.run_pending())
        self.now += timedelta(seconds=1)
        self.assertEqual(1, self.scheduler.run_pending())
        self.assertEqual(0, self.scheduler.run_pending())

        self.assertEqual([self.now], self.fired)

    def test_missed_ticks_are_coalesced(self) -> None:
        self.scheduler.subscribe(1.0, self.fired.append)

        self.now += timedelta(seconds=30)
        self.scheduler.run_pending()
        self.now += timedelta(seconds=1)
        self.scheduler.run_pending()

        self.assertEqual(2, len(self.fired))

    def test_cancel_stops_callbacks(self) -> None:
        subscription = self.scheduler.subscribe(1.0, self.fired.append)

        subscription.cancel()
        subscription.cancel()
        self.now += timedelta(seconds=5)

        self.assertTrue(subscription.cancelled)
        self.assertEqual(0, self.scheduler.run_pending())
        self.assertEqual(0, self.scheduler.active_subscriptions)

    def test_callback_may_cancel_itself(self) -> None:
        holder = {}

        def once(now: datetime) -> None:
            self.fired.append(now)
            holder["subscription"].cancel()

        holder["subscription"] = self.scheduler.subscribe(1.0, once)
        self.now += timedelta(seconds=2)
        self.scheduler.run_pending()
        self.now += timedelta(seconds=2)
        self.scheduler.run_pending()

        self.assertEqual(1, len(self.fired))

    def test_failing_callback_is_logged(self) -> None:
        def broken(now: datetime) -> None:
            raise RuntimeError("boom")

        self.scheduler.subscribe(1.0, broken)
        self.scheduler.subscribe(1.0, self.fired.append)
        self.now += timedelta(seconds=1)

        with self.assertLogs("pomodoro.clock", level="ERROR"):
            self.assertEqual(2, self.scheduler.run_pending())
        self.assertEqual(1, len(self.fired))

    def test_seconds_until_next(self) -> None:
        self.assertIsNone(self.scheduler.seconds_until_next())

        self.scheduler.subscribe(5.0, self.fired.append)
        self.scheduler.subscribe(2.0, self.fired.append)
        self.now += timedelta(seconds=0.5)

        self.assertAlmostEqual(1.5, self.scheduler.seconds_until_next())
        self.now += timedelta(seconds=10)
        self.assertEqual(0.0, self.scheduler.seconds_until_next())

    def test_rejects_non_positive_interval(self) -> None:
        with self.assertRaises(ValueError):
            self.scheduler.subscribe(0, self.fired.append)


if __name__ == "__main__":
    unittest.main()
