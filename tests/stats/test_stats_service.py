import unittest
from datetime import date, datetime, timedelta, timezone

from pomodoro import SessionKind, SessionRecord, TaskCompletion, local_day, start_of_local_day
from stats import StatsService
from storage import RecordStore, open_database


class StatsServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)
        self.today = local_day(self.now)
        self.db = open_database(":memory:")
        self.records = RecordStore(self.db)
        self.stats = StatsService(self.records, now_fn=lambda: self.now)

    def tearDown(self) -> None:
        self.db.close()

    def _at(self, day: date, hour: int) -> datetime:
        return start_of_local_day(day) + timedelta(hours=hour)

    def _session(
        self,
        day: date,
        hour: int,
        kind: SessionKind = SessionKind.WORK,
        *,
        minutes: int = 25,
        completed: bool = True,
    ) -> None:
        start = self._at(day, hour)
        record = SessionRecord(start_time=start, duration=minutes * 60, kind=kind)
        if completed:
            record.complete(start + timedelta(minutes=minutes))
        else:
            record.interrupt(start + timedelta(minutes=minutes))
        self.records.insert_session(record)

    def _task_completion(self, day: date, hour: int) -> None:
        self.records.insert_task_completion(
            TaskCompletion(
                task_id=1,
                task_title="Task",
                task_priority="Medium",
                completed_at=self._at(day, hour),
            )
        )

    def test_today_stats_counts_completed_work_focus_and_tasks(self) -> None:
        self._session(self.today, 9)
        self._session(self.today, 10)
        self._session(self.today, 11, SessionKind.SHORT_BREAK, minutes=5)
        self._session(self.today, 12, completed=False, minutes=10)
        self._session(self.today - timedelta(days=1), 9)
        self._task_completion(self.today, 13)
        self._task_completion(self.today - timedelta(days=1), 13)

        stats = self.stats.today_stats()

        self.assertEqual(2, stats.completed_work_sessions)
        self.assertEqual(50 * 60, stats.total_focus_seconds)
        self.assertEqual(1, stats.completed_tasks)

    def test_productivity_for_counts_breaks_separately(self) -> None:
        self._session(self.today, 9)
        self._session(self.today, 10, SessionKind.SHORT_BREAK, minutes=5)
        self._session(self.today, 11, SessionKind.QUICK_BREAK, minutes=2)

        stats = self.stats.productivity_for(self.today)

        self.assertEqual(self.today, stats.day)
        self.assertEqual(1, stats.completed_work_sessions)
        self.assertEqual(2, stats.completed_break_sessions)

    def test_daily_series_covers_last_seven_days_oldest_first(self) -> None:
        self._session(self.today, 9, minutes=30)
        self._session(self.today, 10, minutes=30)
        self._session(self.today - timedelta(days=6), 9, minutes=60)
        self._session(self.today - timedelta(days=7), 9)

        series = self.stats.daily_series()

        self.assertEqual(7, len(series))
        self.assertEqual(self.today - timedelta(days=6), series[0].start)
        self.assertEqual(self.today, series[-1].start)
        self.assertEqual(self.today.strftime("%a"), series[-1].label)
        self.assertEqual(2, series[-1].sessions)
        self.assertAlmostEqual(1.0, series[-1].hours)
        self.assertEqual(1, series[0].sessions)
        self.assertEqual(3, sum(point.sessions for point in series))

    def test_weekly_series_starts_on_monday(self) -> None:
        this_week = self.today - timedelta(days=self.today.weekday())
        self._session(this_week, 9)
        self._session(this_week - timedelta(weeks=3), 9)
        self._session(this_week - timedelta(weeks=4), 9)

        series = self.stats.weekly_series()

        self.assertEqual(4, len(series))
        self.assertEqual(this_week, series[-1].start)
        self.assertEqual(0, series[-1].start.weekday())
        self.assertEqual([1, 0, 0, 1], [point.sessions for point in series])

    def test_monthly_series_spans_six_calendar_months(self) -> None:
        month_start = date(self.today.year, self.today.month, 1)
        self._session(month_start, 9)

        series = self.stats.monthly_series()

        self.assertEqual(6, len(series))
        self.assertEqual(month_start, series[-1].start)
        self.assertEqual(1, series[-1].sessions)
        starts = [point.start for point in series]
        self.assertTrue(all(start.day == 1 for start in starts))
        self.assertEqual(sorted(starts), starts)
        self.assertEqual(len(set(starts)), len(starts))

    def test_task_series_counts_completions_per_day(self) -> None:
        self._task_completion(self.today, 9)
        self._task_completion(self.today, 15)
        self._task_completion(self.today - timedelta(days=2), 9)

        series = self.stats.task_series()

        self.assertEqual(7, len(series))
        self.assertEqual(2, series[-1].completed_tasks)
        self.assertEqual(1, series[-3].completed_tasks)
        self.assertEqual(3, sum(point.completed_tasks for point in series))

    def test_empty_store_yields_zeroes(self) -> None:
        stats = self.stats.today_stats()

        self.assertEqual(0, stats.completed_work_sessions)
        self.assertEqual(0.0, stats.total_focus_seconds)
        self.assertEqual(0, stats.completed_tasks)
        self.assertTrue(all(point.sessions == 0 for point in self.stats.daily_series()))


if __name__ == "__main__":
    unittest.main()
