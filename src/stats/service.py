"""Aggregate productivity statistics read from the session record store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from pomodoro.clock import local_day, start_of_local_day, utc_now
from pomodoro.types import SessionKind, SessionRecord
from storage.record_store import RecordStore


@dataclass(frozen=True)
class TodayStats:
    completed_work_sessions: int
    total_focus_seconds: float
    completed_tasks: int


@dataclass(frozen=True)
class SeriesPoint:
    """One chart bucket: a label plus completed work sessions and focus hours."""
    label: str
    start: date
    sessions: int
    hours: float


@dataclass(frozen=True)
class TaskSeriesPoint:
    label: str
    start: date
    completed_tasks: int


@dataclass(frozen=True)
class ProductivityStats:
    day: date
    completed_work_sessions: int
    completed_break_sessions: int
    total_focus_seconds: float
    completed_tasks: int


class StatsService:
    def __init__(
        self,
        record_store: RecordStore,
        *,
        now_fn: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._records = record_store
        self._now = now_fn or utc_now
        self._logger = logger or logging.getLogger("stats")

    def today_stats(self) -> TodayStats:
        day = local_day(self._now())
        stats = self.productivity_for(day)
        return TodayStats(
            completed_work_sessions=stats.completed_work_sessions,
            total_focus_seconds=stats.total_focus_seconds,
            completed_tasks=stats.completed_tasks,
        )

    def productivity_for(self, day: date) -> ProductivityStats:
        since, until = _day_bounds(day)
        sessions = self._records.list_sessions(since=since, until=until, completed_only=True)
        work = [record for record in sessions if record.kind is SessionKind.WORK]
        breaks = [record for record in sessions if record.kind.is_break]
        tasks = self._records.list_task_completions(since=since, until=until)
        return ProductivityStats(
            day=day,
            completed_work_sessions=len(work),
            completed_break_sessions=len(breaks),
            total_focus_seconds=_focus_seconds(work),
            completed_tasks=len(tasks),
        )

    def daily_series(self, days: int = 7) -> list[SeriesPoint]:
        """Last `days` days, oldest first, labelled with short weekday names."""
        today = local_day(self._now())
        starts = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        return [
            self._series_point(start, start + timedelta(days=1), start.strftime("%a"))
            for start in starts
        ]

    def weekly_series(self, weeks: int = 4) -> list[SeriesPoint]:
        today = local_day(self._now())
        this_week = today - timedelta(days=today.weekday())
        starts = [this_week - timedelta(weeks=offset) for offset in range(weeks - 1, -1, -1)]
        return [
            self._series_point(start, start + timedelta(weeks=1), start.strftime("%b %d"))
            for start in starts
        ]

    def monthly_series(self, months: int = 6) -> list[SeriesPoint]:
        today = local_day(self._now())
        starts = _month_starts(today, months)
        return [
            self._series_point(start, _next_month(start), start.strftime("%b"))
            for start in starts
        ]

    def task_series(self, days: int = 7) -> list[TaskSeriesPoint]:
        today = local_day(self._now())
        points: list[TaskSeriesPoint] = []
        for offset in range(days - 1, -1, -1):
            start = today - timedelta(days=offset)
            since, until = _day_bounds(start)
            completions = self._records.list_task_completions(since=since, until=until)
            points.append(
                TaskSeriesPoint(
                    label=start.strftime("%a"),
                    start=start,
                    completed_tasks=len(completions),
                )
            )
        return points

    def _series_point(self, start: date, end: date, label: str) -> SeriesPoint:
        sessions = self._records.list_sessions(
            since=start_of_local_day(start),
            until=start_of_local_day(end),
            kind=SessionKind.WORK,
            completed_only=True,
        )
        return SeriesPoint(
            label=label,
            start=start,
            sessions=len(sessions),
            hours=_focus_seconds(sessions) / 3600.0,
        )


def _focus_seconds(records: list[SessionRecord]) -> float:
    return sum(record.actual_duration for record in records)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    return start_of_local_day(day), start_of_local_day(day + timedelta(days=1))


def _next_month(start: date) -> date:
    if start.month == 12:
        return date(start.year + 1, 1, 1)
    return date(start.year, start.month + 1, 1)


def _month_starts(today: date, months: int) -> list[date]:
    current = date(today.year, today.month, 1)
    starts = [current]
    for _ in range(months - 1):
        previous_end = starts[0] - timedelta(days=1)
        starts.insert(0, date(previous_end.year, previous_end.month, 1))
    return starts
