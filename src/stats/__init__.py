from .service import (
    ProductivityStats,
    SeriesPoint,
    StatsService,
    TaskSeriesPoint,
    TodayStats,
)

__all__ = [
    "ProductivityStats",
    "SeriesPoint",
    "StatsService",
    "TaskSeriesPoint",
    "TodayStats",
]
