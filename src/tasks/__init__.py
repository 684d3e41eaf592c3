from .registry import TaskNotFoundError, TaskRegistry
from .sweep import CompletedTaskSweeper, time_until_auto_delete

__all__ = [
    "CompletedTaskSweeper",
    "TaskNotFoundError",
    "TaskRegistry",
    "time_until_auto_delete",
]
