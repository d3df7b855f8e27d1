"""Task lifecycle tracking"""

from .task_registry import TaskRegistry, TaskCategory, create_tracked_task

__all__ = [
    "TaskRegistry",
    "TaskCategory",
    "create_tracked_task",
]
