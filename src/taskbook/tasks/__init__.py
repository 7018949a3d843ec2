"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, TaskFilter, listing/stats types)
- errors.py: ValidationError / NotFoundError / PersistenceError
- task_store.py: in-memory collection persisted to a JSON file
- export.py: plain-text export of the grouped listing
"""

from .errors import NotFoundError, PersistenceError, TaskError, ValidationError
from .task_models import Priority, Task, TaskEntry, TaskFilter, TaskGroup, TaskStats
from .task_store import TaskStore

__all__ = [
    "NotFoundError",
    "PersistenceError",
    "Priority",
    "Task",
    "TaskEntry",
    "TaskError",
    "TaskFilter",
    "TaskGroup",
    "TaskStats",
    "TaskStore",
    "ValidationError",
]
