# src/taskbook/tasks/errors.py

"""Error taxonomy of the task store. None of these is fatal to the process."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .task_models import Task


class TaskError(Exception):
    """Base class for task store errors."""


class ValidationError(TaskError, ValueError):
    """Caller input violates a precondition (blank description, unknown filter...)."""


class NotFoundError(TaskError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(TaskError):
    """
    Reading or writing the tasks file failed.

    When raised by a mutator, the in-memory change has already been applied;
    `task` is the task it touched (None for deletes and load failures).
    """

    def __init__(self, message: str, *, path: Path | None = None, task: Task | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.task = task
