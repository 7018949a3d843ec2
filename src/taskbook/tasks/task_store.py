# src/taskbook/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path

from .errors import NotFoundError, PersistenceError, ValidationError
from .task_models import (
    Priority,
    Task,
    TaskEntry,
    TaskFilter,
    TaskGroup,
    TaskStats,
    as_deadline,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class TaskStore:
    """
    JSON-file task store.

    The in-memory list is the source of truth for the session:
    - the file is read once, on construction
    - every mutator rewrites the whole file afterwards (tmp file + os.replace)
    - a failed write is raised as PersistenceError but the in-memory change stays

    A file that exists but cannot be parsed does not raise: the store starts
    empty and keeps the error in `load_error`. The file itself is left alone
    until the next successful save.
    """

    def __init__(self, path: str | Path = "tasks.json", *, clock: Clock | None = None) -> None:
        self._path = Path(path)
        self._clock: Clock = clock or datetime.now
        self._tasks: list[Task] = []
        self._next_id = 1
        self.load_error: PersistenceError | None = None

        self._load()
        logger.info("TaskStore ready path=%s total=%s", self._path, len(self._tasks))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- low-level helpers ----

    def _load(self) -> None:
        if not self._path.exists():
            return

        try:
            data = json.loads(self._path.read_text("utf-8"))
            if not isinstance(data, list):
                raise ValueError(f"expected a list of tasks, got {type(data).__name__}")
            tasks = [Task.from_record(r) for r in data]
            ids = [t.id for t in tasks]
            if len(set(ids)) != len(ids):
                raise ValueError("duplicate task ids")
        except (OSError, ValueError, TypeError) as e:
            logger.error("Failed to load tasks from %s: %s", self._path, e)
            self.load_error = PersistenceError(
                f"Failed to load tasks from {self._path}: {e}", path=self._path
            )
            self.load_error.__cause__ = e
            return

        self._tasks = tasks
        self._next_id = max(ids, default=0) + 1
        logger.info("Loaded %d tasks from %s", len(tasks), self._path)

    def _save(self, task: Task | None = None) -> None:
        payload = json.dumps([t.to_record() for t in self._tasks], ensure_ascii=False, indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload + "\n", "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            logger.exception("Failed to save tasks to %s", self._path)
            raise PersistenceError(
                f"Failed to save tasks to {self._path}: {e}", path=self._path, task=task
            ) from e
        logger.debug("Saved %d tasks to %s", len(self._tasks), self._path)

    def _find(self, task_id: int) -> Task:
        for t in self._tasks:
            if t.id == task_id:
                return t
        raise NotFoundError(task_id)

    def _select(self, task_filter: TaskFilter, now: datetime) -> list[Task]:
        if task_filter is TaskFilter.ACTIVE:
            return [t for t in self._tasks if not t.is_completed]
        if task_filter is TaskFilter.COMPLETED:
            return [t for t in self._tasks if t.is_completed]
        if task_filter is TaskFilter.TODAY:
            today = now.date()
            return [t for t in self._tasks if t.is_due_on(today)]
        return list(self._tasks)

    @staticmethod
    def _sort_key(task: Task) -> tuple[int, bool, datetime]:
        # Missing deadlines sort after present ones.
        return (
            task.priority.rank,
            task.deadline is None,
            task.deadline or datetime.min,
        )

    # ---- public API ----

    def get(self, task_id: int) -> Task:
        return self._find(task_id)

    def add(
        self,
        description: str,
        *,
        deadline: date | datetime | None = None,
        priority: Priority | str = Priority.MEDIUM,
        category: str | None = None,
    ) -> Task:
        if not description or not description.strip():
            raise ValidationError("description is required")
        prio = Priority.parse(priority)

        task = Task(
            id=self._next_id,
            description=description.strip(),
            created_date=self._clock(),
            deadline=as_deadline(deadline),
            is_completed=False,
            priority=prio,
            category=category.strip() if category and category.strip() else None,
        )
        self._tasks.append(task)
        self._next_id += 1
        logger.info(
            "Task added id=%s priority=%s category=%s deadline=%s",
            task.id,
            task.priority.value,
            task.category,
            task.deadline,
        )
        self._save(task)
        return task

    def complete(self, task_id: int) -> Task:
        task = self._find(task_id)
        task.is_completed = True
        logger.info("Task completed id=%s", task_id)
        self._save(task)
        return task

    def edit(
        self,
        task_id: int,
        *,
        description: str | None = None,
        toggle_completed: bool = False,
    ) -> Task:
        task = self._find(task_id)
        if description is not None and description.strip():
            task.description = description.strip()
        if toggle_completed:
            task.is_completed = not task.is_completed
        logger.info("Task edited id=%s completed=%s", task_id, task.is_completed)
        self._save(task)
        return task

    def delete(self, task_id: int) -> None:
        task = self._find(task_id)
        self._tasks.remove(task)
        logger.info("Task deleted id=%s", task_id)
        self._save()

    def list_tasks(self, task_filter: TaskFilter | str = TaskFilter.ALL) -> list[TaskGroup]:
        """
        Filtered tasks grouped by category.

        Groups are ordered alphabetically by label ("Uncategorized" for tasks
        without a category). Inside a group: priority rank ascending, then
        deadline ascending with undated tasks last.
        """
        flt = TaskFilter.parse(task_filter)
        now = self._clock()

        groups: dict[str, TaskGroup] = {}
        for t in self._select(flt, now):
            groups.setdefault(t.group_key, TaskGroup(name=t.group_key)).entries.append(
                TaskEntry(task=t, overdue=t.is_overdue(now))
            )

        out = [groups[k] for k in sorted(groups)]
        for g in out:
            g.entries.sort(key=lambda e: self._sort_key(e.task))
        return out

    def search(self, text: str) -> list[Task]:
        needle = text or ""
        if not needle:
            return list(self._tasks)
        return [t for t in self._tasks if t.matches(needle)]

    def stats(self) -> TaskStats:
        now = self._clock()
        completed = sum(1 for t in self._tasks if t.is_completed)
        return TaskStats(
            total=len(self._tasks),
            completed=completed,
            active=len(self._tasks) - completed,
            overdue=sum(1 for t in self._tasks if t.is_overdue(now)),
        )
