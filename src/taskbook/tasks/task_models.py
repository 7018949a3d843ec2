# src/taskbook/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from .errors import ValidationError

UNCATEGORIZED = "Uncategorized"


class Priority(StrEnum):
    """
    Task priority.

    Ordering contract: LOW < MEDIUM < HIGH, exposed through `rank`.
    Listings sort by ascending rank, so low-priority tasks are shown first.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        """
        Accept a Priority, a name ("high", "High") or a legacy ordinal (0/1/2).
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, bool):
            raise ValidationError(f"Invalid priority: {raw!r}")
        if isinstance(raw, int):
            for p, r in _PRIORITY_RANK.items():
                if r == raw:
                    return p
            raise ValidationError(f"Invalid priority: {raw!r}")
        if isinstance(raw, str):
            key = raw.strip().lower()
            for p in cls:
                if p.value.lower() == key:
                    return p
            if key.isdigit():
                return cls.parse(int(key))
        raise ValidationError(
            f"Invalid priority: {raw!r}. Allowed: {', '.join(p.value for p in cls)}"
        )


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
}


class TaskFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    TODAY = "today"

    @classmethod
    def parse(cls, raw: TaskFilter | str | None) -> TaskFilter:
        if raw is None:
            return cls.ALL
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Invalid filter: {raw!r}. Allowed: {', '.join(f.value for f in cls)}"
            ) from None


def to_local_naive(value: datetime) -> datetime:
    """Timestamps are kept as naive local time; aware ones are converted."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def as_deadline(value: date | datetime | None) -> datetime | None:
    """Normalise a deadline: a bare date means midnight of that day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    return datetime.combine(value, time.min)


@dataclass(slots=True)
class Task:
    id: int
    description: str
    created_date: datetime
    deadline: datetime | None = None
    is_completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: str | None = None

    @property
    def group_key(self) -> str:
        return self.category if self.category else UNCATEGORIZED

    def is_overdue(self, now: datetime) -> bool:
        return (not self.is_completed) and self.deadline is not None and self.deadline < now

    def is_due_on(self, day: date) -> bool:
        return (not self.is_completed) and self.deadline is not None and self.deadline.date() == day

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match on description or category."""
        needle = needle.casefold()
        if needle in self.description.casefold():
            return True
        return bool(self.category) and needle in self.category.casefold()

    # ---- storage records ----

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "createdDate": self.created_date.isoformat(),
            "deadline": self.deadline.isoformat() if self.deadline is not None else None,
            "isCompleted": self.is_completed,
            "priority": self.priority.value,
            "category": self.category,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from a stored record.

        Keys are read in camelCase, with PascalCase accepted for files written
        by the legacy tool. Raises ValueError on anything malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"task record must be an object, got {type(data).__name__}")

        def get(key: str) -> Any:
            if key in data:
                return data[key]
            return data.get(key[:1].upper() + key[1:])

        raw_id = get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"task record has invalid id: {raw_id!r}")

        description = get("description")
        if not isinstance(description, str) or not description.strip():
            raise ValueError(f"task {raw_id} has an empty description")

        raw_created = get("createdDate")
        created = datetime.fromisoformat(raw_created) if raw_created else datetime.now()
        created = to_local_naive(created)

        raw_deadline = get("deadline")
        deadline = to_local_naive(datetime.fromisoformat(raw_deadline)) if raw_deadline else None

        raw_priority = get("priority")
        try:
            priority = Priority.MEDIUM if raw_priority is None else Priority.parse(raw_priority)
        except ValidationError as e:
            raise ValueError(str(e)) from None

        completed = get("isCompleted")
        if completed is not None and not isinstance(completed, bool):
            raise ValueError(f"task {raw_id} has invalid isCompleted: {completed!r}")

        category = get("category")
        if category is not None and not isinstance(category, str):
            raise ValueError(f"task {raw_id} has invalid category: {category!r}")

        return cls(
            id=raw_id,
            description=description,
            created_date=created,
            deadline=deadline,
            is_completed=bool(completed),
            priority=priority,
            category=category or None,
        )


@dataclass(frozen=True, slots=True)
class TaskEntry:
    """A task as shown in a listing, with its overdue flag computed at list time."""

    task: Task
    overdue: bool


@dataclass(slots=True)
class TaskGroup:
    name: str
    entries: list[TaskEntry] = field(default_factory=list)

    @property
    def tasks(self) -> list[Task]:
        return [e.task for e in self.entries]


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    active: int
    overdue: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "overdue": self.overdue,
        }


def format_task(task: Task) -> str:
    """One-line rendering used by the console and the text export."""
    status = "[x]" if task.is_completed else "[ ]"
    line = f"{task.id}. {status} {task.description} [{task.priority.value}]"
    if task.deadline is not None:
        line += f" (due {task.deadline:%d.%m.%Y})"
    return line
