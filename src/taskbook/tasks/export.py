# src/taskbook/tasks/export.py

"""Plain-text export of the task list (grouped listing + statistics)."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .errors import PersistenceError
from .task_models import TaskFilter, format_task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def export_filename(now: datetime) -> str:
    return f"tasks_export_{now:%Y%m%d_%H%M%S}.txt"


def render_export(store: TaskStore, now: datetime) -> list[str]:
    lines = [f"Task export: {now:%Y-%m-%d %H:%M:%S}", "=" * 50]

    for group in store.list_tasks(TaskFilter.ALL):
        lines.append("")
        lines.append(f"--- {group.name} ---")
        for entry in group.entries:
            lines.append(format_task(entry.task))
            if entry.overdue:
                lines.append("  ! OVERDUE")

    stats = store.stats()
    lines += [
        "",
        "Statistics:",
        f"Total: {stats.total}",
        f"Completed: {stats.completed}",
        f"Active: {stats.active}",
        f"Overdue: {stats.overdue}",
    ]
    return lines


def export_tasks(store: TaskStore, out_dir: str | Path, *, now: datetime | None = None) -> Path:
    """Write the export file into out_dir and return its path."""
    if now is None:
        now = datetime.now()

    path = Path(out_dir) / export_filename(now)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for line in render_export(store, now):
                f.write(line + "\n")
    except OSError as e:
        logger.exception("Failed to write export to %s", path)
        raise PersistenceError(f"Failed to write export to {path}: {e}", path=path) from e

    logger.info("Exported %d tasks to %s", len(store), path)
    return path
