# src/taskbook/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..tasks.errors import NotFoundError, PersistenceError, TaskError, ValidationError
from ..tasks.export import export_tasks
from ..tasks.task_models import Priority, Task, TaskFilter, TaskGroup, format_task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y")


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Task errors raised by handlers are turned into user-facing replies.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quotes ("don't"): fall back to plain whitespace split.
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except NotFoundError as e:
            return f"Task {e.task_id} not found."
        except ValidationError as e:
            return f"Invalid input: {e}"
        except PersistenceError as e:
            # The change is kept for this session; it just may not survive a restart.
            return f"Warning: {e}"
        except TaskError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def parse_date(raw: str) -> date:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"Invalid date: {raw!r}. Use YYYY-MM-DD or DD.MM.YYYY.")


def parse_task_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValidationError(f"Usage: {usage}")
    try:
        return int(args[0])
    except ValueError:
        raise ValidationError(f"Task id must be a number, got {args[0]!r}.") from None


def _take_value(args: list[str], i: int, flag: str) -> str:
    if i + 1 >= len(args):
        raise ValidationError(f"Option {flag} needs a value.")
    return args[i + 1]


def render_groups(groups: list[TaskGroup]) -> str:
    lines: list[str] = []
    for g in groups:
        lines.append(f"--- {g.name} ---")
        for entry in g.entries:
            lines.append(format_task(entry.task))
            if entry.overdue:
                lines.append("  ! OVERDUE")
    return "\n".join(lines)


def render_tasks(tasks: list[Task]) -> str:
    return "\n".join(format_task(t) for t in tasks)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list            -> all tasks
    /list active     -> not completed
    /list completed  -> completed
    /list today      -> not completed, due today
    """
    flt = TaskFilter.parse(args[0] if args else None)
    store = state.task_store
    groups = store.list_tasks(flt)
    if not groups:
        return "No tasks found."

    stats = store.stats()
    return (
        f"=== Tasks ({flt.value}) ===\n"
        f"{render_groups(groups)}\n"
        "--- Statistics ---\n"
        f"Total: {stats.total}  Completed: {stats.completed}  "
        f"Active: {stats.active}  Overdue: {stats.overdue}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <description> [--due DATE] [--priority low|medium|high] [--category NAME]
    """
    words: list[str] = []
    deadline: date | None = None
    priority = Priority.MEDIUM
    category: str | None = None

    i = 0
    while i < len(args):
        a = args[i]
        if a in ("--due", "-d"):
            deadline = parse_date(_take_value(args, i, a))
            i += 2
        elif a in ("--priority", "-p"):
            priority = Priority.parse(_take_value(args, i, a))
            i += 2
        elif a in ("--category", "-c"):
            category = _take_value(args, i, a)
            i += 2
        else:
            words.append(a)
            i += 1

    task = state.task_store.add(
        " ".join(words), deadline=deadline, priority=priority, category=category
    )
    return f"Task added (id: {task.id})."


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = parse_task_id(args, "/done <id>")
    state.task_store.complete(task_id)
    return f"Task {task_id} marked as completed."


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit <id> new description   -> replace description
    /edit <id> --toggle          -> flip completion status

    The flag is only recognised right after the id.
    """
    task_id = parse_task_id(args, "/edit <id> [--toggle] [new description]")
    words = args[1:]
    toggle = bool(words) and words[0] in ("--toggle", "-t")
    if toggle:
        words = words[1:]

    if emit is not None:
        current = state.task_store.get(task_id)
        emit(f"Current description: {current.description}")

    task = state.task_store.edit(task_id, description=" ".join(words), toggle_completed=toggle)
    return f"Task updated: {format_task(task)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = parse_task_id(args, "/rm <id>")
    state.task_store.delete(task_id)
    return f"Task {task_id} deleted."


def cmd_find(state: AppState, args: list[str]) -> str:
    text = " ".join(args)
    found = state.task_store.search(text)
    if not found:
        return "No tasks found."
    return f"=== Search results for '{text}' ===\n{render_tasks(found)}\nFound: {len(found)} tasks"


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.task_store.stats()
    return (
        "Statistics:\n"
        f"  Total: {s.total}\n"
        f"  Completed: {s.completed}\n"
        f"  Active: {s.active}\n"
        f"  Overdue: {s.overdue}"
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    out_dir = Path(args[0]) if args else Path(getattr(state.settings, "export_dir", "."))
    path = export_tasks(state.task_store, out_dir)
    return f"Tasks exported to: {path}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [all|active|completed|today].",
    aliases=["ls"],
)
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <text> [--due DATE] [--priority low|medium|high] [--category NAME].",
)
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register(
    "edit", cmd_edit, help_text="Edit a task: /edit <id> [--toggle] [new description]."
)
registry.register("rm", cmd_delete, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register(
    "find", cmd_find, help_text="Search description/category: /find <text>.", aliases=["search"]
)
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("export", cmd_export, help_text="Export tasks to a text file: /export [dir].")
