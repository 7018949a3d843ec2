# tests/test_commands.py

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import pytest

from taskbook.cli.commands import CommandRegistry, parse_date, registry
from taskbook.tasks.errors import ValidationError
from taskbook.tasks.task_models import Priority


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called == {"h2": 1, "h3": 1}


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_with_options(state, clock) -> None:
    reply = registry.handle(
        state, '/add "Buy milk" and bread --priority high -c Errands --due 16.03.2026'
    )

    assert reply == "Task added (id: 1)."
    task = state.task_store.get(1)
    assert task.description == "Buy milk and bread"
    assert task.priority is Priority.HIGH
    assert task.category == "Errands"
    assert task.deadline.date() == date(2026, 3, 16)


def test_add_errors_become_messages(state) -> None:
    assert registry.handle(state, "/add --priority low").startswith("Invalid input:")
    assert registry.handle(state, "/add thing --priority urgent").startswith("Invalid input:")
    assert registry.handle(state, "/add thing --due").startswith("Invalid input:")
    assert len(state.task_store) == 0


def test_done_edit_rm_flow(state) -> None:
    registry.handle(state, "/add first")
    registry.handle(state, "/add second")

    assert registry.handle(state, "/done 1") == "Task 1 marked as completed."
    assert state.task_store.get(1).is_completed

    emitted: list[str] = []
    reply = registry.handle(state, "/edit 2 --toggle renamed task", emit=emitted.append)
    assert emitted == ["Current description: second"]
    assert reply == "Task updated: 2. [x] renamed task [Medium]"

    assert registry.handle(state, "/rm 1") == "Task 1 deleted."
    assert registry.handle(state, "/done 1") == "Task 1 not found."
    assert registry.handle(state, "/delete x").startswith("Invalid input:")


def test_list_and_stats(state, clock) -> None:
    assert registry.handle(state, "/list") == "No tasks found."

    state.task_store.add("late", deadline=clock.now - timedelta(days=1), category="Home")
    state.task_store.add("report", category="Work")

    reply = registry.handle(state, "/ls active")
    assert reply.startswith("=== Tasks (active) ===")
    assert reply.index("--- Home ---") < reply.index("--- Work ---")
    assert "  ! OVERDUE" in reply
    assert "Overdue: 1" in reply

    assert registry.handle(state, "/list someday").startswith("Invalid input:")
    assert "Total: 2" in registry.handle(state, "/stats")


def test_find(state) -> None:
    state.task_store.add("my Alpha task")
    state.task_store.add("other", category="alphabet")

    reply = registry.handle(state, "/find ALPHA")
    assert "Found: 2 tasks" in reply
    assert registry.handle(state, "/search nothing") == "No tasks found."


def test_export_uses_settings_dir(state, settings) -> None:
    state.task_store.add("x")

    reply = registry.handle(state, "/export")

    assert reply.startswith("Tasks exported to:")
    files = list(Path(settings.export_dir).glob("tasks_export_*.txt"))
    assert len(files) == 1


def test_help_lists_commands(state) -> None:
    text = registry.handle(state, "/help")
    for name in ("/list", "/add", "/done", "/edit", "/rm", "/find", "/stats", "/export"):
        assert name in text


@pytest.mark.parametrize("raw", ["2026-03-16", "16.03.2026"])
def test_parse_date(raw: str) -> None:
    assert parse_date(raw) == date(2026, 3, 16)


def test_parse_date_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        parse_date("next week")


def test_unbalanced_quote_falls_back_to_plain_split(state) -> None:
    assert registry.handle(state, "/add don't forget") == "Task added (id: 1)."
    assert state.task_store.get(1).description == "don't forget"


def test_edit_flag_only_counts_right_after_id(state) -> None:
    registry.handle(state, "/add draft")

    reply = registry.handle(state, "/edit 1 use -t flag")

    assert reply == "Task updated: 1. [ ] use -t flag [Medium]"
    assert state.task_store.get(1).is_completed is False
