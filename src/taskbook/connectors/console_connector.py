# src/taskbook/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]


def run_console_loop(
    state: AppState,
    *,
    read: InputFunc = input,
    write: OutputFunc = print,
) -> None:
    """Read slash commands until /exit, EOF or Ctrl+C."""
    logger.info("Console connector started (tasks=%s).", len(state.task_store))
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskbook"))

    write(f"[{app_name}] Use /help for commands. Use /exit to quit.")
    if state.task_store.load_error is not None:
        write(f"Warning: {state.task_store.load_error}")
        write("Starting with an empty list; the file will be overwritten on the next change.")
    else:
        write(f"Loaded {len(state.task_store)} tasks.")

    def emit(text: str) -> None:
        write(text)

    while True:
        try:
            line = read(f"{app_name}> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            write("")
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            line = "/" + line

        try:
            reply = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply:
            write(reply)

    logger.info("Console connector finished.")
