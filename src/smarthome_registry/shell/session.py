"""Interactive read-dispatch loop and script replay."""

from __future__ import annotations

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Set, TextIO

from smarthome_registry.shell.reader import LineSource, ScriptLineSource

if TYPE_CHECKING:  # pragma: no cover
    from smarthome_registry.shell.dispatcher import CommandDispatcher

LOGGER = logging.getLogger(__name__)

BANNER = "Smart home device manager, version 1.0"
HELP_HINT = "Type 'help' for the list of commands"


class CommandOutcome(str, Enum):
    CONTINUE = "continue"
    FAILED = "failed"
    EXIT = "exit"


class InteractiveSession:
    """Prompts for commands until ``exit`` or end of input."""

    def __init__(
        self,
        dispatcher: "CommandDispatcher",
        source: LineSource,
        output: Optional[TextIO] = None,
        *,
        prompt: str = "> ",
        show_banner: bool = True,
    ) -> None:
        self._dispatcher = dispatcher
        self._source = source
        self._output = output or sys.stdout
        self._prompt = prompt
        self._show_banner = show_banner

    def run(self) -> int:
        if self._show_banner:
            self._output.write(f"{BANNER}\n{HELP_HINT}\n")
        while True:
            self._output.write(self._prompt)
            self._output.flush()
            line = self._source.read_line()
            if line is None:
                self._output.write("\n")
                LOGGER.info("End of input reached; leaving session")
                return 0
            if not line.strip():
                continue
            outcome = self._dispatcher.dispatch(line)
            if outcome is CommandOutcome.EXIT:
                return 0


class ScriptRunner:
    """Replays a script file line by line through a dispatcher.

    Record fields requested by ``insert`` and ``update`` are taken from the
    script lines that follow the command.
    """

    def __init__(
        self,
        dispatcher_factory: Callable[[LineSource], "CommandDispatcher"],
        output: Optional[TextIO] = None,
        *,
        running: Optional[Set[Path]] = None,
        echo: bool = True,
    ) -> None:
        self._dispatcher_factory = dispatcher_factory
        self._output = output or sys.stdout
        self._running = running if running is not None else set()
        self._echo = echo

    def run(self, path: str | Path) -> CommandOutcome:
        script_path = Path(path)
        if not script_path.is_file():
            self._output.write(f"Script file {script_path} not found\n")
            return CommandOutcome.FAILED
        key = script_path.resolve()
        if key in self._running:
            self._output.write(f"Script {script_path} is already running; recursive call skipped\n")
            return CommandOutcome.FAILED
        try:
            lines = script_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            self._output.write(f"Cannot read script {script_path}: {exc}\n")
            return CommandOutcome.FAILED

        source = ScriptLineSource(lines)
        dispatcher = self._dispatcher_factory(source)
        executed = 0
        failed = 0
        self._running.add(key)
        try:
            while True:
                line = source.read_line()
                if line is None:
                    break
                if not line.strip() or line.startswith("#"):
                    continue
                if self._echo:
                    self._output.write(f"> {line}\n")
                executed += 1
                outcome = dispatcher.dispatch(line)
                if outcome is CommandOutcome.FAILED:
                    failed += 1
                elif outcome is CommandOutcome.EXIT:
                    LOGGER.debug("Script %s requested exit at line %d", script_path, source.line_number)
                    return CommandOutcome.EXIT
        finally:
            self._running.discard(key)
        LOGGER.debug("Script %s ran %d command(s), %d failed", script_path, executed, failed)
        return CommandOutcome.CONTINUE


__all__ = ["BANNER", "CommandOutcome", "HELP_HINT", "InteractiveSession", "ScriptRunner"]
