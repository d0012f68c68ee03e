"""Parses command lines and runs them against the device store."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, TextIO

from smarthome_registry.config.loader import Config, default_config
from smarthome_registry.model.types import ValidationError
from smarthome_registry.shell.reader import ConsoleRecordReader, LineSource, RecordReader
from smarthome_registry.shell.session import HELP_HINT, CommandOutcome, ScriptRunner
from smarthome_registry.storage.source import RecordSource, RecordSourceError
from smarthome_registry.storage.store import (
    DeviceStore,
    NotFoundError,
    StoreError,
    resolve_unique_field,
)

LOGGER = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class UsageError(ValueError):
    """Raised when a command is missing arguments or gets malformed ones."""

    def __init__(self, usage: str) -> None:
        super().__init__(f"Usage: {usage}")
        self.usage = usage


@dataclass(frozen=True)
class CommandEntry:
    name: str
    usage: str
    description: str
    handler: Callable[[Sequence[str]], CommandOutcome]
    extra: bool = False


class CommandDispatcher:
    """Turns one text line into one store or record source operation.

    Every failure inside a command is reported on the output stream and
    turned into ``CommandOutcome.FAILED``; ``exit`` yields
    ``CommandOutcome.EXIT`` for the caller to act on.
    """

    def __init__(
        self,
        store: DeviceStore,
        source: RecordSource,
        reader: RecordReader,
        *,
        output: Optional[TextIO] = None,
        config: Optional[Config] = None,
        running_scripts: Optional[Set[Path]] = None,
    ) -> None:
        self._store = store
        self._source = source
        self._reader = reader
        self._output = output or sys.stdout
        self._config = config or default_config()
        self._running_scripts = running_scripts if running_scripts is not None else set()
        self._commands = self._build_commands()

    @property
    def commands(self) -> List[str]:
        return list(self._commands)

    def dispatch(self, line: str) -> CommandOutcome:
        tokens = line.split()
        if not tokens:
            return CommandOutcome.CONTINUE
        name = tokens[0].lower()
        args = tokens[1:]
        command = self._commands.get(name)
        if command is None:
            self._write(f"Unknown command: {name}")
            self._write(HELP_HINT)
            return CommandOutcome.FAILED
        try:
            return command.handler(args)
        except UsageError as exc:
            self._write(str(exc))
        except StoreError as exc:
            self._write(str(exc))
        except ValidationError as exc:
            self._write(f"Invalid input: {exc}")
        except RecordSourceError as exc:
            LOGGER.error("%s", exc)
            self._write(str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.debug("Command %s raised", name, exc_info=True)
            self._write(f"Command {name} failed: {exc}")
        return CommandOutcome.FAILED

    def for_script(self, source: LineSource) -> "CommandDispatcher":
        """Dispatcher sharing this store whose records are read from ``source``."""

        reader = ConsoleRecordReader(source, self._output, interactive=False)
        return CommandDispatcher(
            self._store,
            self._source,
            reader,
            output=self._output,
            config=self._config,
            running_scripts=self._running_scripts,
        )

    def _build_commands(self) -> Dict[str, CommandEntry]:
        entries = [
            CommandEntry("help", "help", "show this help", self._cmd_help),
            CommandEntry("info", "info", "show information about the collection", self._cmd_info),
            CommandEntry("show", "show", "show all devices", self._cmd_show),
            CommandEntry("insert", "insert", "add a new device", self._cmd_insert),
            CommandEntry("update", "update id", "update the device with the given id", self._cmd_update),
            CommandEntry("remove_key", "remove_key id", "remove the device with the given id", self._cmd_remove_key),
            CommandEntry("clear", "clear", "remove every device", self._cmd_clear),
            CommandEntry("save", "save", "save the collection to the data file", self._cmd_save),
            CommandEntry(
                "execute_script",
                "execute_script file_name",
                "run the commands listed in a file",
                self._cmd_execute_script,
            ),
            CommandEntry("exit", "exit", "leave without saving", self._cmd_exit),
            CommandEntry(
                "remove_greater_key",
                "remove_greater_key id",
                "remove devices whose id is greater than the given one",
                self._cmd_remove_greater_key,
                extra=True,
            ),
            CommandEntry(
                "remove_lower_key",
                "remove_lower_key id",
                "remove devices whose id is lower than the given one",
                self._cmd_remove_lower_key,
                extra=True,
            ),
            CommandEntry(
                "print_unique_field",
                "print_unique_field field_name",
                "print distinct values of DeviceType, Room, Protocol or Manufacturer",
                self._cmd_print_unique_field,
                extra=True,
            ),
        ]
        return {entry.name: entry for entry in entries}

    def _cmd_help(self, args: Sequence[str]) -> CommandOutcome:
        del args
        self._write("Available commands:")
        for entry in self._commands.values():
            if not entry.extra:
                self._write(f"  {entry.usage} - {entry.description}")
        self._write("Additional commands:")
        for entry in self._commands.values():
            if entry.extra:
                self._write(f"  {entry.usage} - {entry.description}")
        return CommandOutcome.CONTINUE

    def _cmd_info(self, args: Sequence[str]) -> CommandOutcome:
        del args
        created = self._store.created_at.strftime(self._config.display.timestamp_format)
        self._write("Collection type: dict[int, Device]")
        self._write(f"Number of devices: {len(self._store)}")
        self._write(f"Initialized: {created}")
        self._write(f"Next id: {self._store.next_id}")
        self._write(f"Data file: {self._source.path}")
        return CommandOutcome.CONTINUE

    def _cmd_show(self, args: Sequence[str]) -> CommandOutcome:
        del args
        view = self._store.ordered()
        if len(view) == 0:
            self._write("Collection is empty")
            return CommandOutcome.CONTINUE
        display = self._config.display
        for device in view:
            self._write(
                device.render(
                    date_format=display.date_format,
                    timestamp_format=display.timestamp_format,
                )
            )
            self._write("---")
        return CommandOutcome.CONTINUE

    def _cmd_insert(self, args: Sequence[str]) -> CommandOutcome:
        del args
        device = self._reader.read_device(self._store.allocate_id())
        self._store.insert(device)
        self._write(f"Device added with id {device.id}")
        return CommandOutcome.CONTINUE

    def _cmd_update(self, args: Sequence[str]) -> CommandOutcome:
        device_id = _require_int_arg(args, "update id")
        if device_id not in self._store:
            self._reader.discard_record()
            raise NotFoundError(device_id)
        device = self._reader.read_device(device_id)
        self._store.update(device_id, device)
        self._write(f"Device with id {device_id} updated")
        return CommandOutcome.CONTINUE

    def _cmd_remove_key(self, args: Sequence[str]) -> CommandOutcome:
        device_id = _require_int_arg(args, "remove_key id")
        self._store.remove(device_id)
        self._write(f"Device with id {device_id} removed")
        return CommandOutcome.CONTINUE

    def _cmd_clear(self, args: Sequence[str]) -> CommandOutcome:
        del args
        dropped = self._store.clear()
        LOGGER.debug("Cleared %d device(s)", dropped)
        self._write("Collection cleared")
        return CommandOutcome.CONTINUE

    def _cmd_save(self, args: Sequence[str]) -> CommandOutcome:
        del args
        count = self._source.save(self._store.ordered())
        LOGGER.info("Saved %d device(s) to %s", count, self._source.path)
        self._write(f"Data saved to {self._source.path}")
        return CommandOutcome.CONTINUE

    def _cmd_execute_script(self, args: Sequence[str]) -> CommandOutcome:
        path = _require_arg(args, "execute_script file_name")
        runner = ScriptRunner(
            self.for_script,
            self._output,
            running=self._running_scripts,
            echo=self._config.echo_script_lines,
        )
        return runner.run(path)

    def _cmd_remove_greater_key(self, args: Sequence[str]) -> CommandOutcome:
        device_id = _require_int_arg(args, "remove_greater_key id")
        removed = self._store.remove_greater_than(device_id)
        self._write(f"Removed {removed} device(s) with id greater than {device_id}")
        return CommandOutcome.CONTINUE

    def _cmd_remove_lower_key(self, args: Sequence[str]) -> CommandOutcome:
        device_id = _require_int_arg(args, "remove_lower_key id")
        removed = self._store.remove_lower_than(device_id)
        self._write(f"Removed {removed} device(s) with id lower than {device_id}")
        return CommandOutcome.CONTINUE

    def _cmd_print_unique_field(self, args: Sequence[str]) -> CommandOutcome:
        field_name = _require_arg(args, "print_unique_field field_name")
        label = resolve_unique_field(field_name)
        values = self._store.distinct_values(field_name)
        self._write(f"Unique {label} values:")
        for value in values:
            self._write(f"  {getattr(value, 'value', value)}")
        return CommandOutcome.CONTINUE

    def _cmd_exit(self, args: Sequence[str]) -> CommandOutcome:
        del args
        self._write("Exiting...")
        return CommandOutcome.EXIT

    def _write(self, message: str) -> None:
        self._output.write(message + "\n")


def _require_arg(args: Sequence[str], usage: str) -> str:
    if not args:
        raise UsageError(usage)
    return args[0]


def _require_int_arg(args: Sequence[str], usage: str) -> int:
    raw = _require_arg(args, usage)
    if not _INTEGER.fullmatch(raw):
        raise UsageError(usage)
    return int(raw)


__all__ = ["CommandDispatcher", "CommandEntry", "UsageError"]
