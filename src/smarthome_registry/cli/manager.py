"""Interactive smart home device manager."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence, TextIO

from smarthome_registry.cli._helpers import (
    add_common_args,
    configure_logging,
    load_cli_config,
    resolve_data_file,
)
from smarthome_registry.config.loader import DATA_FILE_ENV, DEFAULT_DATA_FILE, Config
from smarthome_registry.shell.dispatcher import CommandDispatcher
from smarthome_registry.shell.reader import ConsoleRecordReader, LineSource, StreamLineSource
from smarthome_registry.shell.session import InteractiveSession
from smarthome_registry.storage.source import LoadError, RecordSource
from smarthome_registry.storage.store import DeviceStore

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smarthome-manager",
        description="Manage a collection of smart home devices stored in a YAML or JSON file.",
    )
    add_common_args(parser)
    parser.add_argument(
        "data_file",
        nargs="?",
        default=None,
        help=(
            f"Data file to load and save (default: ${DATA_FILE_ENV}, the config file, "
            f"an interactive prompt, then {DEFAULT_DATA_FILE})"
        ),
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    config = load_cli_config(args.config)
    if config.source is not None:
        LOGGER.info("Config loaded from %s", config.source)

    output = stdout or sys.stdout
    lines = StreamLineSource(stdin or sys.stdin)

    def ask() -> Optional[str]:
        output.write("Data file name: ")
        output.flush()
        return lines.read_line()

    data_file = resolve_data_file(
        args.data_file,
        config,
        environ=os.environ if environ is None else environ,
        ask=ask,
    )

    try:
        app = ManagerApp(config, data_file, lines, output)
    except OSError as exc:
        LOGGER.error("Startup failed: %s", exc)
        return 1
    return app.run()


class ManagerApp:
    """Wires the store, record source, reader and dispatcher for one session."""

    def __init__(
        self,
        config: Config,
        data_file: Path,
        lines: LineSource,
        output: TextIO,
    ) -> None:
        self._config = config
        self._output = output
        self._store = DeviceStore()
        self._source = RecordSource(data_file)
        self._load_initial_state()
        reader = ConsoleRecordReader(
            lines,
            output,
            interactive=True,
            max_attempts=config.reader.max_attempts,
        )
        self._dispatcher = CommandDispatcher(
            self._store,
            self._source,
            reader,
            output=output,
            config=config,
        )
        self._session = InteractiveSession(
            self._dispatcher,
            lines,
            output,
            prompt=config.prompt,
        )

    @property
    def store(self) -> DeviceStore:
        return self._store

    def run(self) -> int:
        return self._session.run()

    def _load_initial_state(self) -> None:
        try:
            result = self._source.load()
        except LoadError as exc:
            LOGGER.error("Failed to load data: %s", exc)
            LOGGER.warning("Continuing with an empty collection")
            return
        if not result.found:
            self._output.write(f"File {self._source.path} not found. Starting with an empty collection.\n")
            return
        skipped = self._store.load(result.devices)
        if skipped:
            LOGGER.warning("Ignored %d device(s) with repeated ids in %s", skipped, self._source.path)
        LOGGER.info("Loaded %d device(s) from %s", len(self._store), self._source.path)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
