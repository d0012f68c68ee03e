"""Shared utilities for CLI entrypoints."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

from smarthome_registry.config.loader import (
    DATA_FILE_ENV,
    DEFAULT_DATA_FILE,
    Config,
    ConfigError,
    default_config,
    load_config,
)

LOGGER = logging.getLogger(__name__)

LOCAL_CONFIG_PATH = "config/local.yaml"


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        dest="config",
        default=None,
        help=(
            "Path to YAML config file (default: "
            f"{LOCAL_CONFIG_PATH} if present, else built-in settings)"
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging for troubleshooting",
    )


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def load_cli_config(config_path: Optional[str]) -> Config:
    if config_path:
        resolved = Path(config_path)
    else:
        resolved = Path(LOCAL_CONFIG_PATH)
        if not resolved.exists():
            LOGGER.debug("No %s found; using built-in settings", LOCAL_CONFIG_PATH)
            return default_config()
    try:
        return load_config(resolved)
    except ConfigError as exc:
        raise SystemExit(f"Config validation failed: {exc}") from exc


def resolve_data_file(
    cli_value: Optional[str],
    config: Config,
    *,
    environ: Mapping[str, str],
    ask: Callable[[], Optional[str]],
) -> Path:
    """Pick the data file: argument, environment, config, prompt, then the default."""

    if cli_value:
        return Path(cli_value)
    env_value = environ.get(DATA_FILE_ENV, "")
    if env_value:
        LOGGER.debug("Using data file from $%s", DATA_FILE_ENV)
        return Path(env_value)
    if config.data_file is not None:
        return config.data_file
    answer = (ask() or "").strip()
    if answer:
        return Path(answer)
    return Path(DEFAULT_DATA_FILE)
