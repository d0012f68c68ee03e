"""Settings loader with schema validation for the device registry shell."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from smarthome_registry.model.types import DATE_FORMAT, TIMESTAMP_FORMAT

DATA_FILE_ENV = "SMARTHOME_DATA"
DEFAULT_DATA_FILE = "devices.yaml"
DEFAULT_PROMPT = "> "


class ConfigError(ValueError):
    """Raised when a configuration file fails validation."""


@dataclass(frozen=True)
class ReaderConfig:
    max_attempts: int = 3


@dataclass(frozen=True)
class DisplayConfig:
    date_format: str = DATE_FORMAT
    timestamp_format: str = TIMESTAMP_FORMAT


@dataclass(frozen=True)
class Config:
    source: Optional[Path] = None
    data_file: Optional[Path] = None
    prompt: str = DEFAULT_PROMPT
    echo_script_lines: bool = True
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def default_config() -> Config:
    return Config()


def load_config(path: str | Path) -> Config:
    """Load and validate a YAML/JSON settings file."""
    source = Path(path)
    if not source.exists():
        raise ConfigError(f"Config file not found: {source}")

    data = _deserialize(source)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")
    return _parse_config(data, source)


def _deserialize(source: Path) -> Any:
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {source}: {exc}") from exc
    suffix = source.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Config file {source} is not valid: {exc}") from exc


def _parse_config(data: Dict[str, Any], source: Path) -> Config:
    data_file = _optional_path(data.get("data_file"), "data_file")
    prompt = data.get("prompt", DEFAULT_PROMPT)
    if not isinstance(prompt, str):
        raise ConfigError("'prompt' must be a string")
    echo_script_lines = data.get("echo_script_lines", True)
    if not isinstance(echo_script_lines, bool):
        raise ConfigError("'echo_script_lines' must be a boolean")

    reader_section = data.get("reader", {})
    if not isinstance(reader_section, dict):
        raise ConfigError("reader block must be a mapping if provided")
    reader = ReaderConfig(
        max_attempts=_coerce_int(reader_section.get("max_attempts", 3), "reader.max_attempts", minimum=1),
    )

    display_section = data.get("display", {})
    if not isinstance(display_section, dict):
        raise ConfigError("display block must be a mapping if provided")
    display = DisplayConfig(
        date_format=_require_format(display_section, "date_format", DATE_FORMAT),
        timestamp_format=_require_format(display_section, "timestamp_format", TIMESTAMP_FORMAT),
    )

    return Config(
        source=source,
        data_file=data_file,
        prompt=prompt,
        echo_script_lines=echo_script_lines,
        reader=reader,
        display=display,
    )


def _coerce_int(value: Any, field_name: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"'{field_name}' must be an integer, not boolean")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{field_name}' must be an integer") from exc
    if minimum is not None and parsed < minimum:
        raise ConfigError(f"'{field_name}' must be >= {minimum}")
    return parsed


def _require_format(obj: Dict[str, Any], key: str, default: str) -> str:
    value = obj.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'display.{key}' must be a non-empty string")
    try:
        datetime(2000, 1, 1).strftime(value)
    except ValueError as exc:
        raise ConfigError(f"'display.{key}' is not a valid strftime pattern") from exc
    return value


def _optional_path(value: Any, field_name: str) -> Optional[Path]:
    if not value:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{field_name}' must be a string when provided")
    return Path(value)


__all__ = [
    "Config",
    "ConfigError",
    "DATA_FILE_ENV",
    "DEFAULT_DATA_FILE",
    "DEFAULT_PROMPT",
    "DisplayConfig",
    "ReaderConfig",
    "default_config",
    "load_config",
]
