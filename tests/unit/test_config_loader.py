from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from smarthome_registry.config.loader import (
    DEFAULT_PROMPT,
    ConfigError,
    default_config,
    load_config,
)


def _base_config_dict() -> dict:
    return {
        "data_file": "home/devices.yaml",
        "prompt": "smarthome> ",
        "echo_script_lines": False,
        "reader": {"max_attempts": 5},
        "display": {"date_format": "%Y-%m-%d", "timestamp_format": "%Y-%m-%d %H:%M:%S"},
    }


def _write_config(tmp_path: Path, data: dict) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_path


def test_load_config_success(tmp_path: Path) -> None:
    cfg = load_config(_write_config(tmp_path, _base_config_dict()))

    assert cfg.data_file == Path("home/devices.yaml")
    assert cfg.prompt == "smarthome> "
    assert cfg.echo_script_lines is False
    assert cfg.reader.max_attempts == 5
    assert cfg.display.date_format == "%Y-%m-%d"


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.data_file is None
    assert cfg.prompt == DEFAULT_PROMPT
    assert cfg.reader == default_config().reader


def test_json_config_is_supported(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"prompt": "$ "}), encoding="utf-8")
    assert load_config(path).prompt == "$ "


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_unreadable_file_raises(tmp_path: Path) -> None:
    binary = tmp_path / "binary.yaml"
    binary.write_bytes(b"prompt: \xff\n")
    with pytest.raises(ConfigError):
        load_config(binary)

    directory = tmp_path / "settings.yaml"
    directory.mkdir()
    with pytest.raises(ConfigError):
        load_config(directory)


@pytest.mark.parametrize(
    ("patch", "fragment"),
    [
        ({"reader": {"max_attempts": 0}}, "max_attempts"),
        ({"reader": {"max_attempts": True}}, "max_attempts"),
        ({"reader": []}, "reader"),
        ({"prompt": 5}, "prompt"),
        ({"echo_script_lines": "yes"}, "echo_script_lines"),
        ({"data_file": 12}, "data_file"),
        ({"display": {"date_format": ""}}, "date_format"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, patch: dict, fragment: str) -> None:
    data = _base_config_dict()
    data.update(patch)
    with pytest.raises(ConfigError) as exc:
        load_config(_write_config(tmp_path, data))
    assert fragment in str(exc.value)


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text(yaml.safe_dump(["a", "b"]), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
