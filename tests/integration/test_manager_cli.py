from __future__ import annotations

import io
from pathlib import Path

import pytest
import yaml

from smarthome_registry.cli.manager import main

from tests.unit.test_reader import record_lines


def _stdin(*lines: str) -> io.StringIO:
    return io.StringIO("\n".join(lines) + "\n")


def test_session_saves_and_next_session_reloads(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    data_file = tmp_path / "home.yaml"

    first_out = io.StringIO()
    exit_code = main(
        [str(data_file)],
        stdin=_stdin("insert", *record_lines(name="Porch camera"), "save", "exit"),
        stdout=first_out,
        environ={},
    )
    assert exit_code == 0
    assert "not found" in first_out.getvalue()
    assert data_file.exists()

    second_out = io.StringIO()
    exit_code = main(
        [str(data_file)],
        stdin=_stdin("show", "insert", *record_lines(name="Hall plug"), "show", "exit"),
        stdout=second_out,
        environ={},
    )
    assert exit_code == 0
    text = second_out.getvalue()
    assert "ID: 1, Porch camera" in text
    assert "Device added with id 2" in text


def test_unparseable_data_file_falls_back_to_empty_collection(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    data_file = tmp_path / "broken.json"
    data_file.write_text("[{", encoding="utf-8")
    out = io.StringIO()

    exit_code = main([str(data_file)], stdin=_stdin("info", "exit"), stdout=out, environ={})

    assert exit_code == 0
    assert "Number of devices: 0" in out.getvalue()


def test_data_file_with_invalid_utf8_falls_back_to_empty_collection(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    data_file = tmp_path / "garbled.yaml"
    data_file.write_bytes(b"devices: [\xff\xfe]\n")
    out = io.StringIO()

    exit_code = main([str(data_file)], stdin=_stdin("info", "exit"), stdout=out, environ={})

    assert exit_code == 0
    assert "Number of devices: 0" in out.getvalue()


def test_data_file_taken_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    env_file = tmp_path / "from-env.yaml"
    out = io.StringIO()

    main([], stdin=_stdin("info", "exit"), stdout=out, environ={"SMARTHOME_DATA": str(env_file)})

    assert f"Data file: {env_file}" in out.getvalue()
    assert "Data file name:" not in out.getvalue()


def test_prompted_data_file_defaults_when_blank(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()

    main([], stdin=_stdin("", "info", "exit"), stdout=out, environ={})

    text = out.getvalue()
    assert "Data file name:" in text
    assert "Data file: devices.yaml" in text


def test_invalid_config_stops_startup(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "settings.yaml"
    config_path.write_text(yaml.safe_dump({"reader": {"max_attempts": 0}}), encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        main(["--config", str(config_path), "data.yaml"], stdin=_stdin("exit"), stdout=io.StringIO(), environ={})
    assert "max_attempts" in str(exc.value.code)


def test_config_supplies_data_file_and_prompt(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "local.yaml").write_text(
        yaml.safe_dump({"data_file": "configured.json", "prompt": "home$ "}),
        encoding="utf-8",
    )
    out = io.StringIO()

    main([], stdin=_stdin("info", "exit"), stdout=out, environ={})

    text = out.getvalue()
    assert "home$ " in text
    assert "Data file: configured.json" in text
