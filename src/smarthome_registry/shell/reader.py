"""Field-by-field construction of device records from a line source."""

from __future__ import annotations

import logging
import math
import re
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, TextIO, Type, TypeVar

from smarthome_registry.model.types import (
    Country,
    Device,
    DeviceType,
    Manufacturer,
    Power,
    Protocol as ConnectionProtocol,
    Room,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")
_E = TypeVar("_E", bound=Enum)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class LineSource(Protocol):
    def read_line(self) -> Optional[str]:
        """Return the next line without its newline, or None at end of input."""
        ...


class RecordReader(Protocol):
    def read_device(self, device_id: int) -> Device:
        """Produce a validated Device carrying ``device_id`` or raise ValidationError."""
        ...

    def discard_record(self) -> None:
        """Drop whatever is left of a record the caller will not read."""
        ...


class StreamLineSource:
    """Reads lines from a text stream such as stdin."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdin

    def read_line(self) -> Optional[str]:
        line = self._stream.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")


class ScriptLineSource:
    """Cursor over lines already read from a script file."""

    def __init__(self, lines: Sequence[str]) -> None:
        self._lines = list(lines)
        self._position = 0

    @property
    def line_number(self) -> int:
        return self._position

    def read_line(self) -> Optional[str]:
        if self._position >= len(self._lines):
            return None
        line = self._lines[self._position]
        self._position += 1
        return line


class ConsoleRecordReader:
    """Prompts for every device field in turn.

    Interactive readers re-ask a field after an invalid answer, up to
    ``max_attempts`` tries. Non-interactive readers (script input) print no
    prompts and fail on the first invalid answer.
    """

    def __init__(
        self,
        source: LineSource,
        output: Optional[TextIO] = None,
        *,
        interactive: bool = True,
        max_attempts: int = 3,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._source = source
        self._output = output or sys.stdout
        self._interactive = interactive
        self._max_attempts = max(1, max_attempts) if interactive else 1
        self._now = now_fn or datetime.now
        self._last_raw: Optional[str] = None

    def read_device(self, device_id: int) -> Device:
        self._last_raw = None
        try:
            return self._read_fields(device_id)
        except ValidationError:
            # a rejected empty line already closed the record
            if self._last_raw is not None and self._last_raw.strip():
                self.discard_record()
            raise

    def discard_record(self) -> None:
        """Skip the unread lines of a record up to its closing empty line.

        Only script input is skipped; an interactive user is never waited on.
        """
        if self._interactive:
            return
        skipped = 0
        while True:
            raw = self._source.read_line()
            if raw is None or not raw.strip():
                break
            skipped += 1
        if skipped:
            LOGGER.debug("Discarded %d line(s) of a rejected record", skipped)

    def _read_fields(self, device_id: int) -> Device:
        name = self._ask("Device name: ", _parse_text)
        self._say("Manufacturer:")
        manufacturer = self._read_manufacturer()
        device_type = self._ask(_choice_prompt("Device type", DeviceType), _enum_parser(DeviceType))
        room = self._ask(_choice_prompt("Room", Room), _enum_parser(Room))
        power = self._ask("Power consumption (W): ", _parse_power)
        price = self._ask("Price: ", _parse_decimal)
        warranty_years = self._ask("Warranty (years): ", _parse_int)
        protocol = self._ask(
            _choice_prompt("Connection protocol", ConnectionProtocol),
            _enum_parser(ConnectionProtocol),
        )
        installation_date = self._ask("Installation date (YYYY-MM-DD): ", _parse_date)
        is_active = self._ask("Active (true/false): ", _parse_bool)
        features = self._read_features()
        return Device(
            id=device_id,
            name=name,
            manufacturer=manufacturer,
            device_type=device_type,
            room=room,
            power_consumption=power,
            price=price,
            warranty_years=warranty_years,
            connection_protocol=protocol,
            installation_date=installation_date,
            is_active=is_active,
            features=features,
            created_at=self._now(),
        )

    def _read_manufacturer(self) -> Manufacturer:
        return Manufacturer(
            name=self._ask("  Company name: ", _parse_text),
            country=self._ask(_choice_prompt("  Country", Country), _enum_parser(Country)),
            foundation_year=self._ask("  Foundation year: ", _parse_int),
            employee_count=self._ask("  Employee count: ", _parse_int),
            website=self._ask("  Website: ", _parse_text),
        )

    def _read_features(self) -> List[str]:
        self._say("Device features (empty line to finish):")
        features: List[str] = []
        while True:
            raw = self._source.read_line()
            if raw is None or not raw.strip():
                return features
            features.append(raw)

    def _ask(self, prompt: str, parser: Callable[[str], _T]) -> _T:
        for attempt in range(1, self._max_attempts + 1):
            if self._interactive:
                self._output.write(prompt)
                self._output.flush()
            raw = self._source.read_line()
            self._last_raw = raw
            if raw is None:
                raise ValidationError("Input ended before the device record was complete")
            try:
                return parser(raw.strip())
            except ValidationError as exc:
                if attempt >= self._max_attempts:
                    raise
                LOGGER.debug("Rejected input %r (attempt %d): %s", raw, attempt, exc)
                self._say(f"Invalid value: {exc}. Try again.")
        raise ValidationError("No attempts left")  # pragma: no cover

    def _say(self, message: str) -> None:
        if self._interactive:
            self._output.write(message + "\n")


def _choice_prompt(label: str, enum_cls: Type[Enum]) -> str:
    return f"{label} ({', '.join(item.value for item in enum_cls)}): "


def _parse_text(raw: str) -> str:
    return raw


def _parse_int(raw: str) -> int:
    if not _INTEGER.fullmatch(raw):
        raise ValidationError(f"'{raw}' is not an integer")
    return int(raw)


def _parse_power(raw: str) -> Power:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValidationError(f"'{raw}' is not a number") from exc
    if not math.isfinite(value):
        raise ValidationError(f"'{raw}' is not a finite number")
    return Power(value)


def _parse_decimal(raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ValidationError(f"'{raw}' is not a decimal amount") from exc
    if not value.is_finite():
        raise ValidationError(f"'{raw}' is not a decimal amount")
    return value


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"'{raw}' is not a date in YYYY-MM-DD form") from exc


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValidationError(f"'{raw}' is not true or false")


def _enum_parser(enum_cls: Type[_E]) -> Callable[[str], _E]:
    def parse(raw: str) -> _E:
        try:
            return enum_cls[raw.upper()]
        except KeyError as exc:
            choices = ", ".join(item.value for item in enum_cls)
            raise ValidationError(f"'{raw}' is not one of {choices}") from exc

    return parse


__all__ = [
    "ConsoleRecordReader",
    "LineSource",
    "RecordReader",
    "ScriptLineSource",
    "StreamLineSource",
]
