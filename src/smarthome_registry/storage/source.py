"""Load and save the device collection as a YAML or JSON document."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Type, TypeVar

import yaml

from smarthome_registry.model.types import (
    Country,
    Device,
    DeviceType,
    Manufacturer,
    Power,
    Protocol,
    Room,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)

_E = TypeVar("_E", bound=Enum)


class RecordSourceError(OSError):
    """Base class for persistence failures."""


class LoadError(RecordSourceError):
    """Raised when an existing data file cannot be read or decoded."""


class SaveError(RecordSourceError):
    """Raised when the collection cannot be written out."""


@dataclass(frozen=True)
class LoadResult:
    devices: List[Device] = field(default_factory=list)
    found: bool = True


class RecordSource:
    """File-backed snapshot of the whole device collection.

    ``.json`` paths are written with :mod:`json`; anything else is YAML.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LoadResult:
        if not self._path.exists():
            LOGGER.debug("Data file %s not found", self._path)
            return LoadResult(devices=[], found=False)
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Cannot read {self._path}: {exc}") from exc
        try:
            payload = self._deserialize(text)
        except (ValueError, yaml.YAMLError) as exc:
            raise LoadError(f"Cannot parse {self._path}: {exc}") from exc
        devices = decode_devices(_unwrap_document(payload))
        LOGGER.debug("Decoded %d device record(s) from %s", len(devices), self._path)
        return LoadResult(devices=devices, found=True)

    def save(self, devices: Iterable[Device]) -> int:
        records = encode_devices(devices)
        text = self._serialize({"devices": records})
        directory = self._path.parent
        temp_path: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as handle:
                temp_path = handle.name
                handle.write(text)
            os.replace(temp_path, self._path)
            temp_path = None
        except OSError as exc:
            raise SaveError(f"Cannot write {self._path}: {exc}") from exc
        finally:
            if temp_path:
                try:
                    Path(temp_path).unlink()
                except OSError:
                    LOGGER.debug("Could not remove temporary file %s", temp_path)
        LOGGER.debug("Wrote %d device record(s) to %s", len(records), self._path)
        return len(records)

    def _is_json(self) -> bool:
        return self._path.suffix.lower() == ".json"

    def _deserialize(self, text: str) -> Any:
        if self._is_json():
            return json.loads(text)
        return yaml.safe_load(text)

    def _serialize(self, document: Dict[str, Any]) -> str:
        if self._is_json():
            return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


def encode_devices(devices: Iterable[Device]) -> List[Dict[str, Any]]:
    ordered = sorted(devices, key=lambda device: device.key)
    return [encode_device(device) for device in ordered]


def encode_device(device: Device) -> Dict[str, Any]:
    manufacturer = device.manufacturer
    return {
        "id": device.id,
        "name": device.name,
        "manufacturer": {
            "name": manufacturer.name,
            "country": manufacturer.country.value,
            "foundation_year": manufacturer.foundation_year,
            "employee_count": manufacturer.employee_count,
            "website": manufacturer.website,
        },
        "device_type": device.device_type.value,
        "room": device.room.value,
        "power_consumption": device.power_consumption.value,
        "price": str(device.price),
        "warranty_years": device.warranty_years,
        "connection_protocol": device.connection_protocol.value,
        "installation_date": device.installation_date.isoformat(),
        "is_active": device.is_active,
        "features": list(device.features),
        "created_at": device.created_at.isoformat(),
    }


def decode_devices(payload: Any) -> List[Device]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise LoadError("'devices' must be a list")
    devices: List[Device] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise LoadError(f"Device entry #{index} must be a mapping")
        try:
            devices.append(decode_device(entry))
        except ValidationError as exc:
            raise LoadError(f"Device entry #{index} is invalid: {exc}") from exc
    return devices


def decode_device(entry: Dict[str, Any]) -> Device:
    manufacturer_block = entry.get("manufacturer", {})
    if not isinstance(manufacturer_block, dict):
        raise LoadError("'manufacturer' must be a mapping")
    manufacturer = Manufacturer(
        name=_require_str(manufacturer_block, "name"),
        country=_require_enum(manufacturer_block, "country", Country),
        foundation_year=_require_int(manufacturer_block, "foundation_year"),
        employee_count=_require_int(manufacturer_block, "employee_count"),
        website=_optional_str(manufacturer_block, "website"),
    )
    features = entry.get("features", [])
    if not isinstance(features, list) or not all(isinstance(item, str) for item in features):
        raise LoadError("'features' must be a list of strings")
    return Device(
        id=_require_int(entry, "id"),
        name=_require_str(entry, "name"),
        manufacturer=manufacturer,
        device_type=_require_enum(entry, "device_type", DeviceType),
        room=_require_enum(entry, "room", Room),
        power_consumption=Power(_require_float(entry, "power_consumption")),
        price=_require_decimal(entry, "price"),
        warranty_years=_require_int(entry, "warranty_years"),
        connection_protocol=_require_enum(entry, "connection_protocol", Protocol),
        installation_date=_require_date(entry, "installation_date"),
        is_active=_require_bool(entry, "is_active"),
        features=list(features),
        created_at=_require_datetime(entry, "created_at"),
    )


def _unwrap_document(payload: Any) -> Any:
    if isinstance(payload, dict):
        return payload.get("devices")
    return payload


def _require_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise LoadError(f"'{key}' must be a string")
    return value


def _optional_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise LoadError(f"'{key}' must be a string when provided")
    return value


def _require_int(obj: Dict[str, Any], key: str) -> int:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise LoadError(f"'{key}' must be an integer")
    return value


def _require_float(obj: Dict[str, Any], key: str) -> float:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LoadError(f"'{key}' must be a number")
    return float(value)


def _require_bool(obj: Dict[str, Any], key: str) -> bool:
    value = obj.get(key)
    if not isinstance(value, bool):
        raise LoadError(f"'{key}' must be a boolean")
    return value


def _require_decimal(obj: Dict[str, Any], key: str) -> Decimal:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise LoadError(f"'{key}' must be a decimal string")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise LoadError(f"'{key}' must be a decimal string") from exc


def _require_enum(obj: Dict[str, Any], key: str, enum_cls: Type[_E]) -> _E:
    value = obj.get(key)
    if not isinstance(value, str):
        raise LoadError(f"'{key}' must be one of {', '.join(item.value for item in enum_cls)}")
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise LoadError(f"'{key}' has unknown value {value!r}") from exc


def _require_date(obj: Dict[str, Any], key: str) -> date:
    value = obj.get(key)
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise LoadError(f"'{key}' must be an ISO date")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise LoadError(f"'{key}' must be an ISO date") from exc


def _require_datetime(obj: Dict[str, Any], key: str) -> datetime:
    value = obj.get(key)
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise LoadError(f"'{key}' must be an ISO timestamp")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise LoadError(f"'{key}' must be an ISO timestamp") from exc


__all__ = [
    "LoadError",
    "LoadResult",
    "RecordSource",
    "RecordSourceError",
    "SaveError",
    "decode_device",
    "decode_devices",
    "encode_device",
    "encode_devices",
]
