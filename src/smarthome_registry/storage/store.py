"""In-memory device collection keyed by device id."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from smarthome_registry.model.types import Device

LOGGER = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for collection operation failures."""


class NotFoundError(StoreError, LookupError):
    def __init__(self, device_id: int) -> None:
        super().__init__(f"Device with id {device_id} not found")
        self.device_id = device_id


class DuplicateError(StoreError, ValueError):
    def __init__(self, device_id: int) -> None:
        super().__init__(f"A device with id {device_id} already exists")
        self.device_id = device_id


class UnsupportedFieldError(StoreError, ValueError):
    def __init__(self, field_name: str) -> None:
        choices = ", ".join(label for label, _, _ in _UNIQUE_FIELDS)
        super().__init__(
            f"Field {field_name} is not supported for unique values. Available fields: {choices}"
        )
        self.field_name = field_name


# (CLI label, attribute path, accessor)
_UNIQUE_FIELDS: Tuple[Tuple[str, str, Callable[[Device], object]], ...] = (
    ("DeviceType", "deviceType", lambda device: device.device_type),
    ("Room", "room", lambda device: device.room),
    ("Protocol", "connectionProtocol", lambda device: device.connection_protocol),
    ("Manufacturer", "manufacturer.name", lambda device: device.manufacturer.name),
)


def _field_lookup() -> Dict[str, Tuple[str, Callable[[Device], object]]]:
    lookup: Dict[str, Tuple[str, Callable[[Device], object]]] = {}
    for label, path, accessor in _UNIQUE_FIELDS:
        lookup[label.lower()] = (label, accessor)
        lookup[path.lower()] = (label, accessor)
    return lookup


_FIELD_LOOKUP = _field_lookup()


def resolve_unique_field(field_name: str) -> str:
    """Return the canonical label for a unique-value field name."""

    entry = _FIELD_LOOKUP.get(field_name.strip().lower())
    if entry is None:
        raise UnsupportedFieldError(field_name)
    return entry[0]


class OrderedView:
    """Restartable iteration over store members in ascending id order."""

    def __init__(self, devices: Dict[int, Device]) -> None:
        self._devices = devices

    def __iter__(self) -> Iterator[Device]:
        for device_id in sorted(self._devices):
            yield self._devices[device_id]

    def __len__(self) -> int:
        return len(self._devices)


class DeviceStore:
    """Holds the de-duplicated device set and the id counter for one session."""

    def __init__(self, *, first_id: int = 1, now_fn: Optional[Callable[[], datetime]] = None) -> None:
        self._devices: Dict[int, Device] = {}
        self._next_id = first_id
        self._created_at = (now_fn or datetime.now)()

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def allocate_id(self) -> int:
        device_id = self._next_id
        self._next_id += 1
        return device_id

    def get(self, device_id: int) -> Optional[Device]:
        return self._devices.get(device_id)

    def insert(self, device: Device) -> Device:
        if device.key in self._devices:
            raise DuplicateError(device.key)
        self._devices[device.key] = device
        return device

    def update(self, device_id: int, device: Device) -> Device:
        if device_id not in self._devices:
            raise NotFoundError(device_id)
        updated = replace(device, id=device_id)
        self._devices[device_id] = updated
        return updated

    def remove(self, device_id: int) -> Device:
        try:
            return self._devices.pop(device_id)
        except KeyError as exc:
            raise NotFoundError(device_id) from exc

    def clear(self) -> int:
        count = len(self._devices)
        self._devices.clear()
        return count

    def remove_greater_than(self, device_id: int) -> int:
        return self._remove_where(lambda candidate: candidate > device_id)

    def remove_lower_than(self, device_id: int) -> int:
        return self._remove_where(lambda candidate: candidate < device_id)

    def ordered(self) -> OrderedView:
        return OrderedView(self._devices)

    def distinct_values(self, field_name: str) -> List[object]:
        entry = _FIELD_LOOKUP.get(field_name.strip().lower())
        if entry is None:
            raise UnsupportedFieldError(field_name)
        _, accessor = entry
        seen: List[object] = []
        for device in self.ordered():
            value = accessor(device)
            if value not in seen:
                seen.append(value)
        return seen

    def load(self, devices: Iterable[Device]) -> int:
        """Replace the contents with ``devices``; returns how many repeated ids were skipped."""

        self._devices.clear()
        skipped = 0
        for device in devices:
            if device.key in self._devices:
                skipped += 1
                LOGGER.warning("Skipping repeated device id %d while loading", device.key)
                continue
            self._devices[device.key] = device
        if self._devices:
            self._next_id = max(self._next_id, max(self._devices) + 1)
        return skipped

    def _remove_where(self, predicate: Callable[[int], bool]) -> int:
        doomed = [device_id for device_id in self._devices if predicate(device_id)]
        for device_id in doomed:
            del self._devices[device_id]
        return len(doomed)


__all__ = [
    "DeviceStore",
    "DuplicateError",
    "NotFoundError",
    "OrderedView",
    "StoreError",
    "UnsupportedFieldError",
    "resolve_unique_field",
]
