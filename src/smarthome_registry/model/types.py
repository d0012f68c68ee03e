"""Device records, their manufacturer value and the enums shared across the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List

DATE_FORMAT = "%d.%m.%Y"
TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"


class ValidationError(ValueError):
    """Raised when a field value is outside its allowed domain."""


class DeviceType(str, Enum):
    LIGHT = "LIGHT"
    THERMOSTAT = "THERMOSTAT"
    SECURITY_CAMERA = "SECURITY_CAMERA"
    SPEAKER = "SPEAKER"
    LOCK = "LOCK"
    SENSOR = "SENSOR"
    PLUG = "PLUG"


class Room(str, Enum):
    LIVING_ROOM = "LIVING_ROOM"
    BEDROOM = "BEDROOM"
    KITCHEN = "KITCHEN"
    BATHROOM = "BATHROOM"
    GARAGE = "GARAGE"
    GARDEN = "GARDEN"


class Protocol(str, Enum):
    WIFI = "WIFI"
    BLUETOOTH = "BLUETOOTH"
    ZIGBEE = "ZIGBEE"
    Z_WAVE = "Z_WAVE"
    THREAD = "THREAD"


class Country(str, Enum):
    USA = "USA"
    CHINA = "CHINA"
    GERMANY = "GERMANY"
    SOUTH_KOREA = "SOUTH_KOREA"
    JAPAN = "JAPAN"
    SWEDEN = "SWEDEN"


class Power:
    """Power draw in watts; never negative."""

    __slots__ = ("_value",)

    def __init__(self, value: float = 0.0) -> None:
        self._value = 0.0
        self.value = value

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("Power consumption must be a number")
        if value < 0:
            raise ValidationError("Power consumption cannot be negative")
        self._value = float(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Power):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Power({self._value!r})"

    def __str__(self) -> str:
        return f"{self._value:.2f}W"


@dataclass
class Manufacturer:
    name: str = "Unknown"
    country: Country = Country.USA
    foundation_year: int = 0
    employee_count: int = 0
    website: str = ""

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.country.value}), founded {self.foundation_year}, "
            f"employees: {self.employee_count}"
        )


@dataclass
class Device:
    """A single smart home device entry.

    Membership in a store is decided by ``key`` alone; comparing two Device
    values with ``==`` still looks at every field.
    """

    id: int
    name: str = "Unnamed Device"
    manufacturer: Manufacturer = field(default_factory=Manufacturer)
    device_type: DeviceType = DeviceType.LIGHT
    room: Room = Room.LIVING_ROOM
    power_consumption: Power = field(default_factory=Power)
    price: Decimal = Decimal("0")
    warranty_years: int = 0
    connection_protocol: Protocol = Protocol.WIFI
    installation_date: date = field(default_factory=date.today)
    is_active: bool = False
    features: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> int:
        return self.id

    def render(
        self,
        *,
        date_format: str = DATE_FORMAT,
        timestamp_format: str = TIMESTAMP_FORMAT,
    ) -> str:
        lines = [
            f"ID: {self.id}, {self.name} ({self.device_type.value}) - {self.manufacturer.name}",
            f"Room: {self.room.value}, Power: {self.power_consumption}, Price: {self.price:.2f}",
            f"Protocol: {self.connection_protocol.value}, "
            f"Installed: {self.installation_date.strftime(date_format)}",
            f"Active: {self.is_active}, Warranty: {self.warranty_years} years",
            f"Features: {', '.join(self.features)}",
            f"Created: {self.created_at.strftime(timestamp_format)}",
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


__all__ = [
    "Country",
    "DATE_FORMAT",
    "Device",
    "DeviceType",
    "Manufacturer",
    "Power",
    "Protocol",
    "Room",
    "TIMESTAMP_FORMAT",
    "ValidationError",
]
