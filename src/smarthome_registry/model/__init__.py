"""Entity model for smart home device records."""

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

__all__ = [
	"Country",
	"Device",
	"DeviceType",
	"Manufacturer",
	"Power",
	"Protocol",
	"Room",
	"ValidationError",
]
