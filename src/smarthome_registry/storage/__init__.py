"""Collection store and file-backed record source."""

from smarthome_registry.storage.source import LoadError, LoadResult, RecordSource, SaveError
from smarthome_registry.storage.store import (
    DeviceStore,
    DuplicateError,
    NotFoundError,
    UnsupportedFieldError,
)

__all__ = [
    "DeviceStore",
    "DuplicateError",
    "LoadError",
    "LoadResult",
    "NotFoundError",
    "RecordSource",
    "SaveError",
    "UnsupportedFieldError",
]
