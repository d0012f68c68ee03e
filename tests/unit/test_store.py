from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from smarthome_registry.model.types import (
    Country,
    Device,
    DeviceType,
    Manufacturer,
    Power,
    Protocol,
    Room,
)
from smarthome_registry.storage.store import (
    DeviceStore,
    DuplicateError,
    NotFoundError,
    UnsupportedFieldError,
)


def _device(device_id: int, **overrides) -> Device:
    fields = {
        "id": device_id,
        "name": f"device-{device_id}",
        "manufacturer": Manufacturer(
            name="Acme",
            country=Country.GERMANY,
            foundation_year=1990,
            employee_count=120,
            website="https://acme.example",
        ),
        "device_type": DeviceType.SENSOR,
        "room": Room.KITCHEN,
        "power_consumption": Power(4.5),
        "price": Decimal("29.99"),
        "warranty_years": 2,
        "connection_protocol": Protocol.WIFI,
        "installation_date": date(2024, 5, 17),
        "is_active": True,
        "features": ["motion", "battery"],
        "created_at": datetime(2024, 5, 18, 9, 30),
    }
    fields.update(overrides)
    return Device(**fields)


def _store_with(*device_ids: int) -> DeviceStore:
    store = DeviceStore()
    for device_id in device_ids:
        store.insert(_device(device_id))
    return store


def test_allocated_ids_strictly_increase() -> None:
    store = DeviceStore()
    ids = [store.allocate_id() for _ in range(4)]
    assert ids == [1, 2, 3, 4]
    assert store.next_id == 5


def test_allocation_counts_records_that_are_never_inserted() -> None:
    store = DeviceStore()
    store.insert(_device(store.allocate_id()))
    store.allocate_id()  # read failed, record discarded
    third = store.allocate_id()
    store.insert(_device(third))
    assert third == 3
    assert [device.id for device in store.ordered()] == [1, 3]


def test_insert_duplicate_id_leaves_store_unchanged() -> None:
    store = _store_with(1)
    original = store.get(1)

    with pytest.raises(DuplicateError):
        store.insert(_device(1, name="impostor"))

    assert len(store) == 1
    assert store.get(1) is original


def test_update_missing_id_raises_and_leaves_store_unchanged() -> None:
    store = _store_with(1, 2)

    with pytest.raises(NotFoundError):
        store.update(9, _device(30))

    assert [device.id for device in store.ordered()] == [1, 2]


def test_update_forces_original_id_onto_new_data() -> None:
    store = _store_with(1, 2)
    replacement = _device(42, name="renamed", room=Room.GARDEN)

    updated = store.update(2, replacement)

    assert updated.id == 2
    assert store.get(2).name == "renamed"
    assert store.get(2).room is Room.GARDEN
    assert 42 not in store


def test_remove_twice_reports_not_found() -> None:
    store = _store_with(1, 2)
    store.remove(1)

    with pytest.raises(NotFoundError):
        store.remove(1)
    assert len(store) == 1


def test_remove_greater_and_lower_than_use_strict_bounds() -> None:
    store = _store_with(1, 2, 3, 4, 5)

    assert store.remove_greater_than(3) == 2
    assert [device.id for device in store.ordered()] == [1, 2, 3]
    assert store.remove_lower_than(2) == 1
    assert [device.id for device in store.ordered()] == [2, 3]
    assert store.remove_greater_than(10) == 0


def test_ordered_view_is_sorted_and_restartable() -> None:
    store = _store_with(5, 1, 3)
    view = store.ordered()

    assert [device.id for device in view] == [1, 3, 5]
    assert [device.id for device in view] == [1, 3, 5]
    store.insert(_device(2))
    assert [device.id for device in view] == [1, 2, 3, 5]


def test_clear_empties_store_and_keeps_counter() -> None:
    store = DeviceStore()
    for _ in range(3):
        store.insert(_device(store.allocate_id()))

    assert store.clear() == 3
    assert len(store) == 0
    assert store.allocate_id() == 4


def test_distinct_values_in_first_seen_order() -> None:
    store = DeviceStore()
    store.insert(_device(1, connection_protocol=Protocol.WIFI))
    store.insert(_device(2, connection_protocol=Protocol.WIFI))
    store.insert(_device(3, connection_protocol=Protocol.ZIGBEE))

    assert store.distinct_values("protocol") == [Protocol.WIFI, Protocol.ZIGBEE]
    assert store.distinct_values("connectionProtocol") == [Protocol.WIFI, Protocol.ZIGBEE]
    assert store.distinct_values("MANUFACTURER") == ["Acme"]


def test_distinct_values_rejects_unknown_field() -> None:
    store = _store_with(1)

    with pytest.raises(UnsupportedFieldError) as exc:
        store.distinct_values("price")

    message = str(exc.value)
    assert "price" in message
    for choice in ("DeviceType", "Room", "Protocol", "Manufacturer"):
        assert choice in message


def test_load_keeps_first_duplicate_and_advances_counter() -> None:
    store = DeviceStore()
    skipped = store.load([_device(4, name="first"), _device(9), _device(4, name="second")])

    assert skipped == 1
    assert store.get(4).name == "first"
    assert store.next_id == 10


def test_independent_stores_do_not_share_state() -> None:
    first = DeviceStore()
    second = DeviceStore()
    first.allocate_id()
    first.insert(_device(1))

    assert second.next_id == 1
    assert len(second) == 0
