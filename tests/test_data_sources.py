"""Tests for the inventory and operating system data sources."""

from __future__ import annotations

import pytest

from ics_baremetal.client.memory import InMemoryICS
from ics_baremetal.client.transport import ICSTransportError
from ics_baremetal.resources.data_sources import (
    InventoryDataSource,
    OperatingSystemsDataSource,
)


class TestInventoryDataSource:
    def test_all_items(self, backend: InMemoryICS):
        snapshot = InventoryDataSource(backend).read()
        assert snapshot.id == "inventory"
        assert len(snapshot.items) == 5

    def test_available_only(self, backend: InMemoryICS):
        snapshot = InventoryDataSource(backend).read(available_only=True)
        assert all(item.auto_provision_quantity > 0 for item in snapshot.items)
        assert len(snapshot.items) == 3

    def test_filters(self, backend: InMemoryICS):
        snapshot = InventoryDataSource(backend).read(location="NYC1", instance_type="c2.medium")
        assert [i.sku_id for i in snapshot.items] == [3]

    def test_error_propagates(self, backend: InMemoryICS):
        backend.fail_next("get_inventory", ICSTransportError("down"))
        with pytest.raises(ICSTransportError):
            InventoryDataSource(backend).read()


class TestOperatingSystemsDataSource:
    def test_lists_os(self, backend: InMemoryICS):
        listing = OperatingSystemsDataSource(backend).read("c1.small", "ORD1")
        assert listing.id == "c1.small-ORD1"
        assert [o.product_code for o in listing.operating_systems] == [
            "UBUNTU_24_04", "DEBIAN_12",
        ]
        assert backend.calls_to("get_addons") == [("c1.small", "ORD1")]

    def test_unknown_pair_is_empty(self, backend: InMemoryICS):
        assert OperatingSystemsDataSource(backend).read("x", "y").operating_systems == []
