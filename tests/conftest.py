"""Shared fixtures: a small inventory and an in-memory backend."""

from __future__ import annotations

import pytest

from ics_baremetal.client.memory import InMemoryICS


def inventory_item(
    sku: str,
    location: str,
    auto_qty: int,
    sku_id: int = 0,
    **extra,
) -> dict:
    return {
        "sku_id": sku_id,
        "sku_product_name": sku,
        "location_code": location,
        "auto_provision_quantity": auto_qty,
        "quantity": auto_qty,
        "cpu_model": "EPYC 4244P",
        "cpu_cores": 6,
        "total_ram_gb": 32,
        **extra,
    }


INVENTORY = [
    inventory_item("c1.small", "NYC1", 0, sku_id=1),
    inventory_item("c1.small", "ORD1", 3, sku_id=2),
    inventory_item("c2.medium", "NYC1", 5, sku_id=3),
    inventory_item("c2.medium", "ORD1", 0, sku_id=4),
    inventory_item("c3.large", "LAX1", 2, sku_id=5),
]


def os_catalog(*names_and_codes: tuple[str, str]) -> dict:
    return {
        "operating_systems": {
            "name": "Operating System",
            "products": [
                {"name": name, "product_code": code}
                for name, code in names_and_codes
            ],
        },
    }


ADDONS = {
    ("c1.small", "ORD1"): os_catalog(
        ("Ubuntu 24.04", "UBUNTU_24_04"), ("Debian 12", "DEBIAN_12"),
    ),
    ("c2.medium", "NYC1"): os_catalog(("Ubuntu 24.04", "UBUNTU_24_04")),
    ("c3.large", "LAX1"): os_catalog(("Rocky Linux 9", "ROCKY_9")),
}


@pytest.fixture()
def backend() -> InMemoryICS:
    return InMemoryICS(inventory=INVENTORY, addons=ADDONS)
