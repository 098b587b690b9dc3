"""Read-only data sources: inventory and operating systems."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ics_baremetal.catalog.resolver import CatalogResolver
from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.models import InventoryItem, OperatingSystem


class InventorySnapshot(BaseModel):
    id: str = "inventory"
    items: list[InventoryItem] = Field(default_factory=list)


class OperatingSystemList(BaseModel):
    id: str
    instance_type: str
    location: str
    operating_systems: list[OperatingSystem] = Field(default_factory=list)


class InventoryDataSource:
    """Lists every inventory item, optionally narrowed down."""

    def __init__(self, client: BareMetalAPI) -> None:
        self._resolver = CatalogResolver(client)

    def read(
        self,
        *,
        available_only: bool = False,
        location: str | None = None,
        instance_type: str | None = None,
    ) -> InventorySnapshot:
        items = self._resolver.list_inventory(available_only=available_only)
        if location:
            items = [i for i in items if i.location_code == location]
        if instance_type:
            items = [i for i in items if i.sku_product_name == instance_type]
        return InventorySnapshot(items=items)


class OperatingSystemsDataSource:
    """Lists the operating systems offered for an instance type and location."""

    def __init__(self, client: BareMetalAPI) -> None:
        self._resolver = CatalogResolver(client)

    def read(self, instance_type: str, location: str) -> OperatingSystemList:
        return OperatingSystemList(
            id=f"{instance_type}-{location}",
            instance_type=instance_type,
            location=location,
            operating_systems=self._resolver.list_operating_systems(instance_type, location),
        )
