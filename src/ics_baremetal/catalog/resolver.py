"""Catalog resolver: maps friendly names onto orderable catalog entries.

The resolver:
1. Fetches a fresh inventory snapshot (never cached)
2. Finds the first SKU whose product name matches the requested
   instance type, optionally restricted to a location, with
   auto-provisionable quantity available
3. Fetches the addon catalog for the resolved (SKU, location) pair
4. Matches the requested operating system by exact name

Failures carry the alternatives a user needs to fix their request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.models import InventoryItem, OperatingSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Alternatives:
    """What *is* orderable, computed from items with available quantity."""

    available_types: list[str] = field(default_factory=list)
    available_locations: list[str] = field(default_factory=list)
    combinations: dict[str, list[str]] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not (self.available_types or self.available_locations or self.combinations)


class ResolutionError(Exception):
    """Raised when an instance type / location pair cannot be ordered.

    ``kind`` is ``"unknown_type"`` when no inventory entry carries the
    product name at all, and ``"unavailable"`` when entries exist but
    none match the location with auto-provisionable quantity.
    """

    UNKNOWN_TYPE = "unknown_type"
    UNAVAILABLE = "unavailable"

    def __init__(
        self,
        instance_type: str,
        location: str,
        kind: str,
        alternatives: Alternatives | None = None,
    ) -> None:
        self.instance_type = instance_type
        self.location = location
        self.kind = kind
        self.alternatives = alternatives or Alternatives()
        super().__init__(self._render())

    def _render(self) -> str:
        if self.kind == self.UNKNOWN_TYPE:
            msg = f"Instance type '{self.instance_type}' does not exist in the inventory"
        elif self.location:
            msg = (
                f"Instance type '{self.instance_type}' is not available "
                f"in location '{self.location}'"
            )
        else:
            msg = (
                f"Instance type '{self.instance_type}' has no auto-provisionable "
                f"inventory in any location"
            )

        alt = self.alternatives
        if alt.available_types and self.location:
            msg += (
                f"\n\nAvailable instance types in location '{self.location}': "
                f"{', '.join(alt.available_types)}"
            )
        if alt.available_locations:
            msg += (
                f"\n\nAvailable locations for instance type '{self.instance_type}': "
                f"{', '.join(alt.available_locations)}"
            )
        if alt.combinations:
            msg += "\n\nAll available combinations with inventory:"
            for instance_type, locations in alt.combinations.items():
                msg += f"\n  {instance_type}: {', '.join(locations)}"
        return msg


class OperatingSystemNotFoundError(Exception):
    """Raised when an OS name is not offered for a (SKU, location) pair."""

    def __init__(
        self,
        os_name: str,
        instance_type: str,
        location: str,
        available: list[str],
    ) -> None:
        self.os_name = os_name
        self.instance_type = instance_type
        self.location = location
        self.available = available
        msg = (
            f"Operating system '{os_name}' is not available for instance type "
            f"'{instance_type}' in location '{location}'"
        )
        if available:
            msg += f"\n\nAvailable operating systems: {', '.join(available)}"
        else:
            msg += "\n\nNo operating systems are offered for this combination."
        super().__init__(msg)


def find_sku(
    inventory: list[InventoryItem],
    instance_type: str,
    location: str = "",
) -> InventoryItem | None:
    """Return the first orderable item for *instance_type* (and *location*)."""
    for item in inventory:
        if item.sku_product_name != instance_type:
            continue
        if location and item.location_code != location:
            continue
        if item.available:
            return item
    return None


def suggest_alternatives(
    inventory: list[InventoryItem],
    instance_type: str,
    location: str = "",
) -> Alternatives:
    """Compute suggestion lists from items with available quantity.

    Every listed type/location pair appears in *inventory* with positive
    auto-provisionable quantity. Lists keep first-seen order and hold no
    duplicates.
    """
    types: list[str] = []
    locations: list[str] = []
    combinations: dict[str, list[str]] = {}

    for item in inventory:
        if not item.available:
            continue
        name, code = item.sku_product_name, item.location_code
        if name == instance_type and code not in locations:
            locations.append(code)
        if location and code == location and name not in types:
            types.append(name)
        combo = combinations.setdefault(name, [])
        if code not in combo:
            combo.append(code)

    return Alternatives(
        available_types=types,
        available_locations=locations,
        combinations=combinations,
    )


class CatalogResolver:
    """Validates instance types and operating systems against the live catalog.

    Stateless: every call goes to the backend for a fresh snapshot.
    """

    def __init__(self, client: BareMetalAPI) -> None:
        self._client = client

    def list_inventory(self, *, available_only: bool = False) -> list[InventoryItem]:
        inventory = self._client.get_inventory()
        if available_only:
            return [item for item in inventory if item.available]
        return inventory

    def list_operating_systems(
        self, instance_type: str, location: str,
    ) -> list[OperatingSystem]:
        catalog = self._client.get_addons(instance_type, location)
        return list(catalog.operating_systems.products)

    def resolve(self, instance_type: str, location: str = "") -> InventoryItem:
        """Resolve an instance type (and optional location) to a SKU.

        Raises:
            ResolutionError: No orderable item matches. Alternatives are
                computed from the same snapshot.
            ICSError: The inventory could not be fetched at all.
        """
        logger.info(
            "Validating instance type %s in location %s",
            instance_type,
            location or "<any>",
            extra={"instance_type": instance_type, "location": location},
        )
        inventory = self._client.get_inventory()
        sku = find_sku(inventory, instance_type, location)
        if sku is not None:
            logger.debug(
                "Resolved %s/%s to sku_id=%d (auto_provision_quantity=%d)",
                instance_type,
                sku.location_code,
                sku.sku_id,
                sku.auto_provision_quantity,
            )
            return sku

        known = any(item.sku_product_name == instance_type for item in inventory)
        kind = ResolutionError.UNAVAILABLE if known else ResolutionError.UNKNOWN_TYPE

        raise ResolutionError(
            instance_type,
            location,
            kind,
            suggest_alternatives(inventory, instance_type, location),
        )

    def resolve_operating_system(
        self,
        instance_type: str,
        location: str,
        os_name: str,
    ) -> OperatingSystem:
        """Find *os_name* (exact, case-sensitive) in the OS addons for the pair."""
        logger.info(
            "Validating operating system %s for %s in %s",
            os_name,
            instance_type,
            location,
            extra={"instance_type": instance_type, "location": location},
        )
        catalog = self._client.get_addons(instance_type, location)
        for os_item in catalog.operating_systems.products:
            if os_item.name == os_name:
                return os_item

        raise OperatingSystemNotFoundError(
            os_name, instance_type, location, catalog.operating_system_names,
        )
