"""BareMetalAPI protocol.

The structural interface every higher layer depends on. ``ICSClient``
satisfies it against the real REST API; ``InMemoryICS`` satisfies it
without any network access. No inheritance required.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ics_baremetal.models import (
    AddonCatalog,
    InventoryItem,
    Server,
    ServerOrderRequest,
    ServerOrderResult,
    SSHKey,
    SSHKeyCreateRequest,
    SSHKeyCreateResult,
)


@runtime_checkable
class BareMetalAPI(Protocol):
    """Protocol for bare-metal provisioning backends."""

    def get_inventory(self) -> list[InventoryItem]:
        ...

    def get_addons(self, sku_product_name: str, location_code: str) -> AddonCatalog:
        ...

    def order_server(self, request: ServerOrderRequest) -> ServerOrderResult:
        ...

    def get_servers(self) -> list[Server]:
        ...

    def get_server_by_service_id(self, service_id: int) -> Server | None:
        ...

    def cancel_server(self, server_id: str) -> None:
        ...

    def update_server_friendly_name(self, server_id: str, friendly_name: str) -> None:
        ...

    def create_ssh_key(self, request: SSHKeyCreateRequest) -> SSHKeyCreateResult:
        ...

    def get_ssh_keys(self) -> list[SSHKey]:
        ...

    def get_ssh_key_by_label(self, label: str) -> SSHKey | None:
        ...

    def delete_ssh_key(self, key_id: int) -> None:
        ...
