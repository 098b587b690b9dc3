"""In-memory ICS backend: for development, demos and testing.

Implements the BareMetalAPI protocol against plain Python lists.
Ordered servers do not appear immediately: each order becomes visible
in the server list only after ``provision_after`` list calls, which
mimics the backend's asynchronous create path.

Failures can be queued per method with ``fail_next()`` so callers can
exercise transport and status errors without a network.
"""

from __future__ import annotations

import itertools
import secrets
import time
from collections import defaultdict, deque
from typing import Any

from ics_baremetal.client.transport import ICSAPIError
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


class InMemoryICS:
    """A fake ICS backend holding inventory, addons, servers and SSH keys.

    Every call is recorded in ``calls`` as ``(method, args)`` so tests can
    assert on exactly which requests were issued.
    """

    def __init__(
        self,
        inventory: list[InventoryItem | dict[str, Any]] | None = None,
        addons: dict[tuple[str, str], AddonCatalog | dict[str, Any]] | None = None,
        provision_after: int = 0,
    ) -> None:
        self.inventory: list[InventoryItem] = [
            InventoryItem.model_validate(item) for item in inventory or []
        ]
        self.addons: dict[tuple[str, str], AddonCatalog] = {
            key: AddonCatalog.model_validate(value)
            for key, value in (addons or {}).items()
        }
        self.provision_after = provision_after
        self.servers: list[Server] = []
        self.ssh_keys: list[SSHKey] = []
        self.orders: list[ServerOrderRequest] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

        self._pending: list[tuple[int, Server]] = []
        self._failures: dict[str, deque[Exception]] = defaultdict(deque)
        self._service_ids = itertools.count(500)
        self._server_ids = itertools.count(1)
        self._key_ids = itertools.count(1)

    # ── Test hooks ───────────────────────────────────────────────

    def fail_next(self, method: str, error: Exception, times: int = 1) -> None:
        """Make the next *times* calls to *method* raise *error*."""
        for _ in range(times):
            self._failures[method].append(error)

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        queue = self._failures.get(method)
        if queue:
            raise queue.popleft()

    # ── Catalog ──────────────────────────────────────────────────

    def get_inventory(self) -> list[InventoryItem]:
        self._enter("get_inventory")
        return [item.model_copy(deep=True) for item in self.inventory]

    def get_addons(self, sku_product_name: str, location_code: str) -> AddonCatalog:
        self._enter("get_addons", sku_product_name, location_code)
        catalog = self.addons.get((sku_product_name, location_code))
        if catalog is None:
            return AddonCatalog()
        return catalog.model_copy(deep=True)

    # ── Orders and servers ───────────────────────────────────────

    def order_server(self, request: ServerOrderRequest) -> ServerOrderResult:
        self._enter("order_server", request)
        self.orders.append(request)

        service_id = next(self._service_ids)
        sku = next(
            (
                item
                for item in self.inventory
                if item.sku_product_name == request.sku_product_name
                and item.location_code == request.location_code
            ),
            None,
        )
        server = Server(
            id=f"srv-{next(self._server_ids)}",
            hostname=request.hostname or f"host-{service_id}",
            public_ip=f"203.0.113.{service_id % 256}",
            service_id=service_id,
            service_description=f"{request.sku_product_name} ({request.location_code})",
            datacenter_name=request.location_code,
            datacenter_id=sku.datacenter_id if sku else 0,
            server_type=request.sku_product_name,
            bill_hourly=request.bill_hourly,
            root_password=secrets.token_urlsafe(12),
        )
        self._pending.append((self.provision_after, server))
        return ServerOrderResult(order_service_ids=[service_id])

    def get_servers(self) -> list[Server]:
        self._enter("get_servers")
        still_pending: list[tuple[int, Server]] = []
        for remaining, server in self._pending:
            if remaining <= 0:
                self.servers.append(server)
            else:
                still_pending.append((remaining - 1, server))
        self._pending = still_pending
        return [server.model_copy() for server in self.servers]

    def get_server_by_service_id(self, service_id: int) -> Server | None:
        for server in self.get_servers():
            if server.service_id == service_id:
                return server
        return None

    def cancel_server(self, server_id: str) -> None:
        self._enter("cancel_server", server_id)
        server = self._find_server(server_id)
        self.servers.remove(server)

    def update_server_friendly_name(self, server_id: str, friendly_name: str) -> None:
        self._enter("update_server_friendly_name", server_id, friendly_name)
        self._find_server(server_id).friendly_name = friendly_name

    def _find_server(self, server_id: str) -> Server:
        for server in self.servers:
            if server.id == server_id:
                return server
        raise ICSAPIError(404, f"Server {server_id} not found")

    # ── SSH keys ─────────────────────────────────────────────────

    def create_ssh_key(self, request: SSHKeyCreateRequest) -> SSHKeyCreateResult:
        self._enter("create_ssh_key", request)
        now = int(time.time())
        key = SSHKey(
            id=next(self._key_ids),
            label=request.label,
            key=request.public_key,
            created_at=now,
            updated_at=now,
        )
        self.ssh_keys.append(key)
        return SSHKeyCreateResult(id=key.id)

    def get_ssh_keys(self) -> list[SSHKey]:
        self._enter("get_ssh_keys")
        return [key.model_copy(deep=True) for key in self.ssh_keys]

    def get_ssh_key_by_label(self, label: str) -> SSHKey | None:
        for key in self.get_ssh_keys():
            if key.label == label:
                return key
        return None

    def delete_ssh_key(self, key_id: int) -> None:
        self._enter("delete_ssh_key", key_id)
        for key in self.ssh_keys:
            if key.id == key_id:
                self.ssh_keys.remove(key)
                return
        raise ICSAPIError(404, f"SSH key {key_id} not found")
