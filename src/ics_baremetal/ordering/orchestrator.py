"""Order orchestrator: turns a validated selection into a placed order.

The orchestrator:
1. Resolves every SSH key label to its numeric ID (all or nothing)
2. Builds a single-unit, hourly-billed order request
3. Submits it exactly once
4. Returns the first service ID from the order result

Hourly billing is the only mode ever selected: it is the one mode the
backend lets us cancel on demand, which destroy relies on.
"""

from __future__ import annotations

import logging

from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import (
    ICSAPIError,
    ICSError,
    ICSTimeoutError,
    ICSTransportError,
)
from ics_baremetal.models import (
    InventoryItem,
    OperatingSystem,
    ServerOrderRequest,
)

logger = logging.getLogger(__name__)


class SSHKeyNotFoundError(Exception):
    """Raised when an SSH key label does not exist on the account."""

    def __init__(self, label: str, available: list[str] | None = None) -> None:
        self.label = label
        self.available = available or []
        msg = (
            f"SSH key with label '{label}' not found. "
            f"Please ensure the SSH key exists before ordering the server."
        )
        if self.available:
            msg += f"\n\nExisting SSH key labels: {', '.join(self.available)}"
        super().__init__(msg)


class OrderSubmissionError(Exception):
    """Raised when an order could not be placed, or its result is unusable.

    ``kind`` is one of:
    - ``transport``: the request never reached the API
    - ``timeout``: the request timed out; the order may still have gone through
    - ``status``: the API rejected the order
    - ``empty``: the API accepted the request but returned no service IDs
    - ``malformed``: the success response could not be decoded
    """

    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    STATUS = "status"
    EMPTY = "empty"
    MALFORMED = "malformed"

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(message)

    @property
    def may_have_succeeded(self) -> bool:
        return self.kind == self.TIMEOUT


def build_order_request(
    sku: InventoryItem,
    operating_system: OperatingSystem,
    hostname: str | None = None,
    ssh_key_ids: list[int] | None = None,
) -> ServerOrderRequest:
    """Build the order payload. Quantity is 1 and billing is hourly, always."""
    return ServerOrderRequest(
        sku_product_name=sku.sku_product_name,
        quantity=1,
        location_code=sku.location_code,
        operating_system_product_code=operating_system.product_code,
        hostname=hostname or None,
        bill_hourly=True,
        ssh_key_ids=ssh_key_ids or None,
    )


class OrderOrchestrator:
    """Places single-server orders against the ICS API."""

    def __init__(self, client: BareMetalAPI) -> None:
        self._client = client

    def resolve_ssh_key_ids(self, labels: list[str]) -> list[int]:
        """Map SSH key labels to IDs using one snapshot of the key list.

        Raises:
            SSHKeyNotFoundError: Any label is missing. No partial result
                is returned.
        """
        if not labels:
            return []

        keys = self._client.get_ssh_keys()
        by_label: dict[str, int] = {}
        for key in keys:
            by_label.setdefault(key.label, key.id)

        ids: list[int] = []
        for label in labels:
            if label not in by_label:
                raise SSHKeyNotFoundError(label, sorted(by_label))
            ids.append(by_label[label])

        logger.info(
            "Adding SSH keys to server order: labels=%s ids=%s",
            labels,
            ids,
        )
        return ids

    def submit(
        self,
        sku: InventoryItem,
        operating_system: OperatingSystem,
        hostname: str | None = None,
        ssh_key_labels: list[str] | None = None,
    ) -> int:
        """Place the order and return the first service ID.

        Raises:
            SSHKeyNotFoundError: A label did not resolve (nothing was ordered).
            OrderSubmissionError: The order failed or returned no service ID.
        """
        ssh_key_ids = self.resolve_ssh_key_ids(ssh_key_labels or [])
        request = build_order_request(sku, operating_system, hostname, ssh_key_ids)

        logger.info(
            "Submitting server order: %s in %s with %s",
            request.sku_product_name,
            request.location_code,
            request.operating_system_product_code,
            extra={
                "instance_type": request.sku_product_name,
                "location": request.location_code,
                "sku_id": sku.sku_id,
            },
        )

        try:
            result = self._client.order_server(request)
        except ICSTimeoutError as e:
            raise OrderSubmissionError(
                OrderSubmissionError.TIMEOUT,
                "The server order request timed out, but the order may have been "
                "successful. Check the ICS control panel for pending orders, or "
                f"refresh later to see whether a server was created. Error: {e}",
            ) from e
        except ICSTransportError as e:
            raise OrderSubmissionError(
                OrderSubmissionError.TRANSPORT, f"Unable to reach the ICS API: {e}",
            ) from e
        except ICSAPIError as e:
            raise OrderSubmissionError(
                OrderSubmissionError.STATUS, f"Unable to order server: {e}",
            ) from e
        except ICSError as e:
            raise OrderSubmissionError(
                OrderSubmissionError.MALFORMED,
                f"Unable to parse the server order response: {e}",
            ) from e

        if not result.order_service_ids:
            raise OrderSubmissionError(
                OrderSubmissionError.EMPTY,
                f"No service IDs returned from server order. Response: {result!r}",
            )

        service_id = result.order_service_ids[0]
        logger.info(
            "Server ordered: service_id=%d",
            service_id,
            extra={"service_id": service_id},
        )
        return service_id
