"""Bare-metal server resource: the full server lifecycle.

Create:
  1. Validate instance type + location against inventory
  2. Validate the operating system for that pair
  3. Resolve SSH key labels and place the order
  4. Wait for the server to appear
  5. Apply the friendly name (a failure here is only a warning)

Read refreshes computed fields by service ID. Update renames in place and
flags every other change as needing replacement. Delete cancels the
server, which always works because every order is billed hourly.
"""

from __future__ import annotations

import logging

from ics_baremetal.catalog.resolver import CatalogResolver
from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import ICSError
from ics_baremetal.models import (
    BareMetalServerSpec,
    BareMetalServerState,
    OperationResult,
    Server,
)
from ics_baremetal.ordering.orchestrator import OrderOrchestrator
from ics_baremetal.provisioning.poller import ProvisioningPoller
from ics_baremetal.provisioning.retry import CancellationToken
from ics_baremetal.resources.errors import ResourceImportError, ResourceNotFoundError

logger = logging.getLogger(__name__)

# Declared fields that can only change by destroying and recreating.
REPLACEMENT_FIELDS = (
    "instance_type",
    "location",
    "operating_system",
    "hostname",
    "ssh_key_labels",
)


# Required fields an import cannot recover. Empty in state means "unknown".
IMPORT_UNKNOWN_FIELDS = ("instance_type", "location", "operating_system")


def replacement_fields(plan: BareMetalServerSpec, state: BareMetalServerSpec) -> list[str]:
    """Return the declared fields that differ and force replacement.

    An undeclared hostname in *plan* never differs: the backend assigns
    one and the state carries it. Required fields left empty by an import
    are adopted from *plan* instead of compared.
    """
    changed = []
    for name in REPLACEMENT_FIELDS:
        planned, current = getattr(plan, name), getattr(state, name)
        if name == "hostname" and planned is None:
            continue
        if name in IMPORT_UNKNOWN_FIELDS and not current:
            continue
        if planned != current:
            changed.append(name)
    return changed


def adopted_fields(plan: BareMetalServerSpec, state: BareMetalServerSpec) -> dict[str, str]:
    """Declared values to take over from *plan* for fields an import left empty."""
    return {
        name: getattr(plan, name)
        for name in IMPORT_UNKNOWN_FIELDS
        if not getattr(state, name)
    }


def apply_server(state: BareMetalServerState, server: Server) -> BareMetalServerState:
    """Copy backend-computed fields from *server* onto *state*.

    Hostname and friendly name are only filled in when not declared.
    """
    updates = {
        "id": server.id,
        "service_id": server.service_id,
        "public_ip": server.public_ip,
        "root_password": server.root_password,
        "service_description": server.service_description,
        "plan_id": server.plan_id,
        "datacenter_name": server.datacenter_name,
        "datacenter_id": server.datacenter_id,
        "location_id": server.location_id,
        "server_type": server.server_type,
    }
    if state.hostname is None and server.hostname:
        updates["hostname"] = server.hostname
    if state.friendly_name is None and server.friendly_name:
        updates["friendly_name"] = server.friendly_name
    return state.model_copy(update=updates)


class BareMetalServerResource:
    """Create / read / update / delete / import for bare-metal servers."""

    def __init__(
        self,
        client: BareMetalAPI,
        resolver: CatalogResolver | None = None,
        orchestrator: OrderOrchestrator | None = None,
        poller: ProvisioningPoller | None = None,
    ) -> None:
        self._client = client
        self._resolver = resolver or CatalogResolver(client)
        self._orchestrator = orchestrator or OrderOrchestrator(client)
        self._poller = poller or ProvisioningPoller(client)

    def create(
        self,
        spec: BareMetalServerSpec,
        cancel: CancellationToken | None = None,
    ) -> OperationResult[BareMetalServerState]:
        """Validate, order, wait for and optionally rename a new server.

        Every validation happens before the order is submitted, so a
        failure up to and including SSH key resolution orders nothing.

        Raises:
            ResolutionError: Instance type / location is not orderable.
            OperatingSystemNotFoundError: The OS is not offered there.
            SSHKeyNotFoundError: An SSH key label does not exist.
            OrderSubmissionError: The order failed.
            ProvisioningTimeout: Ordered, but the server never appeared.
            ProvisioningCancelled: Ordered, but the wait was cancelled.
        """
        sku = self._resolver.resolve(spec.instance_type, spec.location)
        operating_system = self._resolver.resolve_operating_system(
            spec.instance_type, spec.location, spec.operating_system,
        )

        logger.info(
            "All validations passed, proceeding with server order",
            extra={
                "instance_type": spec.instance_type,
                "location": spec.location,
                "sku_id": sku.sku_id,
                "os_product_code": operating_system.product_code,
            },
        )

        service_id = self._orchestrator.submit(
            sku,
            operating_system,
            hostname=spec.hostname,
            ssh_key_labels=spec.ssh_key_labels,
        )
        server = self._poller.await_provisioning(service_id, cancel=cancel)

        result: OperationResult[BareMetalServerState] = OperationResult()
        if spec.friendly_name is not None:
            try:
                self._client.update_server_friendly_name(server.id, spec.friendly_name)
            except ICSError as e:
                logger.warning(
                    "Friendly name update failed for server %s: %s",
                    server.id,
                    e,
                    extra={"server_id": server.id},
                )
                result.warn(
                    "Friendly Name Update Failed",
                    f"Server was provisioned successfully but failed to set "
                    f"friendly name: {e}",
                )

        state = apply_server(BareMetalServerState(**spec.model_dump()), server)
        logger.info(
            "Server provisioned successfully: id=%s service_id=%d public_ip=%s",
            state.id,
            state.service_id,
            state.public_ip,
            extra={"server_id": state.id, "service_id": state.service_id},
        )
        result.state = state
        return result

    def read(self, state: BareMetalServerState) -> OperationResult[BareMetalServerState]:
        """Refresh *state* from the server list, keyed by service ID.

        Raises:
            ResourceNotFoundError: No server has this service ID anymore.
        """
        server = self._client.get_server_by_service_id(state.service_id)
        if server is None:
            raise ResourceNotFoundError("Server with service ID", state.service_id)
        return OperationResult(state=apply_server(state, server))

    def update(
        self,
        plan: BareMetalServerSpec,
        state: BareMetalServerState,
    ) -> OperationResult[BareMetalServerState]:
        """Apply a friendly-name change in place; flag everything else.

        Fields that need replacement keep their current values in the
        returned state and produce an "Update Requires Replacement" warning.

        Raises:
            ICSError: The in-place rename failed.
        """
        result: OperationResult[BareMetalServerState] = OperationResult()
        new_state = state

        if plan.friendly_name is not None and plan.friendly_name != state.friendly_name:
            logger.info(
                "Updating server friendly name: id=%s",
                state.id,
                extra={"server_id": state.id},
            )
            self._client.update_server_friendly_name(state.id, plan.friendly_name)
            new_state = new_state.model_copy(update={"friendly_name": plan.friendly_name})

        adopted = adopted_fields(plan, state)
        if adopted:
            new_state = new_state.model_copy(update=adopted)

        changed = replacement_fields(plan, state)
        if changed:
            logger.warning(
                "Server %s has changes that require replacement: %s",
                state.id,
                ", ".join(changed),
                extra={"server_id": state.id},
            )
            result.warn(
                "Update Requires Replacement",
                f"Changes to {', '.join(changed)} require resource replacement. "
                f"Please destroy and recreate the resource.",
            )

        result.state = new_state
        return result

    def delete(self, state: BareMetalServerState) -> None:
        """Cancel the server. Errors propagate."""
        self._client.cancel_server(state.id)
        logger.info(
            "Server canceled successfully: id=%s",
            state.id,
            extra={"server_id": state.id, "service_id": state.service_id},
        )

    def import_state(self, import_id: str) -> OperationResult[BareMetalServerState]:
        """Adopt an existing server by its numeric service ID.

        The server list does not report the declared instance type, location
        or operating system, so they are left empty and adopted from the plan
        on the next update. SSH key labels cannot be recovered either; a plan
        that declares them is reported as needing replacement.

        Raises:
            ResourceImportError: *import_id* is not an integer.
            ResourceNotFoundError: No server has this service ID.
        """
        try:
            service_id = int(import_id.strip())
        except ValueError:
            raise ResourceImportError(f"Invalid service ID format: {import_id}") from None

        server = self._client.get_server_by_service_id(service_id)
        if server is None:
            raise ResourceNotFoundError("Server with service ID", service_id)

        state = BareMetalServerState.model_construct(
            instance_type="",
            location="",
            operating_system="",
            hostname=None,
            friendly_name=None,
            ssh_key_labels=None,
        )
        return OperationResult(state=apply_server(state, server))
