"""SSH key resource.

Keys are identified by label everywhere a user sees them (read, import),
and by numeric ID only for deletion. Label and key material are
immutable: any change is a replacement.
"""

from __future__ import annotations

import logging

from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.models import (
    OperationResult,
    SSHKey,
    SSHKeyCreateRequest,
    SSHKeySpec,
    SSHKeyState,
)
from ics_baremetal.resources.errors import ResourceNotFoundError

logger = logging.getLogger(__name__)


class SSHKeyRetrievalError(Exception):
    """The key was created but could not be found by label afterwards."""


def state_from_key(key: SSHKey) -> SSHKeyState:
    return SSHKeyState(
        id=key.id,
        label=key.label,
        public_key=key.key,
        created_at=key.created_at,
        updated_at=key.updated_at,
        assigned_servers=list(key.assigned_servers),
    )


class SSHKeyResource:
    """Create / read / update / delete / import for SSH keys."""

    def __init__(self, client: BareMetalAPI) -> None:
        self._client = client

    def create(self, spec: SSHKeySpec) -> OperationResult[SSHKeyState]:
        """Create the key, then look it up by label for the generated fields.

        Duplicate labels are rejected (or not) by the API; nothing is
        checked locally.

        Raises:
            ICSError: The create call failed.
            SSHKeyRetrievalError: Created, but the label lookup found nothing.
        """
        logger.info("Creating SSH key: label=%s", spec.label, extra={"label": spec.label})
        self._client.create_ssh_key(
            SSHKeyCreateRequest(label=spec.label, public_key=spec.public_key)
        )

        key = self._client.get_ssh_key_by_label(spec.label)
        if key is None:
            raise SSHKeyRetrievalError(
                f"SSH key created but unable to retrieve details: "
                f"no key with label '{spec.label}'"
            )

        logger.info(
            "SSH key created successfully: id=%d label=%s",
            key.id,
            key.label,
            extra={"label": key.label},
        )
        return OperationResult(state=state_from_key(key))

    def read(self, state: SSHKeyState) -> OperationResult[SSHKeyState]:
        """Refresh *state* by label.

        Raises:
            ResourceNotFoundError: No key has this label anymore.
        """
        key = self._client.get_ssh_key_by_label(state.label)
        if key is None:
            raise ResourceNotFoundError("SSH key with label", state.label)
        return OperationResult(state=state_from_key(key))

    def update(self, plan: SSHKeySpec, state: SSHKeyState) -> OperationResult[SSHKeyState]:
        """SSH keys cannot change in place. Any difference is a replacement."""
        result: OperationResult[SSHKeyState] = OperationResult(state=state)
        if plan.label != state.label or plan.public_key != state.public_key:
            result.warn(
                "Update Not Supported",
                "SSH key changes require replacement. "
                "Please destroy and recreate the resource.",
            )
        return result

    def delete(self, state: SSHKeyState) -> None:
        self._client.delete_ssh_key(state.id)
        logger.info(
            "SSH key deleted successfully: id=%d",
            state.id,
            extra={"label": state.label},
        )

    def import_state(self, label: str) -> OperationResult[SSHKeyState]:
        """Adopt an existing key by label (not by numeric ID).

        Raises:
            ResourceNotFoundError: No key has this label.
        """
        key = self._client.get_ssh_key_by_label(label)
        if key is None:
            raise ResourceNotFoundError("SSH key with label", label)
        return OperationResult(state=state_from_key(key))
