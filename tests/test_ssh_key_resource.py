"""Tests for the SSH key resource."""

from __future__ import annotations

import pytest

from ics_baremetal.client.memory import InMemoryICS
from ics_baremetal.client.transport import ICSAPIError
from ics_baremetal.models import AssignedServer, SSHKeyCreateResult, SSHKeySpec
from ics_baremetal.resources.errors import ResourceNotFoundError
from ics_baremetal.resources.ssh_key import SSHKeyResource, SSHKeyRetrievalError

PUBLIC_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIExample user@laptop"


class TestCreate:
    def test_create_then_lookup(self, backend: InMemoryICS):
        result = SSHKeyResource(backend).create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY))

        state = result.state
        assert state.id == 1
        assert state.label == "laptop"
        assert state.public_key == PUBLIC_KEY
        assert state.created_at > 0
        assert backend.calls_to("get_ssh_keys") == [()]

    def test_create_error_propagates(self, backend: InMemoryICS):
        backend.fail_next("create_ssh_key", ICSAPIError(409, "duplicate label"))
        with pytest.raises(ICSAPIError):
            SSHKeyResource(backend).create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY))

    def test_created_but_not_found(self, backend: InMemoryICS, monkeypatch):
        monkeypatch.setattr(backend, "create_ssh_key", lambda req: SSHKeyCreateResult(id=9))
        with pytest.raises(SSHKeyRetrievalError, match="unable to retrieve details"):
            SSHKeyResource(backend).create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY))

    def test_spec_requires_label_and_key(self):
        with pytest.raises(ValueError):
            SSHKeySpec(label="", public_key=PUBLIC_KEY)
        with pytest.raises(ValueError):
            SSHKeySpec(label="x", public_key="")


class TestRead:
    def test_refreshes_assigned_servers(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        state = resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)).state
        backend.ssh_keys[0].assigned_servers.append(
            AssignedServer(server_id="srv-1", service_id=500, hostname="web-1")
        )

        refreshed = resource.read(state).state
        assert [s.hostname for s in refreshed.assigned_servers] == ["web-1"]

    def test_missing(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        state = resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)).state
        backend.ssh_keys.clear()
        with pytest.raises(ResourceNotFoundError):
            resource.read(state)


class TestUpdate:
    def test_no_change_no_warning(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        spec = SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)
        state = resource.create(spec).state
        assert resource.update(spec, state).diagnostics == []

    def test_any_change_warns(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        state = resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)).state

        result = resource.update(SSHKeySpec(label="desktop", public_key=PUBLIC_KEY), state)

        assert [w.summary for w in result.warnings] == ["Update Not Supported"]
        assert result.state.label == "laptop"
        assert len(backend.calls_to("create_ssh_key")) == 1


class TestDeleteAndImport:
    def test_delete_by_id(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        state = resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)).state
        resource.delete(state)
        assert backend.calls_to("delete_ssh_key") == [(state.id,)]
        assert backend.ssh_keys == []

    def test_delete_missing_propagates(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        state = resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY)).state
        backend.ssh_keys.clear()
        with pytest.raises(ICSAPIError):
            resource.delete(state)

    def test_import_by_label(self, backend: InMemoryICS):
        resource = SSHKeyResource(backend)
        resource.create(SSHKeySpec(label="laptop", public_key=PUBLIC_KEY))
        state = resource.import_state("laptop").state
        assert state.id == 1
        assert state.public_key == PUBLIC_KEY

    def test_import_missing(self, backend: InMemoryICS):
        with pytest.raises(ResourceNotFoundError, match="'ghost' not found"):
            SSHKeyResource(backend).import_state("ghost")
