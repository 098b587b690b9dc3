"""ICSProvider: the single public entry point.

Wires the API client, catalog resolver, order orchestrator, poller and
resource controllers behind one object.

Usage::

    from ics_baremetal import ICSProvider
    from ics_baremetal.models import BareMetalServerSpec

    provider = ICSProvider.from_config()
    result = provider.servers.create(
        BareMetalServerSpec(
            instance_type="c1.small",
            location="NYC1",
            operating_system="Ubuntu 24.04",
        )
    )
"""

from __future__ import annotations

from pathlib import Path

from ics_baremetal.catalog.resolver import CatalogResolver
from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import ICSClient
from ics_baremetal.config import ProviderConfig, load_config
from ics_baremetal.ordering.orchestrator import OrderOrchestrator
from ics_baremetal.provisioning.poller import ProvisioningPoller
from ics_baremetal.resources.data_sources import (
    InventoryDataSource,
    OperatingSystemsDataSource,
)
from ics_baremetal.resources.server import BareMetalServerResource
from ics_baremetal.resources.ssh_key import SSHKeyResource


class ICSProvider:
    """Public API for ics-baremetal.

    Every component receives the same client handle; nothing reads
    global configuration after construction.
    """

    def __init__(
        self,
        client: BareMetalAPI,
        poll_interval: float | None = None,
        provisioning_timeout: float | None = None,
    ) -> None:
        self._client = client
        defaults = ProviderConfig()
        self.poller = ProvisioningPoller(
            client,
            interval=defaults.poll_interval if poll_interval is None else poll_interval,
            timeout=(
                defaults.provisioning_timeout
                if provisioning_timeout is None
                else provisioning_timeout
            ),
        )
        self.resolver = CatalogResolver(client)
        self.orchestrator = OrderOrchestrator(client)
        self.servers = BareMetalServerResource(
            client,
            resolver=self.resolver,
            orchestrator=self.orchestrator,
            poller=self.poller,
        )
        self.ssh_keys = SSHKeyResource(client)
        self.inventory = InventoryDataSource(client)
        self.operating_systems = OperatingSystemsDataSource(client)

    @property
    def client(self) -> BareMetalAPI:
        return self._client

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig | str | Path | None = None,
        *,
        api_token: str | None = None,
        base_url: str | None = None,
    ) -> ICSProvider:
        """Build a provider talking to the real API.

        *config* may be a loaded ProviderConfig, a path to ``ics.yaml``,
        or None to auto-discover. Explicit *api_token* / *base_url* win.

        Raises:
            ConfigError: No API token could be found.
        """
        if not isinstance(config, ProviderConfig):
            config = load_config(config)

        token = api_token or config.require_token()
        client = ICSClient(
            token,
            base_url=base_url or config.base_url,
            timeout=config.request_timeout,
        )
        return cls(
            client,
            poll_interval=config.poll_interval,
            provisioning_timeout=config.provisioning_timeout,
        )
