"""ics-baremetal: bare-metal servers and SSH keys on Ingenuity Cloud Services."""

__version__ = "0.4.0"

from ics_baremetal.catalog.resolver import (
    Alternatives,
    CatalogResolver,
    OperatingSystemNotFoundError,
    ResolutionError,
)
from ics_baremetal.client.memory import InMemoryICS
from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import (
    ICSAPIError,
    ICSClient,
    ICSError,
    ICSResponseError,
    ICSTimeoutError,
    ICSTransportError,
)
from ics_baremetal.config import ConfigError, ProviderConfig, find_config, load_config
from ics_baremetal.models import (
    BareMetalServerSpec,
    BareMetalServerState,
    Diagnostic,
    OperationResult,
    Severity,
    SSHKeySpec,
    SSHKeyState,
)
from ics_baremetal.ordering.orchestrator import (
    OrderOrchestrator,
    OrderSubmissionError,
    SSHKeyNotFoundError,
)
from ics_baremetal.provider import ICSProvider
from ics_baremetal.provisioning.poller import (
    ProvisioningCancelled,
    ProvisioningPoller,
    ProvisioningTimeout,
)
from ics_baremetal.provisioning.retry import CancellationToken
from ics_baremetal.resources.errors import ResourceImportError, ResourceNotFoundError
from ics_baremetal.resources.server import BareMetalServerResource
from ics_baremetal.resources.ssh_key import SSHKeyResource, SSHKeyRetrievalError

__all__ = [
    "Alternatives",
    "BareMetalAPI",
    "BareMetalServerResource",
    "BareMetalServerSpec",
    "BareMetalServerState",
    "CancellationToken",
    "CatalogResolver",
    "ConfigError",
    "Diagnostic",
    "find_config",
    "ICSAPIError",
    "ICSClient",
    "ICSError",
    "ICSProvider",
    "ICSResponseError",
    "ICSTimeoutError",
    "ICSTransportError",
    "InMemoryICS",
    "load_config",
    "OperatingSystemNotFoundError",
    "OperationResult",
    "OrderOrchestrator",
    "OrderSubmissionError",
    "ProviderConfig",
    "ProvisioningCancelled",
    "ProvisioningPoller",
    "ProvisioningTimeout",
    "ResolutionError",
    "ResourceImportError",
    "ResourceNotFoundError",
    "Severity",
    "SSHKeyNotFoundError",
    "SSHKeyResource",
    "SSHKeyRetrievalError",
    "SSHKeySpec",
    "SSHKeyState",
    "__version__",
]
