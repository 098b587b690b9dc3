"""Resource controllers and data sources."""

from ics_baremetal.resources.data_sources import (
    InventoryDataSource,
    InventorySnapshot,
    OperatingSystemList,
    OperatingSystemsDataSource,
)
from ics_baremetal.resources.errors import ResourceImportError, ResourceNotFoundError
from ics_baremetal.resources.server import BareMetalServerResource, replacement_fields
from ics_baremetal.resources.ssh_key import SSHKeyResource, SSHKeyRetrievalError

__all__ = [
    "BareMetalServerResource",
    "InventoryDataSource",
    "InventorySnapshot",
    "OperatingSystemList",
    "OperatingSystemsDataSource",
    "ResourceImportError",
    "ResourceNotFoundError",
    "SSHKeyResource",
    "SSHKeyRetrievalError",
    "replacement_fields",
]
