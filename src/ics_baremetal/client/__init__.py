"""ICS API clients: the real HTTP client and an in-memory backend."""

from ics_baremetal.client.memory import InMemoryICS
from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import (
    DEFAULT_BASE_URL,
    ICSAPIError,
    ICSClient,
    ICSError,
    ICSResponseError,
    ICSTimeoutError,
    ICSTransportError,
)

__all__ = [
    "BareMetalAPI",
    "DEFAULT_BASE_URL",
    "ICSAPIError",
    "ICSClient",
    "ICSError",
    "ICSResponseError",
    "ICSTimeoutError",
    "ICSTransportError",
    "InMemoryICS",
]
