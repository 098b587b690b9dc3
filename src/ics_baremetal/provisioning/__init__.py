"""Provisioning wait: the fixed-delay retry loop and the server poller."""

from ics_baremetal.provisioning.poller import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROVISIONING_TIMEOUT,
    ProvisioningCancelled,
    ProvisioningPoller,
    ProvisioningTimeout,
)
from ics_baremetal.provisioning.retry import (
    CancellationToken,
    RetryCancelled,
    RetryOutcome,
    RetryTimeout,
    retry_with_fixed_delay,
)

__all__ = [
    "CancellationToken",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_PROVISIONING_TIMEOUT",
    "ProvisioningCancelled",
    "ProvisioningPoller",
    "ProvisioningTimeout",
    "RetryCancelled",
    "RetryOutcome",
    "RetryTimeout",
    "retry_with_fixed_delay",
]
