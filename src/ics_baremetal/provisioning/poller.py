"""Provisioning poller: waits for an ordered server to appear.

After an order is accepted the backend creates the server asynchronously.
The poller lists servers on a fixed interval until one carries the
order's service ID, the deadline passes, or the caller cancels.

A failed list request is not fatal: it is logged and retried on the
next tick, the same as "not visible yet". The two cases are counted
separately so a timeout can say which one kept happening.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ics_baremetal.client.protocol import BareMetalAPI
from ics_baremetal.client.transport import ICSError
from ics_baremetal.models import Server
from ics_baremetal.provisioning.retry import (
    CancellationToken,
    RetryCancelled,
    RetryTimeout,
    retry_with_fixed_delay,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_PROVISIONING_TIMEOUT = 30 * 60.0


class ProvisioningTimeout(Exception):
    """The server did not appear before the deadline.

    The order itself was placed. Refresh later rather than ordering again.
    """

    def __init__(
        self,
        service_id: int,
        timeout: float,
        attempts: int = 0,
        failed_queries: int = 0,
        last_error: Exception | None = None,
    ) -> None:
        self.service_id = service_id
        self.timeout = timeout
        self.attempts = attempts
        self.failed_queries = failed_queries
        self.last_error = last_error
        msg = (
            f"Server was ordered (service ID: {service_id}) but provisioning did "
            f"not complete within {_minutes(timeout)}. "
            f"Checked {attempts} time(s)"
        )
        if failed_queries:
            msg += f", {failed_queries} of which failed (last error: {last_error})"
        msg += (
            ".\n\nThe order was placed; do not order again. Check the provisioning "
            "status in the ICS control panel or refresh this server later."
        )
        super().__init__(msg)


class ProvisioningCancelled(Exception):
    """The wait was cancelled by the caller. The order itself was placed."""

    def __init__(self, service_id: int, attempts: int = 0) -> None:
        self.service_id = service_id
        self.attempts = attempts
        super().__init__(
            f"Stopped waiting for service ID {service_id} after {attempts} check(s)"
        )


def _minutes(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} minutes"
    return f"{seconds:.0f} seconds"


class ProvisioningPoller:
    """Polls the server list until an ordered service ID shows up.

    Lifecycle:
      WAITING -> query server list
              -> match on service_id: DONE, return the server
              -> no match / query failed: sleep ``interval``, retry
              -> deadline passed: raise ProvisioningTimeout
              -> cancelled before a query: raise ProvisioningCancelled
    """

    def __init__(
        self,
        client: BareMetalAPI,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_PROVISIONING_TIMEOUT,
        _clock: Callable[[], float] | None = None,
        _sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._client = client
        self._interval = interval
        self._timeout = timeout
        self._clock = _clock
        self._sleep = _sleep

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def timeout(self) -> float:
        return self._timeout

    def await_provisioning(
        self,
        service_id: int,
        cancel: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> Server:
        """Block until the server for *service_id* exists.

        Args:
            service_id: Service ID returned by the order.
            cancel: Optional token; checked before every query. A token
                also cuts the sleep short when no sleep was injected.
            timeout: Override the poller's deadline for this call.

        Raises:
            ProvisioningTimeout: The deadline passed with no match.
            ProvisioningCancelled: *cancel* was triggered.
        """
        timeout = self._timeout if timeout is None else timeout
        failed = 0
        last_error: Exception | None = None

        def check() -> Server | None:
            nonlocal failed, last_error
            logger.debug(
                "Checking server provisioning status for service_id=%d",
                service_id,
                extra={"service_id": service_id},
            )
            try:
                servers = self._client.get_servers()
            except ICSError as e:
                failed += 1
                last_error = e
                logger.warning(
                    "Server list query failed while waiting for service_id=%d: %s",
                    service_id,
                    e,
                    extra={"service_id": service_id},
                )
                return None
            for server in servers:
                if server.service_id == service_id:
                    return server
            logger.debug(
                "Service %d not visible yet (%d servers listed)",
                service_id,
                len(servers),
            )
            return None

        def on_retry(attempts: int, delay: float) -> None:
            logger.info(
                "Waiting for service_id=%d to be provisioned "
                "(attempt %d, next check in %.0fs)",
                service_id,
                attempts,
                delay,
                extra={"service_id": service_id},
            )

        sleep = self._sleep
        if sleep is None and cancel is not None:
            sleep = cancel.sleep

        try:
            outcome = retry_with_fixed_delay(
                check,
                interval=self._interval,
                timeout=timeout,
                is_cancelled=cancel.is_cancelled if cancel is not None else None,
                clock=self._clock,
                sleep=sleep,
                on_retry=on_retry,
            )
        except RetryCancelled as e:
            logger.warning(
                "Provisioning wait cancelled for service_id=%d",
                service_id,
                extra={"service_id": service_id},
            )
            raise ProvisioningCancelled(service_id, e.attempts) from None
        except RetryTimeout as e:
            raise ProvisioningTimeout(
                service_id,
                timeout,
                attempts=e.attempts,
                failed_queries=failed,
                last_error=last_error,
            ) from last_error

        server = outcome.value
        logger.info(
            "Server provisioned: id=%s service_id=%d after %d check(s)",
            server.id,
            service_id,
            outcome.attempts,
            extra={"service_id": service_id, "server_id": server.id},
        )
        return server
