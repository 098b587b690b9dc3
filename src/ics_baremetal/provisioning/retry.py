"""Fixed-delay retry with a wall-clock deadline and cancellation.

Usage::

    token = CancellationToken()
    result = retry_with_fixed_delay(
        lambda: client.get_server_by_service_id(500),
        interval=30,
        timeout=1800,
        is_cancelled=token.is_cancelled,
    )

Each round checks cancellation, runs one attempt, stops on a non-None
result, then sleeps for ``interval`` (capped at the time left before the
deadline). Clock and sleep are injectable so the loop can run against a
simulated clock in tests.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class RetryCancelled(Exception):
    """Raised when cancellation is observed before an attempt."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Cancelled after {attempts} attempt(s)")


class RetryTimeout(Exception):
    """Raised when the deadline passes without a successful attempt."""

    def __init__(self, attempts: int, elapsed: float) -> None:
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(f"Gave up after {attempts} attempt(s) in {elapsed:.0f}s")


class CancellationToken:
    """Thread-safe cancel flag that can also interrupt a sleeping waiter."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def sleep(self, seconds: float) -> None:
        """Sleep up to *seconds*, returning early if cancelled."""
        self._event.wait(seconds)


@dataclass
class RetryOutcome(Generic[T]):
    """A successful result and how many attempts it took."""

    value: T
    attempts: int
    elapsed: float


def retry_with_fixed_delay(
    attempt: Callable[[], T | None],
    *,
    interval: float,
    timeout: float,
    is_cancelled: Callable[[], bool] | None = None,
    clock: Callable[[], float] | None = None,
    sleep: Callable[[float], None] | None = None,
    on_retry: Callable[[int, float], None] | None = None,
) -> RetryOutcome[T]:
    """Call *attempt* until it returns non-None, the deadline passes, or cancel.

    An attempt is always made at least once unless cancellation is already
    set, even when *timeout* is zero. Exceptions from *attempt* propagate;
    callers that want to retry on errors catch them inside *attempt*.

    Raises:
        RetryCancelled: *is_cancelled* returned True before an attempt.
        RetryTimeout: The deadline elapsed with no result.
    """
    if interval < 0:
        raise ValueError("interval must be >= 0")
    clock = clock or time.monotonic
    sleep = sleep or time.sleep
    is_cancelled = is_cancelled or (lambda: False)

    start = clock()
    deadline = start + timeout
    attempts = 0

    while True:
        if is_cancelled():
            raise RetryCancelled(attempts)

        attempts += 1
        value = attempt()
        if value is not None:
            return RetryOutcome(value=value, attempts=attempts, elapsed=clock() - start)

        remaining = deadline - clock()
        if remaining <= 0:
            raise RetryTimeout(attempts, clock() - start)

        delay = min(interval, remaining)
        if on_retry is not None:
            on_retry(attempts, delay)
        sleep(delay)

        # A cancel that arrived during the sleep wins over the deadline.
        if is_cancelled():
            raise RetryCancelled(attempts)
        if clock() >= deadline:
            raise RetryTimeout(attempts, clock() - start)
