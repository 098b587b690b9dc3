"""Tests for fixed-delay retry and cancellation tokens."""

from __future__ import annotations

import threading

import pytest

from ics_baremetal.provisioning.retry import (
    CancellationToken,
    RetryCancelled,
    RetryTimeout,
    retry_with_fixed_delay,
)

# --- Mock clock for deterministic tests ---


class MockClock:
    """A controllable clock; ``sleep`` advances it instead of blocking."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += seconds


def _sequence(*values):
    it = iter(values)
    return lambda: next(it)


class TestRetryWithFixedDelay:
    def test_immediate_success(self):
        clock = MockClock()
        outcome = retry_with_fixed_delay(
            lambda: "ok", interval=30, timeout=1800, clock=clock, sleep=clock.sleep,
        )
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert clock.sleeps == []

    def test_retries_until_value(self):
        clock = MockClock()
        outcome = retry_with_fixed_delay(
            _sequence(None, None, "ok"),
            interval=30, timeout=1800, clock=clock, sleep=clock.sleep,
        )
        assert outcome.value == "ok"
        assert outcome.attempts == 3
        assert clock.sleeps == [30, 30]
        assert outcome.elapsed == 60

    def test_falsy_values_count_as_success(self):
        clock = MockClock()
        outcome = retry_with_fixed_delay(
            lambda: 0, interval=1, timeout=10, clock=clock, sleep=clock.sleep,
        )
        assert outcome.value == 0

    def test_timeout(self):
        clock = MockClock()
        with pytest.raises(RetryTimeout) as exc_info:
            retry_with_fixed_delay(
                lambda: None, interval=30, timeout=100, clock=clock, sleep=clock.sleep,
            )
        # 0, 30, 60, 90 then a final 10s sleep lands on the deadline.
        assert exc_info.value.attempts == 4
        assert clock.sleeps == [30, 30, 30, 10]

    def test_zero_timeout_makes_one_attempt(self):
        clock = MockClock()
        calls = []
        with pytest.raises(RetryTimeout) as exc_info:
            retry_with_fixed_delay(
                lambda: calls.append(1), interval=30, timeout=0,
                clock=clock, sleep=clock.sleep,
            )
        assert len(calls) == 1
        assert exc_info.value.attempts == 1
        assert clock.sleeps == []

    def test_cancelled_before_first_attempt(self):
        calls = []
        with pytest.raises(RetryCancelled) as exc_info:
            retry_with_fixed_delay(
                lambda: calls.append(1), interval=1, timeout=10,
                is_cancelled=lambda: True,
            )
        assert calls == []
        assert exc_info.value.attempts == 0

    def test_cancelled_during_sleep(self):
        clock = MockClock()
        token = CancellationToken()

        def sleep(seconds: float) -> None:
            clock.sleep(seconds)
            token.cancel()

        with pytest.raises(RetryCancelled) as exc_info:
            retry_with_fixed_delay(
                lambda: None, interval=5, timeout=100,
                is_cancelled=token.is_cancelled, clock=clock, sleep=sleep,
            )
        assert exc_info.value.attempts == 1

    def test_on_retry_reports_attempt_and_delay(self):
        clock = MockClock()
        seen = []
        retry_with_fixed_delay(
            _sequence(None, "ok"), interval=7, timeout=100,
            clock=clock, sleep=clock.sleep,
            on_retry=lambda n, d: seen.append((n, d)),
        )
        assert seen == [(1, 7)]

    def test_exceptions_propagate(self):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            retry_with_fixed_delay(boom, interval=1, timeout=10)

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            retry_with_fixed_delay(lambda: 1, interval=-1, timeout=10)


class TestCancellationToken:
    def test_starts_uncancelled(self):
        assert not CancellationToken().is_cancelled()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled()

    def test_cancel_wakes_sleeper(self):
        token = CancellationToken()
        done = threading.Event()

        def waiter():
            token.sleep(30)
            done.set()

        t = threading.Thread(target=waiter)
        t.start()
        token.cancel()
        t.join(timeout=5)
        assert done.is_set()
