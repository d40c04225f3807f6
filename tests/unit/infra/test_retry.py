"""Tests for the bounded readiness poll."""

import pytest

from ak3s.errors import ReadinessTimeout
from ak3s.infra.retry import Deadline, RetryPolicy, poll_command, poll_until
from ak3s.infra.shell_commands import CommandResult


class FakeClock:
    """Monotonic clock advanced by the recorded sleeps."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def _probe_ready_on(k: int):
    calls = {"n": 0}

    def probe() -> bool:
        calls["n"] += 1
        return calls["n"] >= k

    return probe, calls


class TestPollUntil:
    @pytest.mark.parametrize("k", [1, 2, 5])
    def test_success_on_kth_attempt(self, k: int) -> None:
        """A probe ready on attempt k is called exactly k times."""
        probe, calls = _probe_ready_on(k)
        slept: list[float] = []

        outcome = poll_until(
            probe,
            RetryPolicy(max_attempts=5, delay=10),
            description="thing",
            sleep=slept.append,
        )

        assert calls["n"] == k
        assert outcome.attempts == k
        assert outcome.elapsed == pytest.approx(10.0 * (k - 1))
        assert slept == [10.0] * (k - 1)

    def test_never_ready_times_out_after_max_attempts(self) -> None:
        probe, calls = _probe_ready_on(100)

        with pytest.raises(ReadinessTimeout) as excinfo:
            poll_until(
                probe,
                RetryPolicy(max_attempts=4, delay=2),
                description="cluster ready",
                sleep=lambda _s: None,
            )

        assert calls["n"] == 4
        assert excinfo.value.attempts == 4
        assert excinfo.value.elapsed == pytest.approx(6.0)
        assert "cluster ready" in excinfo.value.message

    def test_single_attempt_policy_does_not_sleep(self) -> None:
        slept: list[float] = []

        with pytest.raises(ReadinessTimeout):
            poll_until(
                lambda: False,
                RetryPolicy(max_attempts=1, delay=5),
                description="x",
                sleep=slept.append,
            )

        assert slept == []

    def test_backoff_grows_delay_up_to_max(self) -> None:
        slept: list[float] = []

        with pytest.raises(ReadinessTimeout):
            poll_until(
                lambda: False,
                RetryPolicy(max_attempts=5, delay=1, backoff=2, max_delay=4),
                description="x",
                sleep=slept.append,
            )

        assert slept == [1.0, 2.0, 4.0, 4.0]

    def test_deadline_stops_before_max_attempts(self) -> None:
        clock = FakeClock()
        deadline = Deadline(25, clock=clock)
        probe, calls = _probe_ready_on(100)

        with pytest.raises(ReadinessTimeout) as excinfo:
            poll_until(
                probe,
                RetryPolicy(max_attempts=30, delay=10),
                description="x",
                deadline=deadline,
                sleep=clock.sleep,
            )

        # Attempts at t=0, 10, 20 and 25; the third wait is clamped to 5s
        assert calls["n"] == 4
        assert clock.now == pytest.approx(25.0)
        assert "deadline" in excinfo.value.message

    def test_probe_exception_propagates(self) -> None:
        def probe() -> bool:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            poll_until(
                probe, RetryPolicy(max_attempts=3, delay=0), description="x"
            )

    def test_expired_deadline_fails_without_probing(self) -> None:
        clock = FakeClock()
        deadline = Deadline(5, clock=clock)
        clock.now = 5
        probe, calls = _probe_ready_on(1)

        with pytest.raises(ReadinessTimeout) as excinfo:
            poll_until(
                probe,
                RetryPolicy(max_attempts=3, delay=1),
                description="x",
                deadline=deadline,
                sleep=clock.sleep,
            )

        assert calls["n"] == 0
        assert excinfo.value.attempts == 0


class TestPollCommand:
    def test_timeout_carries_last_output(self) -> None:
        results = iter(
            [
                CommandResult(success=False, stderr="connection refused"),
                CommandResult(success=False, stderr="TLS handshake timeout"),
            ]
        )

        with pytest.raises(ReadinessTimeout) as excinfo:
            poll_command(
                lambda: next(results),
                RetryPolicy(max_attempts=2, delay=0),
                description="api",
                sleep=lambda _s: None,
            )

        assert excinfo.value.details == "stderr:\nTLS handshake timeout"

    def test_custom_ready_check(self) -> None:
        results = iter(
            [
                CommandResult(success=True, stdout="Pending"),
                CommandResult(success=True, stdout="Running"),
            ]
        )

        outcome = poll_command(
            lambda: next(results),
            RetryPolicy(max_attempts=3, delay=0),
            description="pods",
            ready=lambda result: "Running" in result.stdout,
            sleep=lambda _s: None,
        )

        assert outcome.attempts == 2


class TestDeadline:
    def test_optional_none(self) -> None:
        assert Deadline.optional(None) is None

    def test_remaining_never_negative(self) -> None:
        clock = FakeClock()
        deadline = Deadline(5, clock=clock)

        clock.now = 7
        assert deadline.remaining() == 0
        assert deadline.expired()


class TestRetryPolicy:
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_defaults(self) -> None:
        policy = RetryPolicy()

        assert policy.max_attempts == 30
        assert policy.delay == 10.0
        assert policy.backoff == 1.0
