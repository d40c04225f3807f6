"""Bounded readiness polling.

A single primitive waits for an eventually-consistent external condition:
the master answering ``kubectl get nodes``, an add-on's pods reaching the
``Running`` phase, or a joined worker reporting ``Ready``. The wait is
bounded by an attempt count and, optionally, by an overall deadline shared
by every wait of one operation.

Example:
    policy = RetryPolicy(max_attempts=30, delay=10)
    outcome = poll_until(probe, policy, description="cluster ready")
    print(outcome.attempts, outcome.elapsed)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger
from pydantic import BaseModel, Field
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from ak3s.errors import ReadinessTimeout, format_command_output
from ak3s.infra.shell_commands.types import CommandResult


class RetryPolicy(BaseModel):
    """Attempt count and inter-attempt delay of a bounded poll.

    With ``backoff`` at 1.0 the delay is fixed. Larger values grow the
    delay geometrically, capped at ``max_delay``.
    """

    max_attempts: int = Field(default=30, ge=1)
    delay: float = Field(default=10.0, ge=0)
    backoff: float = Field(default=1.0, ge=1.0)
    max_delay: float | None = Field(default=None, ge=0)


class Deadline:
    """Absolute wall-clock bound shared by consecutive waits."""

    def __init__(
        self, seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._clock = clock
        self._expires_at = clock() + seconds

    @classmethod
    def optional(
        cls, seconds: float | None, clock: Callable[[], float] = time.monotonic
    ) -> Deadline | None:
        return cls(seconds, clock) if seconds is not None else None

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0


@dataclass
class PollOutcome:
    """How a successful poll went."""

    attempts: int
    elapsed: float


def poll_until(
    probe: Callable[[], bool],
    policy: RetryPolicy,
    *,
    description: str,
    deadline: Deadline | None = None,
    sleep: Callable[[float], None] = time.sleep,
    details: Callable[[], str | None] | None = None,
) -> PollOutcome:
    """Call ``probe`` until it returns True.

    Args:
        probe: Readiness check; returns True once the condition holds
        policy: Attempt count and delay between attempts
        description: What is being waited for, used in logs and errors
        deadline: Optional overall bound. An already expired deadline fails
            without probing; otherwise no sleep extends past it, so the last
            attempt runs at the latest when it expires
        sleep: Sleep function (injectable for tests)
        details: Returns the captured output of the last attempt, attached
            to the timeout error

    Returns:
        PollOutcome with the number of probe calls and the cumulative delay

    Raises:
        ReadinessTimeout: If attempts or the deadline are exhausted
    """
    if deadline is not None and deadline.expired():
        raise ReadinessTimeout(
            f"Timed out waiting for {description}: deadline exceeded"
        )

    attempts = 0
    elapsed = 0.0

    def _probe() -> bool:
        nonlocal attempts
        attempts += 1
        ready = probe()
        if not ready:
            logger.debug(
                f"{description}: not ready (attempt {attempts}/{policy.max_attempts})"
            )
        return ready

    def _sleep(seconds: float) -> None:
        nonlocal elapsed
        elapsed += seconds
        sleep(seconds)

    if policy.backoff > 1.0:
        base_wait = wait_exponential(
            multiplier=policy.delay,
            exp_base=policy.backoff,
            min=policy.delay,
            max=policy.max_delay if policy.max_delay is not None else float("inf"),
        )
    else:
        base_wait = wait_fixed(policy.delay)

    def _wait(retry_state: RetryCallState) -> float:
        seconds = base_wait(retry_state)
        if deadline is not None:
            seconds = min(seconds, deadline.remaining())
        return seconds

    stop = stop_after_attempt(policy.max_attempts)
    if deadline is not None:
        stop = stop | (lambda _state: deadline.expired())

    retrying = Retrying(
        stop=stop,
        wait=_wait,
        retry=retry_if_result(lambda ready: not ready),
        sleep=_sleep,
    )

    try:
        retrying(_probe)
    except RetryError:
        reason = (
            "deadline exceeded"
            if deadline is not None and deadline.expired()
            else f"gave up after {attempts} attempts"
        )
        raise ReadinessTimeout(
            f"Timed out waiting for {description}: {reason}",
            details=details() if details is not None else None,
            attempts=attempts,
            elapsed=elapsed,
        ) from None

    logger.debug(f"{description}: ready after {attempts} attempt(s)")
    return PollOutcome(attempts=attempts, elapsed=elapsed)


def poll_command(
    command: Callable[[], CommandResult],
    policy: RetryPolicy,
    *,
    description: str,
    ready: Callable[[CommandResult], bool] | None = None,
    deadline: Deadline | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PollOutcome:
    """Poll a shell command until ``ready`` accepts its result.

    ``ready`` defaults to the command succeeding. On timeout the output of
    the last run becomes the error's ``details``.
    """
    last: list[CommandResult] = []

    def _probe() -> bool:
        result = command()
        last[:] = [result]
        return ready(result) if ready is not None else result.success

    def _details() -> str | None:
        if not last:
            return None
        result = last[0]
        return format_command_output(result.stdout, result.stderr) or (
            f"exit code {result.returncode}"
        )

    return poll_until(
        _probe,
        policy,
        description=description,
        deadline=deadline,
        sleep=sleep,
        details=_details,
    )
