"""Outcome accumulation for best-effort teardown."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StepOutcome:
    """Result of one teardown action.

    Attributes:
        step: What was attempted (e.g., "drain node")
        target: What it was attempted on (node, namespace, volume, ...)
        ok: Whether the action succeeded
        details: Captured output or reason when the action failed
        fatal: Whether this failure makes the whole teardown fail
    """

    step: str
    target: str = ""
    ok: bool = True
    details: str | None = None
    fatal: bool = False

    def describe(self) -> str:
        label = f"{self.step} {self.target}".strip()
        if self.ok:
            return label
        return f"{label}: {self.details}" if self.details else label


@dataclass
class TeardownReport:
    """Aggregate of every step outcome of a teardown."""

    subject: str
    outcomes: list[StepOutcome] = field(default_factory=list)

    def record(
        self,
        step: str,
        target: str = "",
        *,
        ok: bool = True,
        details: str | None = None,
        fatal: bool = False,
    ) -> StepOutcome:
        outcome = StepOutcome(
            step=step, target=target, ok=ok, details=details, fatal=fatal
        )
        self.outcomes.append(outcome)
        return outcome

    @property
    def warnings(self) -> list[StepOutcome]:
        """Failed best-effort steps."""
        return [o for o in self.outcomes if not o.ok and not o.fatal]

    @property
    def fatal_failures(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.ok and o.fatal]

    @property
    def succeeded(self) -> bool:
        """True unless a fatal step failed."""
        return not self.fatal_failures

    def for_target(self, target: str) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.target == target]
