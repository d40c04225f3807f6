"""Error taxonomy for cluster lifecycle operations.

Every error carries a human-readable ``message`` naming the failing step and
optional ``details`` holding the captured output of the failing external
command. The CLI renders both; programmatic callers can branch on the
exception class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ak3s.providers.report import TeardownReport


class Ak3sError(Exception):
    """Base class for all cluster lifecycle errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigurationError(Ak3sError):
    """Raised when settings cannot be loaded or validated."""


class UnsupportedProviderError(Ak3sError):
    """Raised when a provider backend is requested that is not implemented."""


class ProvisionError(Ak3sError):
    """Raised when a compute unit could not be created."""


class ReadinessTimeout(Ak3sError):
    """Raised when a bounded readiness poll exhausts its attempts or deadline."""

    def __init__(
        self,
        message: str,
        details: str | None = None,
        *,
        attempts: int = 0,
        elapsed: float = 0.0,
    ):
        super().__init__(message, details)
        self.attempts = attempts
        self.elapsed = elapsed


class AddonInstallError(Ak3sError):
    """Raised when an add-on manifest or command fails to apply."""


class AddonRegistryError(Ak3sError):
    """Raised when the add-on declaration file is missing or invalid."""


class MasterUnreachableError(Ak3sError):
    """Raised when the master unit exists but cannot serve requests."""


class NotFoundError(Ak3sError):
    """Raised when a queried cluster does not exist."""


class ClusterNotFoundError(NotFoundError):
    """Raised when no master unit exists for a cluster name."""


class TeardownStepError(Ak3sError):
    """Raised when a fatal teardown step fails.

    The accumulated report of every step, including the best-effort ones
    that only produced warnings, is attached for diagnostics.
    """

    def __init__(
        self,
        message: str,
        details: str | None = None,
        *,
        report: TeardownReport | None = None,
    ):
        super().__init__(message, details)
        self.report = report


def format_command_output(stdout: str, stderr: str) -> str | None:
    """Combine captured command output into an error ``details`` string."""
    parts = []
    if stdout.strip():
        parts.append(f"stdout:\n{stdout.strip()}")
    if stderr.strip():
        parts.append(f"stderr:\n{stderr.strip()}")
    return "\n".join(parts) or None
