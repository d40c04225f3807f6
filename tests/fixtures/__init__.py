"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ak3s.config import Ak3sSettings
from ak3s.infra.retry import RetryPolicy
from ak3s.providers.local_docker import LocalDockerProvider

from .fake_runtime import FakeRuntime, FakeShellCommands

__all__ = [
    "fake_runtime",
    "fake_commands",
    "settings",
    "mock_console",
    "sleeps",
    "provider",
]


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    """Empty simulated docker engine."""
    return FakeRuntime()


@pytest.fixture
def fake_commands(fake_runtime: FakeRuntime) -> FakeShellCommands:
    return FakeShellCommands(fake_runtime)


@pytest.fixture
def settings(tmp_path: Path) -> Ak3sSettings:
    """Settings with a temporary home and short polls."""
    fast = RetryPolicy(max_attempts=5, delay=1)
    return Ak3sSettings(
        home_dir=tmp_path / "ak3s-home",
        readiness=fast,
        addon_readiness=fast,
        node_join=fast,
    )


@pytest.fixture
def mock_console() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the delays a provider would have slept."""
    return []


@pytest.fixture
def provider(
    settings: Ak3sSettings,
    fake_commands: FakeShellCommands,
    mock_console: MagicMock,
    sleeps: list[float],
) -> LocalDockerProvider:
    """LocalDockerProvider running against the fake runtime."""
    return LocalDockerProvider(
        settings,
        console=mock_console,
        commands=fake_commands,
        sleep=sleeps.append,
    )
