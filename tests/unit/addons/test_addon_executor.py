"""Tests for AddonExecutor."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ak3s.addons import Addon, AddonCommand, AddonExecutor
from ak3s.errors import AddonInstallError
from ak3s.infra.shell_commands.types import CommandResult

KUBECONFIG = Path("/tmp/clusters/demo/kubeconfig.yaml")


@pytest.fixture
def mock_runner() -> MagicMock:
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True, stdout="", stderr="", returncode=0)
    return runner


@pytest.fixture
def addon() -> Addon:
    return Addon(
        name="metrics-server",
        commands=[
            AddonCommand(name="install", command="kubectl", args=["apply", "-f", "m.yaml"]),
            AddonCommand(
                name="patch", command="kubectl", args=["apply", "-f", "-"], stdin="kind: X"
            ),
        ],
    )


def test_runs_commands_in_order_with_kubeconfig(
    mock_runner: MagicMock, addon: Addon
) -> None:
    AddonExecutor(mock_runner, KUBECONFIG).execute(addon)

    calls = mock_runner.run.call_args_list
    assert [c.args[0] for c in calls] == [
        ["kubectl", "apply", "-f", "m.yaml"],
        ["kubectl", "apply", "-f", "-"],
    ]
    assert calls[0].kwargs["env"] == {"KUBECONFIG": str(KUBECONFIG)}
    assert calls[0].kwargs["input_data"] is None
    assert calls[1].kwargs["input_data"] == "kind: X"


def test_stops_at_first_failure(mock_runner: MagicMock, addon: Addon) -> None:
    mock_runner.run.return_value = CommandResult(
        success=False, stdout="", stderr="unable to recognize", returncode=1
    )

    with pytest.raises(AddonInstallError) as excinfo:
        AddonExecutor(mock_runner, KUBECONFIG).execute(addon)

    assert mock_runner.run.call_count == 1
    assert "install" in excinfo.value.message
    assert "unable to recognize" in excinfo.value.details
