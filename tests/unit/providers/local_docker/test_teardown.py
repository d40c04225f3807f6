"""Tests for best-effort cluster teardown."""

import pytest

from ak3s.errors import ClusterNotFoundError, TeardownStepError
from ak3s.providers.local_docker import LocalDockerProvider
from ak3s.providers.local_docker.teardown import parse_node_names
from tests.fixtures.fake_runtime import FakeRuntime


@pytest.fixture
def cluster(provider: LocalDockerProvider) -> str:
    provider.create_cluster("demo")
    provider.add_node("demo", "w1")
    provider.add_node("demo", "w2")
    return "demo"


def test_parse_node_names() -> None:
    assert parse_node_names("node/demo\nnode/w1\n\n") == ["demo", "w1"]


def test_removes_everything(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    fake_runtime.add_network("ak3s-demo", {"ak3s.cluster": "demo"})
    fake_runtime.add_network("unrelated", {})

    report = provider.delete_cluster(cluster)

    assert report.succeeded
    assert report.warnings == []
    assert fake_runtime.containers == {}
    assert fake_runtime.volumes == {}
    assert list(fake_runtime.networks) == ["unrelated"]
    assert not provider.store.exists("demo")


def test_system_namespaces_are_kept(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    provider.delete_cluster(cluster)

    deleted = {
        cmd[cmd.index("-n") + 1]
        for cmd in fake_runtime.commands_matching("delete", "all", "--all")
    }
    assert deleted == {"default", "calico-system", "metallb-system", "ingress-nginx"}


def test_crds_deleted_individually(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    provider.delete_cluster(cluster)

    assert fake_runtime.commands_matching("delete", "crd", "ipaddresspools.metallb.io")


def test_drain_failure_on_one_node_does_not_stop_the_next(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    fake_runtime.fail_when("drain", "w1", stderr="cannot evict pod")

    report = provider.delete_cluster(cluster)

    assert report.succeeded
    assert "w2" not in fake_runtime.containers
    assert "w1" not in fake_runtime.containers
    failed = [o for o in report.for_target("w1") if not o.ok]
    assert [o.step for o in failed] == ["drain node"]
    assert "cannot evict pod" in failed[0].details


def test_master_is_not_drained(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    provider.delete_cluster(cluster)

    drained = [cmd[cmd.index("drain") + 1] for cmd in fake_runtime.commands_matching("drain")]
    assert drained == ["w1", "w2"]


def test_master_removal_failure_is_fatal(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    fake_runtime.fail_when("rm", "-f", "demo", stderr="device busy")

    with pytest.raises(TeardownStepError) as excinfo:
        provider.delete_cluster(cluster)

    report = excinfo.value.report
    assert not report.succeeded
    assert report.fatal_failures[0].target == "demo"
    # Workers were still handled before the master
    assert "w1" not in fake_runtime.containers
    assert "w2" not in fake_runtime.containers


def test_unreachable_master_still_removes_units(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    fake_runtime.containers["demo"].status = "exited"

    report = provider.delete_cluster(cluster)

    assert report.succeeded
    assert fake_runtime.containers == {}
    assert fake_runtime.volumes == {}
    assert not fake_runtime.commands_matching("kubectl", "drain")
    assert [o.step for o in report.warnings] == ["get kubeconfig"]


def test_leftover_worker_without_master(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    fake_runtime.containers.pop("demo")

    report = provider.delete_cluster(cluster)

    assert report.succeeded
    assert fake_runtime.containers == {}
    assert [o.details for o in report.for_target("demo") if o.step == "remove container"] == [
        "already absent"
    ]


def test_missing_cluster(provider: LocalDockerProvider) -> None:
    with pytest.raises(ClusterNotFoundError):
        provider.delete_cluster("ghost")


def test_other_clusters_untouched(
    provider: LocalDockerProvider, fake_runtime: FakeRuntime, cluster: str
) -> None:
    provider.settings = provider.settings.model_copy(
        update={"api_port": 16443, "http_port": 8080, "https_port": 8443}
    )
    provider.create_cluster("other")

    provider.delete_cluster(cluster)

    assert list(fake_runtime.containers) == ["other"]
    assert set(fake_runtime.volumes) == {"ak3s-other-data", "ak3s-other-config"}
    assert provider.store.exists("other")
