"""Tests for KubeconfigStore."""

import stat
from pathlib import Path

import pytest
import yaml

from ak3s.errors import MasterUnreachableError
from ak3s.providers.local_docker.kubeconfig import KubeconfigStore
from tests.fixtures.fake_runtime import RAW_KUBECONFIG


@pytest.fixture
def store(tmp_path: Path) -> KubeconfigStore:
    return KubeconfigStore(tmp_path / "clusters")


class TestRewrite:
    def test_server_points_at_published_endpoint(self, store: KubeconfigStore) -> None:
        document = yaml.safe_load(store.rewrite(RAW_KUBECONFIG, "demo", "localhost", 16443))

        assert document["clusters"][0]["cluster"]["server"] == "https://localhost:16443"

    def test_default_entries_renamed_after_cluster(self, store: KubeconfigStore) -> None:
        document = yaml.safe_load(store.rewrite(RAW_KUBECONFIG, "demo", "localhost", 6443))

        assert document["clusters"][0]["name"] == "demo"
        assert document["users"][0]["name"] == "demo"
        assert document["contexts"][0]["name"] == "demo"
        assert document["contexts"][0]["context"] == {"cluster": "demo", "user": "demo"}
        assert document["current-context"] == "demo"

    def test_credentials_preserved(self, store: KubeconfigStore) -> None:
        document = yaml.safe_load(store.rewrite(RAW_KUBECONFIG, "demo", "localhost", 6443))

        assert document["users"][0]["user"]["client-key-data"] == "S0VZ"

    def test_non_loopback_server_untouched(self, store: KubeconfigStore) -> None:
        raw = RAW_KUBECONFIG.replace("127.0.0.1", "10.1.2.3")

        document = yaml.safe_load(store.rewrite(raw, "demo", "localhost", 6443))

        assert document["clusters"][0]["cluster"]["server"] == "https://10.1.2.3:6443"

    @pytest.mark.parametrize("raw", ["", "just text", "clusters: [unclosed"])
    def test_garbage_rejected(self, store: KubeconfigStore, raw: str) -> None:
        with pytest.raises(MasterUnreachableError):
            store.rewrite(raw, "demo", "localhost", 6443)


class TestPersistence:
    def test_save_is_keyed_by_cluster_and_owner_only(
        self, store: KubeconfigStore, tmp_path: Path
    ) -> None:
        path = store.save("demo", "content")

        assert path == tmp_path / "clusters" / "demo" / "kubeconfig.yaml"
        assert path.read_text() == "content"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert store.exists("demo")

    def test_clusters_do_not_overwrite_each_other(self, store: KubeconfigStore) -> None:
        first = store.save("one", "a")
        second = store.save("two", "b")

        assert first.read_text() == "a"
        assert second.read_text() == "b"

    def test_save_replaces_and_leaves_no_temp_files(self, store: KubeconfigStore) -> None:
        store.save("demo", "old")
        path = store.save("demo", "new")

        assert path.read_text() == "new"
        assert [p.name for p in path.parent.iterdir()] == ["kubeconfig.yaml"]

    def test_export(self, store: KubeconfigStore, tmp_path: Path) -> None:
        store.save("demo", "content")

        exported = store.export("demo", tmp_path / "kube" / "config")

        assert exported.read_text() == "content"
        assert stat.S_IMODE(exported.stat().st_mode) == 0o600

    def test_remove(self, store: KubeconfigStore) -> None:
        store.save("demo", "content")

        assert store.remove("demo") is True
        assert not store.exists("demo")
        assert store.remove("demo") is False
