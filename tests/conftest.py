"""Shared fixtures: an in-memory cluster and test settings."""

from typing import Any

import pytest

from featuregates.core.errors import ResourceNotFoundError
from featuregates.integrations.kubernetes import ClusterClient
from featuregates.utils.config import DiscoveryConfig, KubernetesConfig, Settings

NAMESPACE = "kube-system"


class FakeClusterClient(ClusterClient):
    """Serves pods and ConfigMaps from dicts, like a fake clientset."""

    def __init__(self, pods=(), config_maps=()) -> None:
        self.pods: dict[tuple[str, str], dict[str, Any]] = {}
        self.config_maps: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []
        for pod in pods:
            meta = pod["metadata"]
            self.pods[(meta["namespace"], meta["name"])] = pod
        for cm in config_maps:
            meta = cm["metadata"]
            self.config_maps[(meta["namespace"], meta["name"])] = cm

    async def get_pod(self, namespace: str, name: str) -> dict[str, Any]:
        self.calls.append(("pod", namespace, name))
        try:
            return self.pods[(namespace, name)]
        except KeyError:
            raise ResourceNotFoundError("Pod", namespace, name) from None

    async def get_config_map(self, namespace: str, name: str) -> dict[str, Any]:
        self.calls.append(("configmap", namespace, name))
        try:
            return self.config_maps[(namespace, name)]
        except KeyError:
            raise ResourceNotFoundError("ConfigMap", namespace, name) from None


def make_pod(name: str, config_map: str, namespace: str = NAMESPACE, node_os: str | None = None) -> dict:
    spec: dict[str, Any] = {
        "volumes": [
            {"name": "host-var-run-antrea", "hostPath": {"path": "/var/run/antrea"}},
            {"name": "antrea-config", "configMap": {"name": config_map}},
        ]
    }
    if node_os:
        spec["nodeSelector"] = {"kubernetes.io/os": node_os}
    return {"metadata": {"name": name, "namespace": namespace}, "spec": spec}


def make_config_map(name: str, data: dict[str, str], namespace: str = NAMESPACE) -> dict:
    return {"metadata": {"name": name, "namespace": namespace}, "data": data}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        discovery=DiscoveryConfig(timeout_seconds=5.0),
        kubernetes=KubernetesConfig(
            api_url="https://kubernetes.test",
            token_file=str(tmp_path / "token"),
            ca_file=str(tmp_path / "ca.crt"),
            namespace_file=str(tmp_path / "namespace"),
        ),
    )


@pytest.fixture
def pod_env(monkeypatch):
    """Set the identity variables of a controller pod."""

    def _set(pod_name: str = "antrea-controller-wotqiwth", config_map: str = "antrea-config-aswieut"):
        monkeypatch.setenv("POD_NAME", pod_name)
        monkeypatch.setenv("ANTREA_CONFIG_MAP_NAME", config_map)
        monkeypatch.delenv("POD_NAMESPACE", raising=False)

    _set()
    return _set
