"""Pytest fixtures for kubekit tests."""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Generator
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from click.testing import CliRunner

from kubekit.config import (
    ConsolidationConfig,
    K8sConfig,
    KubekitConfig,
    ProfileConfig,
)
from kubekit.core.context import KubekitContext
from kubekit.core.output import OutputFormat

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for age columns."""
    return NOW


@pytest.fixture
def mock_config() -> KubekitConfig:
    """Create a test configuration."""
    return KubekitConfig(
        profiles={
            "default": ProfileConfig(
                k8s=K8sConfig(namespace="default"),
                consolidation=ConsolidationConfig(),
            )
        }
    )


@pytest.fixture
def mock_context(mock_config: KubekitConfig) -> KubekitContext:
    """Create a test kubekit context."""
    return KubekitContext(
        config=mock_config,
        profile="default",
        output_format=OutputFormat.TABLE,
        verbose=0,
        quiet=False,
        color=False,
    )


@pytest.fixture
def mock_k8s() -> Generator[MagicMock, None, None]:
    """Replace the context's Kubernetes client with a mock."""
    client = MagicMock()
    client.list_pods.return_value = []
    client.list_events.return_value = []
    client.crd_storage_version.return_value = None
    with patch(
        "kubekit.core.context.KubekitContext.k8s", new_callable=PropertyMock
    ) as k8s_property:
        k8s_property.return_value = client
        yield client


@pytest.fixture
def make_node() -> Callable[..., dict[str, Any]]:
    """Factory for node objects as the API returns them."""

    def factory(
        name: str,
        labels: dict[str, str] | None = None,
        cpu: str = "4",
        memory: str = "16Gi",
        ready: bool = True,
        created: str = "2024-04-30T12:00:00Z",
    ) -> dict[str, Any]:
        return {
            "metadata": {
                "name": name,
                "labels": labels or {},
                "creationTimestamp": created,
            },
            "spec": {},
            "status": {
                "allocatable": {"cpu": cpu, "memory": memory},
                "conditions": [
                    {"type": "Ready", "status": "True" if ready else "False"}
                ],
                "addresses": [{"type": "InternalIP", "address": "10.0.0.1"}],
                "nodeInfo": {
                    "kubeletVersion": "v1.29.0",
                    "osImage": "Bottlerocket OS 1.19.0",
                    "kernelVersion": "6.1.0",
                    "containerRuntimeVersion": "containerd://1.6.28",
                },
            },
        }

    return factory


@pytest.fixture
def make_pod() -> Callable[..., dict[str, Any]]:
    """Factory for pod objects as the API returns them."""

    def factory(
        name: str,
        node: str | None,
        namespace: str = "default",
        annotations: dict[str, str] | None = None,
        cpu: str | None = None,
        memory: str | None = None,
        empty_dir: bool = False,
        created: str = "2024-05-01T10:00:00Z",
    ) -> dict[str, Any]:
        requests = {}
        if cpu:
            requests["cpu"] = cpu
        if memory:
            requests["memory"] = memory
        spec: dict[str, Any] = {
            "containers": [{"name": "app", "resources": {"requests": requests}}],
            "volumes": [{"name": "scratch", "emptyDir": {}}] if empty_dir else [],
        }
        if node:
            spec["nodeName"] = node
        return {
            "metadata": {
                "name": name,
                "namespace": namespace,
                "annotations": annotations or {},
                "creationTimestamp": created,
            },
            "spec": spec,
        }

    return factory


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    """Factory for event objects as the API returns them."""

    def factory(
        node: str,
        reason: str,
        message: str,
        kind: str = "Node",
        last_seen: str = "2024-05-01T11:00:00Z",
    ) -> dict[str, Any]:
        return {
            "metadata": {"name": f"{node}.17c", "namespace": "default"},
            "involvedObject": {"kind": kind, "name": node},
            "reason": reason,
            "message": message,
            "type": "Normal",
            "lastTimestamp": last_seen,
        }

    return factory


@pytest.fixture
def node_list_body() -> Callable[[list[dict[str, Any]]], bytes]:
    """Encode nodes as a NodeList response body."""

    def encode(nodes: list[dict[str, Any]]) -> bytes:
        return json.dumps(
            {"apiVersion": "v1", "kind": "NodeList", "items": nodes}
        ).encode()

    return encode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Isolate tests from the user's environment and config files."""
    for var in (
        "KUBECONFIG",
        "KUBEKIT_KUBECONFIG",
        "KUBEKIT_K8S_CONTEXT",
        "KUBEKIT_K8S_NAMESPACE",
        "KUBEKIT_UTILIZATION_THRESHOLD",
        "KUBEKIT_KUBECONFIG_DIR",
        "KUBEKIT_PROFILE",
        "KUBEKIT_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("KUBEKIT_CONFIG_DIR", str(tmp_path / "kubekit-home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file."""
    config_content = """
version: "1"
global:
  output_format: table
profiles:
  default:
    k8s:
      namespace: apps
    consolidation:
      utilization_threshold: 90
      scoped_fetch_limit: 5
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_content)
    return str(config_file)
