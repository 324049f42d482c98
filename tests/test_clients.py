"""Tests for the Kubernetes client wrapper and kind resolution."""

import json
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException
from urllib3.exceptions import ReadTimeoutError

from kubekit.clients import K8sClient, ResourceResolver
from kubekit.config import K8sConfig
from kubekit.core.exceptions import AuthenticationError, K8sError, ValidationError


def raw_response(body: dict) -> MagicMock:
    response = MagicMock()
    response.data = json.dumps(body).encode()
    return response


def api_error(status: int, message: str = "") -> ApiException:
    error = ApiException(status=status, reason="Reason")
    error.body = json.dumps({"message": message}) if message else None
    return error


@pytest.fixture
def core_v1() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(core_v1: MagicMock) -> K8sClient:
    client = K8sClient(K8sConfig(namespace="apps", timeout=15))
    client._core_v1 = core_v1
    client._loaded = True
    return client


class TestK8sClient:
    """Tests for K8sClient."""

    def test_lazy_initialization(self):
        client = K8sClient(K8sConfig())
        assert client._core_v1 is None
        assert not client._loaded

    def test_load_config_failure(self):
        with patch("kubernetes.config.load_kube_config", side_effect=Exception("no config")):
            client = K8sClient(K8sConfig(kubeconfig="/nonexistent"))
            with pytest.raises(AuthenticationError):
                client._load_config()

    def test_list_nodes_returns_camel_case(self, client, core_v1):
        core_v1.list_node.return_value = raw_response(
            {"items": [{"metadata": {"name": "node-1", "creationTimestamp": "2024-01-01T00:00:00Z"}}]}
        )
        nodes = client.list_nodes(label_selector="karpenter.sh/nodepool")
        assert nodes[0]["metadata"]["creationTimestamp"] == "2024-01-01T00:00:00Z"
        core_v1.list_node.assert_called_once_with(
            _preload_content=False,
            _request_timeout=15,
            label_selector="karpenter.sh/nodepool",
        )

    def test_list_nodes_raw_is_verbatim(self, client, core_v1):
        core_v1.list_node.return_value.data = b'{"kind":"NodeList","items":[]}'
        assert client.list_nodes_raw() == b'{"kind":"NodeList","items":[]}'

    def test_list_nodes_error(self, client, core_v1):
        core_v1.list_node.side_effect = api_error(401, "Unauthorized")
        with pytest.raises(K8sError) as exc_info:
            client.list_nodes()
        assert exc_info.value.status_code == 401
        assert "Unauthorized" in str(exc_info.value)

    def test_list_pods_all_namespaces(self, client, core_v1):
        core_v1.list_pod_for_all_namespaces.return_value = raw_response({"items": []})
        client.list_pods(field_selector="spec.nodeName=node-1", all_namespaces=True)
        core_v1.list_pod_for_all_namespaces.assert_called_once_with(
            _preload_content=False,
            _request_timeout=15,
            field_selector="spec.nodeName=node-1",
        )

    def test_list_pods_default_namespace(self, client, core_v1):
        core_v1.list_namespaced_pod.return_value = raw_response({"items": [{"metadata": {"name": "a"}}]})
        pods = client.list_pods()
        assert pods == [{"metadata": {"name": "a"}}]
        assert core_v1.list_namespaced_pod.call_args.args == ("apps",)

    def test_list_events_error(self, client, core_v1):
        core_v1.list_event_for_all_namespaces.side_effect = api_error(500)
        with pytest.raises(K8sError):
            client.list_events(all_namespaces=True)

    def test_crd_storage_version(self, client):
        client._apiextensions_v1 = MagicMock()
        client._apiextensions_v1.read_custom_resource_definition.return_value = raw_response(
            {"spec": {"versions": [{"name": "v1beta1"}, {"name": "v1", "storage": True}]}}
        )
        assert client.crd_storage_version("nodeclaims.karpenter.sh") == "v1"

    def test_crd_not_installed(self, client):
        client._apiextensions_v1 = MagicMock()
        client._apiextensions_v1.read_custom_resource_definition.side_effect = api_error(404)
        assert client.crd_storage_version("nodeclaims.karpenter.sh") is None

    def test_list_pods_invalid_body(self, client, core_v1):
        core_v1.list_pod_for_all_namespaces.return_value.data = b"<html>bad gateway</html>"
        with pytest.raises(K8sError, match="invalid response"):
            client.list_pods(all_namespaces=True)

    def test_list_objects_timeout(self, client):
        client._dynamic = MagicMock()
        client._dynamic.resources.get.return_value.get.side_effect = ReadTimeoutError(
            None, "/api/v1/pods", "Read timed out."
        )
        with pytest.raises(K8sError, match="Failed to list pods"):
            client.list_objects(RESOURCES[0])

    def test_get_object_timeout(self, client):
        client._dynamic = MagicMock()
        client._dynamic.resources.get.return_value.get.side_effect = ReadTimeoutError(
            None, "/api/v1/pods/web-0", "Read timed out."
        )
        with pytest.raises(K8sError, match="Failed to get pods/web-0"):
            client.get_object(RESOURCES[0], "web-0")

    def test_discovery_timeout(self, client):
        client._dynamic = MagicMock()
        client._dynamic.resources.search.side_effect = ReadTimeoutError(
            None, "/apis", "Read timed out."
        )
        with pytest.raises(K8sError, match="Failed to discover"):
            client.list_api_resources()

    def test_namespace_from_config(self, client):
        assert client.namespace == "apps"


RESOURCES = [
    {
        "name": "pods",
        "kind": "Pod",
        "group": "",
        "api_version": "v1",
        "namespaced": True,
        "short_names": ["po"],
        "singular_name": "pod",
        "verbs": ["get", "list"],
    },
    {
        "name": "deployments",
        "kind": "Deployment",
        "group": "apps",
        "api_version": "apps/v1",
        "namespaced": True,
        "short_names": ["deploy"],
        "singular_name": "deployment",
        "verbs": ["get", "list"],
    },
    {
        "name": "events",
        "kind": "Event",
        "group": "events.k8s.io",
        "api_version": "events.k8s.io/v1",
        "namespaced": True,
        "short_names": ["ev"],
        "singular_name": "event",
        "verbs": ["list"],
    },
    {
        "name": "events",
        "kind": "Event",
        "group": "",
        "api_version": "v1",
        "namespaced": True,
        "short_names": ["ev"],
        "singular_name": "event",
        "verbs": ["list"],
    },
]


class TestResourceResolver:
    """Tests for resolving typed kinds."""

    @pytest.fixture
    def resolver(self) -> ResourceResolver:
        client = MagicMock()
        client.list_api_resources.return_value = RESOURCES
        return ResourceResolver(client)

    @pytest.mark.parametrize("kind", ["pods", "pod", "po", "Pod", "POD"])
    def test_aliases(self, resolver, kind):
        assert resolver.resolve(kind)["name"] == "pods"

    def test_group_qualified(self, resolver):
        assert resolver.resolve("deployments.apps")["kind"] == "Deployment"
        assert resolver.resolve("events.events.k8s.io")["group"] == "events.k8s.io"

    def test_core_group_preferred(self, resolver):
        assert resolver.resolve("ev")["api_version"] == "v1"

    def test_unknown_kind_suggests(self, resolver):
        with pytest.raises(ValidationError) as exc_info:
            resolver.resolve("deploymnt")
        assert "deployment" in str(exc_info.value)

    def test_discovery_cached(self, resolver):
        resolver.resolve("pods")
        resolver.resolve("deploy")
        resolver._client.list_api_resources.assert_called_once()
