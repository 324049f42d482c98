"""Kubernetes client using the official kubernetes Python client."""

import json
from typing import Any

from urllib3.exceptions import HTTPError

from kubekit.config import K8sConfig
from kubekit.core.exceptions import AuthenticationError, K8sError, PrerequisiteError
from kubekit.core.logging import StructuredLogger

logger = StructuredLogger(__name__)


class K8sClient:
    """Client for read-only Kubernetes API operations.

    List calls return the decoded JSON bodies exactly as the API server sent
    them (camelCase keys, the same shape ``kubectl get -o json`` prints)
    rather than the client's model objects.
    """

    def __init__(self, config: K8sConfig):
        self._config = config
        self._core_v1: Any = None
        self._apiextensions_v1: Any = None
        self._custom_objects: Any = None
        self._dynamic: Any = None
        self._loaded = False

    def _load_config(self) -> None:
        """Load kubernetes configuration."""
        if self._loaded:
            return

        try:
            from kubernetes import config
        except ImportError:
            raise PrerequisiteError(
                "kubernetes package not installed",
                remediation="Run: pip install kubernetes",
            )

        kubeconfig = self._config.get_kubeconfig()
        context = self._config.get_context()

        try:
            if kubeconfig:
                config.load_kube_config(config_file=kubeconfig, context=context)
            else:
                # Try in-cluster config first, then default kubeconfig
                try:
                    config.load_incluster_config()
                except config.ConfigException:
                    config.load_kube_config(context=context)

            self._loaded = True
            logger.debug("Loaded k8s config", context=context, kubeconfig=kubeconfig)
        except Exception as e:
            raise AuthenticationError(f"Failed to load k8s config: {e}")

    @property
    def core_v1(self) -> Any:
        """Get CoreV1Api client (pods, nodes, events)."""
        if self._core_v1 is None:
            self._load_config()
            from kubernetes import client

            self._core_v1 = client.CoreV1Api()
        return self._core_v1

    @property
    def apiextensions_v1(self) -> Any:
        """Get ApiextensionsV1Api client (CRDs)."""
        if self._apiextensions_v1 is None:
            self._load_config()
            from kubernetes import client

            self._apiextensions_v1 = client.ApiextensionsV1Api()
        return self._apiextensions_v1

    @property
    def custom_objects(self) -> Any:
        """Get CustomObjectsApi client (NodeClaims and other CRs)."""
        if self._custom_objects is None:
            self._load_config()
            from kubernetes import client

            self._custom_objects = client.CustomObjectsApi()
        return self._custom_objects

    @property
    def dynamic(self) -> Any:
        """Get DynamicClient (discovery and arbitrary resource kinds)."""
        if self._dynamic is None:
            self._load_config()
            from kubernetes import client
            from kubernetes.dynamic import DynamicClient

            self._dynamic = DynamicClient(client.ApiClient())
        return self._dynamic

    @property
    def namespace(self) -> str:
        """Get default namespace."""
        return self._config.get_namespace()

    def _raw_kwargs(self, **selectors: str | None) -> dict[str, Any]:
        """Build keyword arguments for an undecoded list call."""
        kwargs: dict[str, Any] = {
            "_preload_content": False,
            "_request_timeout": self._config.timeout,
        }
        for key, value in selectors.items():
            if value:
                kwargs[key] = value
        return kwargs

    # Node operations
    def list_nodes_raw(
        self,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> bytes:
        """List nodes and return the response body unparsed."""
        from kubernetes.client.rest import ApiException

        kwargs = self._raw_kwargs(
            label_selector=label_selector, field_selector=field_selector
        )
        try:
            return self.core_v1.list_node(**kwargs).data
        except ApiException as e:
            raise K8sError(
                f"Failed to list nodes: {_api_error_message(e)}", status_code=e.status
            )
        except HTTPError as e:
            raise K8sError(f"Failed to list nodes: {e}")

    def list_nodes(
        self,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List cluster nodes."""
        return _decode_items(self.list_nodes_raw(label_selector, field_selector), "nodes")

    # Pod operations
    def list_pods(
        self,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
        all_namespaces: bool = False,
    ) -> list[dict[str, Any]]:
        """List pods in a namespace or across all namespaces."""
        from kubernetes.client.rest import ApiException

        kwargs = self._raw_kwargs(
            label_selector=label_selector, field_selector=field_selector
        )
        try:
            if all_namespaces:
                response = self.core_v1.list_pod_for_all_namespaces(**kwargs)
            else:
                ns = namespace or self.namespace
                response = self.core_v1.list_namespaced_pod(ns, **kwargs)
            return _decode_items(response.data, "pods")
        except ApiException as e:
            raise K8sError(
                f"Failed to list pods: {_api_error_message(e)}", status_code=e.status
            )
        except HTTPError as e:
            raise K8sError(f"Failed to list pods: {e}")

    # Events
    def list_events(
        self,
        namespace: str | None = None,
        field_selector: str | None = None,
        all_namespaces: bool = False,
    ) -> list[dict[str, Any]]:
        """List events in a namespace or across all namespaces."""
        from kubernetes.client.rest import ApiException

        kwargs = self._raw_kwargs(field_selector=field_selector)
        try:
            if all_namespaces:
                response = self.core_v1.list_event_for_all_namespaces(**kwargs)
            else:
                ns = namespace or self.namespace
                response = self.core_v1.list_namespaced_event(ns, **kwargs)
            return _decode_items(response.data, "events")
        except ApiException as e:
            raise K8sError(
                f"Failed to list events: {_api_error_message(e)}", status_code=e.status
            )
        except HTTPError as e:
            raise K8sError(f"Failed to list events: {e}")

    # Custom resources
    def crd_storage_version(self, name: str) -> str | None:
        """Get the storage version of a CRD, or None if it is not installed."""
        from kubernetes.client.rest import ApiException

        try:
            crd = self.apiextensions_v1.read_custom_resource_definition(
                name, _preload_content=False, _request_timeout=self._config.timeout
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise K8sError(
                f"Failed to check CRD {name}: {_api_error_message(e)}",
                status_code=e.status,
            )
        except HTTPError as e:
            raise K8sError(f"Failed to check CRD {name}: {e}")

        try:
            spec = json.loads(crd.data).get("spec") or {}
        except ValueError as e:
            raise K8sError(f"Failed to check CRD {name}: invalid response: {e}")
        versions = spec.get("versions") or []
        for version in versions:
            if version.get("storage"):
                return version["name"]
        return versions[0]["name"] if versions else None

    def list_cluster_custom_objects(
        self, group: str, version: str, plural: str
    ) -> list[dict[str, Any]]:
        """List cluster-scoped custom objects."""
        from kubernetes.client.rest import ApiException

        try:
            response = self.custom_objects.list_cluster_custom_object(
                group, version, plural, _request_timeout=self._config.timeout
            )
            return response.get("items") or []
        except ApiException as e:
            raise K8sError(
                f"Failed to list {plural}.{group}: {_api_error_message(e)}",
                status_code=e.status,
            )
        except HTTPError as e:
            raise K8sError(f"Failed to list {plural}.{group}: {e}")

    # Discovery and arbitrary kinds
    def list_api_resources(self) -> list[dict[str, Any]]:
        """List every top-level API resource the server advertises."""
        from kubernetes.client.rest import ApiException
        from kubernetes.dynamic.resource import ResourceList

        try:
            resources = self.dynamic.resources.search()
        except ApiException as e:
            raise K8sError(
                f"Failed to discover API resources: {_api_error_message(e)}",
                status_code=e.status,
            )
        except HTTPError as e:
            raise K8sError(f"Failed to discover API resources: {e}")

        seen: set[tuple[str, str]] = set()
        result = []
        for resource in resources:
            if isinstance(resource, ResourceList) or "/" in (resource.name or ""):
                continue
            key = (resource.group_version, resource.name)
            if key in seen:
                continue
            seen.add(key)
            result.append(
                {
                    "name": resource.name,
                    "kind": resource.kind,
                    "group": resource.group or "",
                    "api_version": resource.group_version,
                    "namespaced": bool(resource.namespaced),
                    "short_names": list(resource.short_names or []),
                    "singular_name": resource.singular_name or "",
                    "verbs": list(resource.verbs or []),
                }
            )
        return result

    def list_objects(
        self,
        resource: dict[str, Any],
        namespace: str | None = None,
        label_selector: str | None = None,
        all_namespaces: bool = False,
    ) -> list[dict[str, Any]]:
        """List objects of a discovered resource kind."""
        from kubernetes.client.rest import ApiException

        kwargs: dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        if resource["namespaced"] and not all_namespaces:
            kwargs["namespace"] = namespace or self.namespace

        try:
            api = self.dynamic.resources.get(
                api_version=resource["api_version"], kind=resource["kind"]
            )
            return api.get(**kwargs).to_dict().get("items") or []
        except ApiException as e:
            raise K8sError(
                f"Failed to list {resource['name']}: {_api_error_message(e)}",
                status_code=e.status,
            )
        except HTTPError as e:
            raise K8sError(f"Failed to list {resource['name']}: {e}")

    def get_object(
        self,
        resource: dict[str, Any],
        name: str,
        namespace: str | None = None,
    ) -> dict[str, Any] | None:
        """Get a single object of a discovered resource kind."""
        from kubernetes.client.rest import ApiException

        kwargs: dict[str, Any] = {"name": name}
        if resource["namespaced"]:
            kwargs["namespace"] = namespace or self.namespace

        try:
            api = self.dynamic.resources.get(
                api_version=resource["api_version"], kind=resource["kind"]
            )
            return api.get(**kwargs).to_dict()
        except ApiException as e:
            if e.status == 404:
                return None
            raise K8sError(
                f"Failed to get {resource['name']}/{name}: {_api_error_message(e)}",
                status_code=e.status,
            )
        except HTTPError as e:
            raise K8sError(f"Failed to get {resource['name']}/{name}: {e}")


def _decode_items(data: bytes, what: str) -> list[dict[str, Any]]:
    """Decode the items of a list response body."""
    try:
        return json.loads(data).get("items") or []
    except (ValueError, AttributeError) as e:
        raise K8sError(f"Failed to list {what}: invalid response: {e}")


def _api_error_message(error: Any) -> str:
    """Extract the API server's message from an ApiException."""
    body = getattr(error, "body", None)
    if body:
        try:
            message = json.loads(body).get("message")
            if message:
                return message
        except (ValueError, AttributeError):
            pass
    return error.reason or str(error)
