"""Fetch nodes, pods and node events for the consolidation report."""

from dataclasses import dataclass
from typing import Any, Sequence

from kubekit.clients.k8s import K8sClient
from kubekit.config import ConsolidationConfig
from kubekit.consolidation.models import FetchResult
from kubekit.core.async_utils import gather_blocking, run_sync
from kubekit.core.exceptions import K8sError
from kubekit.core.logging import StructuredLogger
from kubekit.core.utils import jsonpath_get, parse_quantity

logger = StructuredLogger(__name__)

DEFAULT_SORT_BY = ".metadata.creationTimestamp"


@dataclass
class ListOptions:
    """List-filtering flags forwarded from the command line."""

    label_selector: str | None = None
    field_selector: str | None = None
    sort_by: str | None = None


def sort_nodes(nodes: list[dict[str, Any]], sort_by: str | None) -> list[dict[str, Any]]:
    """Sort node objects ascending by a JSONPath; missing values sort first.

    Numbers and quantity strings (``4``, ``250m``, ``16Gi``) compare by value,
    anything else as text.
    """
    path = sort_by or DEFAULT_SORT_BY

    def key(node: dict[str, Any]) -> tuple[int, Any]:
        value = jsonpath_get(node, path)
        if value is None:
            return (0, "")
        if isinstance(value, bool):
            return (2, str(value))
        try:
            return (1, parse_quantity(value))
        except (TypeError, ValueError):
            return (2, str(value))

    return sorted(nodes, key=key)


class ResourceFetcher:
    """Read-only queries against the cluster for one report invocation.

    The pod and event queries run concurrently and are both awaited before
    the caller indexes anything. A failing pod or event query degrades to an
    empty result for its scope; only the node listing is fatal.
    """

    def __init__(self, client: K8sClient, config: ConsolidationConfig):
        self._client = client
        self._config = config

    def fetch_nodes_raw(self, options: ListOptions) -> bytes:
        """Fetch the node list response body for verbatim passthrough."""
        return self._client.list_nodes_raw(
            label_selector=options.label_selector,
            field_selector=options.field_selector,
        )

    def fetch_nodes(
        self,
        options: ListOptions,
        node_names: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        """Fetch and sort node objects, optionally restricted to node names.

        Raises:
            K8sError: If the listing fails or none of the named nodes exist
        """
        nodes = self._client.list_nodes(
            label_selector=options.label_selector,
            field_selector=options.field_selector,
        )
        if node_names:
            wanted = set(node_names)
            nodes = [n for n in nodes if (n.get("metadata") or {}).get("name") in wanted]
            found = {(n.get("metadata") or {}).get("name") for n in nodes}
            missing = [name for name in node_names if name not in found]
            if missing and not nodes:
                raise K8sError(
                    f'nodes "{", ".join(missing)}" not found', status_code=404
                )
            for name in missing:
                logger.warning("Node not found", node=name)
        return sort_nodes(nodes, options.sort_by)

    def is_scoped(self, node_names: Sequence[str]) -> bool:
        """Whether per-node queries are cheaper than cluster-wide ones."""
        return 0 < len(node_names) <= self._config.scoped_fetch_limit

    def fetch_pods_and_events(
        self,
        node_names: Sequence[str] = (),
        include_nodeclaims: bool = False,
    ) -> FetchResult:
        """Fetch pods in every namespace and node events concurrently."""
        return run_sync(self.fetch_pods_and_events_async(node_names, include_nodeclaims))

    async def fetch_pods_and_events_async(
        self,
        node_names: Sequence[str] = (),
        include_nodeclaims: bool = False,
    ) -> FetchResult:
        """Async form of :meth:`fetch_pods_and_events`."""
        (pods, pods_failed), (events, events_complete, claims) = await gather_blocking(
            lambda: self.fetch_pods(node_names),
            lambda: self.fetch_events(node_names, include_nodeclaims),
        )
        return FetchResult(
            pods=pods,
            events=events,
            pods_failed_nodes=frozenset(pods_failed),
            events_complete=events_complete,
            nodeclaim_nodes=claims,
        )

    def fetch_pods(
        self,
        node_names: Sequence[str] = (),
        namespace: str | None = None,
    ) -> tuple[list[dict[str, Any]], set[str]]:
        """Fetch pods, per node when scoped.

        Returns:
            The pod objects and the names of the nodes whose pods could not
            be fetched. A failed cluster-wide query fails every named node.
        """
        if self.is_scoped(node_names):
            pods: list[dict[str, Any]] = []
            failed: set[str] = set()
            for name in node_names:
                try:
                    pods.extend(
                        self._list_pods(namespace, f"spec.nodeName={name}")
                    )
                except K8sError as e:
                    logger.warning("Pod fetch failed", node=name, error=str(e))
                    failed.add(name)
            return pods, failed

        try:
            return self._list_pods(namespace, None), set()
        except K8sError as e:
            logger.warning("Pod fetch failed", error=str(e))
            return [], set(node_names)

    def _list_pods(
        self, namespace: str | None, field_selector: str | None
    ) -> list[dict[str, Any]]:
        return self._client.list_pods(
            namespace=namespace,
            field_selector=field_selector,
            all_namespaces=namespace is None,
        )

    def fetch_events(
        self,
        node_names: Sequence[str] = (),
        include_nodeclaims: bool = False,
    ) -> tuple[list[dict[str, Any]], bool, dict[str, str]]:
        """Fetch Node events, per node when scoped, plus NodeClaim events.

        Returns:
            The event objects, whether every query succeeded, and the
            NodeClaim-to-node mapping for NodeClaim events
        """
        events: list[dict[str, Any]] = []
        complete = True

        if self.is_scoped(node_names):
            for name in node_names:
                try:
                    events.extend(
                        self._client.list_events(
                            field_selector=f"involvedObject.kind=Node,involvedObject.name={name}",
                            all_namespaces=True,
                        )
                    )
                except K8sError as e:
                    logger.warning("Event fetch failed", node=name, error=str(e))
                    complete = False
        else:
            try:
                events = self._client.list_events(
                    field_selector="involvedObject.kind=Node", all_namespaces=True
                )
            except K8sError as e:
                logger.warning("Event fetch failed", error=str(e))
                complete = False

        claims: dict[str, str] = {}
        if include_nodeclaims:
            claim_events, claims, claims_complete = self.fetch_nodeclaim_events(node_names)
            events.extend(claim_events)
            complete = complete and claims_complete

        return events, complete, claims

    def fetch_nodeclaim_events(
        self, node_names: Sequence[str] = ()
    ) -> tuple[list[dict[str, Any]], dict[str, str], bool]:
        """Fetch NodeClaim events and map each NodeClaim to its node.

        Degrades to no NodeClaim data, with a warning, when the NodeClaim CRD
        is not installed or a query fails.

        Returns:
            The NodeClaim events, the claim-to-node mapping, and whether
            every query succeeded
        """
        crd = self._config.nodeclaim_crd
        try:
            version = self._client.crd_storage_version(crd)
        except K8sError as e:
            logger.warning("NodeClaim CRD check failed", crd=crd, error=str(e))
            return [], {}, False
        if version is None:
            logger.warning(
                "NodeClaim CRD not installed; using Node events only", crd=crd
            )
            return [], {}, True

        plural, _, group = crd.partition(".")
        try:
            claims = self._client.list_cluster_custom_objects(group, version, plural)
            events = self._client.list_events(
                field_selector="involvedObject.kind=NodeClaim", all_namespaces=True
            )
        except K8sError as e:
            logger.warning("NodeClaim fetch failed", error=str(e))
            return [], {}, False

        wanted = set(node_names)
        claim_nodes = {}
        for claim in claims:
            claim_name = (claim.get("metadata") or {}).get("name")
            node_name = (claim.get("status") or {}).get("nodeName")
            if claim_name and node_name and (not wanted or node_name in wanted):
                claim_nodes[claim_name] = node_name

        events = [
            e for e in events
            if (e.get("involvedObject") or {}).get("name") in claim_nodes
        ]
        logger.debug("Fetched NodeClaim events", claims=len(claim_nodes), events=len(events))
        return events, claim_nodes, True
