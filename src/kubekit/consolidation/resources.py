"""Resolve provisioner, capacity type and utilization for nodes."""

from typing import Any, Collection, Iterable

from kubekit.consolidation.models import NO_DATA, NONE, NodeMetadata, PodRecord
from kubekit.core.logging import StructuredLogger
from kubekit.core.utils import parse_cpu, parse_memory

logger = StructuredLogger(__name__)

# NodePool replaced Provisioner in Karpenter v1beta1
PROVISIONER_LABELS = ("karpenter.sh/provisioner-name", "karpenter.sh/nodepool")
CAPACITY_TYPE_LABEL = "karpenter.sh/capacity-type"


def utilization_percent(requested: int, allocatable: int) -> int:
    """Floor of requested/allocatable as a percentage; 0 when nothing is allocatable."""
    if allocatable <= 0:
        return 0
    return requested * 100 // allocatable


def requested_totals(pods: Iterable[PodRecord]) -> tuple[int, int]:
    """Sum container CPU (millicores) and memory (bytes) requests.

    Raises:
        ValueError: If a request quantity cannot be parsed
    """
    cpu = 0
    memory = 0
    for pod in pods:
        for requests in pod.container_requests:
            cpu += parse_cpu(requests.cpu)
            memory += parse_memory(requests.memory)
    return cpu, memory


def node_labels(node: dict[str, Any]) -> tuple[str, str]:
    """Provisioner and capacity type labels of a node, ``<none>`` when absent."""
    labels = (node.get("metadata") or {}).get("labels") or {}
    provisioner = next(
        (labels[key] for key in PROVISIONER_LABELS if labels.get(key)), NONE
    )
    return provisioner, labels.get(CAPACITY_TYPE_LABEL) or NONE


class NodeMetadataResolver:
    """Attaches label-derived columns and utilization to each node."""

    def resolve_node(
        self,
        node: dict[str, Any],
        pods: Iterable[PodRecord],
        pods_available: bool = True,
    ) -> NodeMetadata:
        """Resolve metadata for a single node object.

        Args:
            node: Node object as returned by the API
            pods: Pods scheduled on the node
            pods_available: False when the pod fetch failed, in which case
                utilization cannot be computed and renders as ``-``
        """
        provisioner, capacity_type = node_labels(node)
        if not pods_available:
            return NodeMetadata(provisioner, capacity_type, NO_DATA, NO_DATA)

        name = (node.get("metadata") or {}).get("name", "")
        allocatable = (node.get("status") or {}).get("allocatable") or {}
        try:
            cpu_requested, memory_requested = requested_totals(pods)
            cpu_allocatable = parse_cpu(allocatable.get("cpu"))
            memory_allocatable = parse_memory(allocatable.get("memory"))
        except ValueError as e:
            logger.warning("Cannot compute utilization", node=name, error=str(e))
            return NodeMetadata(provisioner, capacity_type, NO_DATA, NO_DATA)

        return NodeMetadata(
            provisioner=provisioner,
            capacity_type=capacity_type,
            cpu_util=utilization_percent(cpu_requested, cpu_allocatable),
            mem_util=utilization_percent(memory_requested, memory_allocatable),
        )

    def resolve(
        self,
        nodes: Iterable[dict[str, Any]],
        pods_by_node: dict[str, list[PodRecord]],
        pods_unavailable: Collection[str] = (),
    ) -> dict[str, NodeMetadata]:
        """Resolve metadata for every node, keyed by node name.

        Nodes named in ``pods_unavailable`` had their pod query fail and get
        ``-`` for utilization.
        """
        result = {}
        for node in nodes:
            name = (node.get("metadata") or {}).get("name")
            if not name:
                continue
            result[name] = self.resolve_node(
                node, pods_by_node.get(name, []), name not in pods_unavailable
            )
        return result
