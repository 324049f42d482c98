"""Group pods and node events by node name."""

from collections import defaultdict
from typing import Any, Iterable

from kubekit.consolidation.models import ContainerRequests, NodeEvent, PodRecord
from kubekit.core.utils import parse_timestamp


def pod_record(item: dict[str, Any]) -> PodRecord:
    """Project a pod object onto the fields the report needs."""
    metadata = item.get("metadata") or {}
    spec = item.get("spec") or {}

    requests = []
    for container in spec.get("containers") or []:
        resource_requests = (container.get("resources") or {}).get("requests") or {}
        requests.append(
            ContainerRequests(
                cpu=resource_requests.get("cpu"),
                memory=resource_requests.get("memory"),
            )
        )

    return PodRecord(
        node_name=spec.get("nodeName") or "",
        namespace=metadata.get("namespace") or "",
        name=metadata.get("name") or "",
        annotations=dict(metadata.get("annotations") or {}),
        container_requests=tuple(requests),
        creation_timestamp=parse_timestamp(metadata.get("creationTimestamp")),
        has_local_storage=any(
            "emptyDir" in volume for volume in spec.get("volumes") or []
        ),
    )


def node_event(item: dict[str, Any], node_name: str | None = None) -> NodeEvent:
    """Project an event onto the fields the report needs.

    Args:
        item: Event object
        node_name: Node the event belongs to, when the involved object is
            not the node itself (NodeClaim events)
    """
    involved = item.get("involvedObject") or {}
    return NodeEvent(
        node_name=node_name or involved.get("name") or "",
        reason=item.get("reason") or "",
        message=item.get("message") or "",
        involved_kind=involved.get("kind") or "",
    )


def index_pods(items: Iterable[dict[str, Any]]) -> dict[str, list[PodRecord]]:
    """Group pods by the node they are scheduled on.

    Unscheduled pods are left out. Duplicates (the same pod returned by two
    scoped queries) are kept once.
    """
    pods_by_node: dict[str, list[PodRecord]] = defaultdict(list)
    seen: set[tuple[str, str]] = set()
    for item in items:
        record = pod_record(item)
        if not record.node_name or record.key in seen:
            continue
        seen.add(record.key)
        pods_by_node[record.node_name].append(record)
    return dict(pods_by_node)


def index_events(
    items: Iterable[dict[str, Any]],
    nodeclaim_nodes: dict[str, str] | None = None,
) -> dict[str, list[NodeEvent]]:
    """Group node events by node name.

    Events about anything other than a Node are dropped, except NodeClaim
    events whose claim resolves to a node through ``nodeclaim_nodes``.

    Args:
        items: Event objects
        nodeclaim_nodes: Mapping of NodeClaim name to node name
    """
    nodeclaim_nodes = nodeclaim_nodes or {}
    events_by_node: dict[str, list[NodeEvent]] = defaultdict(list)
    for item in items:
        involved = item.get("involvedObject") or {}
        kind = involved.get("kind")
        if kind == "Node":
            event = node_event(item)
        elif kind == "NodeClaim" and involved.get("name") in nodeclaim_nodes:
            event = node_event(item, nodeclaim_nodes[involved["name"]])
        else:
            continue
        if event.node_name:
            events_by_node[event.node_name].append(event)
    return dict(events_by_node)
