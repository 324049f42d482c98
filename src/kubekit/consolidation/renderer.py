"""Build the node listing and render it with the computed report columns."""

from datetime import datetime
from typing import Any, Sequence

from kubekit.consolidation.models import ERROR, NONE, NodeListing, NodeReportRow, NodeRow
from kubekit.core.logging import StructuredLogger
from kubekit.core.output import render_plain_table
from kubekit.core.utils import format_age

logger = StructuredLogger(__name__)

BASE_HEADERS = ["NAME", "STATUS", "ROLES", "AGE", "VERSION"]
WIDE_HEADERS = ["INTERNAL-IP", "EXTERNAL-IP", "OS-IMAGE", "KERNEL-VERSION", "CONTAINER-RUNTIME"]
LABELS_HEADER = "LABELS"
REPORT_HEADERS = ["PROVISIONER", "CAPACITY-TYPE", "CPU-UTIL", "MEM-UTIL", "CONSOLIDATION-BLOCKER"]

ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
LEGACY_ROLE_LABEL = "kubernetes.io/role"


def node_status(node: dict[str, Any]) -> str:
    """Ready condition of a node, with SchedulingDisabled when cordoned."""
    conditions = (node.get("status") or {}).get("conditions") or []
    status = "Unknown"
    for condition in conditions:
        if condition.get("type") == "Ready":
            status = "Ready" if condition.get("status") == "True" else "NotReady"
            break
    if (node.get("spec") or {}).get("unschedulable"):
        status += ",SchedulingDisabled"
    return status


def node_roles(labels: dict[str, str]) -> str:
    """Comma-separated node roles from role labels."""
    roles = set()
    for key, value in labels.items():
        if key.startswith(ROLE_LABEL_PREFIX) and key != ROLE_LABEL_PREFIX:
            roles.add(key[len(ROLE_LABEL_PREFIX):])
        elif key == LEGACY_ROLE_LABEL and value:
            roles.add(value)
    return ",".join(sorted(roles)) if roles else NONE


def format_labels(labels: dict[str, str]) -> str:
    if not labels:
        return NONE
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))


def _address(node: dict[str, Any], kind: str) -> str:
    for address in (node.get("status") or {}).get("addresses") or []:
        if address.get("type") == kind:
            return address.get("address") or NONE
    return NONE


def node_cells(
    node: dict[str, Any],
    show_labels: bool = False,
    wide: bool = False,
    now: datetime | None = None,
) -> tuple[str, ...]:
    """Display cells of one node, as ``kubectl get nodes`` shows them."""
    metadata = node.get("metadata") or {}
    labels = metadata.get("labels") or {}
    node_info = (node.get("status") or {}).get("nodeInfo") or {}

    cells = [
        metadata.get("name", ""),
        node_status(node),
        node_roles(labels),
        format_age(metadata.get("creationTimestamp"), now),
        node_info.get("kubeletVersion") or NONE,
    ]
    if wide:
        cells.extend(
            [
                _address(node, "InternalIP"),
                _address(node, "ExternalIP"),
                node_info.get("osImage") or NONE,
                node_info.get("kernelVersion") or NONE,
                node_info.get("containerRuntimeVersion") or NONE,
            ]
        )
    if show_labels:
        cells.append(format_labels(labels))
    return tuple(cells)


def node_listing(
    nodes: Sequence[dict[str, Any]],
    show_labels: bool = False,
    wide: bool = False,
    now: datetime | None = None,
) -> NodeListing:
    """Turn node objects into listing rows, keeping their order."""
    headers = list(BASE_HEADERS)
    if wide:
        headers.extend(WIDE_HEADERS)
    if show_labels:
        headers.append(LABELS_HEADER)

    rows = [
        NodeRow(
            node_name=(node.get("metadata") or {}).get("name", ""),
            cells=node_cells(node, show_labels, wide, now),
        )
        for node in nodes
    ]
    return NodeListing(headers=headers, rows=rows, nodes=list(nodes))


class TableRenderer:
    """Renders the node listing, optionally merged with report columns."""

    def __init__(self, show_headers: bool = True):
        self.show_headers = show_headers

    def render_listing(self, listing: NodeListing) -> str:
        """Render the plain listing without computed columns."""
        return render_plain_table(
            listing.headers,
            [row.cells for row in listing.rows],
            self.show_headers,
        )

    def render_report(
        self,
        listing: NodeListing,
        report_rows: Sequence[NodeReportRow | None],
    ) -> str:
        """Render listing rows with their computed columns appended.

        Row i of the listing takes entry i of ``report_rows``. Rows without
        an entry (or with a None entry) get ``<error>`` in every computed
        column instead of failing the whole report.
        """
        rows = []
        for index, row in enumerate(listing.rows):
            computed = report_rows[index] if index < len(report_rows) else None
            if computed is None:
                logger.debug("No computed columns for row", line=row.raw_line)
                extra = [ERROR] * len(REPORT_HEADERS)
            else:
                extra = computed.computed_cells()
            rows.append([*row.cells, *extra])

        return render_plain_table(
            [*listing.headers, *REPORT_HEADERS],
            rows,
            self.show_headers,
        )
