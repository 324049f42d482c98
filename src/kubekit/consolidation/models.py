"""Data types for the node consolidation blocker report."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NONE = "<none>"
ERROR = "<error>"
NO_DATA = "-"

BLOCKER_CODES = frozenset(
    {
        "do-not-evict",
        "do-not-disrupt",
        "do-not-consolidate",
        "pdb-violation",
        "local-storage",
        "non-replicated",
        "would-increase-cost",
        "in-use-security-group",
        "on-demand-protection",
        "high-utilization",
    }
)


@dataclass(frozen=True)
class NodeRow:
    """One row of the plain node listing."""

    node_name: str
    cells: tuple[str, ...]

    @property
    def raw_line(self) -> str:
        return "   ".join(self.cells)


@dataclass
class NodeListing:
    """The node listing as fetched: display headers, rows and node objects."""

    headers: list[str]
    rows: list[NodeRow]
    nodes: list[dict[str, Any]] = field(default_factory=list)

    @property
    def node_names(self) -> list[str]:
        return [row.node_name for row in self.rows]


@dataclass(frozen=True)
class ContainerRequests:
    """Resource requests of one container, as given in the pod spec."""

    cpu: str | int | float | None = None
    memory: str | int | float | None = None


@dataclass(frozen=True)
class PodRecord:
    """Reduced projection of a pod object."""

    node_name: str
    namespace: str
    name: str
    annotations: dict[str, str] = field(default_factory=dict, hash=False)
    container_requests: tuple[ContainerRequests, ...] = ()
    creation_timestamp: datetime | None = None
    has_local_storage: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.namespace, self.name)


@dataclass(frozen=True)
class NodeEvent:
    """Reduced projection of an event about a Node (or its NodeClaim)."""

    node_name: str
    reason: str
    message: str
    involved_kind: str = "Node"


@dataclass
class FetchResult:
    """Raw pod and event items plus which parts of each fetch failed."""

    pods: list[dict[str, Any]] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)
    pods_failed_nodes: frozenset[str] = frozenset()
    events_complete: bool = True
    nodeclaim_nodes: dict[str, str] = field(default_factory=dict)

    @property
    def pods_complete(self) -> bool:
        return not self.pods_failed_nodes


@dataclass(frozen=True)
class BlockerSet:
    """Deduplicated blocker codes for one node."""

    codes: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        unknown = self.codes - BLOCKER_CODES
        if unknown:
            raise ValueError(f"Unknown blocker codes: {', '.join(sorted(unknown))}")

    def __bool__(self) -> bool:
        return bool(self.codes)

    def __contains__(self, code: object) -> bool:
        return code in self.codes

    def union(self, *codes: str) -> "BlockerSet":
        return BlockerSet(self.codes | frozenset(codes))

    def render(self) -> str:
        if not self.codes:
            return NONE
        return ",".join(sorted(self.codes))


@dataclass(frozen=True)
class NodeMetadata:
    """Label-derived and computed columns for one node."""

    provisioner: str = NONE
    capacity_type: str = NONE
    cpu_util: int | str = NO_DATA
    mem_util: int | str = NO_DATA

    def utilization_at_least(self, threshold: int) -> bool:
        for value in (self.cpu_util, self.mem_util):
            if isinstance(value, int) and value >= threshold:
                return True
        return False

    @staticmethod
    def format_util(value: int | str) -> str:
        if isinstance(value, int):
            return f"{value}%"
        return value


@dataclass(frozen=True)
class NodeReportRow:
    """A listing row joined with its computed columns."""

    row: NodeRow
    metadata: NodeMetadata
    blockers: BlockerSet

    def computed_cells(self) -> list[str]:
        return [
            self.metadata.provisioner,
            self.metadata.capacity_type,
            NodeMetadata.format_util(self.metadata.cpu_util),
            NodeMetadata.format_util(self.metadata.mem_util),
            self.blockers.render(),
        ]


@dataclass(frozen=True)
class PodBlockerRow:
    """One row of the pod-detail report."""

    node_name: str
    namespace: str
    pod_name: str
    age: str
    reason: str
