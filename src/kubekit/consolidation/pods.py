"""Per-pod view of consolidation blockers on selected nodes."""

from datetime import datetime
from typing import Sequence

from kubekit.consolidation.classifier import pod_detail_reason
from kubekit.consolidation.models import PodBlockerRow, PodRecord
from kubekit.core.output import render_plain_table
from kubekit.core.utils import format_age

POD_HEADERS = ["NODE", "NAMESPACE", "POD", "AGE", "REASON"]


class PodDetailReporter:
    """Lists the individual pods that block consolidation of given nodes."""

    def __init__(self, include_local_storage: bool = True):
        self.include_local_storage = include_local_storage

    def rows(
        self,
        pods_by_node: dict[str, list[PodRecord]],
        node_names: Sequence[str],
        now: datetime | None = None,
    ) -> list[PodBlockerRow]:
        """Blocking pods of the named nodes, in argument order."""
        rows = []
        for node_name in dict.fromkeys(node_names):
            pods = sorted(pods_by_node.get(node_name, []), key=lambda p: p.key)
            for pod in pods:
                reason = pod_detail_reason(pod, self.include_local_storage)
                if reason is None:
                    continue
                rows.append(
                    PodBlockerRow(
                        node_name=node_name,
                        namespace=pod.namespace,
                        pod_name=pod.name,
                        age=format_age(pod.creation_timestamp, now),
                        reason=reason,
                    )
                )
        return rows

    def render(self, rows: Sequence[PodBlockerRow], show_headers: bool = True) -> str:
        return render_plain_table(
            POD_HEADERS,
            [[r.node_name, r.namespace, r.pod_name, r.age, r.reason] for r in rows],
            show_headers,
        )
