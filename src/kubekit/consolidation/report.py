"""Assemble the consolidation blocker reports from their components."""

import json
from datetime import datetime
from typing import Sequence

import yaml

from kubekit.config import ConsolidationConfig
from kubekit.consolidation.classifier import BlockerClassifier
from kubekit.consolidation.fetcher import ListOptions, ResourceFetcher
from kubekit.consolidation.indexer import index_events, index_pods
from kubekit.consolidation.models import (
    BlockerSet,
    NodeEvent,
    NodeListing,
    NodeMetadata,
    NodeReportRow,
    PodRecord,
)
from kubekit.consolidation.pods import PodDetailReporter
from kubekit.consolidation.renderer import TableRenderer, node_listing
from kubekit.consolidation.resources import NodeMetadataResolver
from kubekit.core.exceptions import ValidationError
from kubekit.core.logging import StructuredLogger

logger = StructuredLogger(__name__)

PASSTHROUGH_FORMATS = ("json", "yaml", "name", "wide")


class ConsolidationAnalyzer:
    """Runs the fetch, index, classify and render pipeline.

    Args:
        fetcher: Fetcher bound to a cluster
        config: Consolidation settings
        utilization_threshold: Overrides the configured threshold
        include_nodeclaims: Also read NodeClaim events
    """

    def __init__(
        self,
        fetcher: ResourceFetcher,
        config: ConsolidationConfig,
        utilization_threshold: int | None = None,
        include_nodeclaims: bool = False,
    ):
        self.fetcher = fetcher
        self.config = config
        self.include_nodeclaims = include_nodeclaims
        threshold = (
            utilization_threshold
            if utilization_threshold is not None
            else config.get_utilization_threshold()
        )
        self.classifier = BlockerClassifier(threshold)
        self.resolver = NodeMetadataResolver()

    def node_listing(
        self,
        options: ListOptions,
        node_names: Sequence[str] = (),
        show_labels: bool = False,
        now: datetime | None = None,
    ) -> NodeListing:
        """Fetch the node listing. Failures here abort the report."""
        nodes = self.fetcher.fetch_nodes(options, node_names)
        return node_listing(nodes, show_labels=show_labels, now=now)

    def analyze(self, listing: NodeListing) -> list[NodeReportRow | None]:
        """Compute the report columns for each listing row, in row order.

        Pods are always read from every namespace.
        """
        fetched = self.fetcher.fetch_pods_and_events(
            listing.node_names, self.include_nodeclaims
        )
        pods_by_node = index_pods(fetched.pods)
        events_by_node = index_events(fetched.events, fetched.nodeclaim_nodes)
        logger.debug(
            "Indexed snapshot",
            nodes=len(listing.rows),
            pods=len(fetched.pods),
            events=len(fetched.events),
        )

        metadata = self.resolver.resolve(
            listing.nodes, pods_by_node, pods_unavailable=fetched.pods_failed_nodes
        )
        blockers = self._classify(listing, pods_by_node, events_by_node, metadata)

        report_rows: list[NodeReportRow | None] = []
        for row in listing.rows:
            node_metadata = metadata.get(row.node_name)
            if node_metadata is None:
                report_rows.append(None)
                continue
            report_rows.append(
                NodeReportRow(
                    row=row,
                    metadata=node_metadata,
                    blockers=blockers.get(row.node_name, BlockerSet()),
                )
            )
        return report_rows

    def _classify(
        self,
        listing: NodeListing,
        pods_by_node: dict[str, list[PodRecord]],
        events_by_node: dict[str, list[NodeEvent]],
        metadata: dict[str, NodeMetadata],
    ) -> dict[str, BlockerSet]:
        try:
            return self.classifier.classify(
                listing.node_names, pods_by_node, events_by_node, metadata
            )
        except Exception as e:
            logger.warning(
                "Blocker classification failed; showing <none> for all nodes",
                error=str(e),
            )
            return {}

    def node_report(
        self,
        options: ListOptions,
        node_names: Sequence[str] = (),
        show_labels: bool = False,
        show_headers: bool = True,
        now: datetime | None = None,
    ) -> str:
        """Build the node table with consolidation columns.

        Raises:
            K8sError: If the node listing cannot be fetched
        """
        listing = self.node_listing(options, node_names, show_labels, now)
        if not listing.rows:
            return ""
        report_rows = self.analyze(listing)
        return TableRenderer(show_headers).render_report(listing, report_rows)

    def pod_report(
        self,
        node_names: Sequence[str],
        namespace: str | None = None,
        show_headers: bool = True,
        now: datetime | None = None,
    ) -> str:
        """Build the per-pod blocker table for the named nodes.

        Raises:
            ValidationError: If no node names are given
        """
        if not node_names:
            raise ValidationError("--pods requires at least one node name")

        pods, failed = self.fetcher.fetch_pods(node_names, namespace)
        if failed:
            logger.warning("Pod list is incomplete; some blocking pods may be missing")
        reporter = PodDetailReporter(self.config.pod_local_storage)
        rows = reporter.rows(index_pods(pods), node_names, now)
        return reporter.render(rows, show_headers)

    def passthrough(
        self,
        output_format: str,
        options: ListOptions,
        node_names: Sequence[str] = (),
        show_labels: bool = False,
        show_headers: bool = True,
        now: datetime | None = None,
    ) -> str:
        """Render the node listing in a kubectl output format, without analysis.

        Raises:
            ValidationError: If the format is not supported
            K8sError: If the node listing cannot be fetched
        """
        if output_format not in PASSTHROUGH_FORMATS:
            raise ValidationError(
                f"unsupported output format '{output_format}' "
                f"(allowed: {', '.join(PASSTHROUGH_FORMATS)})"
            )

        if output_format == "json" and not node_names and not options.sort_by:
            return self.fetcher.fetch_nodes_raw(options).decode("utf-8").rstrip("\n")

        nodes = self.fetcher.fetch_nodes(options, node_names)
        if output_format == "name":
            return "\n".join(f"node/{node['metadata']['name']}" for node in nodes)
        if output_format == "wide":
            listing = node_listing(nodes, show_labels=show_labels, wide=True, now=now)
            return TableRenderer(show_headers).render_listing(listing)

        body = {"apiVersion": "v1", "kind": "List", "items": nodes}
        if output_format == "json":
            return json.dumps(body, indent=4)
        return yaml.safe_dump(body, default_flow_style=False, sort_keys=False).rstrip("\n")
