"""Karpenter consolidation blocker report."""

from kubekit.consolidation.classifier import BlockerClassifier
from kubekit.consolidation.fetcher import ListOptions, ResourceFetcher
from kubekit.consolidation.models import BlockerSet, NodeMetadata, PodRecord
from kubekit.consolidation.pods import PodDetailReporter
from kubekit.consolidation.renderer import TableRenderer
from kubekit.consolidation.report import ConsolidationAnalyzer
from kubekit.consolidation.resources import NodeMetadataResolver

__all__ = [
    "BlockerClassifier",
    "BlockerSet",
    "ConsolidationAnalyzer",
    "ListOptions",
    "NodeMetadata",
    "NodeMetadataResolver",
    "PodDetailReporter",
    "PodRecord",
    "ResourceFetcher",
    "TableRenderer",
]
