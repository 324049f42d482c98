"""Tests for consolidation blocker classification."""

import pytest

from kubekit.consolidation.classifier import (
    BlockerClassifier,
    classify_node,
    event_blocker,
    is_consolidation_event,
    pod_blocker,
    pod_detail_reason,
    referenced_pod,
)
from kubekit.consolidation.models import BlockerSet, NodeEvent, NodeMetadata, PodRecord


def pod(name="web-0", namespace="default", node="node-1") -> PodRecord:
    return PodRecord(node_name=node, namespace=namespace, name=name)


def annotated(name: str, *keys: str, node: str = "node-1") -> PodRecord:
    return PodRecord(
        node_name=node,
        namespace="default",
        name=name,
        annotations={key: "true" for key in keys},
    )


def event(message: str, reason: str = "CannotConsolidate", node: str = "node-1") -> NodeEvent:
    return NodeEvent(node_name=node, reason=reason, message=message)


class TestPodBlocker:
    """Tests for annotation-derived codes."""

    def test_no_annotations(self):
        assert pod_blocker(pod()) is None

    def test_do_not_disrupt(self):
        assert pod_blocker(annotated("a", "karpenter.sh/do-not-disrupt")) == "do-not-disrupt"

    def test_do_not_evict_wins(self):
        """do-not-evict has the highest priority among annotations."""
        record = annotated(
            "a",
            "karpenter.sh/do-not-consolidate",
            "karpenter.sh/do-not-disrupt",
            "karpenter.sh/do-not-evict",
        )
        assert pod_blocker(record) == "do-not-evict"

    def test_disrupt_before_consolidate(self):
        record = annotated(
            "a", "karpenter.sh/do-not-consolidate", "karpenter.sh/do-not-disrupt"
        )
        assert pod_blocker(record) == "do-not-disrupt"

    def test_value_must_be_exactly_true(self):
        record = PodRecord(
            node_name="node-1",
            namespace="default",
            name="a",
            annotations={"karpenter.sh/do-not-disrupt": "True"},
        )
        assert pod_blocker(record) is None


class TestEventBlocker:
    """Tests for event message normalization."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Cannot disrupt Node: PDB default/web prevents pod evictions", "pdb-violation"),
            ("Cannot consolidate node: pod has local storage", "local-storage"),
            ("Cannot consolidate: non-replicated pod", "non-replicated"),
            ("Consolidation would increase cost", "would-increase-cost"),
            ("Cannot consolidate: in-use security group sg-123", "in-use-security-group"),
            ("Cannot consolidate on-demand node", "on-demand-protection"),
            ("Cannot disrupt Node: has do-not-consolidate annotation", "do-not-consolidate"),
        ],
    )
    def test_message_rules(self, message, expected):
        assert event_blocker(event(message), set()) == expected

    def test_unrecognized_message(self):
        assert event_blocker(event("Cannot consolidate for an unexpected reason"), set()) is None

    def test_unrelated_event(self):
        unrelated = event("Kubelet is posting ready status", reason="NodeReady")
        assert not is_consolidation_event(unrelated)
        assert event_blocker(unrelated, set()) is None

    def test_reason_alone_marks_consolidation_event(self):
        assert is_consolidation_event(event("pod has local storage", reason="DisruptionBlocked"))

    def test_referenced_pod(self):
        assert referenced_pod('Cannot disrupt Node: Pod "prod/db-0" has local storage') == (
            "prod",
            "db-0",
        )
        assert referenced_pod("no pod mentioned") is None

    def test_stale_pod_reference_ignored(self):
        stale = event('Cannot consolidate: Pod "default/gone-1" has local storage')
        assert event_blocker(stale, {("default", "web-0")}) is None

    def test_live_pod_reference_counts(self):
        live = event('Cannot consolidate: Pod "default/web-0" has local storage')
        assert event_blocker(live, {("default", "web-0")}) == "local-storage"


class TestClassifyNode:
    """Tests for per-node blocker sets."""

    def test_empty_node(self):
        result = classify_node([], [])
        assert result == BlockerSet()
        assert result.render() == "<none>"

    def test_union_of_pods_and_events(self):
        pods = [
            annotated("a", "karpenter.sh/do-not-evict"),
            annotated("b", "karpenter.sh/do-not-disrupt"),
        ]
        events = [event("Consolidation would increase cost")]
        result = classify_node(pods, events)
        assert result.render() == "do-not-disrupt,do-not-evict,would-increase-cost"

    def test_duplicate_codes_collapse(self):
        pods = [
            annotated("a", "karpenter.sh/do-not-disrupt"),
            annotated("b", "karpenter.sh/do-not-disrupt"),
        ]
        events = [event("Cannot disrupt: do-not-disrupt annotation present")]
        assert classify_node(pods, events).codes == frozenset({"do-not-disrupt"})

    def test_high_utilization(self):
        metadata = NodeMetadata("default", "spot", 85, 40)
        assert "high-utilization" in classify_node([], [], metadata, 80)
        assert "high-utilization" not in classify_node([], [], metadata, 90)

    def test_utilization_without_data(self):
        metadata = NodeMetadata("default", "spot", "-", "-")
        assert not classify_node([], [], metadata, 1)

    def test_idempotent(self):
        pods = [annotated("a", "karpenter.sh/do-not-consolidate")]
        events = [event("Cannot consolidate on-demand node")]
        assert classify_node(pods, events) == classify_node(pods, events)


class TestBlockerClassifier:
    """Tests for classifying every node of a report."""

    def test_classify_all_nodes(self):
        pods_by_node = {"node-1": [annotated("a", "karpenter.sh/do-not-disrupt")]}
        events_by_node = {"node-2": [event("Cannot consolidate on-demand node", node="node-2")]}
        result = BlockerClassifier().classify(
            ["node-1", "node-2", "node-3"], pods_by_node, events_by_node
        )
        assert result["node-1"].render() == "do-not-disrupt"
        assert result["node-2"].render() == "on-demand-protection"
        assert result["node-3"].render() == "<none>"

    def test_threshold_applies(self):
        metadata = {"node-1": NodeMetadata("default", "spot", 50, 70)}
        result = BlockerClassifier(utilization_threshold=60).classify(
            ["node-1"], {}, {}, metadata
        )
        assert result["node-1"].codes == frozenset({"high-utilization"})


class TestPodDetailReason:
    def test_annotation(self):
        assert pod_detail_reason(annotated("a", "karpenter.sh/do-not-evict")) == "do-not-evict"

    def test_local_storage(self):
        record = PodRecord("node-1", "default", "cache-0", has_local_storage=True)
        assert pod_detail_reason(record) == "local-storage"
        assert pod_detail_reason(record, include_local_storage=False) is None

    def test_annotation_beats_local_storage(self):
        record = PodRecord(
            "node-1",
            "default",
            "cache-0",
            annotations={"karpenter.sh/do-not-consolidate": "true"},
            has_local_storage=True,
        )
        assert pod_detail_reason(record) == "do-not-consolidate"

    def test_plain_pod(self):
        assert pod_detail_reason(pod()) is None


class TestBlockerSet:
    def test_rejects_unknown_codes(self):
        with pytest.raises(ValueError):
            BlockerSet(frozenset({"unknown"}))

    def test_union(self):
        assert BlockerSet().union("pdb-violation").render() == "pdb-violation"
