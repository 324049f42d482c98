"""Tests for grouping pods and events by node."""

from datetime import datetime, timezone

from kubekit.consolidation.indexer import index_events, index_pods, pod_record


class TestPodRecord:
    def test_projection(self, make_pod):
        record = pod_record(
            make_pod(
                "web-0",
                "node-1",
                namespace="prod",
                annotations={"karpenter.sh/do-not-disrupt": "true"},
                cpu="250m",
                memory="128Mi",
                empty_dir=True,
            )
        )
        assert record.key == ("prod", "web-0")
        assert record.node_name == "node-1"
        assert record.annotations == {"karpenter.sh/do-not-disrupt": "true"}
        assert record.container_requests[0].cpu == "250m"
        assert record.container_requests[0].memory == "128Mi"
        assert record.has_local_storage
        assert record.creation_timestamp == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_missing_fields(self):
        record = pod_record({"metadata": {"name": "bare"}})
        assert record.node_name == ""
        assert record.annotations == {}
        assert record.container_requests == ()
        assert not record.has_local_storage


class TestIndexPods:
    """Tests for pod grouping."""

    def test_groups_by_node(self, make_pod):
        index = index_pods(
            [
                make_pod("a", "node-1"),
                make_pod("b", "node-2"),
                make_pod("c", "node-1"),
            ]
        )
        assert sorted(index) == ["node-1", "node-2"]
        assert [p.name for p in index["node-1"]] == ["a", "c"]

    def test_skips_unscheduled(self, make_pod):
        assert index_pods([make_pod("pending", None)]) == {}

    def test_deduplicates(self, make_pod):
        index = index_pods([make_pod("a", "node-1"), make_pod("a", "node-1")])
        assert len(index["node-1"]) == 1

    def test_same_name_other_namespace(self, make_pod):
        index = index_pods(
            [make_pod("a", "node-1"), make_pod("a", "node-1", namespace="kube-system")]
        )
        assert len(index["node-1"]) == 2


class TestIndexEvents:
    """Tests for event grouping."""

    def test_node_events(self, make_event):
        index = index_events(
            [
                make_event("node-1", "CannotConsolidate", "would increase cost"),
                make_event("node-2", "NodeReady", "ready"),
            ]
        )
        assert index["node-1"][0].reason == "CannotConsolidate"
        assert index["node-2"][0].message == "ready"

    def test_drops_other_kinds(self, make_event):
        assert index_events([make_event("web-0", "Pulled", "pulled", kind="Pod")]) == {}

    def test_nodeclaim_events_map_to_node(self, make_event):
        index = index_events(
            [
                make_event("default-abc12", "DisruptionBlocked", "pdb prevents", kind="NodeClaim"),
                make_event("default-zzz99", "DisruptionBlocked", "pdb prevents", kind="NodeClaim"),
            ],
            nodeclaim_nodes={"default-abc12": "node-1"},
        )
        assert list(index) == ["node-1"]
        assert index["node-1"][0].involved_kind == "NodeClaim"
