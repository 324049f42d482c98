"""Tests for the node listing and report table."""

from kubekit.consolidation.models import BlockerSet, NodeMetadata, NodeReportRow
from kubekit.consolidation.renderer import (
    TableRenderer,
    format_labels,
    node_listing,
    node_roles,
    node_status,
)


class TestNodeCells:
    def test_status(self, make_node):
        assert node_status(make_node("a")) == "Ready"
        assert node_status(make_node("a", ready=False)) == "NotReady"

    def test_cordoned(self, make_node):
        node = make_node("a")
        node["spec"]["unschedulable"] = True
        assert node_status(node) == "Ready,SchedulingDisabled"

    def test_roles(self):
        assert node_roles({"node-role.kubernetes.io/control-plane": ""}) == "control-plane"
        assert node_roles({"kubernetes.io/role": "worker"}) == "worker"
        assert node_roles({}) == "<none>"

    def test_labels(self):
        assert format_labels({"b": "2", "a": "1"}) == "a=1,b=2"
        assert format_labels({}) == "<none>"


class TestNodeListing:
    def test_headers_and_rows(self, make_node, now):
        listing = node_listing([make_node("node-1"), make_node("node-2")], now=now)
        assert listing.headers == ["NAME", "STATUS", "ROLES", "AGE", "VERSION"]
        assert listing.node_names == ["node-1", "node-2"]
        assert listing.rows[0].cells == ("node-1", "Ready", "<none>", "1d", "v1.29.0")

    def test_show_labels(self, make_node, now):
        listing = node_listing([make_node("node-1", labels={"a": "1"})], show_labels=True, now=now)
        assert listing.headers[-1] == "LABELS"
        assert listing.rows[0].cells[-1] == "a=1"

    def test_wide(self, make_node, now):
        listing = node_listing([make_node("node-1")], wide=True, now=now)
        assert "INTERNAL-IP" in listing.headers
        assert "10.0.0.1" in listing.rows[0].cells
        assert "containerd://1.6.28" in listing.rows[0].cells


class TestTableRenderer:
    """Tests for merging computed columns into the listing."""

    def _report_row(self, listing, index, codes=()):
        return NodeReportRow(
            row=listing.rows[index],
            metadata=NodeMetadata("default", "spot", 12, 34),
            blockers=BlockerSet(frozenset(codes)),
        )

    def test_render_report(self, make_node, now):
        listing = node_listing([make_node("node-1")], now=now)
        text = TableRenderer().render_report(
            listing, [self._report_row(listing, 0, ["do-not-disrupt"])]
        )
        header, row = text.splitlines()
        assert header.split() == [
            "NAME", "STATUS", "ROLES", "AGE", "VERSION",
            "PROVISIONER", "CAPACITY-TYPE", "CPU-UTIL", "MEM-UTIL", "CONSOLIDATION-BLOCKER",
        ]
        assert row.split() == [
            "node-1", "Ready", "<none>", "1d", "v1.29.0",
            "default", "spot", "12%", "34%", "do-not-disrupt",
        ]

    def test_columns_aligned(self, make_node, now):
        listing = node_listing([make_node("a"), make_node("much-longer-node-name")], now=now)
        lines = TableRenderer().render_listing(listing).splitlines()
        assert lines[1].index("Ready") == lines[2].index("Ready")

    def test_missing_rows_render_error(self, make_node, now):
        listing = node_listing([make_node(f"node-{i}") for i in range(1, 6)], now=now)
        report_rows = [self._report_row(listing, i) for i in range(3)]
        lines = TableRenderer().render_report(listing, report_rows).splitlines()
        assert len(lines) == 6
        assert lines[3].split()[-1] == "<none>"
        assert lines[4].split()[-5:] == ["<error>"] * 5
        assert lines[5].split()[-5:] == ["<error>"] * 5

    def test_no_headers(self, make_node, now):
        listing = node_listing([make_node("node-1")], now=now)
        text = TableRenderer(show_headers=False).render_listing(listing)
        lines = text.splitlines()
        assert len(lines) == 1
        assert lines[0].split() == ["node-1", "Ready", "<none>", "1d", "v1.29.0"]

    def test_raw_line(self, make_node, now):
        row = node_listing([make_node("node-1")], now=now).rows[0]
        assert row.raw_line.split() == ["node-1", "Ready", "<none>", "1d", "v1.29.0"]
