"""Derive consolidation blocker codes from pod annotations and node events.

Blockers come from two independent signals that are reconciled into one
closed vocabulary (see ``models.BLOCKER_CODES``):

* pod annotations, checked in a fixed priority order, one code per pod;
* node events about consolidation, whose free-text messages are normalized
  through an ordered rule table. Events that name a specific pod only count
  while that pod is still on the node.

Every rule table is an ordered tuple of ``(predicate, code)`` pairs
evaluated by :func:`first_match`, so the priority order is explicit.
"""

import re
from typing import Callable, Iterable, TypeVar

from kubekit.consolidation.models import (
    BlockerSet,
    NodeEvent,
    NodeMetadata,
    PodRecord,
)

T = TypeVar("T")

AnnotationRule = tuple[Callable[[dict[str, str]], bool], str]
MessageRule = tuple[Callable[[str], bool], str]

HIGH_UTILIZATION = "high-utilization"
LOCAL_STORAGE = "local-storage"

BLOCKING_REASONS = frozenset(
    {"CannotConsolidate", "DeprovisioningBlocked", "DisruptionBlocked"}
)
CONSOLIDATION_MESSAGE = re.compile(r"consolidat|deprovision|disrupt", re.IGNORECASE)
POD_REFERENCE = re.compile(r'\bPod "([^"/\s]+)/([^"\s]+)"', re.IGNORECASE)


def first_match(rules: Iterable[tuple[Callable[[T], bool], str]], value: T) -> str | None:
    """Return the code of the first rule whose predicate accepts value."""
    for predicate, code in rules:
        if predicate(value):
            return code
    return None


def _annotation_true(key: str) -> Callable[[dict[str, str]], bool]:
    def predicate(annotations: dict[str, str]) -> bool:
        return annotations.get(key) == "true"

    return predicate


def _message_matches(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern, re.IGNORECASE)

    def predicate(message: str) -> bool:
        return compiled.search(message) is not None

    return predicate


ANNOTATION_RULES: tuple[AnnotationRule, ...] = (
    (_annotation_true("karpenter.sh/do-not-evict"), "do-not-evict"),
    (_annotation_true("karpenter.sh/do-not-disrupt"), "do-not-disrupt"),
    (_annotation_true("karpenter.sh/do-not-consolidate"), "do-not-consolidate"),
)

MESSAGE_RULES: tuple[MessageRule, ...] = (
    (_message_matches(r"pdb.*prevent"), "pdb-violation"),
    (_message_matches(r"local storage"), "local-storage"),
    (_message_matches(r"non-replicated"), "non-replicated"),
    (_message_matches(r"would increase cost"), "would-increase-cost"),
    (_message_matches(r"in-use security group"), "in-use-security-group"),
    (_message_matches(r"on-demand"), "on-demand-protection"),
    (_message_matches(r"do-not-consolidate"), "do-not-consolidate"),
    (_message_matches(r"do-not-disrupt"), "do-not-disrupt"),
    (_message_matches(r"do-not-evict"), "do-not-evict"),
)


def pod_blocker(pod: PodRecord) -> str | None:
    """Blocker code carried by a pod's annotations, if any."""
    return first_match(ANNOTATION_RULES, pod.annotations)


def is_consolidation_event(event: NodeEvent) -> bool:
    """Whether an event is about consolidation or disruption at all."""
    return event.reason in BLOCKING_REASONS or bool(
        CONSOLIDATION_MESSAGE.search(event.message)
    )


def referenced_pod(message: str) -> tuple[str, str] | None:
    """Extract ``(namespace, name)`` from a ``Pod "ns/name"`` reference."""
    match = POD_REFERENCE.search(message)
    if match is None:
        return None
    return match.group(1), match.group(2)


def event_blocker(event: NodeEvent, live_pods: set[tuple[str, str]]) -> str | None:
    """Blocker code for a node event, or None if it should not count.

    Args:
        event: The node event
        live_pods: ``(namespace, name)`` of the pods currently on the node
    """
    if not is_consolidation_event(event):
        return None
    pod = referenced_pod(event.message)
    if pod is not None and pod not in live_pods:
        return None
    return first_match(MESSAGE_RULES, event.message)


def classify_node(
    pods: Iterable[PodRecord],
    events: Iterable[NodeEvent],
    metadata: NodeMetadata | None = None,
    utilization_threshold: int = 80,
) -> BlockerSet:
    """Compute the blocker set of one node.

    Args:
        pods: Pods grouped under the node
        events: Events grouped under the node
        metadata: Resolved metadata; utilization is ignored when absent
        utilization_threshold: Percentage at which CPU or memory counts as
            a high-utilization blocker
    """
    codes: set[str] = set()
    pods = list(pods)

    if metadata is not None and metadata.utilization_at_least(utilization_threshold):
        codes.add(HIGH_UTILIZATION)

    for pod in pods:
        code = pod_blocker(pod)
        if code:
            codes.add(code)

    live_pods = {pod.key for pod in pods}
    for event in events:
        code = event_blocker(event, live_pods)
        if code:
            codes.add(code)

    return BlockerSet(frozenset(codes))


def pod_detail_reason(pod: PodRecord, include_local_storage: bool = True) -> str | None:
    """Reason a single pod blocks consolidation, for the pod-detail view."""
    code = pod_blocker(pod)
    if code is None and include_local_storage and pod.has_local_storage:
        return LOCAL_STORAGE
    return code


class BlockerClassifier:
    """Classifies every node of a report from the indexed snapshot."""

    def __init__(self, utilization_threshold: int = 80):
        self.utilization_threshold = utilization_threshold

    def classify(
        self,
        node_names: Iterable[str],
        pods_by_node: dict[str, list[PodRecord]],
        events_by_node: dict[str, list[NodeEvent]],
        metadata_by_node: dict[str, NodeMetadata] | None = None,
    ) -> dict[str, BlockerSet]:
        """Compute the blocker set of each named node."""
        metadata_by_node = metadata_by_node or {}
        return {
            name: classify_node(
                pods_by_node.get(name, []),
                events_by_node.get(name, []),
                metadata_by_node.get(name),
                self.utilization_threshold,
            )
            for name in node_names
        }
