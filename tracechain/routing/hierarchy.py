"""
Fixed decision hierarchy that routes new lots to processing queues.

The tree is four levels deep:

1. region pair (North/South vs East/West)
2. individual region
3. quality gate (freshness >= 8.0 or any certification)
4. Premium / Standard leaves, each holding a FIFO of pending handoffs
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import RecordAlreadyRouted, UnknownNode
from ..models import HandoffRecord, Lot, Region
from . import demand
from .nodes import Criterion, DecisionNode, NodeStage, TerminalQueue, evaluate

ROOT_ID = "root"

_PAIRS = [
    ("northSouth", "North vs South", Region.NORTH, Region.SOUTH),
    ("eastWest", "East vs West", Region.EAST, Region.WEST),
]


@dataclass
class RoutingDecision:
    """Outcome of classifying a lot, before anything is enqueued."""

    leaf_id: str
    path: List[str]  # node ids from root to leaf
    decisions: List[Tuple[str, bool]] = field(default_factory=list)  # (node_id, took true-branch)
    demand: float = demand.DEFAULT_DEMAND

    @property
    def path_text(self) -> str:
        return " -> ".join(self.path)


@dataclass
class QueueStatus:
    """Queue length at one leaf, for status reporting."""

    node_id: str
    description: str
    size: int

    @property
    def label(self) -> str:
        return f"{self.node_id} ({self.description})"

    def to_dict(self) -> dict:
        return {"node_id": self.node_id, "description": self.description, "size": self.size}


class RoutingHierarchy:
    """
    Classifies lots into one of eight terminal destinations.

    The structure is built once in ``__init__`` and never changes; only the
    leaf queues mutate.
    """

    def __init__(self):
        self._nodes: Dict[str, DecisionNode] = {}
        self._queues: Dict[str, TerminalQueue] = {}
        self._build()

    def _build(self) -> None:
        self._add(
            DecisionNode(
                ROOT_ID,
                "Region Split: North/South vs East/West",
                NodeStage.AREA_BASED,
                Criterion.region_in(Region.NORTH, Region.SOUTH),
                true_branch="northSouth",
                false_branch="eastWest",
            )
        )
        for pair_id, pair_description, first, second in _PAIRS:
            self._add(
                DecisionNode(
                    pair_id,
                    pair_description,
                    NodeStage.AREA_BASED,
                    Criterion.region_is(first),
                    true_branch=first.value.lower(),
                    false_branch=second.value.lower(),
                )
            )
            for region in (first, second):
                self._add_region(region)

    def _add_region(self, region: Region) -> None:
        region_id = region.value.lower()
        self._add(
            DecisionNode(
                region_id,
                f"{region.value}: Premium vs Standard",
                NodeStage.QUALITY_BASED,
                Criterion.quality_gate(),
                true_branch=f"{region_id}Premium",
                false_branch=f"{region_id}Standard",
            )
        )
        for grade in ("Premium", "Standard"):
            leaf = DecisionNode(
                f"{region_id}{grade}", f"{region.value} {grade}", NodeStage.FINAL_DESTINATION
            )
            self._add(leaf)
            self._queues[leaf.node_id] = TerminalQueue(leaf)

    def _add(self, node: DecisionNode) -> None:
        self._nodes[node.node_id] = node

    @property
    def root(self) -> DecisionNode:
        return self._nodes[ROOT_ID]

    def node_by_id(self, node_id: str) -> Optional[DecisionNode]:
        """Look up any node of the tree; None if the id is unknown."""
        return self._nodes.get(node_id)

    def walk(self) -> Iterator[Tuple[int, DecisionNode]]:
        """Pre-order walk yielding ``(depth, node)``, true-branch first."""
        stack = [(0, self.root)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for child_id in (node.false_branch, node.true_branch):
                if child_id is not None:
                    stack.append((depth + 1, self._nodes[child_id]))

    def leaves(self) -> List[DecisionNode]:
        """Leaf nodes in tree order (left to right)."""
        return [node for _, node in self.walk() if node.is_leaf]

    def queue(self, leaf_id: str) -> TerminalQueue:
        """Queue held at a leaf.

        Raises:
            UnknownNode: ``leaf_id`` does not name a leaf
        """
        queue = self._queues.get(leaf_id)
        if queue is None:
            if leaf_id in self._nodes:
                raise UnknownNode(leaf_id, "is an internal node, not a leaf")
            raise UnknownNode(leaf_id)
        return queue

    def queue_size(self, node_id: str) -> int:
        """Pending items at a node; internal nodes hold no queue."""
        queue = self._queues.get(node_id)
        return len(queue) if queue is not None else 0

    def demand_for(self, region: Region, category: str) -> float:
        return demand.demand_for(region, category)

    def classify(self, lot: Lot) -> RoutingDecision:
        """
        Descend the tree for a lot without touching any record or queue.

        Raises:
            MissingMetric: the lot lacks a metric a quality gate needs
        """
        node = self.root
        path = [node.node_id]
        decisions = []
        while not node.is_leaf:
            decision = evaluate(node.criterion, lot)
            decisions.append((node.node_id, decision))
            node = self._nodes[node.true_branch if decision else node.false_branch]
            path.append(node.node_id)
        return RoutingDecision(
            leaf_id=node.node_id,
            path=path,
            decisions=decisions,
            demand=self.demand_for(lot.region, lot.category),
        )

    def route(self, lot: Lot, record: HandoffRecord) -> DecisionNode:
        """
        Route a lot and queue its handoff at the resulting leaf.

        The record's action gains a demand annotation, one annotation per
        decision and the full path; its destination names the leaf.

        Args:
            lot: Lot to classify
            record: Handoff to annotate and enqueue

        Returns:
            The leaf the handoff was queued at

        Raises:
            MissingMetric: the lot lacks a metric a quality gate needs
            RecordAlreadyRouted: the record already has a destination
        """
        if record.destination:
            raise RecordAlreadyRouted(record.record_id, record.destination)

        routing = self.classify(lot)
        leaf = self._nodes[routing.leaf_id]

        record.annotate(demand.demand_annotation(routing.demand), separator=" ")
        for node_id, decision in routing.decisions:
            record.annotate(f"{node_id} decision: {'left' if decision else 'right'}")

        self._queues[leaf.node_id].enqueue(record)
        record.destination = f"Node: {leaf.label}"
        record.annotate(f"Final path: {routing.path_text}")
        return leaf

    def queue_sizes(self) -> List[QueueStatus]:
        """Queue length at every leaf."""
        return [
            QueueStatus(leaf.node_id, leaf.description, len(self._queues[leaf.node_id]))
            for leaf in self.leaves()
        ]

    def leaves_with_pending_items(self) -> List[DecisionNode]:
        return [leaf for leaf in self.leaves() if self._queues[leaf.node_id]]

    def pending_total(self) -> int:
        return sum(len(queue) for queue in self._queues.values())

    def dequeue_from(self, leaf_id: str) -> Optional[HandoffRecord]:
        """
        Remove and return the oldest handoff queued at a leaf.

        Returns:
            The handoff, or None if the leaf's queue is empty

        Raises:
            UnknownNode: ``leaf_id`` does not name a leaf
        """
        return self.queue(leaf_id).dequeue()
