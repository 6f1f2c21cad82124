"""Decision nodes, their classification criteria, and terminal queues.

Internal nodes carry a ``Criterion`` instead of executable logic; every
criterion is evaluated by ``evaluate`` so the tree stays plain data.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from ..models import HandoffRecord, Lot, Region

FRESHNESS_METRIC = "freshness"
PREMIUM_FRESHNESS = 8.0


class CriterionKind(str, Enum):
    """Kinds of classification an internal node can apply."""

    REGION_MEMBERSHIP = "region_membership"  # region in a set of regions
    REGION_EQUALS = "region_equals"  # region is one specific region
    QUALITY_GATE = "quality_gate"  # metric >= threshold OR certified


class NodeStage(str, Enum):
    """Level of the hierarchy a node belongs to."""

    AREA_BASED = "AreaBased"
    QUALITY_BASED = "QualityBased"
    FINAL_DESTINATION = "FinalDestination"


@dataclass(frozen=True)
class Criterion:
    """Classification predicate over a lot, as data."""

    kind: CriterionKind
    regions: frozenset[Region] = frozenset()
    metric: str = FRESHNESS_METRIC
    threshold: float = PREMIUM_FRESHNESS

    @classmethod
    def region_in(cls, *regions: Region) -> Criterion:
        return cls(CriterionKind.REGION_MEMBERSHIP, frozenset(regions))

    @classmethod
    def region_is(cls, region: Region) -> Criterion:
        return cls(CriterionKind.REGION_EQUALS, frozenset([region]))

    @classmethod
    def quality_gate(
        cls, metric: str = FRESHNESS_METRIC, threshold: float = PREMIUM_FRESHNESS
    ) -> Criterion:
        return cls(CriterionKind.QUALITY_GATE, metric=metric, threshold=threshold)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.kind == CriterionKind.QUALITY_GATE:
            data.update(metric=self.metric, threshold=self.threshold)
        else:
            data["regions"] = sorted(r.value for r in self.regions)
        return data


def evaluate(criterion: Criterion, lot: Lot) -> bool:
    """Evaluate a criterion against a lot.

    Raises:
        MissingMetric: a quality gate's metric is absent from the lot
    """
    if criterion.kind in (CriterionKind.REGION_MEMBERSHIP, CriterionKind.REGION_EQUALS):
        return lot.region in criterion.regions
    if criterion.kind == CriterionKind.QUALITY_GATE:
        # The metric is required even when a certification would pass the gate
        score = lot.metric(criterion.metric)
        return score >= criterion.threshold or lot.is_certified
    raise ValueError(f"Unsupported criterion kind: {criterion.kind}")


@dataclass
class DecisionNode:
    """A node of the routing hierarchy.

    A node is a leaf iff both branches are None. Branches hold node ids,
    resolved through the owning hierarchy.
    """

    node_id: str
    description: str
    stage: NodeStage
    criterion: Criterion | None = None
    true_branch: str | None = None
    false_branch: str | None = None

    @property
    def is_leaf(self) -> bool:
        return self.true_branch is None and self.false_branch is None

    @property
    def label(self) -> str:
        return f"{self.node_id} ({self.description})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "description": self.description,
            "stage": self.stage.value,
            "criterion": self.criterion.to_dict() if self.criterion else None,
            "true_branch": self.true_branch,
            "false_branch": self.false_branch,
            "is_leaf": self.is_leaf,
        }


@dataclass
class TerminalQueue:
    """FIFO of handoffs waiting at a leaf for their next processing step.

    The queue refers to records owned by the provenance chain; removing a
    record here never removes it from the chain.
    """

    node: DecisionNode
    _items: deque[HandoffRecord] = field(default_factory=deque, repr=False)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HandoffRecord]:
        return iter(self._items)

    def enqueue(self, record: HandoffRecord) -> None:
        self._items.append(record)

    def dequeue(self) -> HandoffRecord | None:
        """Remove and return the oldest record, or None if the queue is empty."""
        if not self._items:
            return None
        return self._items.popleft()

    def peek(self) -> HandoffRecord | None:
        return self._items[0] if self._items else None

    def pending_ids(self) -> list[str]:
        return [record.record_id for record in self._items]


__all__ = [
    "FRESHNESS_METRIC",
    "PREMIUM_FRESHNESS",
    "CriterionKind",
    "NodeStage",
    "Criterion",
    "evaluate",
    "DecisionNode",
    "TerminalQueue",
]
