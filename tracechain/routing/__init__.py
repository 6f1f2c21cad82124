"""
Routing of new lots through the fixed region/quality decision hierarchy.
"""

from .demand import DEFAULT_DEMAND, HIGH_DEMAND_THRESHOLD, demand_for, demand_level
from .hierarchy import QueueStatus, RoutingDecision, RoutingHierarchy
from .nodes import Criterion, CriterionKind, DecisionNode, NodeStage, TerminalQueue, evaluate

__all__ = [
    "DEFAULT_DEMAND",
    "HIGH_DEMAND_THRESHOLD",
    "demand_for",
    "demand_level",
    "QueueStatus",
    "RoutingDecision",
    "RoutingHierarchy",
    "Criterion",
    "CriterionKind",
    "DecisionNode",
    "NodeStage",
    "TerminalQueue",
    "evaluate",
]
