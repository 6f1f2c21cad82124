from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TraceChainError(Exception):
    """Base error raised by the provenance chain and routing hierarchy.

    Parameters
    ----------
    code:
        Short machine readable error code.
    message:
        Human readable error message.
    """

    code: str
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


class InvalidPredecessor(TraceChainError):
    """A predecessor handoff cannot be linked to a new record."""

    def __init__(self, predecessor_id: str, reason: str = "is not registered in the chain"):
        super().__init__("invalid_predecessor", f"Predecessor {predecessor_id!r} {reason}")
        self.predecessor_id = predecessor_id


class DuplicateRecord(TraceChainError):
    """A handoff identifier is already registered."""

    def __init__(self, record_id: str):
        super().__init__("duplicate_record", f"Handoff {record_id!r} is already registered")
        self.record_id = record_id


class MissingMetric(TraceChainError):
    """A lot lacks a metric required by a quality gate."""

    def __init__(self, lot_id: str, metric: str):
        super().__init__("missing_metric", f"Lot {lot_id!r} has no {metric!r} metric")
        self.lot_id = lot_id
        self.metric = metric


class UnknownNode(TraceChainError):
    """A queue operation named a node that is not a leaf of the hierarchy."""

    def __init__(self, node_id: str, reason: str = "is not a leaf of the routing hierarchy"):
        super().__init__("unknown_node", f"Node {node_id!r} {reason}")
        self.node_id = node_id


class RecordAlreadyRouted(TraceChainError):
    """A handoff that already sits in a terminal queue was routed again."""

    def __init__(self, record_id: str, destination: str):
        super().__init__(
            "already_routed", f"Handoff {record_id!r} was already routed to {destination}"
        )
        self.record_id = record_id
        self.destination = destination


__all__ = [
    "TraceChainError",
    "InvalidPredecessor",
    "DuplicateRecord",
    "MissingMetric",
    "UnknownNode",
    "RecordAlreadyRouted",
]
