"""
Provenance tracking and routing for harvested lots moving through a supply chain.
"""

from .errors import (
    DuplicateRecord,
    InvalidPredecessor,
    MissingMetric,
    RecordAlreadyRouted,
    TraceChainError,
    UnknownNode,
)
from .models import Disposition, HandlerRole, HandoffRecord, Lot, Region
from .provenance import ProvenanceChain
from .routing import RoutingHierarchy
from .service import IdGenerator, SupplyChainService

__version__ = "1.0.0"

__all__ = [
    "DuplicateRecord",
    "InvalidPredecessor",
    "MissingMetric",
    "RecordAlreadyRouted",
    "TraceChainError",
    "UnknownNode",
    "Disposition",
    "HandlerRole",
    "HandoffRecord",
    "Lot",
    "Region",
    "ProvenanceChain",
    "RoutingHierarchy",
    "IdGenerator",
    "SupplyChainService",
]
