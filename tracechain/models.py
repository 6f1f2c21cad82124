"""Lot and handoff records shared by the provenance chain and routing hierarchy.

A ``Lot`` is frozen: a handoff embeds the lot exactly as it was when the
handoff was created, and a changed lot is a new ``Lot`` built with
``dataclasses.replace``. A ``HandoffRecord`` refers to its neighbours in the
chain by identifier; the owning ``ProvenanceChain`` resolves those links.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .errors import MissingMetric


class Region(str, Enum):
    """Region a lot was harvested in."""

    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"


class HandlerRole(str, Enum):
    """Role of the party that took custody of a lot."""

    PRODUCER = "Producer"
    INTERMEDIARY = "Intermediary"
    PROCESSOR = "Processor"
    RETAILER = "Retailer"
    EXPORTER = "Exporter"


class Disposition(str, Enum):
    """Decision an intermediary takes when it picks a lot out of a queue."""

    MANUFACTURER = "Route to Manufacturer"
    RETAILER = "Route to Retailer"
    EXPORT = "Route to Export"


@dataclass(frozen=True)
class Lot:
    """One harvested batch."""

    lot_id: str
    category: str  # "Wheat", "Tomato", ...
    quantity: float  # kg
    harvested_at: datetime
    metrics: Mapping[str, float]  # metric name -> 0-10 score
    certifications: tuple[str, ...]
    producer_id: str
    origin: str
    region: Region

    def __post_init__(self) -> None:
        object.__setattr__(self, "region", Region(self.region))
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))
        object.__setattr__(self, "certifications", _unique(self.certifications))

    def metric(self, name: str) -> float:
        """Return a metric score, failing with ``MissingMetric`` if absent."""
        try:
            return self.metrics[name]
        except KeyError:
            raise MissingMetric(self.lot_id, name) from None

    @property
    def is_certified(self) -> bool:
        return bool(self.certifications)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "lot_id": self.lot_id,
            "category": self.category,
            "quantity": self.quantity,
            "harvested_at": self.harvested_at.isoformat(),
            "metrics": dict(self.metrics),
            "certifications": list(self.certifications),
            "producer_id": self.producer_id,
            "origin": self.origin,
            "region": self.region.value,
        }


@dataclass
class HandoffRecord:
    """A custody event for a lot; the provenance chain's unit of history.

    ``action`` and ``destination`` are filled in by routing, ``next_id`` by
    the chain when a successor is appended. Everything else is fixed at
    creation.
    """

    record_id: str
    created_at: datetime
    handler_id: str
    handler_role: HandlerRole
    location: str
    action: str
    lot: Lot
    destination: str = ""
    previous_id: str | None = None
    next_id: str | None = None

    def __post_init__(self) -> None:
        self.handler_role = HandlerRole(self.handler_role)

    @property
    def lot_id(self) -> str:
        return self.lot.lot_id

    @property
    def is_origin(self) -> bool:
        return self.previous_id is None

    def annotate(self, text: str, separator: str = " | ") -> None:
        """Append an annotation to the action description."""
        self.action += f"{separator}{text}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "record_id": self.record_id,
            "created_at": self.created_at.isoformat(),
            "handler_id": self.handler_id,
            "handler_role": self.handler_role.value,
            "location": self.location,
            "action": self.action,
            "destination": self.destination,
            "previous_id": self.previous_id,
            "next_id": self.next_id,
            "lot": self.lot.to_dict(),
        }


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    # dict keeps first-seen order
    return tuple(dict.fromkeys(values))


__all__ = [
    "Region",
    "HandlerRole",
    "Disposition",
    "Lot",
    "HandoffRecord",
]
