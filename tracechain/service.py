"""Supply chain workflows over the provenance chain and routing hierarchy.

Two workflows drive the core:

- harvest intake: a producer's new lot becomes an origin handoff that is
  appended to the chain and routed to a terminal queue
- processing: an intermediary takes the oldest handoff from a queue and
  records a successor handoff linked to it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Iterable, Mapping

from .models import Disposition, HandlerRole, HandoffRecord, Lot, Region
from .provenance import ProvenanceChain
from .routing import DecisionNode, QueueStatus, RoutingHierarchy

logger = logging.getLogger(__name__)

LOT_PREFIX = "LOT"
HANDOFF_PREFIX = "HND"
INITIAL_ACTION = "Initial harvest entry"


class IdGenerator:
    """Issues ``<prefix><n>`` identifiers from one counter shared by all prefixes."""

    def __init__(self, start: int = 1000):
        self._counter = start

    def next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class IntakeResult:
    """Origin handoff of a newly registered lot and the leaf it was queued at."""

    record: HandoffRecord
    leaf: DecisionNode


class SupplyChainService:
    """Facade used by the CLI and the HTTP API."""

    def __init__(
        self,
        chain: ProvenanceChain | None = None,
        hierarchy: RoutingHierarchy | None = None,
        ids: IdGenerator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.chain = chain or ProvenanceChain()
        self.hierarchy = hierarchy or RoutingHierarchy()
        self.ids = ids or IdGenerator()
        self.clock = clock

    def create_lot(
        self,
        category: str,
        quantity: float,
        metrics: Mapping[str, float],
        producer_id: str,
        origin: str,
        region: Region | str,
        certifications: Iterable[str] = (),
        harvested_at: datetime | None = None,
    ) -> Lot:
        """Build a lot with a fresh identifier, harvested now unless told otherwise."""
        return Lot(
            lot_id=self.ids.next(LOT_PREFIX),
            category=category,
            quantity=quantity,
            harvested_at=harvested_at or self.clock(),
            metrics=metrics,
            certifications=tuple(certifications),
            producer_id=producer_id,
            origin=origin,
            region=Region(region),
        )

    def register_harvest(self, lot: Lot) -> IntakeResult:
        """Record the origin handoff of a lot and route it to a terminal queue.

        The lot is classified before anything is stored, so a lot that cannot
        be routed leaves no trace in the chain.
        """
        self.hierarchy.classify(lot)

        record = HandoffRecord(
            record_id=self.ids.next(HANDOFF_PREFIX),
            created_at=self.clock(),
            handler_id=lot.producer_id,
            handler_role=HandlerRole.PRODUCER,
            location=lot.origin,
            action=INITIAL_ACTION,
            lot=lot,
        )
        self.chain.append(record)
        leaf = self.hierarchy.route(lot, record)

        logger.info(
            "Registered lot %s (%s, %s) -> %s",
            lot.lot_id,
            lot.category,
            lot.region.value,
            leaf.node_id,
            extra={"lot_id": lot.lot_id, "record_id": record.record_id, "node_id": leaf.node_id},
        )
        return IntakeResult(record=record, leaf=leaf)

    def process_next(
        self,
        leaf_id: str,
        handler_id: str,
        location: str,
        disposition: Disposition | str,
        role: HandlerRole | str = HandlerRole.INTERMEDIARY,
    ) -> HandoffRecord | None:
        """Take the oldest handoff queued at a leaf and record its successor.

        Returns:
            The new handoff, or None if nothing is queued at the leaf
        """
        queue = self.hierarchy.queue(leaf_id)
        previous = queue.peek()
        if previous is None:
            logger.info("Queue %s is empty", leaf_id, extra={"node_id": leaf_id})
            return None

        # the handoff stays queued until its successor is in the chain
        handler_role = HandlerRole(role)
        action = Disposition(disposition).value
        record = HandoffRecord(
            record_id=self.ids.next(HANDOFF_PREFIX),
            created_at=self.clock(),
            handler_id=handler_id,
            handler_role=handler_role,
            location=location,
            action=action,
            lot=previous.lot,
        )
        self.chain.append(record, previous)
        self.hierarchy.dequeue_from(leaf_id)

        logger.info(
            "Processed lot %s from %s: %s",
            record.lot_id,
            leaf_id,
            record.action,
            extra={"lot_id": record.lot_id, "record_id": record.record_id, "node_id": leaf_id},
        )
        return record

    def history(self, lot_id: str) -> list[HandoffRecord]:
        return self.chain.history_of(lot_id)

    def available_lots(self) -> list[HandoffRecord]:
        """Most recent handoff of every known lot."""
        return list(self.chain.latest_per_lot().values())

    def queue_status(self) -> list[QueueStatus]:
        return self.hierarchy.queue_sizes()

    def pending_queues(self) -> list[QueueStatus]:
        return [status for status in self.queue_status() if status.size > 0]


__all__ = [
    "IdGenerator",
    "IntakeResult",
    "SupplyChainService",
    "utc_now",
]
