"""
Append-only provenance chain of handoff records.

This module provides:
- Registration of handoffs by identifier, linked to their predecessor
- Reconstruction of a lot's history from origin to most recent custodian
- The most recent handoff per lot, for listing what is currently available
"""

from collections import defaultdict
from typing import Any, Dict, Iterator, List, Optional, Union

from ..errors import DuplicateRecord, InvalidPredecessor
from ..models import HandoffRecord


class ProvenanceChain:
    """
    Process-lifetime store of handoff records.

    Records are held in an identifier index; ``previous_id``/``next_id`` on each
    record are resolved through that index. A record's ``next_id`` is set at
    most once and only to a record appended after it, so chains never loop.
    """

    def __init__(self):
        self._records: Dict[str, HandoffRecord] = {}
        self._order: Dict[str, int] = {}  # record_id -> append position
        self._by_lot: Dict[str, List[str]] = defaultdict(list)  # lot_id -> record_ids

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def get(self, record_id: str) -> Optional[HandoffRecord]:
        """Look up a record by identifier."""
        return self._records.get(record_id)

    def records(self) -> Iterator[HandoffRecord]:
        """Iterate over all records in append order."""
        return iter(self._records.values())

    def append(
        self,
        record: HandoffRecord,
        predecessor: Union[HandoffRecord, str, None] = None,
    ) -> HandoffRecord:
        """
        Register a handoff, optionally linking it after ``predecessor``.

        Nothing is modified unless every check passes.

        Args:
            record: New handoff record
            predecessor: Registered record (or its identifier) this one follows

        Returns:
            The registered record

        Raises:
            DuplicateRecord: ``record`` is already registered
            InvalidPredecessor: ``predecessor`` is unknown or already has a
                successor
        """
        if record.record_id in self._records:
            raise DuplicateRecord(record.record_id)

        previous = None
        if predecessor is not None:
            predecessor_id = (
                predecessor.record_id if isinstance(predecessor, HandoffRecord) else predecessor
            )
            previous = self._records.get(predecessor_id)
            if previous is None:
                raise InvalidPredecessor(predecessor_id)
            if previous.next_id is not None:
                raise InvalidPredecessor(
                    predecessor_id, f"already has successor {previous.next_id!r}"
                )

        if previous is not None:
            previous.next_id = record.record_id
            record.previous_id = previous.record_id

        self._order[record.record_id] = len(self._order)
        self._records[record.record_id] = record
        self._by_lot[record.lot_id].append(record.record_id)
        return record

    def latest_for(self, lot_id: str) -> Optional[HandoffRecord]:
        """Most recent handoff for a lot, or None if the lot is unknown."""
        record_ids = self._by_lot.get(lot_id)
        if not record_ids:
            return None
        return max((self._records[rid] for rid in record_ids), key=self._recency)

    def history_of(self, lot_id: str) -> List[HandoffRecord]:
        """
        Get the full history of a lot (from origin to most recent handoff).

        Args:
            lot_id: Lot identifier to trace

        Returns:
            Records in chronological order (oldest to newest); empty if the
            lot is unknown
        """
        current = self.latest_for(lot_id)
        if current is None:
            return []

        # Trace backwards to the origin
        while current.previous_id is not None:
            current = self._records[current.previous_id]

        history = []
        while current is not None:
            history.append(current)
            current = self._records.get(current.next_id) if current.next_id else None
        return history

    def latest_per_lot(self) -> Dict[str, HandoffRecord]:
        """Most recent handoff for every lot seen, keyed by lot id in first-seen order."""
        return {lot_id: self.latest_for(lot_id) for lot_id in self._by_lot}

    def get_statistics(self) -> Dict[str, Any]:
        """Get chain statistics."""
        longest = max((len(self.history_of(lot_id)) for lot_id in self._by_lot), default=0)
        return {
            "total_records": len(self._records),
            "total_lots": len(self._by_lot),
            "origin_records": sum(1 for r in self._records.values() if r.is_origin),
            "longest_history": longest,
        }

    def _recency(self, record: HandoffRecord):
        # Later append wins a timestamp tie
        return record.created_at, self._order[record.record_id]
