"""Plain-text renderings of lots, histories, queues and the routing tree."""

from typing import Iterable, List

from .models import HandoffRecord, Lot
from .routing import QueueStatus, RoutingHierarchy


def render_tree(hierarchy: RoutingHierarchy) -> str:
    """Draw the routing tree with the queue length of every non-empty leaf."""
    lines: List[str] = []

    def draw(node_id: str, prefix: str, is_root: bool) -> None:
        node = hierarchy.node_by_id(node_id)
        line = prefix + ("ROOT: " if is_root else "+--- ") + node.label
        size = hierarchy.queue_size(node_id)
        if size:
            line += f" [Queue: {size}]"
        lines.append(line)

        if not node.is_leaf:
            child_prefix = prefix + ("" if is_root else "|    ")
            for child_id in (node.true_branch, node.false_branch):
                if child_id is None:
                    lines.append(f"{child_prefix}+--- NULL")
                else:
                    draw(child_id, child_prefix, False)

    draw(hierarchy.root.node_id, "", True)
    return "\n".join(lines)


def render_lot_table(records: Iterable[HandoffRecord]) -> str:
    """Tabulate the latest handoff of each lot."""
    lines = [
        f"{'ID':<10}{'Type':<12}{'Quantity':<12}{'Area':<10}{'Handler':<15}{'Current Status':<20}",
        "-" * 79,
    ]
    for record in records:
        lot = record.lot
        lines.append(
            f"{lot.lot_id:<10}{lot.category:<12}{lot.quantity:<12g}{lot.region.value:<10}"
            f"{record.handler_role.value:<15}{record.action[:19]:<20}"
        )
    return "\n".join(lines)


def render_lot(lot: Lot) -> str:
    lines = [
        f"Lot ID: {lot.lot_id}",
        f"Type: {lot.category}",
        f"Quantity: {lot.quantity:g} kg",
        f"Harvest Date: {lot.harvested_at:%Y-%m-%d %H:%M:%S}",
        f"Producer ID: {lot.producer_id}",
        f"Origin: {lot.origin} (Area: {lot.region.value})",
        "Quality Metrics:",
    ]
    lines.extend(f"  - {name}: {score:g}/10" for name, score in sorted(lot.metrics.items()))
    if lot.certifications:
        lines.append(f"Certifications: {', '.join(lot.certifications)}")
    return "\n".join(lines)


def render_history(history: List[HandoffRecord]) -> str:
    """Numbered listing of a lot's handoffs, origin first."""
    if not history:
        return "No history found for this lot."

    blocks = []
    for i, record in enumerate(history, start=1):
        lines = [
            f"Handoff {i}: {record.record_id}",
            f"  Time: {record.created_at:%Y-%m-%d %H:%M:%S}",
            f"  Handler: {record.handler_role.value} ({record.handler_id})",
            f"  Location: {record.location}",
            f"  Action: {record.action}",
        ]
        if record.destination:
            lines.append(f"  Next Destination: {record.destination}")
        lines.append("-" * 24)
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


def render_queue_status(statuses: Iterable[QueueStatus]) -> str:
    lines = [f"Node: {status.label} - Items in queue: {status.size}" for status in statuses]
    return "\n".join(lines) if lines else "No processing queues available."
