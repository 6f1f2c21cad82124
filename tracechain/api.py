"""
HTTP API for lot intake, queue processing and provenance lookup.

Features:
- Harvest intake: register a lot and route it to a terminal queue
- Queue status and processing of the oldest pending lot at a leaf
- Provenance history per lot
- Read-only view of the routing hierarchy and regional demand

Handlers are ``async def`` so they all run on the event loop thread and the
in-memory chain and queues are only touched by one caller at a time.
"""

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from .display import render_tree
from .errors import MissingMetric, TraceChainError, UnknownNode
from .models import Disposition, HandlerRole, Region
from .routing import demand_level
from .service import SupplyChainService

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models for API
# ============================================================================


class HarvestRequest(BaseModel):
    category: str
    quantity: float
    metrics: dict[str, float]
    certifications: list[str] = Field(default_factory=list)
    producer_id: str
    origin: str
    region: Region
    harvested_at: datetime | None = None


class ProcessRequest(BaseModel):
    handler_id: str
    location: str
    disposition: Disposition
    role: HandlerRole = HandlerRole.INTERMEDIARY


# ============================================================================
# Error translation
# ============================================================================


def _status_for(exc: TraceChainError) -> int:
    if isinstance(exc, UnknownNode):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, MissingMetric):
        return 422
    return status.HTTP_409_CONFLICT


def _http_error(exc: TraceChainError) -> HTTPException:
    logger.warning("Request refused: %s", exc, extra={"error_code": exc.code})
    return HTTPException(
        status_code=_status_for(exc), detail={"code": exc.code, "message": exc.message}
    )


# ============================================================================
# Application Factory
# ============================================================================


def create_app(service: SupplyChainService | None = None) -> FastAPI:
    """
    Create the tracechain FastAPI application.

    Args:
        service: Workflow facade to serve; a fresh, empty one if None

    Returns:
        Configured FastAPI app
    """
    service = service or SupplyChainService()

    app = FastAPI(
        title="Tracechain API",
        description="Provenance tracking and routing for harvested lots",
        version="1.0.0",
    )
    app.state.service = service

    # ========================================================================
    # Lots and provenance
    # ========================================================================

    @app.post("/api/v1/lots", status_code=status.HTTP_201_CREATED)
    async def register_lot(request: HarvestRequest):
        """Register a harvested lot and route it."""
        lot = service.create_lot(
            category=request.category,
            quantity=request.quantity,
            metrics=request.metrics,
            producer_id=request.producer_id,
            origin=request.origin,
            region=request.region,
            certifications=request.certifications,
            harvested_at=request.harvested_at,
        )
        try:
            intake = service.register_harvest(lot)
        except TraceChainError as e:
            raise _http_error(e)

        return {
            "lot": lot.to_dict(),
            "record": intake.record.to_dict(),
            "destination": intake.leaf.to_dict(),
        }

    @app.get("/api/v1/lots")
    async def list_lots():
        """Latest handoff of every known lot."""
        records = service.available_lots()
        return {"lots": [record.to_dict() for record in records], "total": len(records)}

    @app.get("/api/v1/lots/{lot_id}/history")
    async def lot_history(lot_id: str):
        """Handoffs of a lot from origin to most recent; empty for unknown lots."""
        history = service.history(lot_id)
        return {"lot_id": lot_id, "history": [record.to_dict() for record in history]}

    # ========================================================================
    # Queues
    # ========================================================================

    @app.get("/api/v1/queues")
    async def get_queues(pending: bool = False):
        statuses = service.pending_queues() if pending else service.queue_status()
        return {
            "queues": [s.to_dict() for s in statuses],
            "total_pending": service.hierarchy.pending_total(),
        }

    @app.post("/api/v1/queues/{leaf_id}/process")
    async def process_queue(leaf_id: str, request: ProcessRequest):
        """Process the oldest pending lot at a leaf."""
        try:
            record = service.process_next(
                leaf_id,
                handler_id=request.handler_id,
                location=request.location,
                disposition=request.disposition,
                role=request.role,
            )
        except TraceChainError as e:
            raise _http_error(e)

        return {"leaf_id": leaf_id, "record": record.to_dict() if record else None}

    # ========================================================================
    # Routing hierarchy
    # ========================================================================

    @app.get("/api/v1/routing/tree")
    async def routing_tree():
        hierarchy = service.hierarchy
        nodes = [
            {"depth": depth, **node.to_dict(), "queue_size": hierarchy.queue_size(node.node_id)}
            for depth, node in hierarchy.walk()
        ]
        return {"nodes": nodes, "diagram": render_tree(hierarchy)}

    @app.get("/api/v1/routing/nodes/{node_id}")
    async def routing_node(node_id: str):
        hierarchy = service.hierarchy
        node = hierarchy.node_by_id(node_id)
        if node is None:
            raise _http_error(UnknownNode(node_id, "does not exist in the routing hierarchy"))

        data = node.to_dict()
        if node.is_leaf:
            data["pending"] = hierarchy.queue(node_id).pending_ids()
        return data

    @app.get("/api/v1/routing/demand/{region}/{category}")
    async def regional_demand(region: Region, category: str):
        demand = service.hierarchy.demand_for(region, category)
        return {
            "region": region.value,
            "category": category,
            "demand": demand,
            "level": demand_level(demand),
        }

    @app.get("/api/v1/statistics")
    async def get_statistics():
        return {
            **service.chain.get_statistics(),
            "pending_total": service.hierarchy.pending_total(),
        }

    @app.get("/api/v1/health")
    async def health_check():
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    return app
