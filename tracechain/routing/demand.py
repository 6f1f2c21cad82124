"""Regional market demand used to annotate routed handoffs."""

from typing import Dict

from ..models import Region

DEFAULT_DEMAND = 5.0
HIGH_DEMAND_THRESHOLD = 7.0

# Demand on a 0-10 scale by region and crop category
REGIONAL_DEMAND: Dict[Region, Dict[str, float]] = {
    Region.NORTH: {"Wheat": 8.5, "Rice": 7.0, "Corn": 6.0, "Tomato": 5.0, "Apple": 9.0},
    Region.SOUTH: {"Wheat": 5.0, "Rice": 9.0, "Corn": 6.5, "Tomato": 8.0, "Apple": 4.0},
    Region.EAST: {"Wheat": 6.0, "Rice": 8.5, "Corn": 5.0, "Tomato": 7.5, "Apple": 6.5},
    Region.WEST: {"Wheat": 7.0, "Rice": 6.0, "Corn": 8.0, "Tomato": 9.0, "Apple": 7.5},
}


def demand_for(region: Region, category: str) -> float:
    """Demand for a category in a region, ``DEFAULT_DEMAND`` when not tabulated."""
    return REGIONAL_DEMAND.get(Region(region), {}).get(category, DEFAULT_DEMAND)


def demand_level(demand: float) -> str:
    return "High" if demand >= HIGH_DEMAND_THRESHOLD else "Low"


def demand_annotation(demand: float) -> str:
    """Text appended to a handoff's action, e.g. ``Regional demand: 8.5/10 (High)``."""
    return f"Regional demand: {demand:.1f}/10 ({demand_level(demand)})"
