"""
Tests for RoutingHierarchy - region/quality classification and terminal queues

Tests cover:
- Fixed tree structure and node lookup
- Criterion evaluation
- Routing scenarios and decision annotations
- Regional demand
- FIFO queues at the leaves
"""

import pytest

from tracechain.errors import MissingMetric, RecordAlreadyRouted, UnknownNode
from tracechain.models import Region
from tracechain.routing import (
    Criterion,
    CriterionKind,
    NodeStage,
    RoutingHierarchy,
    demand_for,
    demand_level,
    evaluate,
)

LEAF_IDS = [
    "northPremium",
    "northStandard",
    "southPremium",
    "southStandard",
    "eastPremium",
    "eastStandard",
    "westPremium",
    "westStandard",
]


@pytest.fixture
def hierarchy():
    return RoutingHierarchy()


class TestStructure:
    """Tests for the fixed tree shape."""

    def test_fifteen_nodes_eight_leaves(self, hierarchy):
        """Verify the tree has 7 internal nodes and 8 leaves."""
        nodes = [node for _, node in hierarchy.walk()]

        assert len(nodes) == 15
        assert [leaf.node_id for leaf in hierarchy.leaves()] == LEAF_IDS

    def test_leaves_at_depth_three(self, hierarchy):
        """Verify every leaf sits three decisions below the root."""
        depths = {node.node_id: depth for depth, node in hierarchy.walk()}

        assert depths["root"] == 0
        assert depths["northSouth"] == depths["eastWest"] == 1
        assert all(depths[leaf_id] == 3 for leaf_id in LEAF_IDS)

    def test_leaves_have_no_criterion(self, hierarchy):
        """Verify internal nodes carry criteria and leaves do not."""
        for _, node in hierarchy.walk():
            if node.is_leaf:
                assert node.criterion is None
                assert node.stage == NodeStage.FINAL_DESTINATION
            else:
                assert node.criterion is not None

    def test_node_by_id(self, hierarchy):
        """Verify node lookup by identifier."""
        node = hierarchy.node_by_id("eastWest")

        assert node.description == "East vs West"
        assert node.true_branch == "east"
        assert node.false_branch == "west"
        assert hierarchy.node_by_id("nowhere") is None

    def test_leaf_descriptions(self, hierarchy):
        """Verify leaf labels name region and grade."""
        assert hierarchy.node_by_id("southStandard").label == "southStandard (South Standard)"


class TestCriteria:
    """Tests for criterion evaluation."""

    def test_region_membership(self, make_lot):
        """Verify region membership criterion."""
        criterion = Criterion.region_in(Region.NORTH, Region.SOUTH)

        assert criterion.kind == CriterionKind.REGION_MEMBERSHIP
        assert evaluate(criterion, make_lot(region=Region.SOUTH))
        assert not evaluate(criterion, make_lot(region=Region.WEST))

    def test_region_equals(self, make_lot):
        """Verify single-region criterion."""
        criterion = Criterion.region_is(Region.EAST)

        assert evaluate(criterion, make_lot(region=Region.EAST))
        assert not evaluate(criterion, make_lot(region=Region.WEST))

    @pytest.mark.parametrize(
        "freshness, certifications, expected",
        [
            (9.0, (), True),
            (8.0, (), True),
            (7.9, (), False),
            (3.0, ("Organic",), True),
        ],
    )
    def test_quality_gate(self, make_lot, freshness, certifications, expected):
        """Verify quality gate is freshness >= 8.0 OR any certification."""
        lot = make_lot(freshness=freshness, certifications=certifications)

        assert evaluate(Criterion.quality_gate(), lot) is expected

    def test_quality_gate_requires_metric(self, make_lot):
        """Verify a certified lot without freshness still fails."""
        lot = make_lot(metrics={"size": 7.0}, certifications=("Organic",))

        with pytest.raises(MissingMetric) as exc_info:
            evaluate(Criterion.quality_gate(), lot)

        assert exc_info.value.metric == "freshness"

    def test_criterion_to_dict(self):
        """Verify criteria serialize as plain data."""
        assert Criterion.region_in(Region.SOUTH, Region.NORTH).to_dict() == {
            "kind": "region_membership",
            "regions": ["North", "South"],
        }
        assert Criterion.quality_gate().to_dict() == {
            "kind": "quality_gate",
            "metric": "freshness",
            "threshold": 8.0,
        }


class TestRoute:
    """Tests for routing lots to leaves."""

    def test_fresh_north_lot_goes_premium(self, hierarchy, make_lot, make_record):
        """Verify North, freshness 9.0, no certification -> northPremium."""
        lot = make_lot(region=Region.NORTH, freshness=9.0)
        record = make_record("HND1", lot)

        leaf = hierarchy.route(lot, record)

        assert leaf.node_id == "northPremium"
        assert record.destination == "Node: northPremium (North Premium)"
        assert record.action == (
            "Initial harvest entry Regional demand: 8.5/10 (High)"
            " | root decision: left"
            " | northSouth decision: left"
            " | north decision: left"
            " | Final path: root -> northSouth -> north -> northPremium"
        )

    def test_certified_east_lot_goes_premium(self, hierarchy, make_lot, make_record):
        """Verify East, freshness 6.0, Organic -> eastPremium despite low freshness."""
        lot = make_lot(region=Region.EAST, freshness=6.0, certifications=["Organic"])
        record = make_record("HND1", lot)

        leaf = hierarchy.route(lot, record)
        routing = hierarchy.classify(lot)

        assert leaf.node_id == "eastPremium"
        assert routing.decisions == [("root", False), ("eastWest", True), ("east", True)]
        assert "root decision: right" in record.action
        assert "eastWest decision: left" in record.action

    def test_stale_uncertified_lot_goes_standard(self, hierarchy, make_lot, make_record):
        """Verify West, freshness 5.0, no certification -> westStandard."""
        lot = make_lot(region=Region.WEST, freshness=5.0)

        leaf = hierarchy.route(lot, make_record("HND1", lot))

        assert leaf.node_id == "westStandard"

    @pytest.mark.parametrize("region", list(Region))
    @pytest.mark.parametrize("freshness", [2.0, 9.5])
    def test_leaf_matches_region(self, hierarchy, make_lot, make_record, region, freshness):
        """Verify every lot lands on one leaf of its own region after four nodes."""
        lot = make_lot(region=region, freshness=freshness)

        leaf = hierarchy.route(lot, make_record("HND1", lot))

        assert leaf.is_leaf
        assert leaf.node_id.startswith(region.value.lower())
        assert len(hierarchy.classify(lot).path) == 4

    def test_missing_metric_leaves_everything_untouched(self, hierarchy, make_lot, make_record):
        """Verify a lot without freshness is refused before any annotation."""
        lot = make_lot(metrics={})
        record = make_record("HND1", lot)

        with pytest.raises(MissingMetric):
            hierarchy.route(lot, record)

        assert record.action == "Initial harvest entry"
        assert record.destination == ""
        assert hierarchy.pending_total() == 0

    def test_record_routed_once(self, hierarchy, make_lot, make_record):
        """Verify routing the same record twice is refused."""
        lot = make_lot()
        record = make_record("HND1", lot)
        hierarchy.route(lot, record)
        action = record.action

        with pytest.raises(RecordAlreadyRouted):
            hierarchy.route(lot, record)

        assert record.action == action
        assert hierarchy.pending_total() == 1


class TestDemand:
    """Tests for regional demand lookup."""

    def test_tabulated_demand(self, hierarchy):
        """Verify demand comes from the regional table."""
        assert hierarchy.demand_for(Region.NORTH, "Wheat") == 8.5
        assert hierarchy.demand_for(Region.SOUTH, "Apple") == 4.0
        assert demand_for("West", "Tomato") == 9.0

    def test_default_demand(self, hierarchy):
        """Verify unknown categories default to 5.0."""
        assert hierarchy.demand_for(Region.EAST, "Quinoa") == 5.0

    def test_demand_level(self):
        """Verify demand >= 7.0 is High."""
        assert demand_level(7.0) == "High"
        assert demand_level(6.9) == "Low"

    def test_demand_annotation_low(self, hierarchy, make_lot, make_record):
        """Verify low demand is annotated."""
        lot = make_lot(region=Region.SOUTH, category="Wheat")
        record = make_record("HND1", lot)

        hierarchy.route(lot, record)

        assert "Regional demand: 5.0/10 (Low)" in record.action


class TestQueues:
    """Tests for the terminal FIFO queues."""

    def test_same_lot_twice_is_fifo(self, hierarchy, make_lot, make_record):
        """Verify two handoffs of one lot queue at the same leaf, oldest first."""
        lot = make_lot()
        first, second = make_record("HND1", lot), make_record("HND2", lot)
        hierarchy.route(lot, first)
        hierarchy.route(lot, second)

        assert hierarchy.queue("northPremium").pending_ids() == ["HND1", "HND2"]
        assert hierarchy.dequeue_from("northPremium") is first
        assert hierarchy.dequeue_from("northPremium") is second

    def test_dequeue_never_routed_leaf(self, hierarchy):
        """Verify an untouched leaf yields None."""
        assert hierarchy.dequeue_from("southStandard") is None

    def test_dequeue_after_single_route(self, hierarchy, make_lot, make_record):
        """Verify one route gives one dequeue, then None."""
        lot = make_lot(region=Region.SOUTH, freshness=1.0)
        record = make_record("HND1", lot)
        hierarchy.route(lot, record)

        assert hierarchy.dequeue_from("southStandard") is record
        assert hierarchy.dequeue_from("southStandard") is None

    def test_dequeue_unknown_node(self, hierarchy):
        """Verify an unknown node id fails."""
        with pytest.raises(UnknownNode):
            hierarchy.dequeue_from("atlantis")

    def test_dequeue_internal_node(self, hierarchy):
        """Verify an internal node id fails."""
        with pytest.raises(UnknownNode) as exc_info:
            hierarchy.dequeue_from("north")

        assert exc_info.value.node_id == "north"

    def test_queue_sizes_track_routes_minus_dequeues(self, hierarchy, make_lot, make_record):
        """Verify total queued equals routed minus dequeued."""
        lots = [
            make_lot(f"LOT{i}", region=region, freshness=freshness)
            for i, (region, freshness) in enumerate(
                [(Region.NORTH, 9.0), (Region.NORTH, 9.0), (Region.EAST, 2.0), (Region.WEST, 8.5)]
            )
        ]
        for i, lot in enumerate(lots):
            hierarchy.route(lot, make_record(f"HND{i}", lot))
        hierarchy.dequeue_from("northPremium")

        sizes = {status.node_id: status.size for status in hierarchy.queue_sizes()}

        assert list(sizes) == LEAF_IDS
        assert sum(sizes.values()) == len(lots) - 1
        assert sizes == {
            "northPremium": 1,
            "northStandard": 0,
            "southPremium": 0,
            "southStandard": 0,
            "eastPremium": 0,
            "eastStandard": 1,
            "westPremium": 1,
            "westStandard": 0,
        }

    def test_leaves_with_pending_items(self, hierarchy, make_lot, make_record):
        """Verify only leaves with queued handoffs are listed."""
        assert hierarchy.leaves_with_pending_items() == []

        lot = make_lot(region=Region.WEST, freshness=1.0)
        hierarchy.route(lot, make_record("HND1", lot))

        assert [leaf.node_id for leaf in hierarchy.leaves_with_pending_items()] == [
            "westStandard"
        ]
