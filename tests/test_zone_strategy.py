"""
Tests for zone construction, strategies and advisor-guided zoning.
"""

import json

import pytest

from conftest import make_room

from space_planning_ai.advisors.schemas import (
    AdjacencyHint,
    SuggestedZoneVariant,
    ZoneProposal,
    ZoneRecommendation,
)
from space_planning_ai.core.constraints import validate_zone_variant
from space_planning_ai.core.zone_clusterer import ZoneCluster
from space_planning_ai.core.zone_strategy import (
    apply_zone_recommendations,
    build_adjacency_graph,
    build_zone,
    derive_zones,
    determine_allowed_levels,
    determine_aspect_ratio,
    determine_preferred_level,
    estimate_circulation_ratio,
    estimate_room_count,
    extract_room_categories,
    generate_zone_notes,
    generate_zone_variants,
    map_strategy,
    room_matches_type,
)
from space_planning_ai.models.room import CATEGORY_CLIENT
from space_planning_ai.models.zone import ProgramZone


def _residential_cluster(quantity=40):
    bedroom = make_room(
        name="Resident Bedroom",
        quantity=quantity,
        requires_daylight=True,
        category=CATEGORY_CLIENT,
    )
    return ZoneCluster("Residential Core", "residential", [bedroom])


class TestZoneConstruction:
    def test_forty_residential_rooms(self):
        zone = generate_zone_variants(build_zone(_residential_cluster(40), 1))

        assert zone.id == "zone-1"
        assert zone.can_stack
        assert zone.can_split
        assert zone.allowed_levels == [3, 4, 5]
        assert zone.preferred_level == 4
        assert zone.noise_tolerance == "quiet"

        stacked = [v for v in zone.variants if v.strategy == "stacked"]
        assert stacked
        assert {v.floor_count for v in stacked} <= set(zone.allowed_levels)

    def test_strategy_order_and_ids(self):
        zone = generate_zone_variants(build_zone(_residential_cluster(40), 1))
        assert [v.id for v in zone.variants] == [
            "zone-1-var-stacked-3f",
            "zone-1-var-stacked-4f",
            "zone-1-var-stacked-5f",
            "zone-1-var-compact",
            "zone-1-var-linear",
            "zone-1-var-split",
        ]
        assert [v.floor_count for v in zone.variants] == [3, 4, 5, 5, 2, 4]
        assert zone.active_variant_id == "zone-1-var-stacked-3f"
        assert zone.variants[0].notes == "3 floors, 400m² per floor"
        assert zone.variants[0].target_footprint == 400.0

    def test_area_bookkeeping(self):
        zone = build_zone(_residential_cluster(40), 1)
        assert zone.target_area_net == 1200.0
        assert zone.area_min == 1080.0
        assert zone.area_max == 1320.0
        assert zone.circulation_ratio == 0.35
        assert zone.gross_area == pytest.approx(1620.0)

    def test_gross_area_identity(self, mixed_rooms):
        for zone in derive_zones(mixed_rooms):
            for variant in zone.variants:
                assert variant.total_gross_area == zone.target_area_net * (
                    1 + zone.circulation_ratio
                )
                assert validate_zone_variant(variant, zone).valid

    def test_small_shared_zone(self):
        kitchen = make_room(
            name="Shared Kitchen", area_target=20.0, quantity=2, category=CATEGORY_CLIENT
        )
        zone = generate_zone_variants(
            build_zone(ZoneCluster("Shared Facilities", "shared", [kitchen]), 2)
        )
        assert zone.allowed_levels == [1, 2]
        assert zone.preferred_level == 2
        assert zone.can_stretch
        assert not zone.can_stack
        assert not zone.can_split
        assert [v.id for v in zone.variants] == ["zone-2-var-compact", "zone-2-var-linear"]
        assert zone.gross_area == 50.0

    def test_notes(self):
        assert generate_zone_notes(_residential_cluster(40)) == (
            "Contains 40 rooms across 1 types. Total net area: 1200m². "
            "High daylight requirement"
        )

    def test_estimated_room_count(self):
        zone = generate_zone_variants(build_zone(_residential_cluster(40), 1))
        assert all(v.estimated_room_count == 40 for v in zone.variants)
        assert estimate_room_count(59.0) == 1


class TestHeuristics:
    def test_circulation_ratios(self):
        assert estimate_circulation_ratio("residential") == 0.35
        assert estimate_circulation_ratio("staff") == 0.20
        assert estimate_circulation_ratio("unknown") == 0.30

    def test_allowed_levels(self):
        assert determine_allowed_levels("residential", 31) == [3, 4, 5]
        assert determine_allowed_levels("residential", 30) == [1, 2, 3]
        assert determine_allowed_levels("services", 100) == [1, 2]
        assert determine_allowed_levels("support", 5) == [1, 2]

    def test_preferred_level(self):
        assert determine_preferred_level("residential", 60, [3, 4, 5]) == 4
        assert determine_preferred_level("residential", 10, [1, 2, 3]) == 2
        assert determine_preferred_level("staff", 3, [1, 2]) == 2
        assert determine_preferred_level("staff", 3, []) == 1

    def test_room_categories(self):
        rooms = [
            make_room(id="room-1", name="Meeting Room"),
            make_room(id="room-2", name="Resident Bedroom"),
            make_room(id="room-3", name="Staff Bathroom"),
        ]
        assert extract_room_categories(rooms) == ["bedroom", "bathroom", "meeting"]

    def test_strategy_mapping(self):
        assert map_strategy("Tower block") == "stacked"
        assert map_strategy("Vertical stacking") == "stacked"
        assert map_strategy("Compact cluster") == "compact"
        assert map_strategy("Linear bar") == "linear"
        assert map_strategy("Courtyard") == "courtyard"
        assert map_strategy("Two wings") == "split"
        assert map_strategy("Something new") == "compact"

    def test_aspect_ratio_mapping(self):
        assert determine_aspect_ratio("Tower") == 1.0
        assert determine_aspect_ratio("Linear bar") == 2.5
        assert determine_aspect_ratio("Courtyard") == 1.5
        assert determine_aspect_ratio("Pavilions") == 1.3

    def test_room_matches_type(self):
        room = make_room(name="Resident Bedroom")
        assert room_matches_type(room, "bedroom")
        assert room_matches_type(room, "Resident rooms")
        assert not room_matches_type(room, "kitchen")
        assert not room_matches_type(room, "")


class TestDeterministicZoning:
    def test_identical_runs_give_identical_output(self, mixed_rooms):
        first = json.dumps([z.to_dict() for z in derive_zones(mixed_rooms)])
        second = json.dumps([z.to_dict() for z in derive_zones(mixed_rooms)])
        assert first == second

    def test_zone_ids_and_totals(self, mixed_rooms):
        zones = derive_zones(mixed_rooms)
        assert [z.id for z in zones] == ["zone-1", "zone-2", "zone-3", "zone-4", "zone-5"]
        total_net = sum(z.target_area_net for z in zones)
        assert total_net == pytest.approx(sum(r.total_area for r in mixed_rooms))

    def test_none_recommendation_uses_deterministic_zoning(self, mixed_rooms):
        expected = [z.to_dict() for z in derive_zones(mixed_rooms)]
        assert [z.to_dict() for z in apply_zone_recommendations(mixed_rooms, None)] == expected


def _recommendation():
    return ZoneRecommendation(
        zones=[
            ZoneProposal(
                name="Living Wing",
                function_type="residential",
                reasoning="Private rooms grouped around the stair cores",
                room_types=["bedroom"],
                suggested_variants=[
                    SuggestedZoneVariant(strategy="Tower", floors=4, reasoning="Stacked rooms"),
                    SuggestedZoneVariant(strategy="vertical stack", floors=4),
                    SuggestedZoneVariant(strategy="Linear bar", floors=2),
                ],
            ),
            ZoneProposal(
                name="Common Hub",
                function_type="shared",
                room_types=["Kitchen", "Reception"],
            ),
            ZoneProposal(name="Ghost", function_type="services", room_types=["sauna"]),
        ],
        adjacency_recommendations=[
            AdjacencyHint(
                zone1="Living Wing", zone2="Common Hub", relationship="should_be_adjacent"
            ),
            AdjacencyHint(zone1="living wing", zone2="staff spaces", relationship="must_avoid"),
            AdjacencyHint(zone1="Living Wing", zone2="Ghost", relationship="must_avoid"),
            AdjacencyHint(
                zone1="Common Hub", zone2="Common Hub", relationship="must_be_adjacent"
            ),
        ],
        overall_strategy="Low-rise village",
    )


class TestAdvisorZoning:
    def test_zones_from_recommendation(self, mixed_rooms):
        zones = apply_zone_recommendations(mixed_rooms, _recommendation())

        assert [(z.id, z.name) for z in zones] == [
            ("zone-1", "Living Wing"),
            ("zone-2", "Common Hub"),
            ("zone-3", "Staff Spaces"),
            ("zone-4", "Support Services"),
        ]
        assert zones[0].notes == "Private rooms grouped around the stair cores"

    def test_suggested_strategies(self, mixed_rooms):
        living = apply_zone_recommendations(mixed_rooms, _recommendation())[0]

        assert [v.id for v in living.variants] == [
            "zone-1-var-stacked-4f",
            "zone-1-var-linear-2f",
        ]
        assert living.allowed_levels == [2, 4]
        assert living.preferred_level == 4
        assert living.active_variant_id == "zone-1-var-stacked-4f"

        tower, bar = living.variants
        assert tower.aspect_ratio_range == pytest.approx((0.8, 1.2))
        assert bar.preferred_aspect_ratio == 2.5
        assert bar.notes == "Linear bar"
        assert tower.estimated_room_count == 40
        for variant in living.variants:
            assert validate_zone_variant(variant, living).valid

    def test_zone_without_suggestions_gets_defaults(self, mixed_rooms):
        hub = apply_zone_recommendations(mixed_rooms, _recommendation())[1]
        assert hub.target_area_net == 80.0
        assert [v.id for v in hub.variants] == ["zone-2-var-compact", "zone-2-var-linear"]

    def test_no_room_is_lost(self, mixed_rooms):
        zones = apply_zone_recommendations(mixed_rooms, _recommendation())
        assert sum(z.target_area_net for z in zones) == pytest.approx(
            sum(r.total_area for r in mixed_rooms)
        )

    def test_adjacency(self, mixed_rooms):
        zones = {z.id: z for z in apply_zone_recommendations(mixed_rooms, _recommendation())}

        assert zones["zone-1"].prefers_adjacent_to == ["zone-2"]
        assert zones["zone-1"].must_avoid == ["zone-3"]
        assert zones["zone-2"].prefers_adjacent_to == ["zone-1"]
        assert zones["zone-2"].must_avoid == []
        assert zones["zone-3"].must_avoid == ["zone-1"]
        assert zones["zone-4"].prefers_adjacent_to == []

    def test_repeated_zone_name_keeps_both_zones(self, mixed_rooms):
        recommendation = ZoneRecommendation(
            zones=[
                ZoneProposal(name="Staff Spaces", function_type="support", room_types=["Laundry"])
            ],
            adjacency_recommendations=[
                AdjacencyHint(
                    zone1="Staff Spaces", zone2="Residential Core", relationship="must_avoid"
                )
            ],
        )
        zones = apply_zone_recommendations(mixed_rooms, recommendation)
        by_id = {z.id: z for z in zones}

        assert [(z.id, z.name) for z in zones] == [
            ("zone-1", "Staff Spaces"),
            ("zone-2", "Residential Core"),
            ("zone-3", "Shared Facilities"),
            ("zone-4", "General Facilities"),
            ("zone-5", "Staff Spaces"),
        ]
        assert by_id["zone-1"].must_avoid == ["zone-2"]
        assert by_id["zone-5"].must_avoid == ["zone-2"]
        assert by_id["zone-2"].must_avoid == ["zone-1", "zone-5"]

    def test_unmatched_recommendation_falls_back(self, mixed_rooms):
        recommendation = ZoneRecommendation(
            zones=[ZoneProposal(name="Spa", function_type="services", room_types=["sauna"])]
        )
        expected = [z.to_dict() for z in derive_zones(mixed_rooms)]
        zones = apply_zone_recommendations(mixed_rooms, recommendation)
        assert [z.to_dict() for z in zones] == expected


def _named_zones(*names):
    return [
        ProgramZone(f"zone-{n}", name, "shared", 10.0, 9.0, 11.0, 0.25, [1, 2], 1)
        for n, name in enumerate(names, start=1)
    ]


def test_adjacency_graph_ignores_unknown_zones():
    hints = [
        AdjacencyHint(zone1="A", zone2="b", relationship="must_be_adjacent"),
        AdjacencyHint(zone1="A", zone2="Z", relationship="must_avoid"),
        AdjacencyHint(zone1="C", zone2="c", relationship="must_avoid"),
    ]
    graph = build_adjacency_graph(_named_zones("A", "B", "C"), hints)
    assert sorted(graph.nodes) == ["zone-1", "zone-2", "zone-3"]
    assert graph.nodes["zone-2"]["name"] == "B"
    assert list(graph.edges(data="relationship")) == [
        ("zone-1", "zone-2", "must_be_adjacent")
    ]


def test_adjacency_graph_keeps_zones_with_the_same_name_apart():
    hints = [AdjacencyHint(zone1="Lobby", zone2="Stores", relationship="must_avoid")]
    graph = build_adjacency_graph(_named_zones("Stores", "Lobby", "Stores"), hints)
    assert graph.number_of_nodes() == 3
    assert sorted(graph.neighbors("zone-2")) == ["zone-1", "zone-3"]
    assert not graph.has_edge("zone-1", "zone-3")
