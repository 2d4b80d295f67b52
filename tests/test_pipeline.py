"""
Tests for the planning pipeline.
"""

import asyncio

from space_planning_ai.advisors.base_advisor import AdvisorError, BaseAdvisor
from space_planning_ai.advisors.schemas import (
    AdjacencyHint,
    RoomVariantProposal,
    ZoneProposal,
    ZoneRecommendation,
)
from space_planning_ai.core.pipeline import DEFAULT_PARAMETERS, PlanningPipeline
from space_planning_ai.core.zone_strategy import derive_zones

OFFLINE = {"batch_delay": 0.0}


class FailingAdvisor(BaseAdvisor):
    async def propose_room_variants(self, room):
        raise AdvisorError("quota exceeded")

    async def recommend_zones(self, rooms):
        raise AdvisorError("quota exceeded")


class ScriptedAdvisor(BaseAdvisor):
    """Proposes 5 x 6 for every room and a single residential zone"""

    async def propose_room_variants(self, room):
        return [
            RoomVariantProposal(width=5.0, depth=6.0),
            RoomVariantProposal(width=6.0, depth=5.0),
            RoomVariantProposal(width=30.0, depth=1.0),
        ]

    async def recommend_zones(self, rooms):
        return ZoneRecommendation(
            zones=[
                ZoneProposal(name="Rooms", function_type="residential", room_types=["bedroom"])
            ],
            adjacency_recommendations=[
                AdjacencyHint(
                    zone1="Rooms", zone2="Support Services", relationship="can_be_separate"
                )
            ],
            overall_strategy="Keep it compact",
        )


class OversizedAdvisor(BaseAdvisor):
    """Proposes a width no grid can hold"""

    async def propose_room_variants(self, room):
        return [RoomVariantProposal.model_construct(width=1e308, depth=5.0)]

    async def recommend_zones(self, rooms):
        return None


class ManyShapesAdvisor(BaseAdvisor):
    async def propose_room_variants(self, room):
        shapes = [(5.0, 6.0), (6.0, 5.0), (4.5, 6.7), (6.7, 4.5), (4.0, 7.0), (7.0, 4.0)]
        return [RoomVariantProposal(width=w, depth=d) for w, d in shapes]

    async def recommend_zones(self, rooms):
        return None


class HangingAdvisor(BaseAdvisor):
    async def propose_room_variants(self, room):
        return []

    async def recommend_zones(self, rooms):
        await asyncio.sleep(5)


def test_parameters_merge_over_defaults():
    pipeline = PlanningPipeline(parameters={"max_variants": 2})
    assert pipeline.parameters["max_variants"] == 2
    assert pipeline.parameters["batch_size"] == DEFAULT_PARAMETERS["batch_size"]
    assert pipeline.generator.max_variants == 2


def test_variant_bound_survives_configuration(daylight_room):
    pipeline = PlanningPipeline(
        advisor=ManyShapesAdvisor(), parameters={**OFFLINE, "max_variants": 6}
    )
    room = pipeline.run([daylight_room]).rooms[0]
    assert [v.id for v in room.variants] == [f"room-1-var-{n}" for n in range(1, 5)]


def test_oversized_proposal_does_not_halt_the_run(daylight_room):
    result = PlanningPipeline(advisor=OversizedAdvisor(), parameters=OFFLINE).run(
        [daylight_room]
    )
    assert [v.id for v in result.rooms[0].variants] == [
        "room-1-var-fallback-1",
        "room-1-var-fallback-2",
    ]
    assert result.zones


def test_deterministic_run(daylight_room, closet_room, infeasible_room):
    result = PlanningPipeline().run([daylight_room, closet_room, infeasible_room])

    assert [r.id for r in result.rooms] == ["room-1", "room-2", "room-3"]
    assert len(result.rooms[0].variants) == 2
    assert result.repaired_rooms == ["room-2"]
    assert result.rooms[1].variants[0].id == "room-2-var-relaxed-1"
    assert result.rooms_without_variants == ["room-3"]
    assert result.advisor_failures == 0
    assert result.overall_strategy is None
    assert result.zones


def test_feasibility_issues_only_for_invalid_rooms(daylight_room, closet_room, infeasible_room):
    issues = PlanningPipeline().check_rooms([daylight_room, closet_room, infeasible_room])
    assert [i.room_id for i in issues] == ["room-3"]
    assert any("too large" in e for e in issues[0].errors)
    assert issues[0].to_dict()["room_name"] == "Assembly Hall"


def test_repair_can_be_disabled(closet_room):
    result = PlanningPipeline(parameters={"repair_small_rooms": False}).run([closet_room])
    assert result.repaired_rooms == []
    assert result.rooms_without_variants == ["room-2"]


def test_input_rooms_are_not_modified(daylight_room):
    PlanningPipeline().run([daylight_room])
    assert daylight_room.variants == []
    assert daylight_room.active_variant_id is None


def test_failing_advisor_never_halts(mixed_rooms):
    pipeline = PlanningPipeline(advisor=FailingAdvisor(), parameters=OFFLINE)
    result = pipeline.run(mixed_rooms)

    assert result.advisor_failures == len(mixed_rooms)
    assert all(room.variants for room in result.rooms)
    expected = [z.to_dict() for z in derive_zones(result.rooms)]
    assert [z.to_dict() for z in result.zones] == expected


def test_zone_advisor_timeout_falls_back(mixed_rooms):
    pipeline = PlanningPipeline(
        advisor=HangingAdvisor(), parameters={**OFFLINE, "advisor_timeout": 0.01}
    )
    zones, recommendation = asyncio.run(pipeline.zone_rooms(mixed_rooms))
    assert recommendation is None
    assert len(zones) == 5


def test_scripted_advisor(mixed_rooms):
    result = PlanningPipeline(advisor=ScriptedAdvisor(), parameters=OFFLINE).run(mixed_rooms)

    bedroom = result.rooms[0]
    assert [v.source for v in bedroom.variants] == ["advisor", "advisor"]
    assert result.rejected_proposals >= 1
    assert result.overall_strategy == "Keep it compact"
    assert result.zones[0].name == "Rooms"
    assert result.zones[0].must_avoid == []

    data = result.to_dict()
    assert data["adjacency_hints"][0]["relationship"] == "can_be_separate"
    assert data["overall_strategy"] == "Keep it compact"


def test_progress_callback(mixed_rooms):
    seen = []
    PlanningPipeline().run(mixed_rooms, lambda current, total, name: seen.append(current))
    assert seen == [1, 2, 3, 4, 5]


def test_result_to_dict(daylight_room, infeasible_room):
    result = PlanningPipeline().run([daylight_room, infeasible_room])
    data = result.to_dict()
    assert set(data) == {
        "rooms",
        "zones",
        "feasibility_issues",
        "rooms_without_variants",
        "repaired_rooms",
        "rejected_proposals",
        "advisor_failures",
        "adjacency_hints",
        "overall_strategy",
    }
    assert data["rooms_without_variants"] == ["room-3"]
    assert data["feasibility_issues"][0]["room_id"] == "room-3"
    assert result.total_variants == 2
