"""
Planning pipeline for Space Planning AI.

Runs the full early-stage planning flow over a room population:
specification checks, variant synthesis (advisor first, deterministic
fallback), an optional relaxed repair pass for rooms left without
variants, and zoning. The pipeline always completes; infeasible rooms
are reported, never raised.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from space_planning_ai.advisors.base_advisor import BaseAdvisor
from space_planning_ai.advisors.schemas import AdjacencyHint, ZoneRecommendation
from space_planning_ai.core.constraints import check_area_feasibility, validate_room_spec
from space_planning_ai.core.variant_generator import (
    ProgressCallback,
    VariantGenerator,
    VariantSynthesis,
)
from space_planning_ai.core.zone_strategy import apply_zone_recommendations, derive_zones
from space_planning_ai.models.room import RoomSpec
from space_planning_ai.models.zone import ProgramZone

logger = logging.getLogger(__name__)

DEFAULT_PARAMETERS: Dict[str, Any] = {
    "max_variants": 4,
    "min_valid_before_fallback": 2,
    "batch_size": 5,
    "batch_delay": 1.0,
    "advisor_timeout": 30.0,
    "min_room_width": 2.4,
    "min_room_depth": 2.4,
    "repair_small_rooms": True,
}


class FeasibilityIssue:
    """A problem with a room specification that needs manual correction"""

    def __init__(
        self,
        room_id: str,
        room_name: str,
        errors: List[str],
        warnings: Optional[List[str]] = None,
    ):
        self.room_id = room_id
        self.room_name = room_name
        self.errors = errors
        self.warnings = warnings or []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_name": self.room_name,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

    def __repr__(self) -> str:
        return f"FeasibilityIssue(room={self.room_id}, errors={len(self.errors)})"


class PlanningResult:
    """Everything the pipeline produced for one room population"""

    def __init__(
        self,
        rooms: List[RoomSpec],
        zones: List[ProgramZone],
        feasibility_issues: Optional[List[FeasibilityIssue]] = None,
        repaired_rooms: Optional[List[str]] = None,
        rejected_proposals: int = 0,
        advisor_failures: int = 0,
        adjacency_hints: Optional[List[AdjacencyHint]] = None,
        overall_strategy: Optional[str] = None,
    ):
        self.rooms = rooms
        self.zones = zones
        self.feasibility_issues = feasibility_issues or []
        self.repaired_rooms = repaired_rooms or []
        self.rejected_proposals = rejected_proposals
        self.advisor_failures = advisor_failures
        self.adjacency_hints = adjacency_hints or []
        self.overall_strategy = overall_strategy

    @property
    def rooms_without_variants(self) -> List[str]:
        """Ids of rooms that ended with zero variants"""
        return [room.id for room in self.rooms if not room.variants]

    @property
    def total_variants(self) -> int:
        return sum(len(room.variants) for room in self.rooms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rooms": [room.to_dict() for room in self.rooms],
            "zones": [zone.to_dict() for zone in self.zones],
            "feasibility_issues": [i.to_dict() for i in self.feasibility_issues],
            "rooms_without_variants": self.rooms_without_variants,
            "repaired_rooms": list(self.repaired_rooms),
            "rejected_proposals": self.rejected_proposals,
            "advisor_failures": self.advisor_failures,
            "adjacency_hints": [h.model_dump() for h in self.adjacency_hints],
            "overall_strategy": self.overall_strategy,
        }

    def __repr__(self) -> str:
        return (
            f"PlanningResult(rooms={len(self.rooms)}, zones={len(self.zones)}, "
            f"variants={self.total_variants}, "
            f"without_variants={len(self.rooms_without_variants)})"
        )


class PlanningPipeline:
    """
    Orchestrates variant synthesis and zoning.

    The advisor is passed in explicitly; with no advisor the whole run is
    deterministic.
    """

    def __init__(
        self,
        advisor: Optional[BaseAdvisor] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            advisor: Optional advisory service
            parameters: Overrides for DEFAULT_PARAMETERS
        """
        self.advisor = advisor
        self.parameters = dict(DEFAULT_PARAMETERS)
        if parameters:
            self.parameters.update(parameters)

        self.generator = VariantGenerator(
            max_variants=self.parameters["max_variants"],
            min_valid_before_fallback=self.parameters["min_valid_before_fallback"],
            min_width=self.parameters["min_room_width"],
            min_depth=self.parameters["min_room_depth"],
        )

    def check_rooms(self, rooms: List[RoomSpec]) -> List[FeasibilityIssue]:
        """
        Run specification and area feasibility checks on every room.

        Rooms with only warnings are not reported.
        """
        issues = []
        for room in rooms:
            spec_result = validate_room_spec(
                room,
                self.parameters["min_room_width"],
                self.parameters["min_room_depth"],
            )
            result = spec_result.merge(check_area_feasibility(room))
            if not result.valid:
                logger.warning(f"{room.name}: {'; '.join(result.errors)}")
                issues.append(
                    FeasibilityIssue(room.id, room.name, result.errors, result.warnings)
                )
        return issues

    def repair_rooms(self, rooms: List[RoomSpec]) -> List[str]:
        """
        Retry rooms with zero variants using the relaxed small-room rules.

        Rooms are updated in place.

        Returns:
            List[str]: Ids of rooms that gained variants
        """
        repaired = []
        for index, room in enumerate(rooms):
            if room.variants:
                continue
            variants = self.generator.generate_small_room_variants(room)
            if variants:
                rooms[index] = room.with_variants(variants)
                repaired.append(room.id)
                logger.info(f"Repaired {room.name} with {len(variants)} relaxed variants")
        return repaired

    async def synthesize_rooms(
        self,
        rooms: List[RoomSpec],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Tuple[List[RoomSpec], List[VariantSynthesis], List[str]]:
        """
        Generate variants for every room, then run the repair pass if enabled.

        Returns:
            (rooms with variants, per-room synthesis results, repaired room ids)
        """
        syntheses = await self.generator.generate_all_variants(
            rooms,
            advisor=self.advisor,
            batch_size=self.parameters["batch_size"],
            batch_delay=self.parameters["batch_delay"] if self.advisor else 0.0,
            timeout=self.parameters["advisor_timeout"],
            on_progress=on_progress,
        )
        planned = [s.room for s in syntheses]

        repaired = []
        if self.parameters["repair_small_rooms"]:
            repaired = self.repair_rooms(planned)
        return planned, syntheses, repaired

    async def zone_rooms(
        self, rooms: List[RoomSpec]
    ) -> Tuple[List[ProgramZone], Optional[ZoneRecommendation]]:
        """Zone rooms through the advisor if there is one, else deterministically"""
        if self.advisor is None:
            return derive_zones(rooms), None

        try:
            recommendation = await asyncio.wait_for(
                self.advisor.recommend_zones(rooms),
                timeout=self.parameters["advisor_timeout"],
            )
        except asyncio.TimeoutError:
            logger.warning("Zone advisor timed out, using deterministic zoning")
            return derive_zones(rooms), None
        except Exception as e:
            logger.warning(f"Zone advisor failed: {e}, using deterministic zoning")
            return derive_zones(rooms), None

        return apply_zone_recommendations(rooms, recommendation), recommendation

    async def run_async(
        self,
        rooms: List[RoomSpec],
        on_progress: Optional[ProgressCallback] = None,
    ) -> PlanningResult:
        """
        Run the pipeline.

        Args:
            rooms: Room population
            on_progress: Called with (current, total, room name) during synthesis

        Returns:
            PlanningResult
        """
        logger.info(f"Planning {len(rooms)} room types")
        issues = self.check_rooms(rooms)

        planned, syntheses, repaired = await self.synthesize_rooms(rooms, on_progress)
        zones, recommendation = await self.zone_rooms(planned)

        result = PlanningResult(
            rooms=planned,
            zones=zones,
            feasibility_issues=issues,
            repaired_rooms=repaired,
            rejected_proposals=sum(s.rejected for s in syntheses),
            advisor_failures=sum(1 for s in syntheses if s.advisor_failed),
            adjacency_hints=(
                list(recommendation.adjacency_recommendations) if recommendation else []
            ),
            overall_strategy=recommendation.overall_strategy if recommendation else None,
        )
        logger.info(f"Planning finished: {result}")
        return result

    def run(
        self,
        rooms: List[RoomSpec],
        on_progress: Optional[ProgressCallback] = None,
    ) -> PlanningResult:
        """Synchronous wrapper around run_async"""
        return asyncio.run(self.run_async(rooms, on_progress))
