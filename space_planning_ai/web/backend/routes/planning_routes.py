"""
Routes for room variant synthesis and zoning.
"""

import logging
from typing import Dict, Any, List, Literal, Optional, Tuple

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from space_planning_ai.advisors.base_advisor import AdvisorError, BaseAdvisor
from space_planning_ai.config.brief_loader import BriefFormatError, rooms_from_dicts
from space_planning_ai.config.config_loader import create_advisor, get_planning_parameters
from space_planning_ai.core.constraints import check_area_feasibility, validate_room_spec
from space_planning_ai.core.pipeline import PlanningPipeline
from space_planning_ai.models.room import RoomSpec
from space_planning_ai.utils.metrics import variant_statistics, zone_totals

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api", tags=["Space Planning"])


# Pydantic models for validation
class RoomInput(BaseModel):
    id: Optional[str] = Field(None, description="Room id (defaults to room-<n>)")
    name: str = Field(..., description="Room name")
    area_target: float = Field(..., gt=0, description="Target area in m²")
    area_min: Optional[float] = Field(None, gt=0, description="Minimum area in m²")
    area_max: Optional[float] = Field(None, gt=0, description="Maximum area in m²")
    width_range: Optional[Tuple[float, float]] = None
    depth_range: Optional[Tuple[float, float]] = None
    aspect_ratio_range: Optional[Tuple[float, float]] = None
    requires_daylight: bool = False
    requires_access: bool = True
    category: str = "general"
    quantity: int = Field(1, ge=1)
    notes: Optional[str] = None


class PlanningRequest(BaseModel):
    rooms: List[RoomInput] = Field(..., description="Rooms of the brief")
    advisor: Literal["none", "openai"] = "none"
    parameters: Optional[Dict[str, Any]] = Field(
        None, description="Overrides for the planning parameters"
    )


def _rooms_from_request(request: PlanningRequest) -> List[RoomSpec]:
    try:
        return rooms_from_dicts([room.model_dump(exclude_none=True) for room in request.rooms])
    except BriefFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _advisor_from_request(request: PlanningRequest) -> Optional[BaseAdvisor]:
    try:
        return create_advisor(request.advisor)
    except AdvisorError as e:
        raise HTTPException(status_code=400, detail=f"Advisor unavailable: {e}")


def _parameters(request: PlanningRequest) -> Dict[str, Any]:
    parameters = get_planning_parameters()
    parameters.update(request.parameters or {})
    return parameters


def _pipeline(request: PlanningRequest) -> PlanningPipeline:
    return PlanningPipeline(
        advisor=_advisor_from_request(request), parameters=_parameters(request)
    )


@router.get("/parameters")
async def get_parameters():
    """Get the default planning parameters."""
    return {"success": True, "parameters": get_planning_parameters()}


@router.post("/rooms/validate")
async def validate_rooms(request: PlanningRequest):
    """Check room specifications and area feasibility."""
    rooms = _rooms_from_request(request)
    parameters = _parameters(request)
    results = []
    for room in rooms:
        result = validate_room_spec(
            room, parameters["min_room_width"], parameters["min_room_depth"]
        ).merge(check_area_feasibility(room))
        results.append({"room_id": room.id, "name": room.name, **result.to_dict()})

    return {
        "success": True,
        "valid": all(r["valid"] for r in results),
        "rooms": results,
    }


@router.post("/rooms/variants")
async def generate_variants(request: PlanningRequest):
    """Generate grid-aligned variants for every room."""
    rooms = _rooms_from_request(request)
    pipeline = _pipeline(request)
    logger.info(f"Generating variants for {len(rooms)} rooms")

    planned, _, repaired = await pipeline.synthesize_rooms(rooms)

    return {
        "success": True,
        "rooms": [room.to_dict() for room in planned],
        "rooms_without_variants": [room.id for room in planned if not room.variants],
        "repaired_rooms": repaired,
        "statistics": variant_statistics(planned),
    }


@router.post("/zones")
async def generate_zones(request: PlanningRequest):
    """Group rooms into program zones with organizational strategies."""
    rooms = _rooms_from_request(request)
    pipeline = _pipeline(request)
    zones, recommendation = await pipeline.zone_rooms(rooms)

    return {
        "success": True,
        "zones": [zone.to_dict() for zone in zones],
        "totals": zone_totals(zones),
        "overall_strategy": recommendation.overall_strategy if recommendation else None,
    }


@router.post("/plan")
async def plan(request: PlanningRequest):
    """Run the full planning pipeline."""
    rooms = _rooms_from_request(request)
    pipeline = _pipeline(request)
    result = await pipeline.run_async(rooms)

    return {
        "success": True,
        "result": result.to_dict(),
        "statistics": variant_statistics(result.rooms),
        "totals": zone_totals(result.zones),
    }
