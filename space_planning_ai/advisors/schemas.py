"""
Pydantic models for advisory service payloads.
Advisor output is untrusted: payloads are parsed entry by entry and
malformed entries are dropped instead of failing the whole response.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

Edge = Literal["north", "south", "east", "west"]
FunctionType = Literal["residential", "shared", "services", "staff", "support"]
Relationship = Literal[
    "must_be_adjacent", "should_be_adjacent", "can_be_separate", "must_avoid"
]

# No room dimension in a brief comes anywhere near this
MAX_PROPOSED_DIMENSION = 1000.0


class RoomVariantProposal(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    width: float = Field(
        ..., gt=0, le=MAX_PROPOSED_DIMENSION, description="Proposed width in meters"
    )
    depth: float = Field(
        ..., gt=0, le=MAX_PROPOSED_DIMENSION, description="Proposed depth in meters"
    )
    notes: Optional[str] = Field(None, description="Reasoning for the proportion")
    facade_edge: Optional[Edge] = None
    access_edge: Optional[Edge] = None


class SuggestedZoneVariant(BaseModel):
    strategy: str = Field(..., description="Free-form strategy name")
    floors: int = Field(..., gt=0, description="Number of floors")
    reasoning: Optional[str] = None


class ZoneProposal(BaseModel):
    name: str
    function_type: FunctionType
    reasoning: Optional[str] = None
    room_types: List[str] = Field(default_factory=list)
    suggested_variants: List[SuggestedZoneVariant] = Field(default_factory=list)


class AdjacencyHint(BaseModel):
    zone1: str
    zone2: str
    relationship: Relationship
    reasoning: Optional[str] = None


class ZoneRecommendation(BaseModel):
    zones: List[ZoneProposal] = Field(default_factory=list)
    adjacency_recommendations: List[AdjacencyHint] = Field(default_factory=list)
    overall_strategy: Optional[str] = None


def _parse_entries(model, entries: Any, label: str) -> List[Any]:
    if not isinstance(entries, list):
        return []
    parsed = []
    for entry in entries:
        try:
            parsed.append(model.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Dropping malformed {label}: {e.errors()}")
    return parsed


def parse_variant_proposals(payload: Any) -> List[RoomVariantProposal]:
    """
    Parse a {"variants": [...]} payload into proposals.

    Args:
        payload: Decoded JSON from the advisor

    Returns:
        List[RoomVariantProposal]: Well-formed entries only
    """
    if not isinstance(payload, dict):
        return []
    return _parse_entries(RoomVariantProposal, payload.get("variants"), "variant")


def parse_zone_recommendation(payload: Any) -> Optional[ZoneRecommendation]:
    """
    Parse a zone recommendation payload.

    Zones and adjacency hints are parsed one by one. Suggested variants
    inside a zone are filtered the same way.

    Returns:
        ZoneRecommendation or None when nothing usable is left
    """
    if not isinstance(payload, dict):
        return None

    zones = []
    for raw_zone in payload.get("zones") or []:
        if not isinstance(raw_zone, dict):
            continue
        zone_data: Dict[str, Any] = dict(raw_zone)
        zone_data["suggested_variants"] = [
            v.model_dump()
            for v in _parse_entries(
                SuggestedZoneVariant,
                raw_zone.get("suggested_variants"),
                "zone variant",
            )
        ]
        zones.extend(_parse_entries(ZoneProposal, [zone_data], "zone"))

    hints = _parse_entries(
        AdjacencyHint, payload.get("adjacency_recommendations"), "adjacency hint"
    )
    if not zones:
        return None

    strategy = payload.get("overall_strategy")
    return ZoneRecommendation(
        zones=zones,
        adjacency_recommendations=hints,
        overall_strategy=strategy if isinstance(strategy, str) else None,
    )
