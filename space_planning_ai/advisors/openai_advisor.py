"""
OpenAI-backed advisor.

Asks a chat model for room proportions and zoning strategies. Responses
are requested as JSON objects and parsed through the pydantic schemas;
anything unusable is reported as an AdvisorError and the core falls back
to its deterministic synthesis.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from space_planning_ai.advisors.base_advisor import AdvisorError, BaseAdvisor
from space_planning_ai.advisors.schemas import (
    RoomVariantProposal,
    ZoneRecommendation,
    parse_variant_proposals,
    parse_zone_recommendation,
)
from space_planning_ai.models.room import RoomSpec

logger = logging.getLogger(__name__)

VARIANT_SYSTEM_PROMPT = (
    "You are an expert architectural space planner. Propose optimal room "
    "proportions based on function, ergonomics, and building standards. All "
    "dimensions must be practical and aligned to a 0.1m (100mm) construction grid."
)

ZONE_SYSTEM_PROMPT = (
    "You are an expert architect specializing in building organization and "
    "spatial planning. You provide thoughtful, experience-based recommendations."
)

CATEGORY_DESCRIPTIONS = {
    "client": "residential/client living space",
    "general": "shared facility/common area",
    "supporting": "back-of-house/support space",
}


def build_variant_prompt(room: RoomSpec) -> str:
    """Build the user prompt asking for room proportion variants"""
    tolerance = (room.area_max - room.area_min) / 2
    return f"""Generate 3-4 optimal room proportion variants for:

Room: {room.name}
Type: {CATEGORY_DESCRIPTIONS.get(room.category, room.category)}
Target Area: {room.area_target}m² (MUST BE between {room.area_min}m² and {room.area_max}m²)
Quantity Needed: {room.quantity}
Requires Daylight: {"Yes (needs facade)" if room.requires_daylight else "No"}
Notes: {room.notes or "None"}

STRICT CONSTRAINTS:
- Width: MUST BE between {room.width_range[0]}m and {room.width_range[1]}m
- Depth: MUST BE between {room.depth_range[0]}m and {room.depth_range[1]}m
- Area: width × depth MUST equal approximately {room.area_target}m² (±{tolerance}m²)
- Aspect ratio: {room.aspect_ratio_range[0]} to {room.aspect_ratio_range[1]}
- ALL dimensions MUST be multiples of 0.1m (e.g., 3.5m, 4.2m, NOT 3.47m)

Propose variants with these characteristics:
1. Square/compact (aspect ratio ~1.0)
2. Wide/shallow (aspect ratio >1.1, for facade if daylight needed)
3. Deep/narrow (aspect ratio <0.9, for core access)
4. Balanced mid-option

Return JSON format:
{{"variants": [{{"width": 4.5, "depth": 6.7, "notes": "...", "facade_edge": "south", "access_edge": "north"}}]}}"""


def build_zone_prompt(rooms: List[RoomSpec]) -> str:
    """Build the user prompt asking for zoning strategies"""
    summary = [
        {
            "name": r.name,
            "category": r.category,
            "quantity": r.quantity,
            "area": r.area_target,
            "requires_daylight": r.requires_daylight,
            "notes": r.notes,
        }
        for r in rooms
    ]
    total_rooms = sum(r.quantity for r in rooms)
    total_area = sum(r.total_area for r in rooms)

    return f"""Analyze this building program and propose 2-3 functional zones.

BUILDING PROGRAM:
- Total rooms: {total_rooms}
- Total area: {total_area:.0f} m²
- Room types: {len(rooms)}

ROOM BREAKDOWN:
{json.dumps(summary, indent=2)}

For each zone give a name, a function_type (residential|shared|services|staff|support),
the reasoning, the room names it contains and 2-3 architecturally meaningful
variants (strategy name and floor count). Also list adjacency relationships
between zones (must_be_adjacent|should_be_adjacent|can_be_separate|must_avoid).

Return a JSON object:
{{"zones": [{{"name": "...", "function_type": "...", "reasoning": "...",
  "room_types": ["..."], "suggested_variants": [{{"strategy": "...", "floors": 4, "reasoning": "..."}}]}}],
 "adjacency_recommendations": [{{"zone1": "...", "zone2": "...", "relationship": "...", "reasoning": "..."}}],
 "overall_strategy": "..."}}"""


class OpenAIAdvisor(BaseAdvisor):
    """Advisor backed by the OpenAI chat completions API"""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the advisor.

        Args:
            api_key: OpenAI API key
            model: Chat model name
            timeout: Request timeout in seconds
            base_url: Optional OpenAI-compatible endpoint
            client: Pre-built client (mainly for tests)
        """
        if client is None and not api_key:
            raise AdvisorError("OpenAI advisor requires an API key")
        self.model = model
        self.timeout = timeout
        self.client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

    async def _complete_json(
        self, system_prompt: str, user_prompt: str, temperature: float
    ) -> Dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
            )
        except OpenAIError as e:
            raise AdvisorError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AdvisorError("No response content from OpenAI")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise AdvisorError(f"OpenAI returned invalid JSON: {e}") from e

    async def propose_room_variants(self, room: RoomSpec) -> List[RoomVariantProposal]:
        payload = await self._complete_json(
            VARIANT_SYSTEM_PROMPT, build_variant_prompt(room), temperature=0.3
        )
        proposals = parse_variant_proposals(payload)
        logger.debug(f"{room.name}: {len(proposals)} proposals from {self.model}")
        return proposals

    async def recommend_zones(
        self, rooms: List[RoomSpec]
    ) -> Optional[ZoneRecommendation]:
        payload = await self._complete_json(
            ZONE_SYSTEM_PROMPT, build_zone_prompt(rooms), temperature=0.7
        )
        recommendation = parse_zone_recommendation(payload)
        if recommendation is None:
            logger.warning("Zone recommendation from OpenAI had no usable zones")
        return recommendation
