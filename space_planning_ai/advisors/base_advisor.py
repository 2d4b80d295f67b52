"""
Base advisor interface for Space Planning AI.

An advisor is an external, untrusted proposer of room proportions and
zone groupings. It is passed explicitly to the pipeline; nothing in the
core relies on a process-wide client.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from space_planning_ai.advisors.schemas import RoomVariantProposal, ZoneRecommendation
from space_planning_ai.models.room import RoomSpec


class AdvisorError(Exception):
    """Raised when an advisory service cannot produce a usable answer"""


class BaseAdvisor(ABC):
    """
    Base class for advisory services.
    Implementations may return nothing; the core always has a fallback.
    """

    name = "base"

    @abstractmethod
    async def propose_room_variants(self, room: RoomSpec) -> List[RoomVariantProposal]:
        """
        Propose candidate proportions for a room.

        Args:
            room: Room specification

        Returns:
            List[RoomVariantProposal]: Unvalidated candidates
        """

    @abstractmethod
    async def recommend_zones(
        self, rooms: List[RoomSpec]
    ) -> Optional[ZoneRecommendation]:
        """
        Propose functional zones, strategies and adjacency hints.

        Args:
            rooms: The whole room population

        Returns:
            ZoneRecommendation or None
        """


class NullAdvisor(BaseAdvisor):
    """Advisor that never proposes anything"""

    name = "none"

    async def propose_room_variants(self, room: RoomSpec) -> List[RoomVariantProposal]:
        return []

    async def recommend_zones(
        self, rooms: List[RoomSpec]
    ) -> Optional[ZoneRecommendation]:
        return None
