"""
Room variant generation for Space Planning AI.

Produces up to four distinct, validated width x depth variants per room.
Advisor proposals are tried first; deterministic geometric fallbacks fill
in when fewer than two proposals survive validation.
"""

import asyncio
import logging
import math
from typing import Callable, List, Optional, Tuple

from space_planning_ai.advisors.base_advisor import BaseAdvisor
from space_planning_ai.advisors.schemas import RoomVariantProposal
from space_planning_ai.core.constraints import (
    ValidationResult,
    validate_room_variant,
    validate_small_room_variant,
)
from space_planning_ai.core.grid import DIMENSIONS, area, quantize, quantize_range
from space_planning_ai.models.room import (
    RoomSpec,
    RoomVariant,
    SOURCE_ADVISOR,
    SOURCE_FALLBACK,
    SOURCE_RELAXED,
)

logger = logging.getLogger(__name__)

# Hard upper bound on variants per room, whatever the configuration says
MAX_VARIANTS = 4

DEFAULT_FACADE_EDGE = "south"
DEFAULT_ACCESS_EDGE = "north"

# Width multipliers applied to the square side for the fallback shapes
WIDE_FACTOR = 1.4
NARROW_FACTOR = 0.7

# Aspect ratios tried for small utility rooms: square, wide, deep
SMALL_ROOM_RATIOS = (1.0, 1.2, 0.8)

# Identifier infix per variant source
ID_INFIX = {
    SOURCE_ADVISOR: "var",
    SOURCE_FALLBACK: "var-fallback",
    SOURCE_RELAXED: "var-relaxed",
}

ProgressCallback = Callable[[int, int, str], None]
Validator = Callable[[RoomVariant, RoomSpec], ValidationResult]


class VariantSynthesis:
    """Result of synthesizing variants for one room"""

    def __init__(
        self,
        room: RoomSpec,
        variants: List[RoomVariant],
        rejected: int = 0,
        used_fallback: bool = False,
        advisor_failed: bool = False,
    ):
        self.room = room
        self.variants = variants
        self.rejected = rejected
        self.used_fallback = used_fallback
        self.advisor_failed = advisor_failed

    @property
    def is_feasible(self) -> bool:
        return len(self.variants) > 0

    def __repr__(self) -> str:
        return (
            f"VariantSynthesis(room={self.room.id}, variants={len(self.variants)}, "
            f"rejected={self.rejected}, fallback={self.used_fallback})"
        )


class VariantGenerator:
    """
    Generates grid-aligned room variants under area, dimension and
    aspect ratio constraints.
    """

    def __init__(
        self,
        max_variants: int = MAX_VARIANTS,
        min_valid_before_fallback: int = 2,
        min_width: float = DIMENSIONS["MIN_ROOM_WIDTH"],
        min_depth: float = DIMENSIONS["MIN_ROOM_DEPTH"],
    ):
        """
        Initialize the generator.

        Args:
            max_variants: Variants kept per room, capped at MAX_VARIANTS
            min_valid_before_fallback: Fallback synthesis runs when fewer
                advisor proposals than this survive validation
            min_width: Absolute minimum buildable width
            min_depth: Absolute minimum buildable depth
        """
        if max_variants > MAX_VARIANTS:
            logger.warning(
                f"max_variants={max_variants} exceeds the limit, using {MAX_VARIANTS}"
            )
        self.max_variants = min(max_variants, MAX_VARIANTS)
        self.min_valid_before_fallback = min_valid_before_fallback
        self.min_width = min_width
        self.min_depth = min_depth

    def _strict_validator(self, variant: RoomVariant, room: RoomSpec) -> ValidationResult:
        return validate_room_variant(variant, room, self.min_width, self.min_depth)

    def _candidate(
        self,
        room: RoomSpec,
        width: float,
        depth: float,
        notes: Optional[str],
        source: str,
        facade_edge: Optional[str] = None,
        access_edge: Optional[str] = None,
    ) -> RoomVariant:
        """Build an unnumbered candidate with snapped dimensions and edges"""
        width = quantize(width)
        depth = quantize(depth)
        return RoomVariant(
            id="",
            width=width,
            depth=depth,
            area=area(width, depth),
            facade_edge=(facade_edge or DEFAULT_FACADE_EDGE)
            if room.requires_daylight
            else None,
            access_edge=(access_edge or DEFAULT_ACCESS_EDGE)
            if room.requires_access
            else None,
            notes=notes,
            source=source,
        )

    def _finalize(self, room: RoomSpec, candidates: List[RoomVariant]) -> List[RoomVariant]:
        """
        Drop duplicate shapes, truncate and assign sequence-derived ids.
        """
        seen = set()
        unique = []
        for candidate in candidates:
            key = (candidate.width, candidate.depth)
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)

        variants = []
        for position, candidate in enumerate(unique[: self.max_variants], start=1):
            variants.append(
                RoomVariant(
                    id=f"{room.id}-{ID_INFIX[candidate.source]}-{position}",
                    width=candidate.width,
                    depth=candidate.depth,
                    area=candidate.area,
                    facade_edge=candidate.facade_edge,
                    access_edge=candidate.access_edge,
                    notes=candidate.notes,
                    source=candidate.source,
                )
            )
        return variants

    def variants_from_proposals(
        self, room: RoomSpec, proposals: List[RoomVariantProposal]
    ) -> Tuple[List[RoomVariant], int]:
        """
        Snap, recompute and validate advisor proposals.

        Args:
            room: Room specification
            proposals: Untrusted candidates from an advisor

        Returns:
            Tuple of (accepted candidates, number rejected)
        """
        accepted = []
        rejected = 0
        shapes = set()
        for proposal in proposals:
            try:
                candidate = self._candidate(
                    room,
                    proposal.width,
                    proposal.depth,
                    proposal.notes,
                    SOURCE_ADVISOR,
                    facade_edge=proposal.facade_edge,
                    access_edge=proposal.access_edge,
                )
            except (OverflowError, ValueError) as e:
                rejected += 1
                logger.debug(f"Variant rejected for {room.name}: cannot snap proposal ({e})")
                continue
            # Proposals that snap to an accepted shape add nothing
            if (candidate.width, candidate.depth) in shapes:
                continue
            validation = self._strict_validator(candidate, room)
            if validation.valid:
                shapes.add((candidate.width, candidate.depth))
                accepted.append(candidate)
            else:
                rejected += 1
                logger.debug(f"Variant rejected for {room.name}: {validation.errors}")
        return accepted, rejected

    def _boundary_variants(
        self, room: RoomSpec, validator: Validator, source: str, limit: int = 2
    ) -> List[RoomVariant]:
        """Try the extreme width/depth combinations until `limit` pass"""
        target = room.area_target
        min_width, max_width = room.width_range
        min_depth, max_depth = room.depth_range

        combos = []
        if min_width > 0:
            combos.append((min_width, target / min_width))
        if max_width > 0:
            combos.append((max_width, target / max_width))
        if min_depth > 0:
            combos.append((target / min_depth, min_depth))
        if max_depth > 0:
            combos.append((target / max_depth, max_depth))

        variants = []
        shapes = set()
        for width, depth in combos:
            candidate = self._candidate(
                room, width, depth, "Optimized for constraints", source
            )
            if (candidate.width, candidate.depth) in shapes:
                continue
            if validator(candidate, room).valid:
                shapes.add((candidate.width, candidate.depth))
                variants.append(candidate)
                if len(variants) >= limit:
                    break
        return variants

    def fallback_variants(self, room: RoomSpec) -> List[RoomVariant]:
        """
        Generate variants from simple geometric rules.

        Square, wide (daylight rooms only) and deep/narrow shapes are tried
        first. The wide and narrow widths are clamped into the width range.
        If none validates, boundary combinations of the ranges are tried.

        Args:
            room: Room specification

        Returns:
            List[RoomVariant]: Valid, unnumbered candidates
        """
        target = room.area_target
        if target <= 0:
            return []

        min_width, max_width = room.width_range
        min_depth, max_depth = room.depth_range
        side = math.sqrt(target)
        candidates = []

        # Square
        w1 = quantize(side)
        if w1 > 0:
            candidates.append(
                self._candidate(
                    room, w1, target / w1, "Square layout - efficient circulation",
                    SOURCE_FALLBACK,
                )
            )

        # Wide, for facade exposure
        if room.requires_daylight:
            w2 = quantize_range(side * WIDE_FACTOR, min_width, max_width)
            if w2 > 0:
                d2 = quantize(target / w2)
                if w2 <= max_width and d2 >= min_depth:
                    candidates.append(
                        self._candidate(
                            room, w2, d2, "Wide layout - maximizes facade exposure",
                            SOURCE_FALLBACK,
                        )
                    )

        # Deep/narrow
        w3 = quantize_range(side * NARROW_FACTOR, min_width, max_width)
        if w3 > 0:
            d3 = quantize(target / w3)
            if w3 >= min_width and d3 <= max_depth:
                candidates.append(
                    self._candidate(
                        room, w3, d3, "Compact layout - efficient planning",
                        SOURCE_FALLBACK,
                    )
                )

        variants = [c for c in candidates if self._strict_validator(c, room).valid]
        if not variants:
            variants = self._boundary_variants(
                room, self._strict_validator, SOURCE_FALLBACK
            )
        return variants

    def synthesize(
        self,
        room: RoomSpec,
        proposals: Optional[List[RoomVariantProposal]] = None,
        advisor_failed: bool = False,
    ) -> VariantSynthesis:
        """
        Produce the final variant list for a room.

        Args:
            room: Room specification
            proposals: Optional advisor proposals (untrusted)
            advisor_failed: Whether the advisor call failed for this room

        Returns:
            VariantSynthesis: Variants plus rejection bookkeeping
        """
        accepted, rejected = self.variants_from_proposals(room, proposals or [])

        used_fallback = False
        if len(accepted) < self.min_valid_before_fallback:
            used_fallback = True
            accepted = accepted + self.fallback_variants(room)

        variants = self._finalize(room, accepted)
        if not variants:
            logger.warning(f"No valid variants for {room.name} ({room.id})")

        return VariantSynthesis(
            room.with_variants(variants),
            variants,
            rejected=rejected,
            used_fallback=used_fallback,
            advisor_failed=advisor_failed,
        )

    def generate_room_variants(
        self,
        room: RoomSpec,
        proposals: Optional[List[RoomVariantProposal]] = None,
    ) -> List[RoomVariant]:
        """Convenience wrapper returning only the variants"""
        return self.synthesize(room, proposals).variants

    def generate_small_room_variants(self, room: RoomSpec) -> List[RoomVariant]:
        """
        Generate variants for small utility rooms with relaxed validation.

        Only called explicitly (e.g. by the repair pass) for rooms that
        ended with no variants under the strict rules.

        Args:
            room: Room specification

        Returns:
            List[RoomVariant]: Numbered variants, possibly empty
        """
        target = room.area_target
        if target <= 0:
            return []

        candidates = []
        for ratio in SMALL_ROOM_RATIOS:
            # width / depth = ratio and width * depth = target
            depth = math.sqrt(target / ratio)
            width = depth * ratio
            if ratio == 1.0:
                notes = "Square layout - efficient circulation"
            elif ratio > 1.0:
                notes = "Wide layout - flexible arrangement"
            else:
                notes = "Compact layout - space-efficient"
            candidate = self._candidate(room, width, depth, notes, SOURCE_RELAXED)
            if validate_small_room_variant(candidate, room).valid:
                candidates.append(candidate)

        if not candidates:
            candidates = self._boundary_variants(
                room, validate_small_room_variant, SOURCE_RELAXED
            )
        return self._finalize(room, candidates)

    async def _request_proposals(
        self, room: RoomSpec, advisor: BaseAdvisor, timeout: float
    ) -> Tuple[List[RoomVariantProposal], bool]:
        try:
            proposals = await asyncio.wait_for(
                advisor.propose_room_variants(room), timeout=timeout
            )
            return list(proposals or []), False
        except asyncio.TimeoutError:
            logger.warning(f"Advisor timed out for {room.name}, using fallback")
        except Exception as e:
            logger.warning(f"Advisor failed for {room.name}: {e}, using fallback")
        return [], True

    async def synthesize_async(
        self,
        room: RoomSpec,
        advisor: Optional[BaseAdvisor] = None,
        timeout: float = 30.0,
    ) -> VariantSynthesis:
        """Ask the advisor (if any) for proposals, then synthesize"""
        if advisor is None:
            return self.synthesize(room)
        proposals, failed = await self._request_proposals(room, advisor, timeout)
        return self.synthesize(room, proposals, advisor_failed=failed)

    async def generate_all_variants(
        self,
        rooms: List[RoomSpec],
        advisor: Optional[BaseAdvisor] = None,
        batch_size: int = 5,
        batch_delay: float = 0.0,
        timeout: float = 30.0,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[VariantSynthesis]:
        """
        Synthesize variants for every room in bounded concurrent batches.

        Args:
            rooms: Room specifications
            advisor: Optional advisory service
            batch_size: Rooms processed concurrently
            batch_delay: Pause between batches in seconds (rate limiting only)
            timeout: Per-room advisor timeout in seconds
            on_progress: Called with (current, total, room name)

        Returns:
            List[VariantSynthesis]: One result per room, in input order
        """
        batch_size = max(1, batch_size)
        results: List[VariantSynthesis] = []
        total = len(rooms)

        for start in range(0, total, batch_size):
            batch = rooms[start : start + batch_size]
            if on_progress:
                for offset, room in enumerate(batch):
                    on_progress(start + offset + 1, total, room.name)

            batch_results = await asyncio.gather(
                *[self.synthesize_async(room, advisor, timeout) for room in batch]
            )
            results.extend(batch_results)

            if batch_delay > 0 and start + batch_size < total:
                await asyncio.sleep(batch_delay)

        return results
