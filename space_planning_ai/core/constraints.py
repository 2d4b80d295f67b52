"""
Constraint validation for Space Planning AI.
This file defines the checks applied to room specifications and to
candidate room variants. All checks are pure: they only read their
inputs and report errors (hard failures) and warnings (soft failures).
"""

import math
from typing import List, Dict, Any, Optional, Tuple

from space_planning_ai.core.grid import DIMENSIONS, area, is_aligned
from space_planning_ai.models.room import RoomSpec, RoomVariant
from space_planning_ai.models.zone import ProgramZone, ZoneVariant

# Largest allowed difference between a stated and a recomputed area
AREA_TOLERANCE = 0.01


class ValidationResult:
    """Outcome of a validation run"""

    def __init__(
        self,
        errors: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.errors = errors or []
        self.warnings = warnings or []

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results into a new one"""
        return ValidationResult(
            self.errors + other.errors, self.warnings + other.warnings
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "warnings": self.warnings}

    def __repr__(self) -> str:
        return (
            f"ValidationResult(valid={self.valid}, errors={len(self.errors)}, "
            f"warnings={len(self.warnings)})"
        )


class Constraint:
    """Base class for all variant constraints"""

    def __init__(self, name: Optional[str] = None, is_hard: bool = True):
        """
        Initialize a constraint.

        Args:
            name: Optional name for the constraint
            is_hard: Hard constraints report errors, soft ones report warnings
        """
        self.name = name or self.__class__.__name__
        self.is_hard = is_hard

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        """
        Check a variant against its owning room.

        Args:
            variant: Candidate geometry
            room: Room specification the variant belongs to

        Returns:
            List[str]: One message per violation (empty when satisfied)
        """
        raise NotImplementedError("Subclasses must implement check()")

    def __str__(self) -> str:
        return f"{self.name} ({'hard' if self.is_hard else 'soft'})"


class GridAlignmentConstraint(Constraint):
    """Width, depth and area must sit on the 0.1m grid"""

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        messages = []
        if not is_aligned(variant.width):
            messages.append(f"Width {variant.width} is not aligned to 0.1m grid")
        if not is_aligned(variant.depth):
            messages.append(f"Depth {variant.depth} is not aligned to 0.1m grid")
        if not is_aligned(variant.area):
            messages.append(f"Area {variant.area} is not aligned to 0.1m grid")
        return messages


class DimensionRangeConstraint(Constraint):
    """Width and depth must fall inside the room's ranges"""

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        messages = []
        min_width, max_width = room.width_range
        min_depth, max_depth = room.depth_range
        if variant.width < min_width or variant.width > max_width:
            messages.append(
                f"Width {variant.width}m outside range [{min_width}, {max_width}]"
            )
        if variant.depth < min_depth or variant.depth > max_depth:
            messages.append(
                f"Depth {variant.depth}m outside range [{min_depth}, {max_depth}]"
            )
        return messages


class AreaConsistencyConstraint(Constraint):
    """
    The stated area must match width x depth recomputed on the grid.
    This is the only guard against inconsistent width/depth/area triples.
    """

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        calculated = area(variant.width, variant.depth)
        if abs(calculated - variant.area) > AREA_TOLERANCE:
            return [
                f"Area mismatch: {variant.area}m² stated, {calculated}m² calculated"
            ]
        return []


class AreaRangeConstraint(Constraint):
    """Area must fall inside [area_min, area_max]"""

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        if variant.area < room.area_min or variant.area > room.area_max:
            return [
                f"Area {variant.area}m² outside range "
                f"[{room.area_min}, {room.area_max}]"
            ]
        return []


class AspectRatioConstraint(Constraint):
    """Width / depth should fall inside the preferred range"""

    def __init__(self, name: Optional[str] = None, is_hard: bool = False):
        super().__init__(name, is_hard)

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        if variant.depth <= 0:
            return [f"Depth {variant.depth}m must be positive"]
        ratio = variant.width / variant.depth
        min_ratio, max_ratio = room.aspect_ratio_range
        if ratio < min_ratio or ratio > max_ratio:
            return [
                f"Aspect ratio {ratio:.2f} outside preferred range "
                f"[{min_ratio}, {max_ratio}]"
            ]
        return []


class MinimumBuildableSizeConstraint(Constraint):
    """Width and depth must reach the absolute minimum buildable size"""

    def __init__(
        self,
        min_width: float = DIMENSIONS["MIN_ROOM_WIDTH"],
        min_depth: float = DIMENSIONS["MIN_ROOM_DEPTH"],
        name: Optional[str] = None,
    ):
        super().__init__(name, is_hard=True)
        self.min_width = min_width
        self.min_depth = min_depth

    def check(self, variant: RoomVariant, room: RoomSpec) -> List[str]:
        if variant.width < self.min_width or variant.depth < self.min_depth:
            return [
                f"Dimensions below minimum buildable size "
                f"({self.min_width}m × {self.min_depth}m)"
            ]
        return []


class ConstraintSystem:
    """Ordered set of constraints evaluated together"""

    def __init__(self, constraints: Optional[List[Constraint]] = None):
        self.constraints: List[Constraint] = list(constraints or [])

    @property
    def hard_constraints(self) -> List[Constraint]:
        return [c for c in self.constraints if c.is_hard]

    @property
    def soft_constraints(self) -> List[Constraint]:
        return [c for c in self.constraints if not c.is_hard]

    def add_constraint(self, constraint: Constraint):
        self.constraints.append(constraint)

    def evaluate(self, variant: RoomVariant, room: RoomSpec) -> ValidationResult:
        """
        Run every constraint in order.

        Args:
            variant: Candidate geometry
            room: Owning room specification

        Returns:
            ValidationResult: Hard violations as errors, soft ones as warnings
        """
        result = ValidationResult()
        for constraint in self.constraints:
            messages = constraint.check(variant, room)
            if constraint.is_hard:
                result.errors.extend(messages)
            else:
                result.warnings.extend(messages)
        return result


def create_variant_constraints(
    include_minimum_size: bool = True,
    min_width: float = DIMENSIONS["MIN_ROOM_WIDTH"],
    min_depth: float = DIMENSIONS["MIN_ROOM_DEPTH"],
) -> ConstraintSystem:
    """
    Build the constraint system used for room variants.

    Args:
        include_minimum_size: Whether to enforce the minimum buildable size
        min_width: Minimum buildable width in meters
        min_depth: Minimum buildable depth in meters

    Returns:
        ConstraintSystem: Constraints in evaluation order
    """
    system = ConstraintSystem(
        [
            GridAlignmentConstraint(),
            DimensionRangeConstraint(),
            AreaConsistencyConstraint(),
            AreaRangeConstraint(),
            AspectRatioConstraint(),
        ]
    )
    if include_minimum_size:
        system.add_constraint(MinimumBuildableSizeConstraint(min_width, min_depth))
    return system


def validate_room_spec(
    room: RoomSpec,
    min_width: float = DIMENSIONS["MIN_ROOM_WIDTH"],
    min_depth: float = DIMENSIONS["MIN_ROOM_DEPTH"],
) -> ValidationResult:
    """
    Validate the numeric constraints of a room specification.

    Args:
        room: Room specification to check
        min_width: Recommended minimum width (warning threshold)
        min_depth: Recommended minimum depth (warning threshold)

    Returns:
        ValidationResult
    """
    errors = []
    warnings = []

    # Grid alignment
    for field in ("area_target", "area_min", "area_max"):
        value = getattr(room, field)
        if not is_aligned(value):
            errors.append(f"{field} {value} is not aligned to 0.1m grid")
    if not all(is_aligned(v) for v in room.width_range):
        errors.append("width_range not aligned to grid")
    if not all(is_aligned(v) for v in room.depth_range):
        errors.append("depth_range not aligned to grid")

    # Logical constraints
    if room.area_min > room.area_target:
        errors.append("area_min cannot be greater than area_target")
    if room.area_max < room.area_target:
        errors.append("area_max cannot be less than area_target")
    if room.width_range[0] > room.width_range[1]:
        errors.append("width_range min cannot be greater than max")
    if room.depth_range[0] > room.depth_range[1]:
        errors.append("depth_range min cannot be greater than max")

    # Recommended minimum dimensions
    if room.width_range[0] < min_width:
        warnings.append(
            f"Minimum width {room.width_range[0]}m is below recommended {min_width}m"
        )
    if room.depth_range[0] < min_depth:
        warnings.append(
            f"Minimum depth {room.depth_range[0]}m is below recommended {min_depth}m"
        )

    return ValidationResult(errors, warnings)


def validate_room_variant(
    variant: RoomVariant,
    room: RoomSpec,
    min_width: float = DIMENSIONS["MIN_ROOM_WIDTH"],
    min_depth: float = DIMENSIONS["MIN_ROOM_DEPTH"],
) -> ValidationResult:
    """
    Validate a candidate variant against its room (strict rules).

    Args:
        variant: Candidate geometry
        room: Owning room specification
        min_width: Absolute minimum buildable width
        min_depth: Absolute minimum buildable depth

    Returns:
        ValidationResult
    """
    system = create_variant_constraints(True, min_width, min_depth)
    return system.evaluate(variant, room)


def validate_small_room_variant(
    variant: RoomVariant, room: RoomSpec
) -> ValidationResult:
    """
    Relaxed validation for small utility rooms (closets, stores, WCs).

    Identical to validate_room_variant except that the minimum buildable
    size is not enforced. Callers must opt in explicitly.
    """
    system = create_variant_constraints(include_minimum_size=False)
    return system.evaluate(variant, room)


def achievable_area_band(room: RoomSpec) -> Tuple[float, float]:
    """Smallest and largest grid area reachable from the width/depth ranges"""
    min_width, max_width = room.width_range
    min_depth, max_depth = room.depth_range
    return area(min_width, min_depth), area(max_width, max_depth)


def check_area_feasibility(room: RoomSpec) -> ValidationResult:
    """
    Check that the area constraints are reachable within the dimensional ranges.

    A specification can contradict itself (e.g. a 100m² target with 2-3m
    ranges). Catching this early avoids pointless variant synthesis.

    Args:
        room: Room specification to check

    Returns:
        ValidationResult
    """
    errors = []
    min_possible, max_possible = achievable_area_band(room)

    if room.area_target < min_possible:
        errors.append(
            f"Target area {room.area_target}m² too small for width/depth ranges "
            f"(min possible: {min_possible}m²)"
        )
    if room.area_target > max_possible:
        errors.append(
            f"Target area {room.area_target}m² too large for width/depth ranges "
            f"(max possible: {max_possible}m²)"
        )
    if room.area_min > max_possible or room.area_max < min_possible:
        errors.append("Area constraints incompatible with dimensional constraints")

    return ValidationResult(errors)


def validate_zone_variant(variant: ZoneVariant, zone: ProgramZone) -> ValidationResult:
    """
    Check the area bookkeeping of a zone strategy.

    Zones are abstract, so only the arithmetic is enforced: the gross area
    must be the zone's net area plus circulation, and footprint times
    floors must give back the net area. A floor count outside the zone's
    allowed levels is only a warning (linear strategies may go lower).

    Args:
        variant: Zone strategy to check
        zone: Owning program zone

    Returns:
        ValidationResult
    """
    errors = []
    warnings = []

    if variant.floor_count <= 0:
        errors.append(f"floor_count must be positive, got {variant.floor_count}")
    elif (
        abs(variant.target_footprint * variant.floor_count - zone.target_area_net)
        > AREA_TOLERANCE
    ):
        errors.append(
            f"Footprint {variant.target_footprint:.2f}m² x {variant.floor_count} floors "
            f"does not match net area {zone.target_area_net}m²"
        )

    if not math.isclose(
        variant.total_gross_area, zone.gross_area, rel_tol=1e-9, abs_tol=1e-9
    ):
        errors.append(
            f"Gross area {variant.total_gross_area}m² differs from zone gross area "
            f"{zone.gross_area}m²"
        )

    if zone.allowed_levels and variant.floor_count not in zone.allowed_levels:
        warnings.append(
            f"{variant.floor_count} floors is outside allowed levels {zone.allowed_levels}"
        )

    return ValidationResult(errors, warnings)
