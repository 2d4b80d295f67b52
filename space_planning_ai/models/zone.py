import math
from typing import Dict, Any, List, Optional, Tuple

# Zone function types
FUNCTION_RESIDENTIAL = "residential"
FUNCTION_SHARED = "shared"
FUNCTION_SERVICES = "services"
FUNCTION_STAFF = "staff"
FUNCTION_SUPPORT = "support"
FUNCTION_TYPES = (
    FUNCTION_RESIDENTIAL,
    FUNCTION_SHARED,
    FUNCTION_SERVICES,
    FUNCTION_STAFF,
    FUNCTION_SUPPORT,
)

# Organizational strategies
STRATEGIES = ("compact", "linear", "courtyard", "split", "stacked")


class ZoneVariant:
    """
    One organizational strategy for a program zone.
    Describes an envelope intention (footprint, floors, proportions),
    never room positions.
    """

    def __init__(
        self,
        id: str,
        strategy: str,
        target_footprint: float,
        floor_count: int,
        aspect_ratio_range: Tuple[float, float],
        preferred_aspect_ratio: float,
        total_gross_area: float,
        estimated_room_count: int,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.strategy = strategy
        self.target_footprint = target_footprint
        self.floor_count = floor_count
        self.aspect_ratio_range = tuple(aspect_ratio_range)
        self.preferred_aspect_ratio = preferred_aspect_ratio
        self.total_gross_area = total_gross_area
        self.estimated_room_count = estimated_room_count
        self.notes = notes

    def approximate_dimensions(self) -> Tuple[float, float]:
        """
        Width and depth of a rectangle with the footprint area and
        the preferred aspect ratio. Display only.
        """
        width = math.sqrt(self.target_footprint * self.preferred_aspect_ratio)
        depth = self.target_footprint / width if width else 0.0
        return width, depth

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "id": self.id,
            "strategy": self.strategy,
            "target_footprint": self.target_footprint,
            "floor_count": self.floor_count,
            "aspect_ratio_range": list(self.aspect_ratio_range),
            "preferred_aspect_ratio": self.preferred_aspect_ratio,
            "total_gross_area": self.total_gross_area,
            "estimated_room_count": self.estimated_room_count,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZoneVariant":
        """Create a ZoneVariant from dictionary representation"""
        return cls(
            id=data["id"],
            strategy=data["strategy"],
            target_footprint=data["target_footprint"],
            floor_count=data["floor_count"],
            aspect_ratio_range=data["aspect_ratio_range"],
            preferred_aspect_ratio=data["preferred_aspect_ratio"],
            total_gross_area=data["total_gross_area"],
            estimated_room_count=data["estimated_room_count"],
            notes=data.get("notes"),
        )

    def __repr__(self) -> str:
        return (
            f"ZoneVariant(id={self.id}, strategy={self.strategy}, "
            f"floors={self.floor_count}, footprint={self.target_footprint})"
        )


class ProgramZone:
    """
    An abstract, geometry-free functional container.

    A zone only bounds area, floor count and room category membership.
    It never holds room geometry or a fixed position.
    """

    def __init__(
        self,
        id: str,
        name: str,
        function_type: str,
        target_area_net: float,
        area_min: float,
        area_max: float,
        circulation_ratio: float,
        allowed_levels: List[int],
        preferred_level: int,
        daylight_ratio: float = 0.0,
        noise_tolerance: str = "moderate",
        allowed_room_categories: Optional[List[str]] = None,
        can_stretch: bool = False,
        can_split: bool = False,
        can_stack: bool = False,
        prefers_adjacent_to: Optional[List[str]] = None,
        must_avoid: Optional[List[str]] = None,
        variants: Optional[List[ZoneVariant]] = None,
        active_variant_id: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        """
        Initialize a program zone.

        Args:
            id: Zone identifier (e.g. "zone-1")
            name: Display name
            function_type: residential, shared, services, staff or support
            target_area_net: Net usable area in square meters
            area_min: Lower bound of the net area envelope
            area_max: Upper bound of the net area envelope
            circulation_ratio: Fraction added on top of net area for circulation
            allowed_levels: Floor counts the zone may occupy
            preferred_level: Preferred floor count (one of allowed_levels)
            daylight_ratio: Share of room types needing facade access (0-1)
            noise_tolerance: quiet, moderate or noisy
            allowed_room_categories: Room category tags the zone can host
            can_stretch: Whether the zone can elongate
            can_split: Whether the zone can divide into sub-zones
            can_stack: Whether the zone can span several floors
            prefers_adjacent_to: Zone ids this zone should sit next to
            must_avoid: Zone ids this zone should be separated from
            variants: Organizational strategies
            active_variant_id: Selected strategy
            notes: Description of the zone
        """
        self.id = id
        self.name = name
        self.function_type = function_type
        self.target_area_net = target_area_net
        self.area_min = area_min
        self.area_max = area_max
        self.circulation_ratio = circulation_ratio
        self.allowed_levels = list(allowed_levels)
        self.preferred_level = preferred_level
        self.daylight_ratio = daylight_ratio
        self.noise_tolerance = noise_tolerance
        self.allowed_room_categories = allowed_room_categories or []
        self.can_stretch = can_stretch
        self.can_split = can_split
        self.can_stack = can_stack
        self.prefers_adjacent_to = prefers_adjacent_to or []
        self.must_avoid = must_avoid or []
        self.variants = variants or []
        self.active_variant_id = active_variant_id
        self.notes = notes

    @property
    def gross_area(self) -> float:
        """Net area plus the circulation buffer"""
        return self.target_area_net * (1 + self.circulation_ratio)

    @property
    def circulation_area(self) -> float:
        return self.gross_area - self.target_area_net

    def get_variant(self, variant_id: str) -> Optional[ZoneVariant]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def get_active_variant(self) -> Optional[ZoneVariant]:
        """Return the active variant, or the first one if none is selected"""
        if self.active_variant_id:
            variant = self.get_variant(self.active_variant_id)
            if variant is not None:
                return variant
        return self.variants[0] if self.variants else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "id": self.id,
            "name": self.name,
            "function_type": self.function_type,
            "target_area_net": self.target_area_net,
            "area_min": self.area_min,
            "area_max": self.area_max,
            "circulation_ratio": self.circulation_ratio,
            "allowed_levels": list(self.allowed_levels),
            "preferred_level": self.preferred_level,
            "daylight_ratio": self.daylight_ratio,
            "noise_tolerance": self.noise_tolerance,
            "allowed_room_categories": list(self.allowed_room_categories),
            "can_stretch": self.can_stretch,
            "can_split": self.can_split,
            "can_stack": self.can_stack,
            "prefers_adjacent_to": list(self.prefers_adjacent_to),
            "must_avoid": list(self.must_avoid),
            "variants": [v.to_dict() for v in self.variants],
            "active_variant_id": self.active_variant_id,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgramZone":
        """Create a ProgramZone from dictionary representation"""
        return cls(
            id=data["id"],
            name=data["name"],
            function_type=data["function_type"],
            target_area_net=data["target_area_net"],
            area_min=data["area_min"],
            area_max=data["area_max"],
            circulation_ratio=data["circulation_ratio"],
            allowed_levels=data["allowed_levels"],
            preferred_level=data["preferred_level"],
            daylight_ratio=data.get("daylight_ratio", 0.0),
            noise_tolerance=data.get("noise_tolerance", "moderate"),
            allowed_room_categories=data.get("allowed_room_categories", []),
            can_stretch=data.get("can_stretch", False),
            can_split=data.get("can_split", False),
            can_stack=data.get("can_stack", False),
            prefers_adjacent_to=data.get("prefers_adjacent_to", []),
            must_avoid=data.get("must_avoid", []),
            variants=[ZoneVariant.from_dict(v) for v in data.get("variants", [])],
            active_variant_id=data.get("active_variant_id"),
            notes=data.get("notes"),
        )

    def __repr__(self) -> str:
        return (
            f"ProgramZone(id={self.id}, name={self.name}, "
            f"type={self.function_type}, net={self.target_area_net})"
        )
