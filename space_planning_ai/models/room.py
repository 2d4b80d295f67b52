from typing import Dict, Any, List, Optional, Tuple

# Room categories used by the brief
CATEGORY_CLIENT = "client"
CATEGORY_GENERAL = "general"
CATEGORY_SUPPORTING = "supporting"
ROOM_CATEGORIES = (CATEGORY_CLIENT, CATEGORY_GENERAL, CATEGORY_SUPPORTING)

# Room edges a facade or access can sit on
EDGES = ("north", "south", "east", "west")

# How a variant was produced
SOURCE_ADVISOR = "advisor"
SOURCE_FALLBACK = "fallback"
SOURCE_RELAXED = "relaxed"


class RoomVariant:
    """
    One concrete width x depth candidate for a room specification.
    Variants are not modified after they have been validated and accepted.
    """

    def __init__(
        self,
        id: str,
        width: float,
        depth: float,
        area: float,
        facade_edge: Optional[str] = None,
        access_edge: Optional[str] = None,
        notes: Optional[str] = None,
        source: str = SOURCE_FALLBACK,
    ):
        """
        Initialize a room variant.

        Args:
            id: Variant identifier, derived from the owning room id
            width: Width in meters
            depth: Depth in meters
            area: Area in square meters (width x depth on the grid)
            facade_edge: Edge facing the facade (daylight rooms only)
            access_edge: Edge the room is entered from
            notes: Optional description of the layout idea
            source: "advisor", "fallback" or "relaxed"
        """
        self.id = id
        self.width = width
        self.depth = depth
        self.area = area
        self.facade_edge = facade_edge
        self.access_edge = access_edge
        self.notes = notes
        self.source = source

    @property
    def aspect_ratio(self) -> float:
        """Width / depth ratio"""
        return self.width / self.depth if self.depth else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        data = {
            "id": self.id,
            "width": self.width,
            "depth": self.depth,
            "area": self.area,
            "access_edge": self.access_edge,
            "notes": self.notes,
            "source": self.source,
        }
        if self.facade_edge is not None:
            data["facade_edge"] = self.facade_edge
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomVariant":
        """Create a RoomVariant from dictionary representation"""
        return cls(
            id=data["id"],
            width=data["width"],
            depth=data["depth"],
            area=data["area"],
            facade_edge=data.get("facade_edge"),
            access_edge=data.get("access_edge"),
            notes=data.get("notes"),
            source=data.get("source", SOURCE_FALLBACK),
        )

    def __repr__(self) -> str:
        return f"RoomVariant(id={self.id}, dim={self.width}x{self.depth}, area={self.area})"


class RoomSpec:
    """
    Represents one required room type in a space planning brief.
    """

    def __init__(
        self,
        id: str,
        name: str,
        area_target: float,
        area_min: float,
        area_max: float,
        width_range: Tuple[float, float],
        depth_range: Tuple[float, float],
        aspect_ratio_range: Tuple[float, float] = (0.5, 2.5),
        requires_daylight: bool = False,
        requires_access: bool = True,
        category: str = CATEGORY_GENERAL,
        quantity: int = 1,
        notes: Optional[str] = None,
        variants: Optional[List[RoomVariant]] = None,
        active_variant_id: Optional[str] = None,
    ):
        """
        Initialize a room specification.

        Args:
            id: Stable room identifier (e.g. "room-3")
            name: Room name from the brief
            area_target: Target net area in square meters
            area_min: Minimum acceptable area
            area_max: Maximum acceptable area
            width_range: (min, max) width in meters
            depth_range: (min, max) depth in meters
            aspect_ratio_range: (min, max) preferred width / depth
            requires_daylight: Whether the room needs a facade
            requires_access: Whether the room needs an access edge
            category: "client", "general" or "supporting"
            quantity: Number of instances required
            notes: Special requirements from the brief
            variants: Candidate geometries (filled by the variant generator)
            active_variant_id: Variant currently selected
        """
        self.id = id
        self.name = name
        self.area_target = area_target
        self.area_min = area_min
        self.area_max = area_max
        self.width_range = tuple(width_range)
        self.depth_range = tuple(depth_range)
        self.aspect_ratio_range = tuple(aspect_ratio_range)
        self.requires_daylight = requires_daylight
        self.requires_access = requires_access
        self.category = category
        self.quantity = quantity
        self.notes = notes
        self.variants = variants or []
        self.active_variant_id = active_variant_id

    @property
    def total_area(self) -> float:
        """Target area across all instances"""
        return self.area_target * self.quantity

    def with_variants(self, variants: List[RoomVariant]) -> "RoomSpec":
        """
        Return a copy of this room carrying the given variants.

        The first variant becomes the active one.
        """
        room = RoomSpec.from_dict(self.to_dict(include_variants=False))
        room.variants = list(variants)
        room.active_variant_id = variants[0].id if variants else None
        return room

    def to_dict(self, include_variants: bool = True) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        data = {
            "id": self.id,
            "name": self.name,
            "area_target": self.area_target,
            "area_min": self.area_min,
            "area_max": self.area_max,
            "width_range": list(self.width_range),
            "depth_range": list(self.depth_range),
            "aspect_ratio_range": list(self.aspect_ratio_range),
            "requires_daylight": self.requires_daylight,
            "requires_access": self.requires_access,
            "category": self.category,
            "quantity": self.quantity,
            "notes": self.notes,
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants]
            data["active_variant_id"] = self.active_variant_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomSpec":
        """Create a RoomSpec from dictionary representation"""
        return cls(
            id=data["id"],
            name=data["name"],
            area_target=data["area_target"],
            area_min=data["area_min"],
            area_max=data["area_max"],
            width_range=data["width_range"],
            depth_range=data["depth_range"],
            aspect_ratio_range=data.get("aspect_ratio_range", (0.5, 2.5)),
            requires_daylight=data.get("requires_daylight", False),
            requires_access=data.get("requires_access", True),
            category=data.get("category", CATEGORY_GENERAL),
            quantity=data.get("quantity", 1),
            notes=data.get("notes"),
            variants=[RoomVariant.from_dict(v) for v in data.get("variants", [])],
            active_variant_id=data.get("active_variant_id"),
        )

    def __repr__(self) -> str:
        return (
            f"RoomSpec(id={self.id}, name={self.name}, "
            f"area={self.area_target}, qty={self.quantity})"
        )
