"""
Zone strategy generation.

Turns functional clusters into ProgramZones and proposes a small, fixed
set of organizational strategies for each of them. Zones stay abstract:
a strategy fixes a footprint, a floor count and a target proportion,
never room positions.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

import networkx as nx

from space_planning_ai.advisors.schemas import AdjacencyHint, ZoneRecommendation
from space_planning_ai.core.grid import quantize
from space_planning_ai.core.zone_clusterer import ZoneCluster, cluster_rooms_by_function
from space_planning_ai.models.room import RoomSpec
from space_planning_ai.models.zone import (
    ProgramZone,
    ZoneVariant,
    FUNCTION_RESIDENTIAL,
    FUNCTION_SHARED,
    FUNCTION_SERVICES,
    FUNCTION_STAFF,
    FUNCTION_SUPPORT,
)

logger = logging.getLogger(__name__)

CIRCULATION_RATIOS: Dict[str, float] = {
    FUNCTION_RESIDENTIAL: 0.35,  # corridors and stairs
    FUNCTION_SHARED: 0.25,  # open plans
    FUNCTION_SERVICES: 0.30,  # public access
    FUNCTION_STAFF: 0.20,  # office layouts
    FUNCTION_SUPPORT: 0.25,  # service access
}
DEFAULT_CIRCULATION_RATIO = 0.30

# Average room size used to estimate how many rooms a zone holds
AVERAGE_ROOM_AREA = 30.0

# Net area envelope around the target
AREA_MIN_FACTOR = 0.9
AREA_MAX_FACTOR = 1.1

# Residential clusters above these counts go high-rise / prefer 4 floors
HIGH_RISE_ROOM_COUNT = 30
LARGE_RESIDENTIAL_ROOM_COUNT = 50
LARGE_RESIDENTIAL_LEVEL = 4

# Clusters below this count can elongate
STRETCH_ROOM_COUNT = 20

STACKED_FLOOR_COUNTS = (3, 4, 5)
HIGH_DAYLIGHT_FRACTION = 0.7

# (markers, tag) pairs used to describe which room kinds a zone hosts
ROOM_CATEGORY_MARKERS: List[Tuple[Tuple[str, ...], str]] = [
    (("bedroom", "living"), "bedroom"),
    (("bathroom",), "bathroom"),
    (("kitchen",), "kitchen"),
    (("dining",), "dining"),
    (("office",), "office"),
    (("storage",), "storage"),
    (("lounge", "relaxation"), "lounge"),
    (("meeting",), "meeting"),
]

ADJACENT_RELATIONSHIPS = ("must_be_adjacent", "should_be_adjacent")
AVOID_RELATIONSHIPS = ("must_avoid",)


def estimate_circulation_ratio(function_type: str) -> float:
    """Circulation share added on top of the net area for a function type"""
    return CIRCULATION_RATIOS.get(function_type, DEFAULT_CIRCULATION_RATIO)


def determine_allowed_levels(function_type: str, room_count: int) -> List[int]:
    """
    Floor counts a zone may occupy.

    Args:
        function_type: Zone function type
        room_count: Total instance count in the zone

    Returns:
        List[int]: Allowed floor counts in ascending order
    """
    if function_type == FUNCTION_RESIDENTIAL and room_count > HIGH_RISE_ROOM_COUNT:
        return [3, 4, 5]
    if function_type in (FUNCTION_SHARED, FUNCTION_SERVICES):
        return [1, 2]
    if function_type in (FUNCTION_STAFF, FUNCTION_SUPPORT):
        return [1, 2]
    return [1, 2, 3]


def determine_preferred_level(
    function_type: str, room_count: int, allowed_levels: List[int]
) -> int:
    """Middle allowed level; large residential zones always prefer 4 floors"""
    if function_type == FUNCTION_RESIDENTIAL and room_count > LARGE_RESIDENTIAL_ROOM_COUNT:
        return LARGE_RESIDENTIAL_LEVEL
    if not allowed_levels:
        return 1
    return allowed_levels[len(allowed_levels) // 2]


def determine_noise_tolerance(function_type: str) -> str:
    if function_type in (FUNCTION_RESIDENTIAL, FUNCTION_STAFF):
        return "quiet"
    return "moderate"


def extract_room_categories(rooms: List[RoomSpec]) -> List[str]:
    """
    Tag the kinds of rooms found in a zone from their names.

    Returns:
        List[str]: Tags in table order, without duplicates
    """
    names = [room.name.lower() for room in rooms]
    tags = []
    for markers, tag in ROOM_CATEGORY_MARKERS:
        if any(marker in name for name in names for marker in markers):
            tags.append(tag)
    return tags


def generate_zone_notes(cluster: ZoneCluster) -> str:
    notes = [
        f"Contains {cluster.total_room_count} rooms across {len(cluster.rooms)} types",
        f"Total net area: {cluster.total_area:.0f}m²",
    ]
    if cluster.avg_daylight_fraction > HIGH_DAYLIGHT_FRACTION:
        notes.append("High daylight requirement")
    return ". ".join(notes)


def estimate_room_count(net_area: float) -> int:
    return math.floor(net_area / AVERAGE_ROOM_AREA)


def build_zone(cluster: ZoneCluster, index: int) -> ProgramZone:
    """
    Create a ProgramZone (without variants) from a cluster.

    Args:
        cluster: Functional cluster
        index: 1-based position, used for the zone id

    Returns:
        ProgramZone
    """
    room_count = cluster.total_room_count
    net = cluster.total_area
    allowed_levels = determine_allowed_levels(cluster.function_type, room_count)

    return ProgramZone(
        id=f"zone-{index}",
        name=cluster.name,
        function_type=cluster.function_type,
        target_area_net=net,
        area_min=quantize(net * AREA_MIN_FACTOR),
        area_max=quantize(net * AREA_MAX_FACTOR),
        circulation_ratio=estimate_circulation_ratio(cluster.function_type),
        allowed_levels=allowed_levels,
        preferred_level=determine_preferred_level(
            cluster.function_type, room_count, allowed_levels
        ),
        daylight_ratio=cluster.avg_daylight_fraction,
        noise_tolerance=determine_noise_tolerance(cluster.function_type),
        allowed_room_categories=extract_room_categories(cluster.rooms),
        can_stretch=room_count < STRETCH_ROOM_COUNT,
        can_split=cluster.can_split,
        can_stack=cluster.can_stack,
        notes=generate_zone_notes(cluster),
    )


def _zone_variant(
    zone: ProgramZone,
    variant_id: str,
    strategy: str,
    floors: int,
    aspect_ratio_range: Tuple[float, float],
    preferred_aspect_ratio: float,
    notes: str,
    estimated_room_count: Optional[int] = None,
) -> ZoneVariant:
    if estimated_room_count is None:
        estimated_room_count = estimate_room_count(zone.target_area_net)
    return ZoneVariant(
        id=variant_id,
        strategy=strategy,
        target_footprint=zone.target_area_net / floors,
        floor_count=floors,
        aspect_ratio_range=aspect_ratio_range,
        preferred_aspect_ratio=preferred_aspect_ratio,
        total_gross_area=zone.gross_area,
        estimated_room_count=estimated_room_count,
        notes=notes,
    )


def generate_zone_variants(zone: ProgramZone) -> ProgramZone:
    """
    Populate a zone with its deterministic strategy set.

    Order: stacked (one per 3/4/5 floors in allowed levels, when the zone
    can stack), compact (when more than one level is allowed), linear
    (always), split (when the zone can split). The first variant becomes
    the active one.

    Args:
        zone: Zone without variants

    Returns:
        ProgramZone: The same zone, with variants set
    """
    variants = []

    if zone.can_stack:
        for floors in STACKED_FLOOR_COUNTS:
            if floors in zone.allowed_levels:
                footprint = zone.target_area_net / floors
                variants.append(
                    _zone_variant(
                        zone,
                        f"{zone.id}-var-stacked-{floors}f",
                        "stacked",
                        floors,
                        (0.8, 1.2),
                        1.0,
                        f"{floors} floors, {footprint:.0f}m² per floor",
                    )
                )

    if len(zone.allowed_levels) > 1:
        max_floors = max(zone.allowed_levels)
        variants.append(
            _zone_variant(
                zone,
                f"{zone.id}-var-compact",
                "compact",
                max_floors,
                (0.8, 1.2),
                1.0,
                f"Minimize footprint, {max_floors} floors",
            )
        )

    linear_floors = min(2, max(zone.allowed_levels)) if zone.allowed_levels else 1
    variants.append(
        _zone_variant(
            zone,
            f"{zone.id}-var-linear",
            "linear",
            linear_floors,
            (2.0, 3.5),
            2.5,
            f"Maximize facade, {linear_floors} floor(s)",
        )
    )

    if zone.can_split:
        split_floors = zone.preferred_level
        variants.append(
            _zone_variant(
                zone,
                f"{zone.id}-var-split",
                "split",
                split_floors,
                (1.2, 2.0),
                1.5,
                f"Divide into 2-3 buildings, {split_floors} floors each",
            )
        )

    zone.variants = variants
    zone.active_variant_id = variants[0].id if variants else None
    return zone


def _log_zones(zones: List[ProgramZone]):
    for zone in zones:
        logger.info(
            f"{zone.name}: {zone.target_area_net:.0f}m² net + "
            f"{zone.circulation_area:.0f}m² circ = {zone.gross_area:.0f}m² gross "
            f"({len(zone.variants)} strategies)"
        )


def derive_zones(rooms: List[RoomSpec]) -> List[ProgramZone]:
    """
    Deterministic zoning: cluster rooms, then build zones and strategies.

    Identical input always gives identical zones, ids and variant order.

    Args:
        rooms: Room population

    Returns:
        List[ProgramZone]: Zones in cluster order
    """
    clusters = cluster_rooms_by_function(rooms)
    zones = [
        generate_zone_variants(build_zone(cluster, index))
        for index, cluster in enumerate(clusters, start=1)
    ]
    logger.info(f"Created {len(zones)} program zones")
    _log_zones(zones)
    return zones


def map_strategy(name: str) -> str:
    """Map a free-form strategy name onto the strategy enumeration"""
    s = name.lower()
    if "tower" in s or "vertical" in s or "stack" in s:
        return "stacked"
    if "compact" in s:
        return "compact"
    if "linear" in s or "bar" in s:
        return "linear"
    if "courtyard" in s:
        return "courtyard"
    if "split" in s or "wing" in s:
        return "split"
    return "compact"


def determine_aspect_ratio(name: str) -> float:
    """Preferred floor proportion for a free-form strategy name"""
    s = name.lower()
    if "tower" in s or "compact" in s:
        return 1.0
    if "linear" in s or "bar" in s:
        return 2.5
    if "courtyard" in s:
        return 1.5
    return 1.3


def room_matches_type(room: RoomSpec, room_type: str) -> bool:
    """
    Loose name match between a room and an advisor room type.

    Either the room name contains the type, or the type contains the
    first word of the room name. Both sides are compared lower-cased.
    """
    name = room.name.lower().strip()
    wanted = room_type.lower().strip()
    if not name or not wanted:
        return False
    return wanted in name or name.split()[0] in wanted


def build_adjacency_graph(
    zones: List[ProgramZone], hints: List[AdjacencyHint]
) -> nx.Graph:
    """
    Graph of zones keyed by zone id, with relationship-labelled edges.

    Hint names are matched to zone names case-insensitively. A name shared
    by several zones links every one of them. Hints naming unknown zones,
    or a zone and itself, are ignored.
    """
    graph = nx.Graph()
    ids_by_name: Dict[str, List[str]] = {}
    for zone in zones:
        graph.add_node(zone.id, name=zone.name)
        ids_by_name.setdefault(zone.name.lower(), []).append(zone.id)

    for hint in hints:
        first = ids_by_name.get(hint.zone1.lower(), [])
        second = ids_by_name.get(hint.zone2.lower(), [])
        pairs = [(a, b) for a in first for b in second if a != b]
        if not pairs:
            logger.debug(f"Ignoring adjacency hint {hint.zone1} / {hint.zone2}")
            continue
        graph.add_edges_from(pairs, relationship=hint.relationship)
    return graph


def _neighbours(graph: nx.Graph, zone_id: str, relationships: Tuple[str, ...]) -> List[str]:
    return [
        other
        for other in graph.neighbors(zone_id)
        if graph.edges[zone_id, other]["relationship"] in relationships
    ]


def apply_zone_recommendations(
    rooms: List[RoomSpec], recommendation: Optional[ZoneRecommendation]
) -> List[ProgramZone]:
    """
    Build zones from an advisor's recommendation.

    Each room goes to the first proposed zone that names it. Proposals
    that match no room are dropped. Strategy names are mapped onto the
    strategy enumeration; a zone left with no usable strategy gets the
    deterministic set instead. Rooms no proposal claimed are clustered
    deterministically and appended, so no room is lost. When nothing
    usable remains, the deterministic path runs for the whole population.

    Args:
        rooms: Room population
        recommendation: Parsed advisor output (may be None)

    Returns:
        List[ProgramZone]
    """
    if recommendation is None or not recommendation.zones:
        return derive_zones(rooms)

    claimed = set()
    accepted = []
    for proposal in recommendation.zones:
        members = [
            room
            for room in rooms
            if room.id not in claimed
            and any(room_matches_type(room, t) for t in proposal.room_types)
        ]
        if not members:
            logger.warning(f"Advisor zone '{proposal.name}' matched no rooms, dropping")
            continue
        claimed.update(room.id for room in members)
        accepted.append((proposal, ZoneCluster(proposal.name, proposal.function_type, members)))

    if not accepted:
        logger.warning("No advisor zone matched any room, using deterministic zoning")
        return derive_zones(rooms)

    zones = []
    for index, (proposal, cluster) in enumerate(accepted, start=1):
        zone = build_zone(cluster, index)
        if proposal.reasoning:
            zone.notes = proposal.reasoning

        variants = []
        seen = set()
        for suggestion in proposal.suggested_variants:
            strategy = map_strategy(suggestion.strategy)
            if (strategy, suggestion.floors) in seen:
                continue
            seen.add((strategy, suggestion.floors))
            aspect_ratio = determine_aspect_ratio(suggestion.strategy)
            variants.append(
                _zone_variant(
                    zone,
                    f"{zone.id}-var-{strategy}-{suggestion.floors}f",
                    strategy,
                    suggestion.floors,
                    (aspect_ratio * 0.8, aspect_ratio * 1.2),
                    aspect_ratio,
                    suggestion.reasoning or suggestion.strategy,
                    estimated_room_count=cluster.total_room_count,
                )
            )

        if variants:
            zone.variants = variants
            zone.active_variant_id = variants[0].id
            zone.allowed_levels = sorted({v.floor_count for v in variants})
            zone.preferred_level = variants[0].floor_count
        else:
            logger.info(f"{zone.name}: no usable advisor strategy, using defaults")
            generate_zone_variants(zone)
        zones.append(zone)

    leftovers = [room for room in rooms if room.id not in claimed]
    if leftovers:
        logger.info(f"{len(leftovers)} room types not placed by advisor, clustering them")
        for cluster in cluster_rooms_by_function(leftovers):
            zones.append(generate_zone_variants(build_zone(cluster, len(zones) + 1)))

    graph = build_adjacency_graph(zones, recommendation.adjacency_recommendations)
    for zone in zones:
        zone.prefers_adjacent_to = _neighbours(graph, zone.id, ADJACENT_RELATIONSHIPS)
        zone.must_avoid = _neighbours(graph, zone.id, AVOID_RELATIONSHIPS)

    logger.info(f"Created {len(zones)} zones with advisor-guided strategies")
    _log_zones(zones)
    return zones
