"""
Functional clustering of a room population.

Rooms are first split by category, then by an ordered table of lexical
rules. Matching is case-insensitive substring matching and the first
matching rule within a category wins, so a room lands in at most one
cluster.
"""

import logging
from typing import Dict, List, Optional, Tuple

from space_planning_ai.core.grid import quantize
from space_planning_ai.models.room import (
    RoomSpec,
    CATEGORY_CLIENT,
    CATEGORY_GENERAL,
    CATEGORY_SUPPORTING,
)
from space_planning_ai.models.zone import (
    FUNCTION_RESIDENTIAL,
    FUNCTION_SHARED,
    FUNCTION_SERVICES,
    FUNCTION_STAFF,
    FUNCTION_SUPPORT,
)

logger = logging.getLogger(__name__)

# Client rooms with at least this many instances are residential units
RESIDENTIAL_QUANTITY = 20

# Residential clusters with more instances than this can stack
STACK_THRESHOLD = 20

# A cluster can split when its instance count exceeds this
SPLIT_THRESHOLDS: Dict[str, int] = {
    FUNCTION_RESIDENTIAL: 30,
    FUNCTION_SHARED: 15,
    FUNCTION_SERVICES: 20,
    FUNCTION_STAFF: 20,
    FUNCTION_SUPPORT: 20,
}


class ClusterRule:
    """
    One row of the clustering table.

    A room of `category` matches when its name contains any marker, or
    when `min_quantity` is set and the room's quantity reaches it.
    An empty marker list with no quantity rule matches every room.
    """

    def __init__(
        self,
        category: str,
        name: str,
        function_type: str,
        markers: Tuple[str, ...] = (),
        min_quantity: Optional[int] = None,
    ):
        self.category = category
        self.name = name
        self.function_type = function_type
        self.markers = tuple(m.lower() for m in markers)
        self.min_quantity = min_quantity

    @property
    def is_catch_all(self) -> bool:
        return not self.markers and self.min_quantity is None

    def matches(self, room: RoomSpec) -> bool:
        if room.category != self.category:
            return False
        if self.is_catch_all:
            return True
        if self.min_quantity is not None and room.quantity >= self.min_quantity:
            return True
        name = room.name.lower()
        return any(marker in name for marker in self.markers)

    def __repr__(self) -> str:
        return f"ClusterRule({self.category} -> {self.name})"


# Evaluated top to bottom; residential before shared, staff before support
CLUSTER_RULES: List[ClusterRule] = [
    ClusterRule(
        CATEGORY_CLIENT,
        "Residential Core",
        FUNCTION_RESIDENTIAL,
        markers=("bedroom", "living", "residential", "suite", "apartment"),
        min_quantity=RESIDENTIAL_QUANTITY,
    ),
    ClusterRule(
        CATEGORY_CLIENT,
        "Shared Facilities",
        FUNCTION_SHARED,
        markers=("shared", "dining", "kitchen", "relaxation", "lounge", "communal"),
    ),
    ClusterRule(CATEGORY_GENERAL, "General Facilities", FUNCTION_SERVICES),
    ClusterRule(
        CATEGORY_SUPPORTING,
        "Staff Spaces",
        FUNCTION_STAFF,
        markers=("office", "staff", "manager"),
    ),
    ClusterRule(CATEGORY_SUPPORTING, "Support Services", FUNCTION_SUPPORT),
]

# Cluster that receives rooms no rule claimed
RESIDUAL_CLUSTER = "General Facilities"


class ZoneCluster:
    """Transient functional grouping of rooms with derived aggregates"""

    def __init__(self, name: str, function_type: str, rooms: List[RoomSpec]):
        self.name = name
        self.function_type = function_type
        self.rooms = list(rooms)

    @property
    def total_room_count(self) -> int:
        return sum(r.quantity for r in self.rooms)

    @property
    def total_area(self) -> float:
        return quantize(sum(r.area_target * r.quantity for r in self.rooms))

    @property
    def avg_daylight_fraction(self) -> float:
        """Mean of requires_daylight over room types (not weighted by quantity)"""
        if not self.rooms:
            return 0.0
        return sum(1 for r in self.rooms if r.requires_daylight) / len(self.rooms)

    @property
    def can_stack(self) -> bool:
        return (
            self.function_type == FUNCTION_RESIDENTIAL
            and self.total_room_count > STACK_THRESHOLD
        )

    @property
    def can_split(self) -> bool:
        threshold = SPLIT_THRESHOLDS.get(self.function_type, 20)
        return self.total_room_count > threshold

    def __repr__(self) -> str:
        return (
            f"ZoneCluster(name={self.name}, type={self.function_type}, "
            f"rooms={self.total_room_count}, area={self.total_area})"
        )


def assign_rule(
    room: RoomSpec, rules: Optional[List[ClusterRule]] = None
) -> Optional[ClusterRule]:
    """
    Return the first rule matching a room, or None.

    Args:
        room: Room to classify
        rules: Ordered rule table (defaults to CLUSTER_RULES)
    """
    for rule in rules if rules is not None else CLUSTER_RULES:
        if rule.matches(room):
            return rule
    return None


def cluster_rooms_by_function(
    rooms: List[RoomSpec], rules: Optional[List[ClusterRule]] = None
) -> List[ZoneCluster]:
    """
    Partition rooms into functional clusters.

    Rooms claimed by no rule (e.g. client rooms with no residential or
    shared marker, or unknown categories) go to the residual General
    Facilities cluster. Empty clusters are not emitted.

    Args:
        rooms: Room population
        rules: Ordered rule table (defaults to CLUSTER_RULES)

    Returns:
        List[ZoneCluster]: Non-empty clusters in rule table order
    """
    rules = rules if rules is not None else CLUSTER_RULES

    members: Dict[str, List[RoomSpec]] = {rule.name: [] for rule in rules}
    function_types: Dict[str, str] = {rule.name: rule.function_type for rule in rules}
    if RESIDUAL_CLUSTER not in members:
        members[RESIDUAL_CLUSTER] = []
        function_types[RESIDUAL_CLUSTER] = FUNCTION_SERVICES

    for room in rooms:
        rule = assign_rule(room, rules)
        if rule is None:
            logger.debug(f"{room.name} matched no cluster rule, using {RESIDUAL_CLUSTER}")
            members[RESIDUAL_CLUSTER].append(room)
        else:
            members[rule.name].append(room)

    clusters = []
    for name, cluster_rooms in members.items():
        if cluster_rooms:
            clusters.append(ZoneCluster(name, function_types[name], cluster_rooms))

    logger.info(f"Clustered {len(rooms)} room types into {len(clusters)} clusters")
    return clusters
