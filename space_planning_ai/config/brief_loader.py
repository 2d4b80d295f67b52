"""
Brief loading and normalization.

A brief is a JSON document {"rooms": [...], "metadata": {...}} (a bare
list of rooms is accepted too). Each entry needs at least a name and a
target area; everything else is filled with grid-aligned defaults.
"""

import json
import logging
import math
from typing import Any, Dict, List

from space_planning_ai.core.grid import DIMENSIONS, quantize
from space_planning_ai.models.room import RoomSpec, ROOM_CATEGORIES, CATEGORY_GENERAL

logger = logging.getLogger(__name__)

# Area envelope used when a brief gives only a target
DEFAULT_AREA_MIN_FACTOR = 0.8
DEFAULT_AREA_MAX_FACTOR = 1.2

# Range derivation from the square side of the target area
RANGE_MIN_FACTOR = 0.7
RANGE_MAX_FACTOR = 2.5
RANGE_MIN_SPAN = 1.0


class BriefFormatError(ValueError):
    """Raised when a brief cannot be turned into room specifications"""


def absolute_minimum_dimension(area_target: float) -> float:
    """
    Smallest width or depth allowed for a room of the given area.

    Storage closets and WCs need narrower bounds than habitable rooms.
    """
    if area_target < 3:
        return 1.0
    if area_target < 6:
        return 1.5
    return DIMENSIONS["MIN_ROOM_WIDTH"]


def derive_dimension_range(area_target: float) -> List[float]:
    """Grid-aligned [min, max] range derived from the target area"""
    side = math.sqrt(area_target)
    low = quantize(max(absolute_minimum_dimension(area_target), side * RANGE_MIN_FACTOR))
    high = quantize(max(side * RANGE_MAX_FACTOR, low + RANGE_MIN_SPAN))
    return [low, high]


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _number(raw: Dict[str, Any], field: str, index: int) -> float:
    value = raw.get(field)
    if not _is_number(value):
        raise BriefFormatError(f"Room {index}: '{field}' must be a number, got {value!r}")
    return float(value)


def _range(
    raw: Dict[str, Any], field: str, index: int, snap: bool = True
) -> List[float]:
    value = raw[field]
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or not all(_is_number(v) for v in value)
    ):
        raise BriefFormatError(f"Room {index}: '{field}' must be a [min, max] pair")
    if not snap:
        return [float(value[0]), float(value[1])]
    return [quantize(value[0]), quantize(value[1])]


def normalize_room(raw: Dict[str, Any], index: int) -> RoomSpec:
    """
    Turn one raw brief entry into a grid-aligned RoomSpec.

    Args:
        raw: Room entry from the brief
        index: 1-based position, used for the default id

    Returns:
        RoomSpec

    Raises:
        BriefFormatError: Missing name, non-positive area, non-numeric
            fields or bad quantity
    """
    if not isinstance(raw, dict):
        raise BriefFormatError(f"Room {index}: expected an object, got {type(raw).__name__}")

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise BriefFormatError(f"Room {index}: 'name' is required")

    area_target = quantize(_number(raw, "area_target", index))
    if area_target <= 0:
        raise BriefFormatError(f"Room {index} ({name}): area_target must be positive")

    area_min = area_target * DEFAULT_AREA_MIN_FACTOR
    if raw.get("area_min") is not None:
        area_min = _number(raw, "area_min", index)
    area_max = area_target * DEFAULT_AREA_MAX_FACTOR
    if raw.get("area_max") is not None:
        area_max = _number(raw, "area_max", index)

    quantity = raw.get("quantity", 1)
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise BriefFormatError(f"Room {index} ({name}): quantity must be a positive integer")

    category = raw.get("category") or CATEGORY_GENERAL
    if category not in ROOM_CATEGORIES:
        logger.warning(f"{name}: unknown category '{category}', using '{CATEGORY_GENERAL}'")
        category = CATEGORY_GENERAL

    if "width_range" in raw:
        width_range = _range(raw, "width_range", index)
    else:
        width_range = derive_dimension_range(area_target)
    if "depth_range" in raw:
        depth_range = _range(raw, "depth_range", index)
    else:
        depth_range = derive_dimension_range(area_target)
    if raw.get("aspect_ratio_range") is not None:
        aspect_ratio_range = _range(raw, "aspect_ratio_range", index, snap=False)
    else:
        aspect_ratio_range = [0.5, 2.5]

    data = {
        "id": str(raw.get("id") or f"room-{index}"),
        "name": name.strip(),
        "area_target": area_target,
        "area_min": quantize(area_min),
        "area_max": quantize(area_max),
        "width_range": width_range,
        "depth_range": depth_range,
        "aspect_ratio_range": aspect_ratio_range,
        "requires_daylight": bool(raw.get("requires_daylight", False)),
        "requires_access": bool(raw.get("requires_access", True)),
        "category": category,
        "quantity": quantity,
        "notes": raw.get("notes"),
        "variants": raw.get("variants") or [],
        "active_variant_id": raw.get("active_variant_id"),
    }
    try:
        return RoomSpec.from_dict(data)
    except (KeyError, TypeError) as e:
        raise BriefFormatError(f"Room {index} ({name}): invalid variant data: {e}") from e


def rooms_from_dicts(entries: List[Dict[str, Any]]) -> List[RoomSpec]:
    """
    Normalize a list of raw room entries.

    Raises:
        BriefFormatError: Any invalid entry, or duplicate room ids
    """
    if not isinstance(entries, list):
        raise BriefFormatError("Brief rooms must be a list")

    rooms = [normalize_room(raw, index) for index, raw in enumerate(entries, start=1)]

    seen = set()
    for room in rooms:
        if room.id in seen:
            raise BriefFormatError(f"Duplicate room id '{room.id}'")
        seen.add(room.id)
    return rooms


def load_brief(path: str) -> List[RoomSpec]:
    """
    Load and normalize a JSON brief.

    Args:
        path: Path to the brief file

    Returns:
        List[RoomSpec]: Normalized rooms in brief order

    Raises:
        BriefFormatError: Unreadable file, invalid JSON or invalid rooms
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise BriefFormatError(f"Cannot read brief {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise BriefFormatError(f"Brief {path} is not valid JSON: {e}") from e

    entries = data.get("rooms") if isinstance(data, dict) else data
    if entries is None:
        raise BriefFormatError(f"Brief {path} has no 'rooms' list")

    rooms = rooms_from_dicts(entries)
    logger.info(f"Loaded {len(rooms)} room types from {path}")
    return rooms


def brief_metadata(rooms: List[RoomSpec]) -> Dict[str, Any]:
    """Totals stored alongside a normalized brief"""
    return {
        "room_types": len(rooms),
        "total_rooms": sum(r.quantity for r in rooms),
        "total_area": quantize(sum(r.total_area for r in rooms)),
    }
