import json
import os
from typing import Dict, List, Any, Optional

import pandas as pd

from space_planning_ai.config.brief_loader import brief_metadata
from space_planning_ai.core.pipeline import PlanningResult
from space_planning_ai.models.room import RoomSpec
from space_planning_ai.models.zone import ProgramZone

VARIANT_COLUMNS = [
    "room_id",
    "room_name",
    "category",
    "quantity",
    "area_target",
    "variant_id",
    "source",
    "width",
    "depth",
    "area",
    "aspect_ratio",
    "facade_edge",
    "access_edge",
    "active",
    "notes",
]


def _write_json(data: Any, filepath: str):
    # Ensure directory exists
    output_dir = os.path.dirname(filepath)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_rooms_to_json(
    rooms: List[RoomSpec], filepath: str, metadata: Optional[Dict[str, Any]] = None
):
    """
    Export rooms (with their variants) as a brief document.

    The file has the same {"rooms", "metadata"} shape that load_brief reads,
    so it can be loaded again without losing variants.

    Args:
        rooms: Room specifications
        filepath: Output JSON filename
        metadata: Extra metadata merged over the computed totals
    """
    data = {
        "rooms": [room.to_dict() for room in rooms],
        "metadata": {**brief_metadata(rooms), **(metadata or {})},
    }
    _write_json(data, filepath)


def export_zones_to_json(zones: List[ProgramZone], filepath: str):
    """
    Export program zones to JSON.

    Args:
        zones: Program zones
        filepath: Output JSON filename
    """
    _write_json({"zones": [zone.to_dict() for zone in zones]}, filepath)


def export_result_to_json(result: PlanningResult, filepath: str):
    """
    Export a full planning result (rooms, zones and feasibility report).

    Args:
        result: Pipeline output
        filepath: Output JSON filename
    """
    data = result.to_dict()
    data["metadata"] = brief_metadata(result.rooms)
    _write_json(data, filepath)


def variants_to_dataframe(rooms: List[RoomSpec]) -> pd.DataFrame:
    """One row per room variant"""
    rows = []
    for room in rooms:
        for variant in room.variants:
            rows.append(
                {
                    "room_id": room.id,
                    "room_name": room.name,
                    "category": room.category,
                    "quantity": room.quantity,
                    "area_target": room.area_target,
                    "variant_id": variant.id,
                    "source": variant.source,
                    "width": variant.width,
                    "depth": variant.depth,
                    "area": variant.area,
                    "aspect_ratio": round(variant.aspect_ratio, 3),
                    "facade_edge": variant.facade_edge or "",
                    "access_edge": variant.access_edge or "",
                    "active": variant.id == room.active_variant_id,
                    "notes": variant.notes or "",
                }
            )
    return pd.DataFrame(rows, columns=VARIANT_COLUMNS)


def export_variants_to_csv(rooms: List[RoomSpec], filepath: str):
    """
    Export all room variants to CSV format.

    Args:
        rooms: Room specifications with variants
        filepath: Output CSV filename
    """
    output_dir = os.path.dirname(filepath)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    variants_to_dataframe(rooms).to_csv(filepath, index=False)
