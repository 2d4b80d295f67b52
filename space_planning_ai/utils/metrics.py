"""
Summary metrics for briefs, room variants and zones.
"""

from typing import Dict, List, Any

import numpy as np
import pandas as pd

from space_planning_ai.core.grid import quantize
from space_planning_ai.models.room import RoomSpec, ROOM_CATEGORIES
from space_planning_ai.models.zone import ProgramZone

# Aspect ratio band counted as "square"
SQUARE_BAND = (0.9, 1.1)

# Variant counts above this are folded into the last distribution bucket
MAX_DISTRIBUTION_BUCKET = 4


def rooms_to_dataframe(rooms: List[RoomSpec]) -> pd.DataFrame:
    """One row per room type with the columns used by the summaries"""
    columns = [
        "id",
        "name",
        "category",
        "quantity",
        "area_target",
        "total_area",
        "requires_daylight",
        "variant_count",
    ]
    records = [
        {
            "id": r.id,
            "name": r.name,
            "category": r.category,
            "quantity": r.quantity,
            "area_target": r.area_target,
            "total_area": r.total_area,
            "requires_daylight": r.requires_daylight,
            "variant_count": len(r.variants),
        }
        for r in rooms
    ]
    return pd.DataFrame(records, columns=columns)


def _top_rooms(df: pd.DataFrame, column: str, limit: int) -> List[Dict[str, Any]]:
    # mergesort keeps brief order between ties
    top = df.sort_values(column, ascending=False, kind="mergesort").head(limit)
    return [
        {
            "name": row["name"],
            "area_target": float(row["area_target"]),
            "quantity": int(row["quantity"]),
            "total_area": quantize(float(row["total_area"])),
        }
        for _, row in top.iterrows()
    ]


def summarize_brief(rooms: List[RoomSpec], top: int = 5) -> Dict[str, Any]:
    """
    Summarize a room population.

    Args:
        rooms: Room specifications
        top: How many rooms to list as largest / most numerous

    Returns:
        Dictionary with totals, a per-category breakdown, daylight shares
        and the largest and most numerous rooms
    """
    df = rooms_to_dataframe(rooms)

    total_rooms = int(df["quantity"].sum()) if not df.empty else 0
    total_area = quantize(float(df["total_area"].sum())) if not df.empty else 0.0

    grouped = (
        df.groupby("category")[["quantity", "total_area"]]
        .sum()
        .reindex(list(ROOM_CATEGORIES) + sorted(set(df["category"]) - set(ROOM_CATEGORIES)))
        .fillna(0)
    )
    by_category = {
        category: {"rooms": int(row["quantity"]), "area": quantize(float(row["total_area"]))}
        for category, row in grouped.iterrows()
    }

    daylight = df[df["requires_daylight"].astype(bool)]
    daylight_rooms = int(daylight["quantity"].sum()) if not daylight.empty else 0
    daylight_area = quantize(float(daylight["total_area"].sum())) if not daylight.empty else 0.0

    return {
        "room_types": len(df),
        "total_rooms": total_rooms,
        "total_area": total_area,
        "by_category": by_category,
        "daylight": {
            "rooms": daylight_rooms,
            "area": daylight_area,
            "room_share": daylight_rooms / total_rooms if total_rooms else 0.0,
            "area_share": daylight_area / total_area if total_area else 0.0,
        },
        "largest_rooms": _top_rooms(df, "area_target", top),
        "most_numerous_rooms": _top_rooms(df, "quantity", top),
    }


def variant_statistics(rooms: List[RoomSpec]) -> Dict[str, Any]:
    """
    Statistics over the variants attached to a room population.

    Returns:
        Dictionary with counts, the distribution of variants per room and
        the square / wide / deep split of all variants
    """
    counts = np.array([len(r.variants) for r in rooms], dtype=int)
    ratios = np.array([v.aspect_ratio for r in rooms for v in r.variants], dtype=float)
    deviations = np.array(
        [abs(v.area - r.area_target) for r in rooms for v in r.variants], dtype=float
    )

    distribution = np.bincount(
        np.minimum(counts, MAX_DISTRIBUTION_BUCKET), minlength=MAX_DISTRIBUTION_BUCKET + 1
    )

    low, high = SQUARE_BAND
    square = int(np.count_nonzero((ratios >= low) & (ratios <= high)))
    wide = int(np.count_nonzero(ratios > high))
    deep = int(np.count_nonzero(ratios < low))

    return {
        "room_types": len(rooms),
        "rooms_with_variants": int(np.count_nonzero(counts)),
        "total_variants": int(counts.sum()),
        "average_per_room": float(counts.mean()) if counts.size else 0.0,
        "distribution": {i: int(n) for i, n in enumerate(distribution)},
        "aspect_ratios": {"square": square, "wide": wide, "deep": deep},
        "mean_area_deviation": float(deviations.mean()) if deviations.size else 0.0,
    }


def zone_totals(zones: List[ProgramZone]) -> Dict[str, Any]:
    """
    Net, circulation and gross area per zone and overall.

    Returns:
        Dictionary with a "zones" list and the overall totals
    """
    rows = []
    for zone in zones:
        rows.append(
            {
                "id": zone.id,
                "name": zone.name,
                "function_type": zone.function_type,
                "net_area": zone.target_area_net,
                "circulation_area": round(zone.circulation_area, 2),
                "gross_area": round(zone.gross_area, 2),
                "strategies": [v.strategy for v in zone.variants],
            }
        )

    net = sum(zone.target_area_net for zone in zones)
    gross = sum(zone.gross_area for zone in zones)
    return {
        "zones": rows,
        "total_net_area": quantize(net),
        "total_gross_area": round(gross, 2),
        "overall_circulation_ratio": (gross - net) / net if net else 0.0,
    }
