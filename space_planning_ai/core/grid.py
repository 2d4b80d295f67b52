"""
Grid quantization for Space Planning AI.
Every length and area handled by the planner is snapped to a fixed
0.1m (100mm) construction grid before it is compared or stored.
"""

import math
from typing import Dict, List, Tuple

# Core grid unit: 0.1 meter (100mm)
GRID_UNIT = 0.1

# Decimal places used by the residue pass after snapping.
# One more digit than the grid step itself carries.
_RESIDUE_DIGITS = 2

# Common dimension presets (all on the 0.1m grid)
DIMENSIONS: Dict[str, float] = {
    # Minimum dimensions
    "MIN_ROOM_WIDTH": 2.4,
    "MIN_ROOM_DEPTH": 2.4,
    "MIN_CORRIDOR": 1.2,
    "MIN_DOOR": 0.9,
    # Standard increments (in grid units, multiply by GRID_UNIT)
    "SMALL_STEP": 5,
    "STANDARD_STEP": 10,
    "LARGE_STEP": 20,
    # Typical values
    "TYPICAL_CEILING": 2.7,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def quantize(value: float) -> float:
    """
    Snap a value to the nearest grid unit.

    Args:
        value: Value in meters (or square meters)

    Returns:
        float: Value snapped to the 0.1m grid, e.g. 5.6 and never 5.600000000000001
    """
    snapped = _round_half_up(value / GRID_UNIT) * GRID_UNIT
    scale = 10**_RESIDUE_DIGITS
    return _round_half_up(snapped * scale) / scale


def is_aligned(value: float, tolerance: float = 0.001) -> bool:
    """Check if a value already sits on the grid (within tolerance)"""
    return abs(value - quantize(value)) < tolerance


def quantize_with_min(value: float, min_value: float) -> float:
    """
    Snap to grid and ensure a minimum value.

    Args:
        value: Value in meters
        min_value: Minimum allowed value (snapped to grid before clamping)

    Returns:
        float: Grid-aligned value, at least min_value
    """
    return max(quantize(value), quantize(min_value))


def quantize_range(value: float, min_value: float, max_value: float) -> float:
    """
    Snap to grid and clamp into [min_value, max_value].

    Both bounds are snapped first, then the snapped value is clamped.
    """
    snapped_min = quantize(min_value)
    snapped_max = quantize(max_value)
    return max(snapped_min, min(quantize(value), snapped_max))


def area(width: float, depth: float) -> float:
    """
    Calculate a grid-aligned area from width and depth.

    Both factors are snapped before multiplying and the product is
    snapped again. Snapping only the product gives different answers
    (e.g. 2.44 x 2.44), so the two stages are not optional.

    Args:
        width: Width in meters
        depth: Depth in meters

    Returns:
        float: Area in square meters on the 0.1 grid
    """
    return quantize(quantize(width) * quantize(depth))


def grid_range(min_value: float, max_value: float, step: int = 1) -> List[float]:
    """
    Generate grid values between two bounds (inclusive).

    Args:
        min_value: Lower bound
        max_value: Upper bound
        step: Step size in grid units (1 = 0.1m)

    Returns:
        List[float]: Grid-aligned values from min to max
    """
    start = _round_half_up(min_value / GRID_UNIT)
    stop = _round_half_up(max_value / GRID_UNIT)
    if step < 1:
        raise ValueError(f"step must be a positive number of grid units, got {step}")
    return [quantize(units * GRID_UNIT) for units in range(start, stop + 1, step)]


def format_dimension(value: float) -> str:
    """Format a dimension for display, e.g. "3.5m" or "4m" """
    text = f"{quantize(value):.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}m"


def validate_grid_alignment(values: List[float]) -> Tuple[bool, List[float]]:
    """
    Check that every value in a list is on the grid.

    Returns:
        Tuple of (all_aligned, off_grid_values)
    """
    off_grid = [v for v in values if not is_aligned(v)]
    return len(off_grid) == 0, off_grid
