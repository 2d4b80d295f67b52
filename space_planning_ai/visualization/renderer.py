import re
import os
from typing import Dict, List, Optional

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from space_planning_ai.core.grid import format_dimension
from space_planning_ai.models.room import RoomSpec, RoomVariant
from space_planning_ai.models.zone import ProgramZone, ZoneVariant


class StyleConfig:
    """Configuration for visualization styles."""

    # Room category colors
    CATEGORY_COLORS = {
        "client": "#7fcdbb",
        "general": "#edf8b1",
        "supporting": "#addd8e",
        "default": "#efefef",
    }

    # Zone function type colors
    FUNCTION_COLORS = {
        "residential": "#f7fcb9",
        "shared": "#7fcdbb",
        "services": "#2c7fb8",
        "staff": "#d9f0a3",
        "support": "#A0A0A0",
        "default": "#efefef",
    }

    FACADE_COLOR = "#FFA500"
    ACCESS_COLOR = "#FF0000"

    # Floor-to-floor height used to draw zone envelopes
    FLOOR_HEIGHT = 3.0

    @classmethod
    def brighten_color(cls, color_str: str) -> str:
        """
        Brighten a color for highlighting.

        Args:
            color_str: Color to brighten

        Returns:
            str: Brightened color
        """
        rgb = mcolors.to_rgb(color_str)
        # Make color brighter (closer to white)
        brightened = [min(1.0, c * 1.5) for c in rgb]
        return mcolors.rgb2hex(brightened)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_") or "item"


class VariantRenderer:
    """
    Renderer for room variants (2D rectangles) and zone strategies
    (3D floor-stacked envelopes). Read-only: it never changes the
    records it draws.
    """

    def __init__(self, gap: float = 1.0):
        """
        Initialize the renderer.

        Args:
            gap: Spacing in meters between drawn variants
        """
        self.gap = gap
        self.category_colors = StyleConfig.CATEGORY_COLORS.copy()
        self.function_colors = StyleConfig.FUNCTION_COLORS.copy()

    def render_room_variants(self, room: RoomSpec, ax=None, fig=None):
        """
        Draw every variant of a room side by side.

        Args:
            room: Room with variants
            ax: Optional matplotlib axis
            fig: Optional matplotlib figure

        Returns:
            fig, ax: The matplotlib figure and axis
        """
        if fig is None or ax is None:
            fig, ax = plt.subplots(figsize=(12, 5))

        color = self.category_colors.get(room.category, self.category_colors["default"])
        x = 0.0
        max_depth = 0.0
        for variant in room.variants:
            is_active = variant.id == room.active_variant_id
            self._draw_room_variant(ax, variant, x, color, is_active)
            x += variant.width + self.gap
            max_depth = max(max_depth, variant.depth)

        ax.set_title(
            f"{room.name} - target {format_dimension(room.area_target)}², "
            f"{len(room.variants)} variants"
        )
        ax.set_xlabel("Width (m)")
        ax.set_ylabel("Depth (m)")
        ax.set_xlim(-self.gap, max(x, self.gap))
        ax.set_ylim(-self.gap, max_depth + 2 * self.gap)
        ax.set_aspect("equal")
        return fig, ax

    def _draw_room_variant(
        self, ax, variant: RoomVariant, x: float, color: str, is_active: bool
    ):
        face = StyleConfig.brighten_color(color) if is_active else color
        rect = plt.Rectangle(
            (x, 0.0),
            variant.width,
            variant.depth,
            facecolor=face,
            edgecolor="black",
            linewidth=2.0 if is_active else 1.0,
        )
        ax.add_patch(rect)

        # Facade on the south (bottom) edge, access on the north (top) edge
        if variant.facade_edge:
            ax.plot(
                [x, x + variant.width],
                [0.0, 0.0],
                color=StyleConfig.FACADE_COLOR,
                linewidth=3,
            )
        if variant.access_edge:
            ax.plot(
                [x, x + variant.width],
                [variant.depth, variant.depth],
                color=StyleConfig.ACCESS_COLOR,
                linewidth=3,
                linestyle="--",
            )

        ax.text(
            x + variant.width / 2,
            variant.depth / 2,
            f"{format_dimension(variant.width)} x {format_dimension(variant.depth)}\n"
            f"{format_dimension(variant.area)}²",
            ha="center",
            va="center",
            fontsize=8,
        )

    def render_zone_variants(self, zone: ProgramZone, fig=None):
        """
        Draw every strategy of a zone as a stack of floor slabs.

        Args:
            zone: Zone with variants
            fig: Optional matplotlib figure

        Returns:
            fig: The matplotlib figure
        """
        count = max(1, len(zone.variants))
        if fig is None:
            fig = plt.figure(figsize=(5 * count, 5))

        color = self.function_colors.get(zone.function_type, self.function_colors["default"])
        for index, variant in enumerate(zone.variants, start=1):
            ax = fig.add_subplot(1, count, index, projection="3d")
            self._draw_zone_variant(ax, variant, color, variant.id == zone.active_variant_id)

        fig.suptitle(f"{zone.name} ({zone.function_type}) - {zone.gross_area:.0f}m² gross")
        return fig

    def _draw_zone_variant(self, ax, variant: ZoneVariant, color: str, is_active: bool):
        width, depth = variant.approximate_dimensions()
        height = StyleConfig.FLOOR_HEIGHT
        face = StyleConfig.brighten_color(color) if is_active else color

        for floor in range(variant.floor_count):
            z = floor * height
            ax.add_collection3d(
                Poly3DCollection(
                    self._box_faces(width, depth, z, height * 0.9),
                    facecolors=face,
                    edgecolors="black",
                    linewidths=0.5,
                    alpha=0.6,
                )
            )

        ax.set_title(
            f"{variant.strategy}: {variant.floor_count}F, "
            f"{variant.target_footprint:.0f}m²/floor",
            fontsize=9,
        )
        extent = max(width, depth, variant.floor_count * height)
        ax.set_xlim(0, extent)
        ax.set_ylim(0, extent)
        ax.set_zlim(0, extent)
        ax.set_xlabel("Width (m)")
        ax.set_ylabel("Depth (m)")
        ax.set_zlabel("Height (m)")
        ax.view_init(elev=30, azim=-45)

    @staticmethod
    def _box_faces(width: float, depth: float, z: float, height: float):
        corners = np.array(
            [
                [0, 0, z],
                [width, 0, z],
                [width, depth, z],
                [0, depth, z],
                [0, 0, z + height],
                [width, 0, z + height],
                [width, depth, z + height],
                [0, depth, z + height],
            ]
        )
        faces = [
            [0, 1, 2, 3],
            [4, 5, 6, 7],
            [0, 1, 5, 4],
            [1, 2, 6, 5],
            [2, 3, 7, 6],
            [3, 0, 4, 7],
        ]
        return [[corners[i] for i in face] for face in faces]

    def save_renders(
        self,
        rooms: Optional[List[RoomSpec]] = None,
        zones: Optional[List[ProgramZone]] = None,
        output_dir: str = "renders",
        prefix: str = "plan",
    ) -> Dict[str, List[str]]:
        """
        Save renders to disk.

        Rooms without variants and zones without strategies are skipped.

        Args:
            rooms: Rooms to draw
            zones: Zones to draw
            output_dir: Directory to save renders in
            prefix: Filename prefix

        Returns:
            Dictionary with the "rooms" and "zones" file paths written
        """
        # Create output directory if it doesn't exist
        os.makedirs(output_dir, exist_ok=True)

        written = {"rooms": [], "zones": []}
        for room in rooms or []:
            if not room.variants:
                continue
            fig, _ = self.render_room_variants(room)
            filename = os.path.join(output_dir, f"{prefix}_{room.id}_{_slug(room.name)}.png")
            fig.savefig(filename, dpi=150, bbox_inches="tight")
            plt.close(fig)
            written["rooms"].append(filename)

        for zone in zones or []:
            if not zone.variants:
                continue
            fig = self.render_zone_variants(zone)
            filename = os.path.join(output_dir, f"{prefix}_{zone.id}_{_slug(zone.name)}.png")
            fig.savefig(filename, dpi=150, bbox_inches="tight")
            plt.close(fig)
            written["zones"].append(filename)

        return written
