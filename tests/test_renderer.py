"""
Tests for variant and zone rendering.
"""

import os

import matplotlib.pyplot as plt

from space_planning_ai.core.pipeline import PlanningPipeline
from space_planning_ai.core.zone_strategy import derive_zones
from space_planning_ai.visualization.renderer import StyleConfig, VariantRenderer


def test_room_render_draws_every_variant(daylight_room):
    room = PlanningPipeline().run([daylight_room]).rooms[0]
    fig, ax = VariantRenderer().render_room_variants(room)

    assert len(ax.patches) == len(room.variants)
    assert "Resident Bedroom" in ax.get_title()
    plt.close(fig)


def test_zone_render_has_one_axis_per_strategy(mixed_rooms):
    zone = derive_zones(mixed_rooms)[0]
    fig = VariantRenderer().render_zone_variants(zone)

    assert len(fig.axes) == len(zone.variants)
    plt.close(fig)


def test_renderer_does_not_modify_records(daylight_room):
    room = PlanningPipeline().run([daylight_room]).rooms[0]
    before = room.to_dict()
    fig, _ = VariantRenderer().render_room_variants(room)
    plt.close(fig)
    assert room.to_dict() == before


def test_save_renders(tmp_path, daylight_room, infeasible_room, mixed_rooms):
    rooms = PlanningPipeline().run([daylight_room, infeasible_room]).rooms
    zones = derive_zones(mixed_rooms)[:2]

    written = VariantRenderer().save_renders(rooms, zones, str(tmp_path / "renders"))

    # The infeasible room has nothing to draw
    assert len(written["rooms"]) == 1
    assert len(written["zones"]) == 2
    assert os.path.basename(written["rooms"][0]) == "plan_room-1_resident_bedroom.png"
    assert all(os.path.exists(path) for path in written["rooms"] + written["zones"])


def test_brighten_color():
    assert StyleConfig.brighten_color("#000000") == "#000000"
    assert StyleConfig.brighten_color("#808080") == "#c0c0c0"
