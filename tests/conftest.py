import matplotlib

matplotlib.use("Agg")

import pytest

from space_planning_ai.models.room import (
    RoomSpec,
    CATEGORY_CLIENT,
    CATEGORY_GENERAL,
    CATEGORY_SUPPORTING,
)


def make_room(
    id: str = "room-1",
    name: str = "Bedroom",
    area_target: float = 30.0,
    area_min: float = None,
    area_max: float = None,
    width_range=(3.0, 7.0),
    depth_range=(3.0, 7.0),
    **kwargs,
) -> RoomSpec:
    """RoomSpec with a +-20% area band unless given explicitly"""
    return RoomSpec(
        id=id,
        name=name,
        area_target=area_target,
        area_min=area_min if area_min is not None else round(area_target * 0.8, 1),
        area_max=area_max if area_max is not None else round(area_target * 1.2, 1),
        width_range=width_range,
        depth_range=depth_range,
        **kwargs,
    )


@pytest.fixture
def daylight_room():
    """30m² room needing a facade, 3-7m in both directions"""
    return make_room(
        id="room-1",
        name="Resident Bedroom",
        area_target=30.0,
        area_min=24.0,
        area_max=36.0,
        aspect_ratio_range=(0.5, 2.5),
        requires_daylight=True,
        category=CATEGORY_CLIENT,
    )


@pytest.fixture
def closet_room():
    """2m² storage closet, below the standard minimum buildable size"""
    return make_room(
        id="room-2",
        name="Cleaning Storage",
        area_target=2.0,
        area_min=1.6,
        area_max=2.4,
        width_range=(1.0, 2.0),
        depth_range=(1.0, 2.0),
        category=CATEGORY_SUPPORTING,
    )


@pytest.fixture
def infeasible_room():
    """100m² target that 2-3m ranges can never reach"""
    return make_room(
        id="room-3",
        name="Assembly Hall",
        area_target=100.0,
        area_min=80.0,
        area_max=120.0,
        width_range=(2.0, 3.0),
        depth_range=(2.0, 3.0),
        category=CATEGORY_GENERAL,
    )


@pytest.fixture
def mixed_rooms():
    """Small program touching every cluster"""
    return [
        make_room(
            id="room-1",
            name="Resident Bedroom",
            area_target=30.0,
            quantity=40,
            requires_daylight=True,
            category=CATEGORY_CLIENT,
        ),
        make_room(
            id="room-2",
            name="Shared Kitchen",
            area_target=20.0,
            quantity=2,
            requires_daylight=True,
            category=CATEGORY_CLIENT,
        ),
        make_room(
            id="room-3",
            name="Reception",
            area_target=40.0,
            width_range=(4.0, 10.0),
            depth_range=(4.0, 10.0),
            category=CATEGORY_GENERAL,
        ),
        make_room(
            id="room-4",
            name="Manager Office",
            area_target=12.0,
            category=CATEGORY_SUPPORTING,
        ),
        make_room(
            id="room-5",
            name="Laundry",
            area_target=15.0,
            category=CATEGORY_SUPPORTING,
        ),
    ]
