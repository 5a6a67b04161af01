import numpy as np
import pytest

from fow.world.beam import beam, beam_wedges, direction_from_forward
from fow.world.fov import OctantPart, circle
from fow.world.fov_settings import Direction, FovSettings, LightingCallbacks
from fow.world.game_map import GameMap, blocks_light

SX, SY, RADIUS = 10, 10, 6


def _counting_callbacks(calls: list):
    def apply(game_map, x, y, dx, dy, source):
        calls.append((x, y))
        game_map.mark_seen(x, y)

    return LightingCallbacks(is_opaque=blocks_light, apply=apply)


def _run_beam(game_map, direction, angle, radius=RADIUS):
    calls: list = []
    beam(
        FovSettings(),
        _counting_callbacks(calls),
        game_map,
        None,
        SX,
        SY,
        radius,
        direction,
        angle,
    )
    return calls


def _seen_offsets(game_map):
    return {(x - SX, y - SY) for x, y in game_map.seen_cells()}


def _open_map():
    return GameMap(width=21, height=21)


def test_zero_or_negative_angle_lights_nothing():
    for angle in (0.0, -45.0):
        gm = _open_map()
        calls = _run_beam(gm, Direction.EAST, angle)
        assert calls == []
        assert gm.seen_cells() == set()


@pytest.mark.parametrize("angle", [360.0, 400.0])
def test_full_angle_matches_circle(angle):
    rng = np.random.default_rng(21)
    blocking = rng.random((21, 21)) < 0.15

    beam_map = _open_map()
    beam_map.blocking[:, :] = blocking
    beam_calls = _run_beam(beam_map, Direction.NORTH, angle)

    circle_map = _open_map()
    circle_map.blocking[:, :] = blocking
    circle_calls: list = []
    circle(
        FovSettings(),
        _counting_callbacks(circle_calls),
        circle_map,
        None,
        SX,
        SY,
        RADIUS,
    )
    assert beam_map.seen_cells() == circle_map.seen_cells()
    assert len(beam_calls) == len(circle_calls)


def test_east_quarter_beam_is_the_east_wedge():
    gm = _open_map()
    _run_beam(gm, Direction.EAST, 90.0)
    offsets = _seen_offsets(gm)
    assert (RADIUS, 0) in offsets
    assert (3, 3) in offsets and (3, -3) in offsets
    for dx, dy in offsets:
        assert dx >= abs(dy) and dx > 0


def test_narrow_beam_stays_near_its_axis():
    gm = _open_map()
    _run_beam(gm, Direction.EAST, 45.0)
    offsets = _seen_offsets(gm)
    assert (4, 0) in offsets
    assert (4, 4) not in offsets
    assert (4, -4) not in offsets
    for dx, dy in offsets:
        assert dx > 0
        assert abs(dy) <= int(0.5 + dx * 0.5)


def test_half_circle_beam_includes_perpendicular_axis():
    gm = _open_map()
    _run_beam(gm, Direction.EAST, 180.0)
    offsets = _seen_offsets(gm)
    assert (0, 1) in offsets and (0, -1) in offsets
    assert all(dx >= 0 for dx, _ in offsets)
    assert not any(dx < 0 for dx, _ in offsets)


def test_west_beam_mirrors_east_beam():
    east = _open_map()
    _run_beam(east, Direction.EAST, 120.0)
    west = _open_map()
    _run_beam(west, Direction.WEST, 120.0)
    assert {(-dx, dy) for dx, dy in _seen_offsets(east)} == _seen_offsets(west)


def test_north_beam_points_up():
    gm = _open_map()
    _run_beam(gm, Direction.NORTH, 90.0)
    offsets = _seen_offsets(gm)
    assert (0, -RADIUS) in offsets
    for dx, dy in offsets:
        assert -dy >= abs(dx)


def test_northeast_beam_covers_the_quadrant():
    gm = _open_map()
    _run_beam(gm, Direction.NORTHEAST, 90.0)
    offsets = _seen_offsets(gm)
    assert (2, -2) in offsets
    assert (0, -1) in offsets
    for dx, dy in offsets:
        assert dx >= 0 and dy <= 0


def test_wider_beams_are_supersets():
    previous: set = set()
    for angle in (30.0, 90.0, 150.0, 210.0, 300.0, 359.0):
        gm = _open_map()
        _run_beam(gm, Direction.SOUTHWEST, angle)
        offsets = _seen_offsets(gm)
        assert previous <= offsets
        previous = offsets


def test_beam_wedges_follow_the_step_table():
    assert beam_wedges(Direction.EAST, 90.0) == [
        (OctantPart.PPN, 0.0, 1.0),
        (OctantPart.PMN, 0.0, 1.0),
    ]
    wedges = beam_wedges(Direction.EAST, 225.0)  # a = 2.5
    assert [part for part, *_ in wedges] == [
        OctantPart.PPN,
        OctantPart.PMN,
        OctantPart.PPY,
        OctantPart.MPY,
        OctantPart.PMY,
        OctantPart.MMY,
    ]
    assert wedges[2][1:] == (0.0, 1.0)
    assert wedges[4][1:] == pytest.approx((0.0, 0.5))

    diagonal = beam_wedges(Direction.NORTHEAST, 45.0)  # a = 0.5
    assert diagonal == [
        (OctantPart.PMN, 0.5, 1.0),
        (OctantPart.MPY, 0.5, 1.0),
    ]


@pytest.mark.parametrize(
    "forward,expected",
    [
        ((0.0, -1.0), Direction.NORTH),
        ((1.0, 0.0), Direction.EAST),
        ((-1.0, 0.1), Direction.WEST),
        ((0.0, 2.0), Direction.SOUTH),
        ((1.0, -1.0), Direction.NORTHEAST),
        ((3.0, 3.0), Direction.SOUTHEAST),
        ((-1.0, 1.0), Direction.SOUTHWEST),
        ((-1.0, -1.2), Direction.NORTHWEST),
    ],
)
def test_direction_from_forward(forward, expected):
    assert direction_from_forward(*forward) == expected


def test_direction_from_zero_vector_keeps_fallback():
    assert direction_from_forward(0.0, 0.0, fallback=Direction.SOUTH) == Direction.SOUTH


_MIRRORS = {
    Direction.EAST: lambda x, y: (x, -y),
    Direction.WEST: lambda x, y: (x, -y),
    Direction.NORTH: lambda x, y: (-x, y),
    Direction.SOUTH: lambda x, y: (-x, y),
    Direction.NORTHEAST: lambda x, y: (-y, -x),
    Direction.SOUTHWEST: lambda x, y: (-y, -x),
    Direction.NORTHWEST: lambda x, y: (y, x),
    Direction.SOUTHEAST: lambda x, y: (y, x),
}


@pytest.mark.parametrize("direction", list(Direction))
@pytest.mark.parametrize("angle", [45.0, 90.0, 135.0, 200.0, 300.0])
def test_beam_is_mirror_symmetric_about_its_direction(direction, angle):
    gm = _open_map()
    calls = _run_beam(gm, direction, angle)
    offsets = _seen_offsets(gm)
    mirror = _MIRRORS[direction]
    assert {mirror(dx, dy) for dx, dy in offsets} == offsets
    # Shared axes and diagonals are still applied once
    assert len(calls) == len(offsets)


@pytest.mark.parametrize("angle", [45.0, 90.0, 135.0, 200.0])
def test_quarter_turn_gives_the_same_beam(angle):
    def rotate(offsets):
        return {(dy, -dx) for dx, dy in offsets}

    east, north = _open_map(), _open_map()
    _run_beam(east, Direction.EAST, angle)
    _run_beam(north, Direction.NORTH, angle)
    assert rotate(_seen_offsets(east)) == _seen_offsets(north)

    southeast, northeast = _open_map(), _open_map()
    _run_beam(southeast, Direction.SOUTHEAST, angle)
    _run_beam(northeast, Direction.NORTHEAST, angle)
    assert rotate(_seen_offsets(southeast)) == _seen_offsets(northeast)


def test_diagonal_beam_lights_both_bounding_axes():
    gm = _open_map()
    _run_beam(gm, Direction.NORTHEAST, 90.0)
    offsets = _seen_offsets(gm)
    assert (RADIUS, 0) in offsets
    assert (0, -RADIUS) in offsets


def test_narrow_far_wedge_reaches_past_empty_columns():
    # At 100 degrees the PPY/MPY wedges span slopes [0.889, 1]; no cell
    # centre falls inside them until five columns out.
    gm = _open_map()
    _run_beam(gm, Direction.EAST, 100.0, radius=7)
    offsets = _seen_offsets(gm)
    assert (4, 5) in offsets
    assert (4, -5) in offsets
    assert (3, 5) not in offsets
    assert (3, -5) not in offsets


@pytest.mark.parametrize("angle", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_angle_is_rejected(angle):
    with pytest.raises(ValueError):
        _run_beam(_open_map(), Direction.EAST, angle)
