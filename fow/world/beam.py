# fow/world/beam.py
"""
Directional, angle-limited field of view.

A beam is assembled from partial octant casts. The two octants straddling the
beam's direction are always cast; each time the half-angle passes another
45 degrees one more pair of octant wedges is added. Cardinal beams start with
wedges hugging the axis ("near"), diagonal beams with wedges hugging the
diagonal ("far"), and the two kinds alternate from there.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, Any, Final

import numpy as np
import structlog

from fow.world.fov import (
    DIAGONAL_NEIGHBOURS,
    EDGE_NEIGHBOURS,
    EPSILON,
    OCTANTS,
    OctantPart,
    cast_octant_part,
    clamp,
    light_circle,
    make_query,
)
from fow.world.fov_settings import Direction, FovSettings, LightingCallbacks
from fow.world.heights import HeightCache

if TYPE_CHECKING:
    from fow.world.game_map import GameMap

log = structlog.get_logger(__name__)

FULL_CIRCLE_DEGREES: Final[float] = 360.0
DIRECTION_TOLERANCE_DEGREES: Final[float] = 22.5

P = OctantPart

# Octant pairs added at each step, from the beam's centre outwards.
BEAM_OCTANTS: Final[dict[Direction, tuple[tuple[OctantPart, OctantPart], ...]]] = {
    Direction.EAST: ((P.PPN, P.PMN), (P.PPY, P.MPY), (P.PMY, P.MMY), (P.MPN, P.MMN)),
    Direction.WEST: ((P.MPN, P.MMN), (P.PMY, P.MMY), (P.PPY, P.MPY), (P.PPN, P.PMN)),
    Direction.NORTH: ((P.MPY, P.MMY), (P.MMN, P.PMN), (P.MPN, P.PPN), (P.PMY, P.PPY)),
    Direction.SOUTH: ((P.PMY, P.PPY), (P.MPN, P.PPN), (P.MMN, P.PMN), (P.MMY, P.MPY)),
    Direction.NORTHEAST: ((P.PMN, P.MPY), (P.MMY, P.PPN), (P.MMN, P.PPY), (P.MPN, P.PMY)),
    Direction.NORTHWEST: ((P.MMN, P.MMY), (P.MPN, P.MPY), (P.PMY, P.PMN), (P.PPY, P.PPN)),
    Direction.SOUTHEAST: ((P.PPN, P.PPY), (P.PMY, P.PMN), (P.MPN, P.MPY), (P.MMN, P.MMY)),
    Direction.SOUTHWEST: ((P.PMY, P.MPN), (P.PPY, P.MMN), (P.PPN, P.MMY), (P.PMN, P.MPY)),
}

_DIAGONALS: Final[frozenset[Direction]] = frozenset(
    {
        Direction.NORTHEAST,
        Direction.NORTHWEST,
        Direction.SOUTHEAST,
        Direction.SOUTHWEST,
    }
)

# Checked in this order; the first heading within tolerance wins.
HEADINGS: Final[tuple[tuple[Direction, tuple[int, int]], ...]] = (
    (Direction.NORTH, (0, -1)),
    (Direction.EAST, (1, 0)),
    (Direction.WEST, (-1, 0)),
    (Direction.SOUTH, (0, 1)),
    (Direction.NORTHEAST, (1, -1)),
    (Direction.SOUTHEAST, (1, 1)),
    (Direction.SOUTHWEST, (-1, 1)),
    (Direction.NORTHWEST, (-1, -1)),
)


def beam_wedges(
    direction: Direction, angle: float
) -> list[tuple[OctantPart, float, float]]:
    """
    The ``(octant, start_slope, end_slope)`` casts making up a beam.

    ``angle`` must lie strictly between 0 and 360 degrees.
    """
    a = angle / 90.0
    near_first = direction not in _DIAGONALS
    wedges: list[tuple[OctantPart, float, float]] = []
    for step, pair in enumerate(BEAM_OCTANTS[direction]):
        if step > 0 and not a - step > EPSILON:
            break
        if (step % 2 == 0) == near_first:
            start_slope, end_slope = 0.0, clamp(a - step, 0.0, 1.0)
        else:
            start_slope, end_slope = clamp(step + 1 - a, 0.0, 1.0), 1.0
        wedges.extend((part, start_slope, end_slope) for part in pair)
    return wedges


def shared_line_flags(
    part: OctantPart, cast_parts: frozenset[OctantPart]
) -> tuple[bool, bool]:
    """
    ``(apply_edge, apply_diagonal)`` for ``part`` within a beam.

    A shared axis or diagonal stays with its usual owner while both octants
    around it are cast; otherwise the cast one draws it.
    """
    octant = OCTANTS[part]
    apply_edge = octant.apply_edge or EDGE_NEIGHBOURS[part] not in cast_parts
    apply_diagonal = (
        octant.apply_diagonal or DIAGONAL_NEIGHBOURS[part] not in cast_parts
    )
    return apply_edge, apply_diagonal


def beam(
    settings: FovSettings,
    callbacks: LightingCallbacks,
    game_map: "GameMap",
    source: Any,
    source_x: int,
    source_y: int,
    radius: int,
    direction: Direction,
    angle: float,
    heights: HeightCache | None = None,
) -> int:
    """
    Field of view limited to ``angle`` degrees centred on ``direction``.

    Half the angle lies on each side of the direction, and the lit set is
    mirror symmetric about it on an open map. An angle of zero or less lights
    nothing; 360 or more is a full circle; NaN or infinity raises
    ``ValueError``. Returns the number of apply callbacks issued.
    """
    query = make_query(
        settings, callbacks, game_map, source, source_x, source_y, radius, heights
    )
    direction = Direction(direction)
    func_log = log.bind(
        origin=(source_x, source_y),
        radius=radius,
        direction=direction.name,
        angle=angle,
    )

    if not math.isfinite(angle):
        func_log.error("Non-finite FOV beam angle")
        raise ValueError(f"Beam angle must be finite, got {angle}")
    if angle <= 0.0:
        func_log.debug("FOV beam with no width, nothing lit")
        return 0
    if angle >= FULL_CIRCLE_DEGREES:
        return light_circle(query)

    start_time = time.perf_counter()
    wedges = beam_wedges(direction, angle)
    cast_parts = frozenset(part for part, _, _ in wedges)
    applied = 0
    for part, start_slope, end_slope in wedges:
        apply_edge, apply_diagonal = shared_line_flags(part, cast_parts)
        applied += cast_octant_part(
            query, part, start_slope, end_slope, apply_edge, apply_diagonal
        )

    duration_ms = (time.perf_counter() - start_time) * 1000
    func_log.debug(
        "FOV beam finished", duration_ms=f"{duration_ms:.2f}", applied=applied
    )
    return applied


def direction_from_forward(
    forward_x: float, forward_y: float, fallback: Direction = Direction.EAST
) -> Direction:
    """
    Nearest compass direction to a forward vector in grid space.

    Grid y grows southward, so ``(0, -1)`` is north. Returns ``fallback`` when
    no heading is within 22.5 degrees (only possible for a zero vector or
    rounding exactly on a boundary).
    """
    forward = np.array([forward_x, forward_y], dtype=np.float64)
    norm = float(np.linalg.norm(forward))
    if norm < EPSILON:
        return fallback
    for direction, heading in HEADINGS:
        heading_vec = np.array(heading, dtype=np.float64)
        cosine = float(np.dot(forward, heading_vec)) / (
            norm * float(np.linalg.norm(heading_vec))
        )
        angle = math.degrees(math.acos(max(-1.0, min(1.0, cosine))))
        if angle <= DIRECTION_TOLERANCE_DEGREES:
            return direction
    return fallback
