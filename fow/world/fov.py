# fow/world/fov.py
"""
Field of View (FOV) by recursive octant shadowcasting.

Each of the eight octants around the source is walked outward one column
(``dx``) at a time, restricted to a slope interval ``[start_slope, end_slope]``
measured in fractions of the octant's 45 degrees. Whenever a transparent run
ends on an opaque cell, the wedge in front of the obstruction is queued as a
new sector; whenever light reopens past a corner, the current sector's start
slope is narrowed. The sectors are kept on an explicit work-list rather than
the call stack, so deep radii cannot exhaust the interpreter's recursion
limit.

The engine never touches the map itself: opacity is asked through
``LightingCallbacks.is_opaque`` and every lit cell is reported through
``LightingCallbacks.apply``. The source cell is not reported.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple, TypeAlias

import structlog

from fow.world.fov_settings import FovSettings, LightingCallbacks
from fow.world.heights import HeightCache, shape_height

if TYPE_CHECKING:
    from fow.world.game_map import GameMap

# --- Type Aliases ---
Point: TypeAlias = tuple[int, int]
Sector: TypeAlias = tuple[int, float, float]  # (dx, start_slope, end_slope)

# --- Logging Setup ---
log = structlog.get_logger(__name__)

# --- Configuration Constants ---
EPSILON: float = 1e-9


# --- Slope Helpers ---
def slope(dx: float, dy: float) -> float:
    """``dy / dx``, or 0 when ``dx`` is negligibly small."""
    if dx <= -EPSILON or dx >= EPSILON:
        return dy / dx
    return 0.0


def clamp(x: float, low: float, high: float) -> float:
    """Limit ``x`` to ``[low, high]``; anything below ``low + EPSILON`` snaps to ``low``."""
    if x - low < EPSILON:
        return low
    if x - high > EPSILON:
        return high
    return x


# --- Octants ---
class OctantPart(Enum):
    r"""
    Octants named by the sign of their major and minor steps (``p``/``m``)
    and whether the major axis is y (``y``) or x (``n``)::

        \mmy|mpy/
         \  |  /
          \ | /
        mmn\|/pmn
        ----@----
        mpn/|\ppn
          / | \
         /  |  \
        /pmy|ppy\

    Drawn with y growing downward.
    """

    PPN = "ppn"
    PPY = "ppy"
    PMN = "pmn"
    PMY = "pmy"
    MPN = "mpn"
    MPY = "mpy"
    MMN = "mmn"
    MMY = "mmy"


class Octant(NamedTuple):
    sign_x: int
    sign_y: int
    major_axis: str  # "x": dx moves along x; "y": dx moves along y
    apply_edge: bool  # renders the dy == 0 line
    apply_diagonal: bool  # renders the dy == dx line

    def to_map(self, source_x: int, source_y: int, dx: int, dy: int) -> Point:
        """Octant-local (dx, dy) to absolute map coordinates."""
        if self.major_axis == "x":
            return source_x + self.sign_x * dx, source_y + self.sign_y * dy
        return source_x + self.sign_y * dy, source_y + self.sign_x * dx


# Shared edges (the four axes) and diagonals are each rendered by exactly one
# octant.
OCTANTS: dict[OctantPart, Octant] = {
    OctantPart.PPN: Octant(+1, +1, "x", True, True),
    OctantPart.PPY: Octant(+1, +1, "y", True, False),
    OctantPart.PMN: Octant(+1, -1, "x", False, True),
    OctantPart.PMY: Octant(+1, -1, "y", False, False),
    OctantPart.MPN: Octant(-1, +1, "x", True, True),
    OctantPart.MPY: Octant(-1, +1, "y", True, False),
    OctantPart.MMN: Octant(-1, -1, "x", False, True),
    OctantPart.MMY: Octant(-1, -1, "y", False, False),
}

# The octant on the other side of each part's dy == 0 line and dy == dx line.
EDGE_NEIGHBOURS: dict[OctantPart, OctantPart] = {
    OctantPart.PPN: OctantPart.PMN,
    OctantPart.PMN: OctantPart.PPN,
    OctantPart.MPN: OctantPart.MMN,
    OctantPart.MMN: OctantPart.MPN,
    OctantPart.PPY: OctantPart.PMY,
    OctantPart.PMY: OctantPart.PPY,
    OctantPart.MPY: OctantPart.MMY,
    OctantPart.MMY: OctantPart.MPY,
}
DIAGONAL_NEIGHBOURS: dict[OctantPart, OctantPart] = {
    OctantPart.PPN: OctantPart.PPY,
    OctantPart.PPY: OctantPart.PPN,
    OctantPart.PMN: OctantPart.MPY,
    OctantPart.MPY: OctantPart.PMN,
    OctantPart.MPN: OctantPart.PMY,
    OctantPart.PMY: OctantPart.MPN,
    OctantPart.MMN: OctantPart.MMY,
    OctantPart.MMY: OctantPart.MMN,
}


# --- Query Context ---
@dataclass(frozen=True)
class FovQuery:
    settings: FovSettings
    callbacks: LightingCallbacks
    heights: HeightCache | None
    game_map: "GameMap"
    source: Any
    source_x: int
    source_y: int
    radius: int


def make_query(
    settings: FovSettings,
    callbacks: LightingCallbacks,
    game_map: "GameMap",
    source: Any,
    source_x: int,
    source_y: int,
    radius: int,
    heights: HeightCache | None = None,
) -> FovQuery:
    """Validates the inputs shared by every entry point and bundles them."""
    if not isinstance(settings, FovSettings):
        raise TypeError("settings must be a FovSettings instance")
    if not isinstance(callbacks, LightingCallbacks):
        raise TypeError("callbacks must be a LightingCallbacks instance")
    if radius < 0:
        log.error("Negative FOV radius", radius=radius)
        raise ValueError(f"FOV radius must be non-negative, got {radius}")
    return FovQuery(
        settings=settings,
        callbacks=callbacks,
        heights=heights,
        game_map=game_map,
        source=source,
        source_x=source_x,
        source_y=source_y,
        radius=int(radius),
    )


# --- Shadowcaster ---
def cast_octant(
    query: FovQuery,
    octant: Octant,
    dx: int = 1,
    start_slope: float = 0.0,
    end_slope: float = 1.0,
) -> int:
    """
    Light one octant between ``start_slope`` and ``end_slope``.

    Returns the number of apply callbacks issued.
    """
    radius = query.radius
    shape = query.settings.shape
    apply_opaque = query.settings.applies_to_opaque
    is_opaque = query.callbacks.is_opaque
    apply = query.callbacks.apply
    game_map = query.game_map

    applied = 0
    sectors: deque[Sector] = deque([(dx, start_slope, end_slope)])
    while sectors:
        dx, start_slope, end_slope = sectors.popleft()
        if dx == 0:
            # The source cell is never walked.
            dx = 1
        if dx > radius:
            continue

        dy0 = int(0.5 + dx * start_slope)
        dy1 = int(0.5 + dx * end_slope)

        if not octant.apply_diagonal and dy1 == dx:
            # Diagonals belong to the neighbouring octant.
            dy1 -= 1

        if dy1 < dy0:
            # No cell centre inside the wedge at this column yet.
            if start_slope < end_slope:
                sectors.append((dx + 1, start_slope, end_slope))
            continue

        h = shape_height(shape, dx, radius, query.heights)
        if dy1 > h:
            if h < dy0:
                continue
            dy1 = h

        prev_blocked: bool | None = None
        for dy in range(dy0, dy1 + 1):
            x, y = octant.to_map(query.source_x, query.source_y, dx, dy)
            renders = octant.apply_edge or dy > 0

            if is_opaque(game_map, x, y):
                if apply_opaque and renders:
                    apply(game_map, x, y, dx, dy, query.source)
                    applied += 1
                if prev_blocked is False:
                    sectors.append(
                        (dx + 1, start_slope, slope(dx + 0.5, dy - 0.5))
                    )
                prev_blocked = True
            else:
                if renders:
                    apply(game_map, x, y, dx, dy, query.source)
                    applied += 1
                if prev_blocked:
                    start_slope = slope(dx - 0.5, dy - 0.5)
                prev_blocked = False

        if prev_blocked is False:
            sectors.append((dx + 1, start_slope, end_slope))

    return applied


def cast_octant_part(
    query: FovQuery,
    part: OctantPart,
    start_slope: float = 0.0,
    end_slope: float = 1.0,
    apply_edge: bool | None = None,
    apply_diagonal: bool | None = None,
) -> int:
    """
    Casts one octant wedge. ``apply_edge``/``apply_diagonal`` override the
    octant's own flags when given, for wedges whose neighbour is not cast.
    """
    octant = OCTANTS[part]
    if apply_edge is not None:
        octant = octant._replace(apply_edge=apply_edge)
    if apply_diagonal is not None:
        octant = octant._replace(apply_diagonal=apply_diagonal)
    return cast_octant(query, octant, 1, start_slope, end_slope)


def light_circle(query: FovQuery) -> int:
    """Casts all eight octants over their full slope range."""
    applied = 0
    for part in OctantPart:
        applied += cast_octant_part(query, part)
    return applied


# --- Entry Point ---
def circle(
    settings: FovSettings,
    callbacks: LightingCallbacks,
    game_map: "GameMap",
    source: Any,
    source_x: int,
    source_y: int,
    radius: int,
    heights: HeightCache | None = None,
) -> int:
    """
    Full 360 degree field of view from ``(source_x, source_y)``.

    ``source`` is an opaque tag (a colour, an entity id...) handed unchanged to
    every apply callback. ``heights`` is only consulted for
    ``Shape.CIRCLE_PRECALCULATE``; pass the same cache to successive queries to
    reuse it. Returns the number of apply callbacks issued.
    """
    query = make_query(
        settings, callbacks, game_map, source, source_x, source_y, radius, heights
    )
    func_log = log.bind(
        origin=(source_x, source_y), radius=radius, shape=settings.shape.name
    )
    start_time = time.perf_counter()

    applied = light_circle(query)

    duration_ms = (time.perf_counter() - start_time) * 1000
    func_log.debug(
        "FOV circle finished", duration_ms=f"{duration_ms:.2f}", applied=applied
    )
    return applied
