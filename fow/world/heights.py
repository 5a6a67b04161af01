# fow/world/heights.py
"""
Shape boundary heights.

For a forward offset ``dx`` from the source, a shape's *height* is the largest
lateral offset ``h`` such that cells with ``|dy| <= h`` are inside the shape.
Circles can have their heights precalculated once per radius and kept in a
``HeightCache`` that lives as long as the caller wants to reuse it.
"""

from __future__ import annotations

import math

import structlog

from fow.world.fov_settings import Shape

log = structlog.get_logger(__name__)


def circle_height(dx: int, radius: int) -> int:
    """``floor(sqrt(radius**2 - dx**2))`` computed exactly."""
    return math.isqrt(radius * radius - dx * dx)


def precalculate_heights(radius: int) -> tuple[int, ...]:
    """Circle heights for every ``dx`` in ``0..radius`` plus a trailing zero."""
    return tuple(circle_height(dx, radius) for dx in range(radius + 1)) + (0,)


class HeightCache:
    """
    Memoised circle heights keyed by ``radius - 1``.

    Looking up a radius that has not been seen before computes and stores its
    whole height sequence. Entries are only dropped by :meth:`reset`.
    Not thread-safe: share one instance per thread at most.
    """

    def __init__(self) -> None:
        self._heights: dict[int, tuple[int, ...]] = {}
        self._max_radius = 0

    @property
    def max_radius(self) -> int:
        """Largest radius ever requested since creation or the last reset."""
        return self._max_radius

    def __len__(self) -> int:
        return len(self._heights)

    def __contains__(self, radius: object) -> bool:
        return isinstance(radius, int) and (radius - 1) in self._heights

    def heights_for(self, radius: int) -> tuple[int, ...]:
        if radius < 1:
            raise ValueError(f"Height cache radius must be positive, got {radius}")
        if radius > self._max_radius:
            self._max_radius = radius
        key = radius - 1
        heights = self._heights.get(key)
        if heights is None:
            heights = precalculate_heights(radius)
            self._heights[key] = heights
            log.debug("Precalculated circle heights", radius=radius)
        return heights

    def height(self, dx: int, radius: int) -> int:
        return self.heights_for(radius)[abs(dx)]

    def reset(self) -> None:
        self._heights.clear()
        self._max_radius = 0


def shape_height(
    shape: Shape, dx: int, radius: int, heights: HeightCache | None = None
) -> int:
    """Height of ``shape`` at forward offset ``dx`` (``0 <= dx <= radius``)."""
    if shape is Shape.CIRCLE_PRECALCULATE:
        if heights is None:
            return circle_height(dx, radius)
        return heights.height(dx, radius)
    if shape is Shape.CIRCLE:
        return circle_height(dx, radius)
    if shape is Shape.OCTAGON:
        return (radius - dx) * 2
    return radius
