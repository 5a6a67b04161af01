# fow/world/fov_settings.py
"""
Configuration values shared by the circle and beam queries.

``FovSettings`` is an immutable value describing *how* a query behaves
(shape, corner peeking, opaque apply). The two callbacks a query needs are
bundled separately in ``LightingCallbacks`` and passed explicitly to every
call, so nothing about the caller's map is ever stored on the settings.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum, auto
from typing import TYPE_CHECKING, Any, Callable, TypeAlias

import structlog

if TYPE_CHECKING:
    from fow.world.game_map import GameMap

log = structlog.get_logger(__name__)


class Direction(IntEnum):
    """Eight-way beam directions. NORTH points towards decreasing y."""

    EAST = 0
    NORTHEAST = 1
    NORTH = 2
    NORTHWEST = 3
    WEST = 4
    SOUTHWEST = 5
    SOUTH = 6
    SOUTHEAST = 7


class Shape(Enum):
    """Boundary used to limit how far a query reaches."""

    CIRCLE_PRECALCULATE = auto()  # circle, heights memoised per radius
    SQUARE = auto()
    CIRCLE = auto()  # circle, heights computed on the fly
    OCTAGON = auto()


class CornerPeek(Enum):
    """Accepted for completeness; corner peeking is not implemented."""

    NOPEEK = auto()
    PEEK = auto()


class OpaqueApply(Enum):
    """Whether the apply callback also fires for opaque cells."""

    APPLY = auto()
    NOAPPLY = auto()


OpacityTest: TypeAlias = Callable[["GameMap", int, int], bool]
ApplyLighting: TypeAlias = Callable[["GameMap", int, int, int, int, Any], None]


def parse_enum(enum_cls: type[Enum], value: str | Enum) -> Any:
    """Resolve ``value`` (member or case-insensitive name) to a member of ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value).strip().upper()]
    except KeyError:
        valid = ", ".join(member.name.lower() for member in enum_cls)
        log.error(
            "Unknown enum value", enum=enum_cls.__name__, value=value, valid=valid
        )
        raise ValueError(
            f"Unknown {enum_cls.__name__} '{value}'. Expected one of: {valid}"
        ) from None


@dataclass(frozen=True)
class FovSettings:
    shape: Shape = Shape.CIRCLE_PRECALCULATE
    corner_peek: CornerPeek = CornerPeek.NOPEEK
    opaque_apply: OpaqueApply = OpaqueApply.APPLY

    @property
    def applies_to_opaque(self) -> bool:
        return self.opaque_apply is OpaqueApply.APPLY

    def with_shape(self, shape: Shape | str) -> "FovSettings":
        return replace(self, shape=parse_enum(Shape, shape))

    def with_opaque_apply(self, opaque_apply: OpaqueApply | str) -> "FovSettings":
        return replace(self, opaque_apply=parse_enum(OpaqueApply, opaque_apply))


@dataclass(frozen=True)
class LightingCallbacks:
    """
    The two hooks a query calls back into.

    ``is_opaque(game_map, x, y)`` must be a pure query; it can be asked about
    the same cell many times. ``apply(game_map, x, y, dx, dy, source)`` is
    invoked for every lit cell, with ``dx``/``dy`` given in octant-local
    offsets from the source.
    """

    is_opaque: OpacityTest
    apply: ApplyLighting

    def __post_init__(self) -> None:
        for name in ("is_opaque", "apply"):
            if not callable(getattr(self, name)):
                log.error("FOV callback is not callable", callback=name)
                raise TypeError(f"LightingCallbacks.{name} must be callable")

    @classmethod
    def for_game_map(cls) -> "LightingCallbacks":
        """Callbacks that read blocking flags and mark cells seen on a ``GameMap``."""
        from fow.world.game_map import apply_seen, blocks_light

        return cls(is_opaque=blocks_light, apply=apply_seen)
