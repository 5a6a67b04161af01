"""Grid, settings and the shadowcasting queries (``circle`` and ``beam``)."""

from fow.world.beam import beam, direction_from_forward
from fow.world.fov import circle
from fow.world.fov_settings import (
    CornerPeek,
    Direction,
    FovSettings,
    LightingCallbacks,
    OpaqueApply,
    Shape,
)
from fow.world.game_map import GameMap
from fow.world.heights import HeightCache

__all__ = [
    "CornerPeek",
    "Direction",
    "FovSettings",
    "GameMap",
    "HeightCache",
    "LightingCallbacks",
    "OpaqueApply",
    "Shape",
    "beam",
    "circle",
    "direction_from_forward",
]
