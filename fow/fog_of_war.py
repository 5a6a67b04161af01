# fow/fog_of_war.py
"""
Fog-of-war tracker.

Owns the blocking map, the FOV settings and height cache, and an RGBA mask
that a renderer can upload as a texture. Each refresh marks the viewer's cell,
runs a circle or beam query, then sweeps the map into the mask (clearing the
per-query ``seen`` flags as it goes).
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

import numpy as np
import structlog

from engine.render_fog import mark_source_pixel, new_fog_mask, sweep_fog_mask
from fow.config import FogConfig
from fow.world.beam import beam, direction_from_forward
from fow.world.fov import circle
from fow.world.fov_settings import Direction, FovSettings, LightingCallbacks
from fow.world.game_map import GameMap
from fow.world.heights import HeightCache

log = structlog.get_logger()

WHITE = (255, 255, 255, 255)


class FogOfWar:
    def __init__(
        self,
        config: Optional[FogConfig] = None,
        settings: Optional[FovSettings] = None,
        source: Any = WHITE,
    ) -> None:
        self.config = config or FogConfig()
        self.settings = settings or FovSettings()
        self.source = source
        self.callbacks = LightingCallbacks.for_game_map()
        self.heights = HeightCache()
        self.beam_direction: Direction = self.config.beam_direction

        self.game_map: Optional[GameMap] = None
        self.mask: Optional[np.ndarray] = None
        self._last_grid: Optional[Tuple[int, int]] = None
        self._last_refresh_time: float = 0.0

    # --- Lifecycle ---
    def init_map(self, width: int, height: int, mask_buffer: bytes) -> GameMap:
        """Builds the blocking map for a newly loaded level."""
        self.game_map = GameMap.from_packed_bits(width, height, mask_buffer)
        return self.game_map

    def start(self) -> np.ndarray:
        """Allocates an all-dark mask. ``init_map`` must have been called."""
        game_map = self._require_map()
        self.mask = new_fog_mask(game_map.width, game_map.height)
        log.info("Fog of war started", width=game_map.width, height=game_map.height)
        return self.mask

    def end(self) -> None:
        self.mask = None
        log.info("Fog of war ended")

    @property
    def active(self) -> bool:
        return self.game_map is not None and self.mask is not None

    # --- Per-frame ---
    def world_to_grid(self, world_x: float, world_z: float) -> Tuple[int, int]:
        scale = self.config.cells_per_unit
        return math.floor(world_x * scale), math.floor(world_z * scale)

    def needs_refresh(self, grid_x: int, grid_y: int, now: float) -> bool:
        if (grid_x, grid_y) != self._last_grid:
            return True
        return now - self._last_refresh_time > self.config.refresh_interval

    def update(
        self,
        world_x: float,
        world_z: float,
        forward: Optional[Tuple[float, float]] = None,
        now: float = 0.0,
    ) -> bool:
        """Refreshes the mask if the viewer moved or the interval elapsed."""
        if not self.active:
            return False
        grid_x, grid_y = self.world_to_grid(world_x, world_z)
        if not self.needs_refresh(grid_x, grid_y, now):
            return False
        self._last_grid = (grid_x, grid_y)
        self._last_refresh_time = now
        self.refresh(grid_x, grid_y, forward)
        return True

    def refresh(
        self,
        grid_x: int,
        grid_y: int,
        forward: Optional[Tuple[float, float]] = None,
    ) -> int:
        """
        Runs one query from ``(grid_x, grid_y)`` and sweeps it into the mask.

        Returns the number of cells seen this refresh.
        """
        game_map = self._require_map()
        if self.mask is None:
            self.start()
        radius = self.config.view_radius

        game_map.mark_seen(grid_x, grid_y)
        if self.config.view_beam:
            if forward is not None:
                self.beam_direction = direction_from_forward(
                    forward[0], forward[1], fallback=self.beam_direction
                )
            beam(
                self.settings,
                self.callbacks,
                game_map,
                self.source,
                grid_x,
                grid_y,
                radius,
                self.beam_direction,
                self.config.beam_angle,
                heights=self.heights,
            )
        else:
            circle(
                self.settings,
                self.callbacks,
                game_map,
                self.source,
                grid_x,
                grid_y,
                radius,
                heights=self.heights,
            )

        seen_count = sweep_fog_mask(
            game_map.seen, game_map.remembered, self.mask, self.config.dark_fog_gray
        )
        mark_source_pixel(self.mask, grid_x, grid_y)
        log.debug(
            "Fog refreshed",
            origin=(grid_x, grid_y),
            seen=seen_count,
            beam=self.config.view_beam,
        )
        return seen_count

    def _require_map(self) -> GameMap:
        if self.game_map is None:
            log.error("Fog of war used before init_map")
            raise RuntimeError("FogOfWar.init_map must be called first")
        return self.game_map
