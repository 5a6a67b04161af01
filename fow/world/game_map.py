# fow/world/game_map.py
from typing import Any, Iterable, Set, Tuple

import numpy as np
import structlog

from fow.world.bitmap import unpack_blocking_bits

log = structlog.get_logger()

BLOCKING_CHAR = "#"


class GameMap:
    def __init__(self, width: int, height: int):
        """
        Initializes an open map: nothing blocks, nothing is seen or remembered.
        """
        if width <= 0 or height <= 0:
            log.error("Invalid map dimensions", width=width, height=height)
            raise ValueError("Map width and height must be positive integers.")
        self._width = width
        self._height = height
        log.info("Initializing GameMap", width=self._width, height=self._height)

        # Row-major (y, x) arrays, C order for numba
        self.blocking: np.ndarray = np.zeros((height, width), dtype=bool, order="C")
        # Visible during the current query; cleared by the caller between queries
        self.seen: np.ndarray = np.zeros((height, width), dtype=bool, order="C")
        # Visible in any query since creation or the last reset()
        self.remembered: np.ndarray = np.zeros(
            (height, width), dtype=bool, order="C"
        )
        log.debug("GameMap arrays initialized", shape=(height, width))

    @classmethod
    def from_packed_bits(
        cls, width: int, height: int, buffer: bytes | bytearray
    ) -> "GameMap":
        """Builds a map whose blocking cells come from a packed bitmap."""
        game_map = cls(width, height)
        game_map.blocking[:, :] = unpack_blocking_bits(buffer, width, height)
        log.info(
            "Blocking bitmap loaded",
            blocking_count=int(np.count_nonzero(game_map.blocking)),
        )
        return game_map

    @classmethod
    def from_rows(cls, rows: Iterable[str]) -> "GameMap":
        """Builds a map from text rows where ``#`` marks a blocking cell."""
        lines = [row.rstrip("\n") for row in rows]
        lines = [row for row in lines if row]
        if not lines:
            raise ValueError("Map text contains no rows.")
        width = max(len(row) for row in lines)
        game_map = cls(width, len(lines))
        for y, row in enumerate(lines):
            for x, char in enumerate(row):
                if char == BLOCKING_CHAR:
                    game_map.blocking[y, x] = True
        return game_map

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def in_bounds(self, x: int, y: int) -> bool:
        """Checks if the given coordinates are within the map boundaries."""
        return 0 <= x < self._width and 0 <= y < self._height

    def set_blocking(self, x: int, y: int, is_blocking: bool) -> None:
        if self.in_bounds(x, y):
            self.blocking[y, x] = is_blocking

    def mark_seen(self, x: int, y: int) -> None:
        """Marks (x, y) as seen this query and remembered for good."""
        if self.in_bounds(x, y):
            self.seen[y, x] = True
            self.remembered[y, x] = True

    def clear_seen(self, x: int, y: int) -> None:
        if self.in_bounds(x, y):
            self.seen[y, x] = False

    def clear_all_seen(self) -> None:
        self.seen.fill(False)

    def reset(self) -> None:
        """Forgets everything seen and remembered. Blocking cells are kept."""
        self.seen.fill(False)
        self.remembered.fill(False)
        log.debug("GameMap visibility reset")

    def is_seen(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return False
        return bool(self.seen[y, x])

    def is_remembered(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return False
        return bool(self.remembered[y, x])

    def is_blocking(self, x: int, y: int) -> bool:
        """Checks if (x, y) blocks line of sight. Off-map cells always do."""
        if not self.in_bounds(x, y):
            return True
        return bool(self.blocking[y, x])

    def seen_cells(self) -> Set[Tuple[int, int]]:
        ys, xs = np.nonzero(self.seen)
        return {(int(x), int(y)) for x, y in zip(xs, ys)}

    def remembered_cells(self) -> Set[Tuple[int, int]]:
        ys, xs = np.nonzero(self.remembered)
        return {(int(x), int(y)) for x, y in zip(xs, ys)}


# --- Default FOV callbacks ---
def blocks_light(game_map: GameMap, x: int, y: int) -> bool:
    return game_map.is_blocking(x, y)


def apply_seen(
    game_map: GameMap, x: int, y: int, dx: int, dy: int, source: Any
) -> None:
    game_map.mark_seen(x, y)
