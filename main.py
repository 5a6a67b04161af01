# main.py
"""Command-line demo: compute a field of view on a map and print it."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from fow.config import CONFIG_FILE, Configs, load_configs
from fow.world.beam import beam
from fow.world.bitmap import pack_blocking_bits
from fow.world.fov import circle
from fow.world.fov_settings import Direction, LightingCallbacks, Shape, parse_enum
from fow.world.game_map import GameMap
from fow.world.heights import HeightCache
from utils.logging_utils import setup_logging

log = structlog.get_logger()

DEMO_ROWS = (
    "####################",
    "#..................#",
    "#....#.......##....#",
    "#....#.............#",
    "#..........#.......#",
    "#....###...........#",
    "#..................#",
    "####################",
)


# --- Map Loading ---
def load_map(args: argparse.Namespace) -> GameMap:
    if args.bitmap:
        if args.width is None or args.height is None:
            raise ValueError("--bitmap requires --width and --height")
        buffer = Path(args.bitmap).read_bytes()
        return GameMap.from_packed_bits(args.width, args.height, buffer)
    if args.map:
        with Path(args.map).open("r") as f:
            return GameMap.from_rows(f)
    return GameMap.from_rows(DEMO_ROWS)


# --- Map Printing ---
def render_map(game_map: GameMap, source_x: int, source_y: int) -> str:
    """``@`` source, ``#``/``.`` seen, ``+``/``,`` remembered, blank unseen."""
    lines = []
    for y in range(game_map.height):
        row = []
        for x in range(game_map.width):
            blocking = game_map.is_blocking(x, y)
            if x == source_x and y == source_y:
                row.append("@")
            elif game_map.is_seen(x, y):
                row.append("#" if blocking else ".")
            elif game_map.is_remembered(x, y):
                row.append("+" if blocking else ",")
            else:
                row.append(" ")
        lines.append("".join(row).rstrip())
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute shadowcast field of view on a tile map."
    )
    parser.add_argument("--config", type=Path, default=CONFIG_FILE, help="YAML config file")
    parser.add_argument("--map", help="Text map file ('#' blocks sight)")
    parser.add_argument("--bitmap", help="Packed blocking bitmap file")
    parser.add_argument("--width", type=int, help="Bitmap width in cells")
    parser.add_argument("--height", type=int, help="Bitmap height in cells")
    parser.add_argument("--write-bitmap", help="Write the loaded map as a packed bitmap")
    parser.add_argument("-x", type=int, default=2, help="Source x")
    parser.add_argument("-y", type=int, default=2, help="Source y")
    parser.add_argument("--radius", type=int, help="Radius (default: fog.view_radius)")
    parser.add_argument(
        "--shape",
        choices=[shape.name.lower() for shape in Shape],
        help="Override fov.shape",
    )
    parser.add_argument("--beam", action="store_true", help="Cast a beam instead of a circle")
    parser.add_argument(
        "--direction",
        choices=[direction.name.lower() for direction in Direction],
        help="Beam direction (default: fog.beam_direction)",
    )
    parser.add_argument("--angle", type=float, help="Beam angle in degrees")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: from config)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(args: argparse.Namespace, configs: Configs) -> str:
    """Runs the requested query and returns the rendered map."""
    game_map = load_map(args)
    if args.write_bitmap:
        Path(args.write_bitmap).write_bytes(pack_blocking_bits(game_map.blocking))
        log.info("Bitmap written", path=args.write_bitmap, width=game_map.width, height=game_map.height)

    settings = configs.settings
    if args.shape:
        settings = settings.with_shape(args.shape)
    radius = args.radius if args.radius is not None else configs.fog.view_radius
    callbacks = LightingCallbacks.for_game_map()
    heights = HeightCache()

    game_map.mark_seen(args.x, args.y)
    if args.beam:
        direction = (
            parse_enum(Direction, args.direction)
            if args.direction
            else configs.fog.beam_direction
        )
        angle = args.angle if args.angle is not None else configs.fog.beam_angle
        applied = beam(
            settings, callbacks, game_map, "demo", args.x, args.y, radius,
            direction, angle, heights=heights,
        )
    else:
        applied = circle(
            settings, callbacks, game_map, "demo", args.x, args.y, radius,
            heights=heights,
        )
    log.info("Query finished", applied=applied, seen=len(game_map.seen_cells()))
    return render_map(game_map, args.x, args.y)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # Provisional until the config provides the level
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, cache_loggers=False)
    try:
        configs = load_configs(args.config)
    except Exception as e:
        log.error("Failed to load configuration", path=str(args.config), error=str(e))
        return 1

    level = (
        logging.DEBUG
        if args.verbose
        else args.log_level or configs.log_level
    )
    setup_logging(level)

    try:
        print(run(args, configs))
    except (OSError, ValueError) as e:
        log.error("FOV demo failed", error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
