# fow/config.py
"""Configuration loading for the FOV engine and the fog-of-war tracker."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from typing import Dict as PyDict

import structlog
import yaml

from fow.world.fov_settings import (
    CornerPeek,
    Direction,
    FovSettings,
    OpaqueApply,
    Shape,
    parse_enum,
)

log = structlog.get_logger()

PROJECT_DIR = Path(__file__).parent.parent.resolve()
CONFIG_DIR = PROJECT_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


def load_yaml_config(config_path: Path, config_name: str) -> PyDict[str, Any]:
    """Loads a generic YAML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(
            f"{config_name} configuration file not found: {config_path}"
        )
    try:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f)
        if config_data is None:
            log.warning(f"{config_name} config file is empty.", path=str(config_path))
            return {}
        if not isinstance(config_data, dict):
            raise ValueError(
                f"{config_name} config must be a mapping, got {type(config_data).__name__}"
            )
        log.info(f"{config_name} config loaded", path=str(config_path))
        return config_data
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}",
            path=str(config_path),
            error=str(e),
            exc_info=True,
        )
        raise


def settings_from_mapping(fov_config: PyDict[str, Any]) -> FovSettings:
    """Builds ``FovSettings`` from the ``fov`` section of the config."""
    return FovSettings(
        shape=parse_enum(Shape, fov_config.get("shape", "circle_precalculate")),
        corner_peek=parse_enum(CornerPeek, fov_config.get("corner_peek", "nopeek")),
        opaque_apply=parse_enum(OpaqueApply, fov_config.get("opaque_apply", "apply")),
    )


@dataclass(frozen=True)
class FogConfig:
    view_radius: int = 5
    dark_fog_gray: int = 32
    view_beam: bool = False
    beam_direction: Direction = Direction.EAST
    beam_angle: float = 130.0
    # Seconds between refreshes while the viewer stands still
    refresh_interval: float = 0.5
    # Grid cells per world unit
    cells_per_unit: int = 2

    def __post_init__(self) -> None:
        if self.view_radius < 0:
            raise ValueError("view_radius must be non-negative")
        if not 0 <= self.dark_fog_gray <= 255:
            raise ValueError("dark_fog_gray must fit in a byte (0-255)")
        if self.cells_per_unit <= 0:
            raise ValueError("cells_per_unit must be positive")

    @classmethod
    def from_mapping(cls, fog_config: PyDict[str, Any]) -> "FogConfig":
        defaults = cls()
        return cls(
            view_radius=int(fog_config.get("view_radius", defaults.view_radius)),
            dark_fog_gray=int(fog_config.get("dark_fog_gray", defaults.dark_fog_gray)),
            view_beam=bool(fog_config.get("view_beam", defaults.view_beam)),
            beam_direction=parse_enum(
                Direction, fog_config.get("beam_direction", defaults.beam_direction)
            ),
            beam_angle=float(fog_config.get("beam_angle", defaults.beam_angle)),
            refresh_interval=float(
                fog_config.get("refresh_interval", defaults.refresh_interval)
            ),
            cells_per_unit=int(
                fog_config.get("cells_per_unit", defaults.cells_per_unit)
            ),
        )


@dataclass(frozen=True)
class Configs:
    settings: FovSettings = field(default_factory=FovSettings)
    fog: FogConfig = field(default_factory=FogConfig)
    log_level: int = logging.INFO


def load_configs(config_path: Path = CONFIG_FILE) -> Configs:
    """Loads the main config file into typed config objects."""
    config = load_yaml_config(config_path, "Main")
    # A bare "section:" key parses as None
    level_name = str((config.get("logging") or {}).get("level", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log.warning("Unknown log level in config, using INFO", level=level_name)
        log_level = logging.INFO
    configs = Configs(
        settings=settings_from_mapping(config.get("fov") or {}),
        fog=FogConfig.from_mapping(config.get("fog") or {}),
        log_level=log_level,
    )
    log.info(
        "Configurations loaded",
        shape=configs.settings.shape.name,
        view_radius=configs.fog.view_radius,
        view_beam=configs.fog.view_beam,
    )
    return configs
