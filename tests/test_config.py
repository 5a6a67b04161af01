import logging

import pytest
import yaml

from fow.config import (
    CONFIG_FILE,
    Configs,
    FogConfig,
    load_configs,
    load_yaml_config,
    settings_from_mapping,
)
from fow.world.fov_settings import Direction, OpaqueApply, Shape


def _write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_load_default_configs():
    configs = load_configs(CONFIG_FILE)
    assert isinstance(configs, Configs)
    assert configs.settings.shape is Shape.CIRCLE_PRECALCULATE
    assert configs.fog.view_radius == 5
    assert configs.fog.beam_direction is Direction.EAST
    assert configs.log_level == logging.INFO


def test_load_custom_configs(tmp_path):
    path = _write_yaml(
        tmp_path / "config.yaml",
        {
            "fov": {"shape": "Octagon", "opaque_apply": "noapply"},
            "fog": {"view_radius": 8, "view_beam": True, "beam_direction": "north"},
            "logging": {"level": "debug"},
        },
    )
    configs = load_configs(path)
    assert configs.settings.shape is Shape.OCTAGON
    assert configs.settings.opaque_apply is OpaqueApply.NOAPPLY
    assert configs.fog.view_radius == 8
    assert configs.fog.view_beam is True
    assert configs.fog.beam_direction is Direction.NORTH
    assert configs.log_level == logging.DEBUG


def test_unknown_log_level_falls_back_to_info(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {"logging": {"level": "chatty"}})
    assert load_configs(path).log_level == logging.INFO


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "nope.yaml", "Main")


def test_empty_config_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_yaml_config(path, "Main") == {}
    configs = load_configs(path)
    assert configs.fog == FogConfig()


def test_non_mapping_config_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_yaml_config(path, "Main")


def test_malformed_yaml_propagates(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("fov: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        load_yaml_config(path, "Main")


def test_unknown_shape_is_rejected():
    with pytest.raises(ValueError):
        settings_from_mapping({"shape": "hexagon"})


@pytest.mark.parametrize(
    "overrides",
    [{"view_radius": -1}, {"dark_fog_gray": 300}, {"cells_per_unit": 0}],
)
def test_fog_config_validation(overrides):
    with pytest.raises(ValueError):
        FogConfig(**overrides)


def test_fog_config_from_partial_mapping():
    fog = FogConfig.from_mapping({"beam_angle": 60, "dark_fog_gray": "48"})
    assert fog.beam_angle == 60.0
    assert fog.dark_fog_gray == 48
    assert fog.view_radius == FogConfig().view_radius


def test_bare_section_keys_use_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("fov:\nfog:\nlogging:\n")
    configs = load_configs(path)
    assert configs.settings.shape is Shape.CIRCLE_PRECALCULATE
    assert configs.fog == FogConfig()
    assert configs.log_level == logging.INFO
