"""
Tests for the configuration module.

Covers:
* Config loading (valid YAML, defaults, hex ports)
* Validation failures (bad levels, ports, keys, file shape)
* Base port parsing shared with the command-line script
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from nct6795d_led import LedConfig, UnsupportedError, load_config
from nct6795d_led.config import parse_config, parse_ports

# ══════════════════════════════════════════════════════════════════════════
#  Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """Return a temp directory for config files."""
    return tmp_path


def write_config(path: Path, content: str) -> Path:
    """Write a YAML config file and return its path."""
    config_file = path / "led_config.yaml"
    config_file.write_text(textwrap.dedent(content))
    return config_file


VALID_CONFIG = """\
    port_path: /dev/port
    lock_dir: /run/lock
    base_ports: [0x2e, 0x4e]
    step_duration: 300
    colors:
      red: 15
      green: 4
      blue: 0
"""


# ══════════════════════════════════════════════════════════════════════════
#  Config loading — valid configs
# ══════════════════════════════════════════════════════════════════════════


class TestLoadConfigValid:
    def test_colors(self, config_dir):
        config = load_config(write_config(config_dir, VALID_CONFIG))
        assert config.initial_levels == (15, 4, 0)

    def test_hex_ports_keep_order(self, config_dir):
        config = load_config(write_config(config_dir, VALID_CONFIG))
        assert config.base_ports == (0x2E, 0x4E)

    def test_hardware_fields(self, config_dir):
        config = load_config(write_config(config_dir, VALID_CONFIG))
        assert config.port_path == "/dev/port"
        assert config.lock_dir == "/run/lock"
        assert config.step_duration == 300

    def test_empty_file_gives_defaults(self, config_dir):
        config = load_config(write_config(config_dir, ""))
        assert config == LedConfig()

    def test_defaults(self):
        config = LedConfig()
        assert config.initial_levels == (0, 0, 0)
        assert config.base_ports == (0x4E, 0x2E)
        assert config.port_path == "/dev/port"
        assert config.step_duration == 128

    def test_missing_colors_default_to_zero(self, config_dir):
        content = """\
            colors:
              blue: 9
        """
        config = load_config(write_config(config_dir, content))
        assert config.initial_levels == (0, 0, 9)

    def test_single_port_as_hex_string(self, config_dir):
        content = """\
            base_ports: "2e"
        """
        config = load_config(write_config(config_dir, content))
        assert config.base_ports == (0x2E,)

    def test_accepts_string_path(self, config_dir):
        path = write_config(config_dir, VALID_CONFIG)
        assert load_config(str(path)).red == 15


# ══════════════════════════════════════════════════════════════════════════
#  Config loading — invalid configs
# ══════════════════════════════════════════════════════════════════════════


class TestLoadConfigInvalid:
    def test_missing_file(self, config_dir):
        with pytest.raises(FileNotFoundError):
            load_config(config_dir / "nope.yaml")

    def test_not_a_mapping(self, config_dir):
        path = write_config(config_dir, "- just\n- a list\n")
        with pytest.raises(UnsupportedError, match="mapping"):
            load_config(path)

    def test_unknown_top_level_key(self, config_dir):
        path = write_config(config_dir, "colour: red\n")
        with pytest.raises(UnsupportedError, match="Unknown config keys"):
            load_config(path)

    def test_unknown_color(self, config_dir):
        content = """\
            colors:
              white: 3
        """
        with pytest.raises(UnsupportedError, match="Unknown colors"):
            load_config(write_config(config_dir, content))

    @pytest.mark.parametrize("value", ["16", "-1", "bright", "true", "2.5"])
    def test_bad_level(self, config_dir, value):
        content = f"""\
            colors:
              red: {value}
        """
        with pytest.raises(UnsupportedError, match="'red'"):
            load_config(write_config(config_dir, content))

    def test_colors_not_a_mapping(self):
        with pytest.raises(UnsupportedError, match="'colors'"):
            parse_config({"colors": [1, 2, 3]})

    @pytest.mark.parametrize("ports", [[], [0], [0x10000], ["zz"], [True]])
    def test_bad_ports(self, ports):
        with pytest.raises(UnsupportedError):
            parse_config({"base_ports": ports})

    @pytest.mark.parametrize("step", [-1, 512, "fast"])
    def test_bad_step_duration(self, step):
        with pytest.raises(UnsupportedError, match="step_duration"):
            parse_config({"step_duration": step})

    def test_empty_port_path(self):
        with pytest.raises(UnsupportedError, match="port_path"):
            parse_config({"port_path": ""})


# ══════════════════════════════════════════════════════════════════════════
#  Port parsing
# ══════════════════════════════════════════════════════════════════════════


class TestParsePorts:
    @pytest.mark.parametrize(("value", "expected"), [("4e", (0x4E,)), (0x2E, (0x2E,))])
    def test_single_port(self, value, expected):
        assert parse_ports(value) == expected

    def test_list_keeps_order(self):
        assert parse_ports(["2e", 0x4E]) == (0x2E, 0x4E)

    @pytest.mark.parametrize("value", ["0", "10000", "ffff", 0, 0x10000, "zz", None])
    def test_out_of_range_or_malformed(self, value):
        with pytest.raises(UnsupportedError):
            parse_ports(value)
