"""
Configuration for the RGB header: startup color and hardware location.

Loaded from a YAML file so the same settings serve the command-line script
and any service wrapping the library::

    from nct6795d_led.config import load_config
    from nct6795d_led.controller import get_controller

    config = load_config("config/led_config.yaml")
    with get_controller(config) as led:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_BASE_PORTS,
    DEFAULT_LOCK_DIR,
    DEFAULT_PORT_PATH,
    DEFAULT_STEP_DURATION,
    MAX_BRIGHTNESS,
    MAX_STEP_DURATION,
)
from .exceptions import UnsupportedError

logger = logging.getLogger(__name__)

_COLOR_KEYS = ("red", "green", "blue")
_MAX_PORT = 0xFFFF

# ---------------------------------------------------------------------------
# Configuration data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedConfig:
    """Validated controller configuration.  Every field has a default."""

    red: int = 0
    green: int = 0
    blue: int = 0
    base_ports: tuple[int, ...] = DEFAULT_BASE_PORTS
    port_path: str = DEFAULT_PORT_PATH
    lock_dir: str = DEFAULT_LOCK_DIR
    step_duration: int = DEFAULT_STEP_DURATION

    @property
    def initial_levels(self) -> tuple[int, int, int]:
        """Startup ``(red, green, blue)`` levels."""
        return (self.red, self.green, self.blue)


# ---------------------------------------------------------------------------
# Config loading & validation
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> LedConfig:
    """Load and validate a controller configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`LedConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        UnsupportedError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise UnsupportedError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    config = parse_config(raw)
    logger.debug("Loaded %s: %s", path, config)
    return config


def parse_config(raw: dict) -> LedConfig:
    """Validate an already-parsed mapping and build a :class:`LedConfig`."""
    unknown = set(raw) - {"colors", "base_ports", "port_path", "lock_dir", "step_duration"}
    if unknown:
        raise UnsupportedError(f"Unknown config keys: {sorted(unknown)}")

    # -- Colors -------------------------------------------------------------
    colors = raw.get("colors", {})
    if colors is None:
        colors = {}
    if not isinstance(colors, dict):
        raise UnsupportedError("'colors' must be a mapping of red/green/blue levels")
    bad = set(colors) - set(_COLOR_KEYS)
    if bad:
        raise UnsupportedError(f"Unknown colors: {sorted(bad)}; expected {list(_COLOR_KEYS)}")
    levels = {key: _require_level(colors, key) for key in _COLOR_KEYS}

    # -- Hardware -----------------------------------------------------------
    base_ports = parse_ports(raw.get("base_ports", list(DEFAULT_BASE_PORTS)))
    port_path = _require_str(raw, "port_path", DEFAULT_PORT_PATH)
    lock_dir = _require_str(raw, "lock_dir", DEFAULT_LOCK_DIR)

    step_duration = raw.get("step_duration", DEFAULT_STEP_DURATION)
    if (
        isinstance(step_duration, bool)
        or not isinstance(step_duration, int)
        or not (0 <= step_duration <= MAX_STEP_DURATION)
    ):
        raise UnsupportedError(
            f"'step_duration' must be an integer 0-{MAX_STEP_DURATION}, got {step_duration!r}"
        )

    return LedConfig(
        base_ports=base_ports,
        port_path=port_path,
        lock_dir=lock_dir,
        step_duration=step_duration,
        **levels,
    )


def _require_level(colors: dict, key: str) -> int:
    val = colors.get(key, 0)
    if isinstance(val, bool) or not isinstance(val, int) or not (0 <= val <= MAX_BRIGHTNESS):
        raise UnsupportedError(f"'{key}' must be an integer 0-{MAX_BRIGHTNESS}, got {val!r}")
    return val


def _require_str(raw: dict, key: str, default: str) -> str:
    val = raw.get(key, default)
    if not isinstance(val, str) or not val:
        raise UnsupportedError(f"'{key}' must be a non-empty string, got {val!r}")
    return val


def parse_ports(value: object) -> tuple[int, ...]:
    """Accept a port or a list of ports, as ints or hex strings (``"4e"``)."""
    items = value if isinstance(value, list) else [value]
    if not items:
        raise UnsupportedError("'base_ports' must list at least one port")

    ports = []
    for item in items:
        if isinstance(item, str):
            try:
                item = int(item, 16)
            except ValueError as exc:
                raise UnsupportedError(f"Invalid hex port {item!r}") from exc
        if isinstance(item, bool) or not isinstance(item, int) or not (0 < item < _MAX_PORT):
            raise UnsupportedError(f"Base port must be 0x1-0xfffe, got {item!r}")
        ports.append(item)
    return tuple(ports)
