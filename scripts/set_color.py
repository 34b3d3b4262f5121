#!/usr/bin/env python3
"""
Set Color — Show a static color on the RGB header (run as root).

Reads the YAML config for the hardware location and startup color; command
line levels override the configured ones.

Usage:
    sudo python scripts/set_color.py                      # configured color
    sudo python scripts/set_color.py -r 15 -g 0 -b 8      # explicit levels
    sudo python scripts/set_color.py --base-port 2e       # probe 0x2E only
    sudo python scripts/set_color.py --retries 10         # wait out a busy port
    sudo python scripts/set_color.py --detect-only        # identify the chip
    sudo python scripts/set_color.py --resume             # after suspend
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from nct6795d_led import (
    BusBusyError,
    DeviceNotFoundError,
    LedConfig,
    NCT6795DError,
    PortTransport,
    UnsupportedError,
    detect,
    get_controller,
    load_config,
)
from nct6795d_led.config import parse_ports
from nct6795d_led.constants import MAX_BRIGHTNESS

# ---------------------------------------------------------------------------
# Default config location (relative to this script)
# ---------------------------------------------------------------------------

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "led_config.yaml"
RETRY_DELAY_S = 0.05

# ---------------------------------------------------------------------------
# Terminal helpers
# ---------------------------------------------------------------------------


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        GREEN = "\033[32m"
        RED = "\033[31m"
        RESET = "\033[0m"
    else:
        BOLD = GREEN = RED = RESET = ""


def ok(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def fail(text: str) -> None:
    print(f"  {C.RED}✗{C.RESET} {text}")


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def level(text: str) -> int:
    value = int(text, 0)
    if not (0 <= value <= MAX_BRIGHTNESS):
        raise argparse.ArgumentTypeError(f"level must be 0-{MAX_BRIGHTNESS}")
    return value


def hex_port(text: str) -> int:
    try:
        (port,) = parse_ports(text)
    except UnsupportedError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return port


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Static RGB header color for NCT6795D boards")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("-r", "--red", type=level, default=None, help="red level (0-15)")
    parser.add_argument("-g", "--green", type=level, default=None, help="green level (0-15)")
    parser.add_argument("-b", "--blue", type=level, default=None, help="blue level (0-15)")
    parser.add_argument(
        "--base-port",
        type=hex_port,
        action="append",
        default=None,
        help="base port to probe, hex (repeatable; known values 4e and 2e)",
    )
    parser.add_argument("--detect-only", action="store_true", help="identify the chip and exit")
    parser.add_argument("--resume", action="store_true", help="run the resume sequence")
    parser.add_argument(
        "--retries", type=int, default=3, help="attempts when the ports are busy (default 3)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log port traffic")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> LedConfig:
    if args.config is not None:
        config = load_config(args.config)
    elif DEFAULT_CONFIG.exists():
        config = load_config(DEFAULT_CONFIG)
    else:
        config = LedConfig()

    overrides = {
        key: getattr(args, key)
        for key in ("red", "green", "blue")
        if getattr(args, key) is not None
    }
    if args.base_port:
        overrides["base_ports"] = tuple(args.base_port)
    return dataclasses.replace(config, **overrides)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def run(config: LedConfig, args: argparse.Namespace) -> None:
    if args.detect_only:
        with PortTransport(config.port_path) as transport:
            info = detect(transport, config.base_ports, config.lock_dir)
        ok(f"Found {info}")
        return

    with get_controller(config) as led:
        ok(f"Found {led.chip}")
        if args.resume:
            led.resume()
        r, g, b = config.initial_levels
        ok(f"Color R={r} G={g} B={b}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except (NCT6795DError, FileNotFoundError) as exc:
        fail(f"Config: {exc}")
        return 2

    attempts = max(1, args.retries)
    for attempt in range(1, attempts + 1):
        try:
            run(config, args)
            return 0
        except (BusBusyError, DeviceNotFoundError) as exc:
            # not found is only worth retrying when a candidate was busy
            if isinstance(exc, DeviceNotFoundError) and not exc.busy_ports:
                fail(str(exc))
                return 1
            if attempt == attempts:
                fail(f"{exc} (gave up after {attempts} attempts)")
                return 1
            time.sleep(RETRY_DELAY_S)
        except NCT6795DError as exc:
            fail(str(exc))
            return 1
    return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
