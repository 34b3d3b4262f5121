"""
Chip detection: find which candidate base port hosts a supported chip.

Each candidate is probed in its own session; a busy or unrecognised port
is skipped and the next one tried.  There is no scanning beyond the list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .constants import (
    DEFAULT_BASE_PORTS,
    DEFAULT_LOCK_DIR,
    DEVID_MASK,
    DEVID_NCT6795D,
    DEVID_NCT6797D,
    SIO_REG_DEVID,
)
from .exceptions import BusBusyError, DeviceNotFoundError
from .superio import SuperIO
from .transport import PortTransport

logger = logging.getLogger(__name__)


class ChipVariant(Enum):
    """Supported chips, keyed by their masked device ID."""

    NCT6795D = DEVID_NCT6795D
    NCT6797D = DEVID_NCT6797D


@dataclass(frozen=True)
class ChipInfo:
    """Result of a successful probe."""

    base_port: int
    variant: ChipVariant
    device_id: int

    def __str__(self) -> str:
        return f"{self.variant.name} (id {self.device_id:#06x}) at {self.base_port:#x}"


def read_device_id(bus: SuperIO) -> int:
    """Read the 16-bit device ID; *bus* must be in a session."""
    high = bus.read_byte(SIO_REG_DEVID)
    low = bus.read_byte(SIO_REG_DEVID + 1)
    return (high << 8) | low


def classify(device_id: int) -> ChipVariant | None:
    """Return the variant matching *device_id*, ignoring the revision bits."""
    try:
        return ChipVariant(device_id & DEVID_MASK)
    except ValueError:
        return None


def probe(
    transport: PortTransport,
    port: int,
    lock_dir: str | Path = DEFAULT_LOCK_DIR,
) -> ChipInfo | None:
    """Identify the chip at *port*, or return ``None``.

    Raises:
        PortAccessError: If the port device itself fails.
    """
    try:
        return _identify(transport, port, lock_dir)
    except BusBusyError:
        logger.warning("Port %#x is busy, skipping", port)
        return None


def _identify(transport: PortTransport, port: int, lock_dir: str | Path) -> ChipInfo | None:
    bus = SuperIO(transport, port, lock_dir)
    with bus.session():
        device_id = read_device_id(bus)

    variant = classify(device_id)
    if variant is None:
        logger.debug("Port %#x: unknown device id %#06x", port, device_id)
        return None
    return ChipInfo(port, variant, device_id)


def detect(
    transport: PortTransport,
    candidate_ports: Iterable[int] = DEFAULT_BASE_PORTS,
    lock_dir: str | Path = DEFAULT_LOCK_DIR,
) -> ChipInfo:
    """Probe *candidate_ports* in order and return the first supported chip.

    Raises:
        DeviceNotFoundError: If no candidate matches.  Its ``busy_ports``
            names the candidates that were skipped as busy.
    """
    tried = []
    busy = []
    for port in candidate_ports:
        tried.append(port)
        try:
            info = _identify(transport, port, lock_dir)
        except BusBusyError:
            logger.warning("Port %#x is busy, skipping", port)
            busy.append(port)
            continue
        if info is not None:
            logger.info("Found %s", info)
            return info

    ports = ", ".join(f"{p:#x}" for p in tried) or "none"
    message = f"No NCT6795D/NCT6797D found (tried ports: {ports})"
    if busy:
        message += "; busy: " + ", ".join(f"{p:#x}" for p in busy)
    raise DeviceNotFoundError(message, busy_ports=tuple(busy))
