"""
I/O port transport for the NCT6795D RGB controller.

Handles raw byte access to x86 I/O ports through the ``/dev/port``
character device: seeking to offset *N* and reading or writing one byte is
an ``inb``/``outb`` on port *N*.  Knows nothing about Super-I/O sessions or
registers; that's :mod:`superio`'s job.

Typical usage (via :func:`~nct6795d_led.controller.get_controller`)::

    transport = PortTransport("/dev/port")
    transport.open()
    transport.outb(0x4E, 0x87)
    transport.close()
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from .constants import DEFAULT_PORT_PATH
from .exceptions import PortAccessError

logger = logging.getLogger(__name__)


class PortTransport:
    """Byte-wide access to I/O ports.

    Args:
        path: Port device path (``/dev/port``).  Opening it needs root.
    """

    def __init__(self, path: str = DEFAULT_PORT_PATH) -> None:
        self.path = path
        self._fh: BinaryIO | None = None

    # -- Lifecycle ----------------------------------------------------------

    def __enter__(self) -> PortTransport:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        """Open the port device.

        Raises:
            PortAccessError: If the device cannot be opened.
        """
        logger.info("Opening port device %s", self.path)
        try:
            self._fh = open(self.path, "r+b", buffering=0)
        except OSError as exc:
            raise PortAccessError(f"Cannot open {self.path}: {exc}; try sudo?") from exc

    def close(self) -> None:
        """Close the port device (safe to call multiple times)."""
        if self._fh is not None and not self._fh.closed:
            self._fh.close()
            logger.info("Port device %s closed", self.path)
        self._fh = None

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the port device is currently open."""
        return self._fh is not None and not self._fh.closed

    # -- I/O ----------------------------------------------------------------

    def inb(self, port: int) -> int:
        """Read one byte from *port*."""
        fh = self._require_open()
        try:
            fh.seek(port)
            data = fh.read(1)
        except OSError as exc:
            raise PortAccessError(f"Read from port {port:#x} failed: {exc}") from exc
        if not data or len(data) != 1:
            raise PortAccessError(f"Short read from port {port:#x}")
        logger.debug("RX %#06x: %#04x", port, data[0])
        return data[0]

    def outb(self, port: int, value: int) -> None:
        """Write the byte *value* to *port*."""
        fh = self._require_open()
        logger.debug("TX %#06x: %#04x", port, value & 0xFF)
        try:
            fh.seek(port)
            written = fh.write(bytes((value & 0xFF,)))
        except OSError as exc:
            raise PortAccessError(f"Write to port {port:#x} failed: {exc}") from exc
        if written != 1:
            raise PortAccessError(f"Short write to port {port:#x}")

    # -- Internal -----------------------------------------------------------

    def _require_open(self) -> BinaryIO:
        """Return the open port device or raise."""
        if not self.is_open:
            raise PortAccessError("Port device not open, call open() first.")
        assert self._fh is not None  # for type-checker
        return self._fh
