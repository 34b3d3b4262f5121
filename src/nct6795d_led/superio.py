"""
Super-I/O indexed register bus.

A Super-I/O chip exposes its configuration space through two adjacent I/O
ports: writing a register number to the index port (``base``) and then
reading or writing the data port (``base + 1``) accesses that register.
The space is locked until the unlock key is written twice, and a logical
device ("bank") must be selected before its registers can be reached.

This module sits between the transport (raw port I/O) and the RGB
programmer.  It knows how to:

* claim the port pair exclusively (:func:`claim_region`),
* enter and leave extended function mode,
* select a logical device,
* read and write single registers.

Every register access must happen inside a session::

    bus = SuperIO(transport, 0x4E)
    with bus.session():
        bus.select(0x12)
        value = bus.read_byte(0xE0)
"""

from __future__ import annotations

import fcntl
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from .constants import (
    DEFAULT_LOCK_DIR,
    DEVICE_NAME,
    REGION_SIZE,
    SIO_CONFIG_WAIT_FOR_KEY,
    SIO_LOCK_KEY,
    SIO_REG_CONFIG_CTRL,
    SIO_REG_LDSEL,
    SIO_UNLOCK_KEY,
)
from .exceptions import BusBusyError, PortAccessError, SessionError
from .transport import PortTransport

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Port region arbitration
# ---------------------------------------------------------------------------


class RegionClaim:
    """Exclusive hold on an I/O port range, released exactly once.

    Obtained from :func:`claim_region`; usable as a context manager.
    """

    def __init__(self, port: int, size: int, fh: TextIO) -> None:
        self.port = port
        self.size = size
        self._fh: TextIO | None = fh

    def __enter__(self) -> RegionClaim:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    @property
    def held(self) -> bool:
        return self._fh is not None

    def release(self) -> None:
        """Drop the claim (safe to call multiple times)."""
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fcntl.flock(fh, fcntl.LOCK_UN)
        finally:
            fh.close()
        logger.debug("Released ports %#x-%#x", self.port, self.port + self.size - 1)


def lock_path(port: int, lock_dir: str | Path = DEFAULT_LOCK_DIR) -> Path:
    """Return the lock file guarding the range starting at *port*."""
    return Path(lock_dir) / f"{DEVICE_NAME}-{port:#06x}.lock"


def claim_region(
    port: int,
    size: int = REGION_SIZE,
    lock_dir: str | Path = DEFAULT_LOCK_DIR,
) -> RegionClaim:
    """Claim the I/O range starting at *port* without waiting.

    The claim is an ``flock`` on a per-port lock file, so it excludes other
    threads holding their own claim as well as other processes.  The OS
    drops it if the process dies.

    Raises:
        BusBusyError: If the range is already claimed.
        PortAccessError: If the lock file cannot be opened.
    """
    path = lock_path(port, lock_dir)
    try:
        fh = open(path, "a")  # noqa: SIM115 - owned by the returned claim
    except OSError as exc:
        raise PortAccessError(f"Cannot open lock file {path}: {exc}") from exc

    try:
        fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError as exc:
        fh.close()
        raise BusBusyError(f"Ports {port:#x}-{port + size - 1:#x} are busy") from exc
    except OSError as exc:
        fh.close()
        raise PortAccessError(f"Cannot lock {path}: {exc}") from exc

    logger.debug("Claimed ports %#x-%#x", port, port + size - 1)
    return RegionClaim(port, size, fh)


# ---------------------------------------------------------------------------
# Indexed bus
# ---------------------------------------------------------------------------


class SuperIO:
    """Session-based access to a Super-I/O chip at *base_port*.

    Args:
        transport: An open :class:`~nct6795d_led.transport.PortTransport`.
        base_port: Index register address; the data register is the next port.
        lock_dir: Directory holding the per-port lock files.

    A session belongs to the thread that entered it.  While it is open,
    other threads sharing the bus see it as busy.
    """

    def __init__(
        self,
        transport: PortTransport,
        base_port: int,
        lock_dir: str | Path = DEFAULT_LOCK_DIR,
    ) -> None:
        self._tx = transport
        self.base_port = base_port
        self.lock_dir = lock_dir
        self._claim: RegionClaim | None = None
        self._owner: int | None = None
        self._guard = threading.Lock()

    @property
    def in_session(self) -> bool:
        """Return ``True`` if the calling thread has a session open."""
        return self._claim is not None and self._owner == threading.get_ident()

    # -- Session ------------------------------------------------------------

    def enter(self) -> None:
        """Claim the port pair and unlock extended function mode.

        Raises:
            BusBusyError: If the ports are held elsewhere, including by another
                thread using this bus.  Nothing has been written to the chip
                in that case.
            SessionError: If the calling thread already has a session open.
        """
        if self.in_session:
            raise SessionError(f"Session on {self.base_port:#x} already open")
        if not self._guard.acquire(blocking=False):
            raise BusBusyError(f"Ports {self.base_port:#x}-{self.base_port + 1:#x} are busy")

        try:
            claim = claim_region(self.base_port, REGION_SIZE, self.lock_dir)
            try:
                self._tx.outb(self.base_port, SIO_UNLOCK_KEY)
                self._tx.outb(self.base_port, SIO_UNLOCK_KEY)
            except BaseException:
                claim.release()
                raise
        except BaseException:
            self._guard.release()
            raise
        self._claim = claim
        self._owner = threading.get_ident()
        logger.debug("Entered Super-I/O at %#x", self.base_port)

    def exit(self) -> None:
        """Lock extended function mode and release the port pair.

        A no-op unless the calling thread has a session open.  The claim is
        released even if the lock sequence cannot be written.
        """
        if not self.in_session:
            return
        claim, self._claim, self._owner = self._claim, None, None
        try:
            self._tx.outb(self.base_port, SIO_LOCK_KEY)
            self._tx.outb(self.base_port, SIO_REG_CONFIG_CTRL)
            self._tx.outb(self.base_port + 1, SIO_CONFIG_WAIT_FOR_KEY)
        finally:
            try:
                claim.release()
            finally:
                self._guard.release()
        logger.debug("Left Super-I/O at %#x", self.base_port)

    @contextmanager
    def session(self) -> Iterator[SuperIO]:
        """Run the enclosed block inside one enter/exit pair."""
        self.enter()
        try:
            yield self
        finally:
            self.exit()

    # -- Registers ----------------------------------------------------------

    def select(self, logical_device: int) -> None:
        """Select the logical device (bank) that subsequent accesses target."""
        self.write_byte(SIO_REG_LDSEL, logical_device)

    def read_byte(self, reg: int) -> int:
        """Return the value of register *reg*."""
        self._require_session()
        self._tx.outb(self.base_port, reg)
        return self._tx.inb(self.base_port + 1)

    def write_byte(self, reg: int, value: int) -> None:
        """Write *value* to register *reg*."""
        self._require_session()
        self._tx.outb(self.base_port, reg)
        self._tx.outb(self.base_port + 1, value)

    # -- Internal -----------------------------------------------------------

    def _require_session(self) -> None:
        if not self.in_session:
            raise SessionError(
                f"No Super-I/O session open on {self.base_port:#x}, call enter() first."
            )
