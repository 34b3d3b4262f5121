"""Shared pytest fixtures for NCT6795D tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from nct6795d_led.superio import SuperIO
from nct6795d_led.transport import PortTransport


class FakeChip:
    """Register-level model of a Super-I/O chip behind an index/data pair.

    Implements the parts of the NCT6795D configuration space the library
    touches: the double ``0x87`` unlock key, the ``0xAA`` lock key, the
    logical device select register and per-device registers.  Registers
    below ``0x30`` are global, the rest belong to the selected device.

    Every register write made while unlocked is recorded in
    :attr:`writes` as ``(logical_device, register, value)``.
    """

    def __init__(self, device_id: int = 0xD352) -> None:
        self.unlocked = False
        self.index = 0
        self.ld = 0
        self._keys = 0
        self.globals: dict[int, int] = {0x20: device_id >> 8, 0x21: device_id & 0xFF}
        self.banks: dict[tuple[int, int], int] = {}
        self.writes: list[tuple[int, int, int]] = []
        self.enter_count = 0
        self.exit_count = 0

    # -- Helpers for tests --------------------------------------------------

    def reg(self, reg: int, ld: int | None = None) -> int:
        """Return the current value of *reg* (in logical device *ld*)."""
        if reg < 0x30:
            return self.globals.get(reg, 0)
        return self.banks.get((ld, reg), 0)

    def set_reg(self, reg: int, value: int, ld: int | None = None) -> None:
        if reg < 0x30:
            self.globals[reg] = value
        else:
            self.banks[(ld, reg)] = value

    def registers_written(self, ld: int | None = None) -> list[int]:
        """Registers written, in order, optionally limited to one device."""
        return [r for (d, r, _) in self.writes if ld is None or d == ld]

    # -- Port side ----------------------------------------------------------

    def write_index(self, value: int) -> None:
        if not self.unlocked:
            self._keys = self._keys + 1 if value == 0x87 else 0
            if self._keys == 2:
                self.unlocked = True
                self._keys = 0
                self.enter_count += 1
            return
        if value == 0xAA:
            self.unlocked = False
            self.exit_count += 1
            return
        self.index = value

    def write_data(self, value: int) -> None:
        if not self.unlocked:
            return
        self.writes.append((self.ld, self.index, value))
        if self.index == 0x07:
            self.ld = value
        else:
            self.set_reg(self.index, value, self.ld)

    def read_data(self) -> int:
        if not self.unlocked:
            return 0xFF
        return self.reg(self.index, self.ld)


class FakePortFile:
    """Stand-in for the ``/dev/port`` file object.

    Implements ``seek``, ``read``, ``write``, ``close`` and ``closed``.
    Chips are attached by base port; every access is logged in :attr:`io`
    as ``("in" | "out", port, value)``.  Unbacked ports read ``0xFF``.
    """

    def __init__(self) -> None:
        self.chips: dict[int, FakeChip] = {}
        self.io: list[tuple[str, int, int]] = []
        self.closed = False
        self._pos = 0
        self.fail_writes = False

    def attach(self, base_port: int, chip: FakeChip) -> FakeChip:
        self.chips[base_port] = chip
        return chip

    def outs(self) -> list[tuple[int, int]]:
        return [(port, value) for (kind, port, value) in self.io if kind == "out"]

    # -- File interface -----------------------------------------------------

    def seek(self, pos: int, whence: int = 0) -> int:
        self._pos = pos
        return pos

    def read(self, size: int = 1) -> bytes:
        port = self._pos
        if port in self.chips:
            value = 0xFF  # index register reads are meaningless
        elif port - 1 in self.chips:
            value = self.chips[port - 1].read_data()
        else:
            value = 0xFF
        self.io.append(("in", port, value))
        self._pos += 1
        return bytes((value,))

    def write(self, data: bytes) -> int:
        if self.fail_writes:
            raise OSError(5, "Input/output error")
        port = self._pos
        value = data[0]
        self.io.append(("out", port, value))
        if port in self.chips:
            self.chips[port].write_index(value)
        elif port - 1 in self.chips:
            self.chips[port - 1].write_data(value)
        self._pos += 1
        return len(data)

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_port() -> FakePortFile:
    """Return a fake port device with an NCT6795D at 0x4E."""
    port = FakePortFile()
    port.attach(0x4E, FakeChip(0xD352))
    return port


@pytest.fixture()
def chip(fake_port: FakePortFile) -> FakeChip:
    """Return the chip attached at 0x4E."""
    return fake_port.chips[0x4E]


@pytest.fixture()
def lock_dir(tmp_path):
    """Return a writable directory for port lock files."""
    path = tmp_path / "lock"
    path.mkdir()
    return path


@pytest.fixture()
def transport(fake_port: FakePortFile) -> PortTransport:
    """Return an open ``PortTransport`` wired to the fake port device."""
    with patch("nct6795d_led.transport.open", create=True, return_value=fake_port):
        tx = PortTransport("/dev/fake")
        tx.open()
        return tx


@pytest.fixture()
def bus(transport: PortTransport, lock_dir) -> SuperIO:
    """Return a ``SuperIO`` bus on the chip at 0x4E."""
    return SuperIO(transport, 0x4E, lock_dir)
