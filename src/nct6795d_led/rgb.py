"""
RGB bank programming: enable sequence, effect defaults and channel cells.

The chip's native model is an 8-frame animation per channel, one 4-bit
intensity per frame packed two frames per register.  A static color is
produced by writing the same nibble into every frame and configuring the
effect registers so nothing pulses, blinks, fades or inverts.

:meth:`RGBProgrammer.setup` must run once before the first
:meth:`RGBProgrammer.commit` and again after every resume from suspend,
since the enable and timing state is lost across a suspend cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import IntEnum, IntFlag

from .constants import (
    AUX_CLOCK_ENABLE,
    AUX_REG_CTRL,
    BLUE_CELL,
    CELL_SIZE,
    CONTROL_FADE_IN_OFF,
    CONTROL_HEADER_ENABLE,
    CONTROL_STEP_BIT8,
    DEFAULT_STEP_DURATION,
    EFFECT_STATIC,
    GREEN_CELL,
    LD_AUX,
    LD_RGB,
    MAX_BRIGHTNESS,
    MAX_STEP_DURATION,
    RED_CELL,
    RGB_ENABLE_MASK,
    RGB_REG_CONTROL,
    RGB_REG_EFFECT,
    RGB_REG_ENABLE,
    RGB_REG_STEP,
)
from .exceptions import UnsupportedError
from .superio import SuperIO

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


class Channel(IntEnum):
    """RGB header channels."""

    RED = 0
    GREEN = 1
    BLUE = 2

    @property
    def cell(self) -> int:
        """First of the channel's frame registers."""
        return CHANNEL_CELLS[self]

    @property
    def mask(self) -> CommitMask:
        return CommitMask(1 << self.value)


class CommitMask(IntFlag):
    """Set of channels to write in one commit."""

    NONE = 0
    RED = 1 << Channel.RED
    GREEN = 1 << Channel.GREEN
    BLUE = 1 << Channel.BLUE
    ALL = RED | GREEN | BLUE


CHANNEL_CELLS: dict[Channel, int] = {
    Channel.RED: RED_CELL,
    Channel.GREEN: GREEN_CELL,
    Channel.BLUE: BLUE_CELL,
}

# ---------------------------------------------------------------------------
# Validation & encoding
# ---------------------------------------------------------------------------


def validate_brightness(level: int, label: str = "brightness") -> None:
    if isinstance(level, bool) or not isinstance(level, int):
        raise UnsupportedError(f"{label} must be an integer, got {level!r}")
    if not (0 <= level <= MAX_BRIGHTNESS):
        raise UnsupportedError(f"{label} must be 0-{MAX_BRIGHTNESS}, got {level}")


def validate_step_duration(step_duration: int) -> None:
    if isinstance(step_duration, bool) or not isinstance(step_duration, int):
        raise UnsupportedError(f"Step duration must be an integer, got {step_duration!r}")
    if not (0 <= step_duration <= MAX_STEP_DURATION):
        raise UnsupportedError(
            f"Step duration must be 0-{MAX_STEP_DURATION}, got {step_duration}"
        )


def encode_brightness(level: int) -> int:
    """Return the frame byte for *level*: the same nibble in both halves."""
    validate_brightness(level)
    return (level << 4) | level


def effect_defaults(step_duration: int = DEFAULT_STEP_DURATION) -> dict[int, int]:
    """Return ``{register: value}`` for a flat, non-animated color."""
    validate_step_duration(step_duration)
    control = (
        CONTROL_FADE_IN_OFF | CONTROL_HEADER_ENABLE | ((step_duration >> 8) & CONTROL_STEP_BIT8)
    )
    return {
        RGB_REG_EFFECT: EFFECT_STATIC,
        RGB_REG_STEP: step_duration & 0xFF,
        RGB_REG_CONTROL: control,
    }


# ---------------------------------------------------------------------------
# Programmer
# ---------------------------------------------------------------------------


class RGBProgrammer:
    """Programs the RGB bank of one chip.

    Args:
        bus: The chip's :class:`~nct6795d_led.superio.SuperIO` bus.
            The programmer opens its own session for every call.
        step_duration: Frame step duration (0-511).  Irrelevant for a
            static color but written so the effect registers hold a known
            state.
    """

    def __init__(self, bus: SuperIO, step_duration: int = DEFAULT_STEP_DURATION) -> None:
        self._bus = bus
        self._defaults = effect_defaults(step_duration)
        self.step_duration = step_duration

    def setup(self) -> None:
        """Enable the RGB block and load the static effect defaults.

        Only registers whose bits are not already in place are written, and
        bits outside the owned masks are preserved.
        """
        bus = self._bus
        with bus.session():
            # Clock for the LED block; without it no effect shows at all
            bus.select(LD_AUX)
            self._set_bits(AUX_REG_CTRL, AUX_CLOCK_ENABLE)

            bus.select(LD_RGB)
            self._set_bits(RGB_REG_ENABLE, RGB_ENABLE_MASK)

            for reg, value in self._defaults.items():
                self._write_if_changed(reg, value)

        logger.debug("RGB bank set up on %#x", bus.base_port)

    def commit(self, levels: Mapping[Channel, int], mask: CommitMask = CommitMask.ALL) -> None:
        """Write the levels of the channels in *mask*.

        Args:
            levels: Brightness (0-15) per channel.  Only channels in *mask*
                need to be present.
            mask: Channels to update; the others keep their hardware value.

        Raises:
            UnsupportedError: If a level is missing or out of range.  No I/O
                happens in that case.
        """
        frames = {}
        for channel in Channel:
            if not mask & channel.mask:
                continue
            if channel not in levels:
                raise UnsupportedError(f"No brightness given for {channel.name.lower()}")
            validate_brightness(levels[channel], f"{channel.name.lower()} brightness")
            frames[channel] = encode_brightness(levels[channel])

        if not frames:
            return

        bus = self._bus
        with bus.session():
            bus.select(LD_RGB)
            for channel, frame in frames.items():
                cell = channel.cell
                for offset in range(CELL_SIZE):
                    bus.write_byte(cell + offset, frame)

        logger.debug(
            "Committed %s",
            " ".join(f"{ch.name[0]}={levels[ch]}" for ch in frames),
        )

    # -- Internal -----------------------------------------------------------

    def _set_bits(self, reg: int, bits: int) -> None:
        value = self._bus.read_byte(reg)
        if value & bits != bits:
            self._bus.write_byte(reg, value | bits)

    def _write_if_changed(self, reg: int, value: int) -> None:
        if self._bus.read_byte(reg) != value:
            self._bus.write_byte(reg, value)
