"""
NCT6795D RGB header controller.

Clean Python API for setting a static RGB header color on MSI boards built
around the Nuvoton NCT6795D / NCT6797D Super-I/O chip.

Hardware details:
    - Access: ``/dev/port``, index/data port pair at 0x4E or 0x2E
    - Brightness: 4 bits per channel (0-15), red, green and blue
    - Every change opens and closes its own Super-I/O session
"""

from __future__ import annotations

import logging

from .config import LedConfig
from .constants import DEFAULT_STEP_DURATION, DEVICE_NAME, MAX_BRIGHTNESS
from .detect import ChipInfo, detect
from .exceptions import NCT6795DError, UnsupportedError
from .rgb import Channel, CommitMask, RGBProgrammer, validate_brightness
from .superio import SuperIO
from .transport import PortTransport

logger = logging.getLogger(__name__)

_RESUME_PASSES = 2


class LightController:
    """Per-channel brightness state of one RGB header.

    The host light layer calls :meth:`set_brightness` for each channel and
    :meth:`suspend` / :meth:`resume` around power transitions.  Use as a
    context manager to close the owned transport::

        with get_controller(LedConfig(red=15)) as led:
            led.set_brightness(Channel.BLUE, 8)

    Args:
        bus: Super-I/O bus of a detected chip.
        initial: Startup ``(red, green, blue)`` levels, shown immediately.
        step_duration: Passed to :class:`~nct6795d_led.rgb.RGBProgrammer`.
        chip: Detection result, kept for reporting.
        transport: Transport closed by :meth:`close`, if the controller owns it.
    """

    max_brightness = MAX_BRIGHTNESS

    def __init__(
        self,
        bus: SuperIO,
        initial: tuple[int, int, int] = (0, 0, 0),
        step_duration: int = DEFAULT_STEP_DURATION,
        chip: ChipInfo | None = None,
        transport: PortTransport | None = None,
    ) -> None:
        if len(initial) != len(Channel):
            raise UnsupportedError(f"Expected {len(Channel)} initial levels, got {len(initial)}")
        for channel, level in zip(Channel, initial):
            validate_brightness(level, f"initial {channel.name.lower()} brightness")

        self.chip = chip
        self._bus = bus
        self._transport = transport
        self._programmer = RGBProgrammer(bus, step_duration)
        self._levels: dict[Channel, int] = dict(zip(Channel, initial))

        self._programmer.setup()
        self._programmer.commit(self._levels, CommitMask.ALL)
        logger.info("RGB header on %#x initialised: %s", bus.base_port, self._describe())

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> LightController:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the owned transport (safe to call multiple times)."""
        if self._transport is not None:
            self._transport.close()

    # -- State --------------------------------------------------------------

    @property
    def base_port(self) -> int:
        return self._bus.base_port

    @property
    def levels(self) -> dict[Channel, int]:
        """Return a copy of the current per-channel levels."""
        return dict(self._levels)

    def brightness(self, channel: Channel) -> int:
        """Return the last level set on *channel*."""
        return self._levels[Channel(channel)]

    @staticmethod
    def channel_name(channel: Channel) -> str:
        """Return the host-facing name of *channel*, e.g. ``nct6795d:red``."""
        return f"{DEVICE_NAME}:{Channel(channel).name.lower()}"

    # -- Brightness ---------------------------------------------------------

    def set_brightness(self, channel: Channel, level: int) -> None:
        """Set *channel* to *level* (0-15) and write only that channel.

        Raises:
            UnsupportedError: If *level* is out of range (nothing changes).
            BusBusyError: If the ports are held elsewhere.  The new level is
                kept and will be written by the next commit of the channel.
        """
        channel = Channel(channel)
        validate_brightness(level, f"{channel.name.lower()} brightness")
        self._levels[channel] = level
        self._programmer.commit(self._levels, channel.mask)

    def set_color(self, red: int, green: int, blue: int) -> None:
        """Set all three channels in a single commit."""
        new = dict(zip(Channel, (red, green, blue)))
        for channel, level in new.items():
            validate_brightness(level, f"{channel.name.lower()} brightness")
        self._levels.update(new)
        self._programmer.commit(self._levels, CommitMask.ALL)

    # -- Power --------------------------------------------------------------

    def suspend(self) -> None:
        """Nothing to save; the levels live in memory."""
        logger.debug("Suspend on %#x", self.base_port)

    def resume(self) -> None:
        """Re-run setup and a full commit after resume from suspend.

        The sequence runs twice: on the boards this was observed on, a single
        pass after resume does not reliably take effect.  A failure in the
        first pass is logged and the second pass still runs; a failure in the
        last pass propagates.  A pass whose setup fails skips its commit.
        """
        for attempt in range(1, _RESUME_PASSES + 1):
            last = attempt == _RESUME_PASSES
            try:
                self._programmer.setup()
            except NCT6795DError as exc:
                if last:
                    raise
                logger.warning(
                    "Resume pass %d on %#x failed in setup, commit skipped: %s",
                    attempt,
                    self.base_port,
                    exc,
                )
                continue
            try:
                self._programmer.commit(self._levels, CommitMask.ALL)
            except NCT6795DError as exc:
                if last:
                    raise
                logger.warning(
                    "Resume pass %d on %#x failed in commit: %s", attempt, self.base_port, exc
                )
        logger.debug("Resumed %#x: %s", self.base_port, self._describe())

    # -- Internal -----------------------------------------------------------

    def _describe(self) -> str:
        return " ".join(f"{ch.name[0]}={self._levels[ch]}" for ch in Channel)


# ---------------------------------------------------------------------------
# Convenience factory
# ---------------------------------------------------------------------------


def get_controller(config: LedConfig | None = None) -> LightController:
    """Detect the chip and return a controller showing the configured color.

    Example::

        with get_controller(load_config("config/led_config.yaml")) as led:
            led.set_brightness(Channel.RED, 15)

    Raises:
        PortAccessError: If ``/dev/port`` cannot be opened.
        DeviceNotFoundError: If no candidate port hosts a supported chip.
    """
    config = config or LedConfig()
    transport = PortTransport(config.port_path)
    transport.open()
    try:
        chip = detect(transport, config.base_ports, config.lock_dir)
        bus = SuperIO(transport, chip.base_port, config.lock_dir)
        return LightController(
            bus,
            initial=config.initial_levels,
            step_duration=config.step_duration,
            chip=chip,
            transport=transport,
        )
    except BaseException:
        transport.close()
        raise

