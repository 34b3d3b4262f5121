"""Shared register map and defaults for the NCT6795D RGB controller.

This is the canonical source of truth for register addresses, bit masks
and runtime defaults.  Other modules should import from here rather than
defining their own copies.

RGB bank (logical device 0x12) layout, as far as it is known::

    E0 | EE .. .. ..  P. .. .. ..  .. .. .. ..  .. .. .. ..
    F0 | RR RR RR RR  GG GG GG GG  BB BB BB BB  .. .. TT TT

``EE`` holds one "16 levels" enable bit per channel, ``P`` the pulse and
blink bits, ``RR``/``GG``/``BB`` eight 4-bit animation frames per channel
and ``TTTT`` the step duration plus the fade-in, invert and header enable
bits.
"""

# ---------------------------------------------------------------------------
# Super-I/O access
# ---------------------------------------------------------------------------

REGION_SIZE = 2  # index register at base, data register at base + 1

SIO_UNLOCK_KEY = 0x87  # written twice to enter extended function mode
SIO_LOCK_KEY = 0xAA
SIO_REG_CONFIG_CTRL = 0x02
SIO_CONFIG_WAIT_FOR_KEY = 0x02
SIO_REG_LDSEL = 0x07  # logical device select
SIO_REG_DEVID = 0x20  # device ID, 2 bytes, MSB first

# ---------------------------------------------------------------------------
# Chip identification
# ---------------------------------------------------------------------------

DEVID_MASK = 0xFFF8  # low 3 bits are the revision
DEVID_NCT6795D = 0xD350
DEVID_NCT6797D = 0xD450

# ---------------------------------------------------------------------------
# Auxiliary logical device
# ---------------------------------------------------------------------------

LD_AUX = 0x09
AUX_REG_CTRL = 0x2C
AUX_CLOCK_ENABLE = 0x10  # no lighting effect works without it, static included

# ---------------------------------------------------------------------------
# RGB bank
# ---------------------------------------------------------------------------

LD_RGB = 0x12

RGB_REG_ENABLE = 0xE0
RGB_ENABLE_MASK = 0xE0  # red 0x80, green 0x40, blue 0x20

RGB_REG_EFFECT = 0xE4
EFFECT_STATIC = 0x00  # pulse off, blink interval 000 (always on)

RGB_REG_STEP = 0xFE  # step duration bits 0-7

RGB_REG_CONTROL = 0xFF  # fffbgrdt
CONTROL_STEP_BIT8 = 0x01
CONTROL_HEADER_ENABLE = 0x02  # header on independently of the onboard LEDs
CONTROL_INVERT_MASK = 0x1C  # blue 0x10, green 0x08, red 0x04
CONTROL_FADE_IN_OFF = 0xE0  # blue 0x80, green 0x40, red 0x20

RED_CELL = 0xF0
GREEN_CELL = 0xF4
BLUE_CELL = 0xF8
CELL_SIZE = 4  # 8 nibbles, two frames per register

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

MAX_BRIGHTNESS = 0x0F
MAX_STEP_DURATION = 511

# ---------------------------------------------------------------------------
# Runtime defaults
# ---------------------------------------------------------------------------

DEVICE_NAME = "nct6795d"
DEFAULT_BASE_PORTS = (0x4E, 0x2E)
DEFAULT_PORT_PATH = "/dev/port"
DEFAULT_LOCK_DIR = "/run/lock"
DEFAULT_STEP_DURATION = 128
