"""NCT6795D / NCT6797D RGB header Python interface"""

from .config import LedConfig, load_config
from .constants import DEFAULT_BASE_PORTS, MAX_BRIGHTNESS
from .controller import LightController, get_controller
from .detect import ChipInfo, ChipVariant, detect
from .exceptions import (
    BusBusyError,
    DeviceNotFoundError,
    NCT6795DError,
    PortAccessError,
    SessionError,
    UnsupportedError,
)
from .rgb import Channel, CommitMask, RGBProgrammer, encode_brightness
from .superio import SuperIO, claim_region
from .transport import PortTransport

__all__ = [
    "BusBusyError",
    "Channel",
    "ChipInfo",
    "ChipVariant",
    "CommitMask",
    "DEFAULT_BASE_PORTS",
    "DeviceNotFoundError",
    "LedConfig",
    "LightController",
    "MAX_BRIGHTNESS",
    "NCT6795DError",
    "PortAccessError",
    "PortTransport",
    "RGBProgrammer",
    "SessionError",
    "SuperIO",
    "UnsupportedError",
    "claim_region",
    "detect",
    "encode_brightness",
    "get_controller",
    "load_config",
]
__version__ = "0.1.0"
