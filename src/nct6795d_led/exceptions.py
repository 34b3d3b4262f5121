"""
Exception hierarchy for the NCT6795D RGB controller.

All exceptions inherit from :class:`NCT6795DError` so callers can catch
broadly (``except NCT6795DError``) or narrowly (``except BusBusyError``).
"""


class NCT6795DError(Exception):
    """Base exception for all NCT6795D errors."""


class PortAccessError(NCT6795DError):
    """Raised when the I/O port device or lock directory is unavailable or fails."""


class BusBusyError(NCT6795DError):
    """Raised when another user holds the Super-I/O port pair."""


class SessionError(NCT6795DError):
    """Raised when a register is accessed outside an open Super-I/O session."""


class DeviceNotFoundError(NCT6795DError):
    """Raised when no candidate port answers with a supported device ID.

    ``busy_ports`` lists the candidates that were skipped because another
    user held them; when it is non-empty a later attempt may succeed.
    """

    def __init__(self, message: str, busy_ports: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.busy_ports = busy_ports


class UnsupportedError(NCT6795DError):
    """Raised when an argument or configuration value is out of range."""
