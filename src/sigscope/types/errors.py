"""Exceptions raised by the acquisition layer and the session core.

Every error a user can see derives from `SigscopeError`, so the command line
can report it as a single diagnostic line. `TransientDeviceUnknown` and
`FormatMismatch` are expected conditions that callers handle themselves.
"""


class SigscopeError(Exception):
    """Base exception for sigscope errors."""

    pass


class UnknownKey(SigscopeError):
    """Raised when a config key identifier is not registered."""

    def __init__(self, identifier: str):
        super().__init__(f"Unknown option {identifier}")
        self.identifier = identifier


class InvalidValue(SigscopeError):
    """Raised when a raw string cannot be parsed into a key's value type."""

    pass


class UnsupportedCapability(SigscopeError):
    """Raised on a get/set/list of a key that lacks that capability."""

    pass


class UnsupportedOption(SigscopeError):
    """Raised when a driver or format is given an option it does not accept."""

    pass


class UnknownChannel(SigscopeError):
    """Raised when a channel selection names a channel the device lacks."""

    pass


class UnknownFormat(SigscopeError):
    """Raised when an input or output format name is not registered."""

    pass


class DeviceNotFound(SigscopeError):
    """Raised when a scan returns no devices."""

    pass


class DeviceError(SigscopeError):
    """Raised when a device is used in the wrong lifecycle state."""

    pass


class SessionStateError(SigscopeError):
    """Raised on an illegal session transition."""

    pass


class TransientDeviceUnknown(SigscopeError):
    """Raised when an input has not yet seen enough data to know its device."""

    pass


class FormatMismatch(SigscopeError):
    """Raised when a file is not in the format that was tried."""

    pass
