"""Input and output format base classes.

Input formats decode raw file bytes, chunk by chunk, into a device and its
packets. Output formats encode packets from one device into bytes.

Both are stateful across the stream and must be finalized with `end()`.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Type

from loguru import logger

from sigscope.types.errors import (
    SigscopeError,
    TransientDeviceUnknown,
    UnsupportedOption,
)
from sigscope.types.keys import ConfigKey, lookup
from sigscope.types.packets import Packet, end_packet

if TYPE_CHECKING:
    from sigscope.device.device import Device
    from sigscope.device.virtual import VirtualDevice


class OutputFlag(enum.Flag):
    NONE = 0
    # the output writes its own file, the caller must not open a stream on it
    INTERNAL_IO_HANDLING = enum.auto()


# =============================================================================
# Output
# =============================================================================


class Output:
    """Encoder bound to one device.

    Subclasses implement `receive()` and, if they buffer, `_finish()`.
    """

    def __init__(
        self,
        format: OutputFormat,
        device: Device,
        filename: Optional[str] = None,
    ):
        self.format = format
        self.device = device
        self.filename = filename
        self._ended = False

    def receive(self, packet: Packet) -> bytes:
        """Encode one packet, returning the bytes to append to the output."""
        raise NotImplementedError()

    def end(self) -> bytes:
        """Finalize the encoder, returning any trailing bytes."""
        if self._ended:
            return b""
        self._ended = True
        return self._finish()

    def _finish(self) -> bytes:
        return b""


class OutputFormat:
    """Registered output format.

    Attributes
    ----------
    name : str
        Name used with `-O`
    description : str
        One line description
    output_class : Type[Output]
        Encoder class created by `create_output()`
    flags : OutputFlag
        Behaviour flags, see `OutputFlag`
    """

    def __init__(
        self,
        name: str,
        description: str,
        output_class: Type[Output],
        flags: OutputFlag = OutputFlag.NONE,
    ):
        self.name = name
        self.description = description
        self.output_class = output_class
        self.flags = flags

    def __repr__(self):
        return f"OutputFormat({self.name!r})"

    @property
    def writes_own_file(self) -> bool:
        return OutputFlag.INTERNAL_IO_HANDLING in self.flags

    def create_output(self, device: Device, filename: Optional[str] = None) -> Output:
        if self.writes_own_file and not filename:
            raise SigscopeError(f"Output format {self.name} needs an output file")
        logger.debug("Creating {} output for {}", self.name, device)
        return self.output_class(self, device, filename)


# =============================================================================
# Input
# =============================================================================


class Input:
    """Decoder producing one device from a stream of byte chunks.

    Subclasses implement `_receive()` (and optionally `_finish()`), call
    `_set_device()` once they know the device, and `_emit()` for every
    decoded packet. Packets emitted before the device is known are kept and
    handed to the device when it is.
    """

    def __init__(self, format: InputFormat, options: Mapping[ConfigKey, Any]):
        self.format = format
        self.options = dict(options)
        self._device: Optional[VirtualDevice] = None
        self._early: list[Packet] = []
        self._ended = False

    @classmethod
    def sniff(cls, header: bytes) -> bool:
        """Whether the first bytes of a file look like this format."""
        return False

    def send(self, data: bytes) -> None:
        """Feed the next chunk of the file."""
        if self._ended:
            raise SigscopeError(f"{self.format.name} input already ended")
        self._receive(data)

    def probe_device(self) -> Optional[Device]:
        """Return the device if it is known yet, else None."""
        return self._device

    @property
    def device(self) -> Device:
        if self._device is None:
            raise TransientDeviceUnknown(
                f"{self.format.name} input has not determined its device yet"
            )
        return self._device

    def end(self) -> None:
        """Flush trailing state and send the END packet. Only acts once."""
        if self._ended:
            logger.warning("{} input ended twice", self.format.name)
            return
        self._ended = True
        self._finish()
        if self._device is None:
            logger.warning("{} input ended without finding a device", self.format.name)
            return
        self._emit(end_packet())

    def _set_device(self, device: VirtualDevice) -> None:
        self._device = device
        logger.info("{} input found {}", self.format.name, device)
        early, self._early = self._early, []
        for packet in early:
            device.push(packet)

    def _emit(self, packet: Packet) -> None:
        if self._device is None:
            self._early.append(packet)
        else:
            self._device.push(packet)

    def _receive(self, data: bytes) -> None:
        raise NotImplementedError()

    def _finish(self) -> None:
        pass


class InputFormat:
    """Registered input format.

    Attributes
    ----------
    name : str
        Name used with `-I`
    description : str
        One line description
    input_class : Type[Input]
        Decoder class created by `create_input()`
    option_keys : dict[ConfigKey, Any]
        Accepted options and their defaults
    extensions : tuple[str, ...]
        File extensions used when auto-detecting
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_class: Type[Input],
        option_keys: Optional[Mapping[ConfigKey, Any]] = None,
        extensions: Sequence[str] = (),
        autodetect: bool = True,
    ):
        self.name = name
        self.description = description
        self.input_class = input_class
        self.option_keys = dict(option_keys or {})
        self.extensions = tuple(extensions)
        self.autodetect = autodetect

    def __repr__(self):
        return f"InputFormat({self.name!r})"

    def create_input(
        self, options: Optional[Mapping[str | ConfigKey, Any]] = None
    ) -> Input:
        """Create a decoder.

        Raises
        ------
        UnknownKey
            If an option identifier is not registered.
        UnsupportedOption
            If the format does not take that option.
        """
        resolved = dict(self.option_keys)
        for name, value in (options or {}).items():
            key = name if isinstance(name, ConfigKey) else lookup(name)
            if key not in self.option_keys:
                raise UnsupportedOption(
                    f"Input format {self.name} does not accept option {key}"
                )
            resolved[key] = value
        return self.input_class(self, resolved)

    def format_match(self, header: bytes, filename: str = "") -> bool:
        """Whether a file starting with `header` looks like this format."""
        if not self.autodetect:
            return False
        if filename and filename.lower().endswith(self.extensions):
            return True
        return self.input_class.sniff(header)
