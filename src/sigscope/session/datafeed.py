"""The datafeed sink: the output stage of every acquisition.

`DatafeedSink` is registered as a session callback. It is created
unbound; the first packet binds it to that packet's device, choosing the
destination and the output format and creating the one encoder it will use
for the rest of the run. Every later packet is encoded and appended to the
destination.
"""

from __future__ import annotations

import enum
import sys
from typing import TYPE_CHECKING, BinaryIO, Mapping, Optional

from loguru import logger

from sigscope.types.errors import UnknownFormat
from sigscope.util.userconfig import UserConfig

if TYPE_CHECKING:
    from sigscope.device.device import Device
    from sigscope.formats.base import Output, OutputFormat
    from sigscope.types.packets import Packet


class SinkState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"


class DatafeedSink:
    """Encodes a session's datafeed to a file or stdout.

    Parameters
    ----------
    output_formats : Mapping[str, OutputFormat]
        Registered output formats, by name
    output_file : str, optional
        Destination path; stdout if not given
    output_format : str, optional
        Format name; defaults to the user config's `file_output_format` when
        writing a file and `output_format` otherwise
    user_config : UserConfig, optional
        Source of the default format names
    """

    def __init__(
        self,
        output_formats: Mapping[str, OutputFormat],
        output_file: Optional[str] = None,
        output_format: Optional[str] = None,
        user_config: Optional[UserConfig] = None,
    ):
        self.output_formats = output_formats
        self.output_file = output_file
        self.output_format = output_format
        self.user_config = user_config or UserConfig()
        self.state = SinkState.UNINITIALIZED
        self.device: Optional[Device] = None
        self.output: Optional[Output] = None
        self._stream: Optional[BinaryIO] = None
        self._owns_stream = False

    def __call__(self, device: Device, packet: Packet) -> None:
        if self.state is SinkState.UNINITIALIZED:
            self._bind(device)
        self._write(self.output.receive(packet))

    def resolve_format(self) -> OutputFormat:
        """Pick the output format.

        Raises
        ------
        UnknownFormat
            If the name is not registered.
        """
        name = self.output_format
        if not name:
            if self.output_file:
                name = self.user_config.file_output_format
            else:
                name = self.user_config.output_format
        try:
            return self.output_formats[name]
        except KeyError:
            raise UnknownFormat(f"Unknown output format {name}") from None

    def _bind(self, device: Device) -> None:
        fmt = self.resolve_format()
        self.output = fmt.create_output(device, self.output_file)
        if fmt.writes_own_file:
            self._stream = None
        elif self.output_file:
            self._stream = open(self.output_file, "wb")
            self._owns_stream = True
        else:
            self._stream = sys.stdout.buffer
        self.device = device
        self.state = SinkState.BOUND
        logger.info(
            "Datafeed from {} goes to {} as {}",
            device,
            self.output_file or "stdout",
            fmt.name,
        )

    def _write(self, data: bytes) -> None:
        if data and self._stream is not None:
            self._stream.write(data)

    def close(self) -> None:
        """Finalize the encoder and release the destination.

        Safe to call when no packet ever arrived. stdout is flushed, never
        closed.
        """
        if self.state is not SinkState.BOUND:
            return
        try:
            self._write(self.output.end())
        finally:
            if self._stream is not None:
                self._stream.flush()
                if self._owns_stream:
                    self._stream.close()
            self._stream = None
            self._owns_stream = False
