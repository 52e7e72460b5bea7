"""`csv` output: one row per sample, one column per enabled logic channel."""

from __future__ import annotations

import numpy as np

from sigscope._version import __version__
from sigscope.formats.base import Output
from sigscope.types.keys import SAMPLERATE, Capability
from sigscope.types.packets import Packet, PacketType
from sigscope.util.units import format_samplerate


class CsvOutput(Output):
    def __init__(self, format, device, filename=None):
        super().__init__(format, device, filename)
        self._channels = [c for c in device.logic_channels if c.enabled]
        self._samplerate = 0
        if device.config_check(SAMPLERATE, Capability.GET):
            self._samplerate = device.config_get(SAMPLERATE) or 0
        self._header_done = False

    def receive(self, packet: Packet) -> bytes:
        if packet.type is PacketType.META:
            self._samplerate = packet.payload.config.get(SAMPLERATE, self._samplerate)
            return b""
        if packet.type is not PacketType.LOGIC or not self._channels:
            return b""

        out = [] if self._header_done else [self._header()]
        self._header_done = True
        columns = np.stack(
            [packet.payload.channel_bits(c.index) for c in self._channels], axis=1
        )
        out.extend(",".join(str(v) for v in row) + "\n" for row in columns)
        return "".join(out).encode()

    def _header(self) -> str:
        lines = [f"; CSV generated by sigscope {__version__}\n"]
        if self._samplerate:
            lines.append(f"; Samplerate: {format_samplerate(self._samplerate)}\n")
        lines.append(",".join(c.name for c in self._channels) + "\n")
        return "".join(lines)
