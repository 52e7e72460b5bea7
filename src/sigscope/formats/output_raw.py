"""`binary` and `analog` outputs."""

from __future__ import annotations

from sigscope.formats.base import Output
from sigscope.types.packets import Packet, PacketType


class BinaryOutput(Output):
    """Raw logic samples, `unit_size` bytes each."""

    def receive(self, packet: Packet) -> bytes:
        if packet.type is PacketType.LOGIC:
            return packet.payload.to_bytes()
        return b""


class AnalogOutput(Output):
    """`A0: 1.234 V` per sample of each enabled analog channel."""

    def receive(self, packet: Packet) -> bytes:
        if packet.type is not PacketType.ANALOG:
            return b""
        analog = packet.payload
        columns = [(i, c) for i, c in enumerate(analog.channels) if c.enabled]
        lines = [
            f"{channel.name}: {row[i]:.6g} {analog.unit}\n"
            for row in analog.data
            for i, channel in columns
        ]
        return "".join(lines).encode()
