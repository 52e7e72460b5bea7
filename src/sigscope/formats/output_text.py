"""Human readable logic outputs: `bits` and `hex`.

Both print one line per enabled logic channel, `name:<samples>`, holding
`LINE_SAMPLES` samples. Lines are emitted as soon as they are full; a partly
filled set of lines is emitted at the END packet or when the output ends.
"""

from __future__ import annotations

import numpy as np

from sigscope.formats.base import Output
from sigscope.types.packets import Packet, PacketType

LINE_SAMPLES = 64
GROUP_SAMPLES = 8


class LogicLinesOutput(Output):
    def __init__(self, format, device, filename=None):
        super().__init__(format, device, filename)
        self._channels = [c for c in device.logic_channels if c.enabled]
        self._pending: dict[int, list[np.ndarray]] = {
            c.index: [] for c in self._channels
        }
        self._count = 0

    def receive(self, packet: Packet) -> bytes:
        if packet.type is PacketType.END:
            return self._flush().encode()
        if packet.type is not PacketType.LOGIC or not self._channels:
            return b""

        logic = packet.payload
        bits = {c.index: logic.channel_bits(c.index) for c in self._channels}
        out = []
        start = 0
        while start < logic.num_samples:
            take = min(LINE_SAMPLES - self._count, logic.num_samples - start)
            for index, values in bits.items():
                self._pending[index].append(values[start : start + take])
            self._count += take
            start += take
            if self._count == LINE_SAMPLES:
                out.append(self._flush())
        return "".join(out).encode()

    def _finish(self) -> bytes:
        return self._flush().encode()

    def _flush(self) -> str:
        if not self._count:
            return ""
        lines = []
        for channel in self._channels:
            samples = np.concatenate(self._pending[channel.index])
            lines.append(f"{channel.name}:{self.format_samples(samples)}\n")
            self._pending[channel.index] = []
        self._count = 0
        return "".join(lines)

    def format_samples(self, samples: np.ndarray) -> str:
        raise NotImplementedError()


class BitsOutput(LogicLinesOutput):
    """`D0:01010101 01010101 ...`"""

    def format_samples(self, samples: np.ndarray) -> str:
        digits = "".join("1" if s else "0" for s in samples)
        return " ".join(
            digits[i : i + GROUP_SAMPLES] for i in range(0, len(digits), GROUP_SAMPLES)
        )


class HexOutput(LogicLinesOutput):
    """`D0:55 55 ...`, first sample in the most significant bit."""

    def format_samples(self, samples: np.ndarray) -> str:
        packed = np.packbits(samples.astype(np.uint8))
        return " ".join(f"{b:02x}" for b in packed)
