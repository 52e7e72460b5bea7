"""`binary` input: raw logic samples, `unit_size` bytes each.

The file carries no description of itself, so this format is never picked by
auto-detection; the channel count and samplerate come from the options.
"""

from __future__ import annotations

import numpy as np

from sigscope.device.virtual import VirtualDevice
from sigscope.formats.base import Input
from sigscope.types.keys import NUM_LOGIC_CHANNELS, SAMPLERATE
from sigscope.types.packets import header_packet, logic_packet, meta_packet


class BinaryInput(Input):
    def __init__(self, format, options):
        super().__init__(format, options)
        self._leftover = b""

    def _receive(self, data: bytes) -> None:
        if self._device is None:
            self._start()
        unit_size = self._device.unit_size
        data = self._leftover + data
        usable = len(data) - len(data) % unit_size
        self._leftover = data[usable:]
        if usable:
            samples = np.frombuffer(data[:usable], dtype=np.uint8).copy()
            self._emit(logic_packet(samples, unit_size))

    def _start(self) -> None:
        count = self.options.get(NUM_LOGIC_CHANNELS) or 8
        samplerate = self.options.get(SAMPLERATE) or 0
        names = [f"D{i}" for i in range(count)]
        self._set_device(VirtualDevice(names, samplerate=samplerate, model="Binary"))
        self._emit(header_packet())
        if samplerate:
            self._emit(meta_packet({SAMPLERATE: samplerate}))
