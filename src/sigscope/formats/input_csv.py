"""`csv` input: one sample per line, one `0`/`1` column per logic channel.

Lines starting with `;` or `#` are comments. The first other line is either a
header naming the channels, or already a data line, in which case channels are
named `D0`, `D1`, ... The device is known once that line is complete.

```
; captured on the bench
clk,data
0,1
1,1
```
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from sigscope.device.virtual import VirtualDevice
from sigscope.formats.base import Input
from sigscope.types.errors import InvalidValue
from sigscope.types.keys import NUM_LOGIC_CHANNELS, SAMPLERATE
from sigscope.types.packets import header_packet, logic_packet, meta_packet

COMMENT_PREFIXES = (";", "#")
_PRINTABLE = set(range(0x20, 0x7F)) | {0x09, 0x0A, 0x0D}


def _fields(line: str) -> list[str]:
    return [f.strip() for f in line.split(",")]


class CsvInput(Input):
    def __init__(self, format, options):
        super().__init__(format, options)
        self._buffer = b""
        self._line_number = 0

    @classmethod
    def sniff(cls, header: bytes) -> bool:
        if not header or not set(header) <= _PRINTABLE:
            return False
        return b"," in header

    def _receive(self, data: bytes) -> None:
        self._buffer += data
        *lines, self._buffer = self._buffer.split(b"\n")
        self._process([line.decode(errors="replace") for line in lines])

    def _finish(self) -> None:
        tail, self._buffer = self._buffer, b""
        if tail.strip():
            self._process([tail.decode(errors="replace")])

    def _process(self, lines: list[str]) -> None:
        rows = []
        for line in lines:
            self._line_number += 1
            line = line.strip()
            if not line or line.startswith(COMMENT_PREFIXES):
                continue
            fields = _fields(line)
            if self._device is None:
                if self._start(fields):
                    continue
            rows.append(self._parse_row(fields))
        if rows:
            self._emit_rows(rows)

    def _start(self, fields: list[str]) -> bool:
        """Create the device from the first line; True if it was a header."""
        is_header = not all(f in ("0", "1") for f in fields)
        count = min(self.options.get(NUM_LOGIC_CHANNELS) or len(fields), len(fields))
        if is_header:
            names = fields[:count]
        else:
            names = [f"D{i}" for i in range(count)]
        samplerate = self.options.get(SAMPLERATE) or 0
        self._set_device(VirtualDevice(names, samplerate=samplerate, model="CSV"))
        self._emit(header_packet())
        if samplerate:
            self._emit(meta_packet({SAMPLERATE: samplerate}))
        logger.debug("CSV input: {} channel(s), header line: {}", count, is_header)
        return is_header

    def _parse_row(self, fields: list[str]) -> list[int]:
        count = len(self._device.logic_channels)
        if len(fields) < count:
            raise InvalidValue(
                f"CSV line {self._line_number}: expected {count} columns, "
                f"got {len(fields)}"
            )
        row = []
        for field in fields[:count]:
            if field not in ("0", "1"):
                raise InvalidValue(
                    f"CSV line {self._line_number}: {field!r} is not a logic level"
                )
            row.append(int(field))
        return row

    def _emit_rows(self, rows: list[list[int]]) -> None:
        device = self._device
        bits = np.zeros((len(rows), device.unit_size * 8), dtype=np.uint8)
        bits[:, : len(rows[0])] = np.array(rows, dtype=np.uint8)
        packed = np.packbits(bits, axis=1, bitorder="little")
        self._emit(logic_packet(packed, device.unit_size))
