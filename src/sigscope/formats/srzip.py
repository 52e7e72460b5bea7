"""The srzip session container.

A session file is a zip archive holding:

- `version`: the container version, `2`
- `metadata`: an INI file with a `[global]` section and one `[device N]`
  section per device (`capturefile`, `total probes`, `samplerate`,
  `probeN` names of enabled channels, `unitsize`). Names of disabled
  channels are kept under `disabled probeN`, a key other readers skip
- `<capturefile>-1`, `<capturefile>-2`, ...: raw logic sample chunks

The `srzip` output writes this file itself; `load_srzip()` reads it back into
a `SessionFileDevice`.

Example metadata:

```ini
[global]
sigrok version=sigscope 0.1.0

[device 1]
capturefile=logic-1
total probes=4
samplerate=1 MHz
total analog=0
probe1=D0
probe2=clk
disabled probe3=D2
disabled probe4=D3
unitsize=1
```
"""

from __future__ import annotations

import io
import re
import zipfile
from configparser import ConfigParser, Error as ConfigParserError
from pathlib import Path

from loguru import logger

from sigscope._version import __version__
from sigscope.device.virtual import SessionFileDevice
from sigscope.formats.base import Output
from sigscope.types.errors import FormatMismatch
from sigscope.types.keys import SAMPLERATE, Capability
from sigscope.types.packets import Packet, PacketType
from sigscope.util.units import format_samplerate, parse_sizestring

CONTAINER_VERSION = "2"
SUPPORTED_VERSIONS = ("1", "2")
CAPTUREFILE = "logic-1"


class SrzipOutput(Output):
    """Writes a session file at `filename`; `receive()` never returns bytes."""

    def __init__(self, format, device, filename=None):
        super().__init__(format, device, filename)
        self._zip: zipfile.ZipFile | None = None
        self._chunks = 0
        self._written = False
        self._samplerate = 0
        if device.config_check(SAMPLERATE, Capability.GET):
            self._samplerate = device.config_get(SAMPLERATE) or 0

    def receive(self, packet: Packet) -> bytes:
        if packet.type is PacketType.META:
            self._samplerate = packet.payload.config.get(SAMPLERATE, self._samplerate)
        elif packet.type is PacketType.LOGIC:
            self._open()
            self._chunks += 1
            name = f"{CAPTUREFILE}-{self._chunks}"
            self._zip.writestr(name, packet.payload.to_bytes())
        elif packet.type is PacketType.END:
            self._close()
        return b""

    def _finish(self) -> bytes:
        self._close()
        return b""

    def _open(self) -> None:
        if self._zip is not None:
            return
        logger.info("Writing session file {}", self.filename)
        self._zip = zipfile.ZipFile(self.filename, "w", zipfile.ZIP_DEFLATED)
        self._zip.writestr("version", CONTAINER_VERSION)
        self._zip.writestr("metadata", self.metadata())

    def _close(self) -> None:
        if self._written:
            return
        # a capture without logic data still yields a loadable file
        self._open()
        self._zip.close()
        self._zip = None
        self._written = True
        logger.info("Wrote {} chunk(s) to {}", self._chunks, self.filename)

    def metadata(self) -> str:
        logic = self.device.logic_channels
        parser = ConfigParser()
        parser.optionxform = str
        parser["global"] = {"sigrok version": f"sigscope {__version__}"}
        section = {
            "capturefile": CAPTUREFILE,
            "total probes": str(len(logic)),
        }
        if self._samplerate:
            section["samplerate"] = format_samplerate(self._samplerate)
        section["total analog"] = "0"
        for channel in logic:
            prefix = "" if channel.enabled else "disabled "
            section[f"{prefix}probe{channel.index + 1}"] = channel.name
        section["unitsize"] = str(self.device.unit_size)
        parser["device 1"] = section
        text = io.StringIO()
        parser.write(text, space_around_delimiters=False)
        return text.getvalue()


def _chunk_number(name: str, capturefile: str) -> int:
    if name == capturefile:
        return 0
    return int(name[len(capturefile) + 1 :])


def load_srzip(path: str | Path) -> SessionFileDevice:
    """Load the first device of a session file.

    Raises
    ------
    FormatMismatch
        If the file is not a session container.
    """
    if not zipfile.is_zipfile(path):
        raise FormatMismatch(f"{path} is not a session file")

    with zipfile.ZipFile(path) as archive:
        names = archive.namelist()
        if "metadata" not in names:
            raise FormatMismatch(f"{path} has no session metadata")
        if "version" in names:
            version = archive.read("version").decode(errors="replace").strip()
            if version not in SUPPORTED_VERSIONS:
                raise FormatMismatch(f"{path}: unsupported session version {version}")

        parser = ConfigParser(strict=False)
        parser.optionxform = str
        try:
            parser.read_string(archive.read("metadata").decode())
        except (ConfigParserError, UnicodeDecodeError) as e:
            raise FormatMismatch(f"{path}: unreadable session metadata") from e
        devices = [s for s in parser.sections() if s.startswith("device ")]
        if not devices:
            raise FormatMismatch(f"{path}: session holds no device")
        section = parser[devices[0]]

        capturefile = section.get("capturefile", fallback=CAPTUREFILE)
        total = section.getint("total probes", fallback=0)
        unit_size = section.getint("unitsize", fallback=max(1, (total + 7) // 8))
        samplerate = parse_sizestring(section.get("samplerate", fallback="0"))
        pattern = re.compile(rf"^{re.escape(capturefile)}(-\d+)?$")
        chunks = sorted(
            (n for n in names if pattern.match(n)),
            key=lambda n: _chunk_number(n, capturefile),
        )
        data = b"".join(archive.read(n) for n in chunks)

    channel_names = []
    enabled = []
    for i in range(total):
        name = section.get(f"probe{i + 1}")
        enabled.append(name is not None)
        if name is None:
            name = section.get(f"disabled probe{i + 1}", fallback=f"D{i}")
        channel_names.append(name)

    logger.info(
        "Loaded session {}: {} probes, {} bytes of logic data", path, total, len(data)
    )
    return SessionFileDevice(
        channel_names,
        samplerate=samplerate,
        unit_size=unit_size,
        data=data,
        capturefile=capturefile,
        enabled=enabled,
    )
