"""The acquisition context.

`Context` is the entry object of sigscope's acquisition layer. It holds the
driver and format registries, creates and loads sessions, and identifies files.

Examples
--------
```python
from sigscope.context import Context

context = Context.create()
try:
    session = context.load_session("capture.sr")
except FormatMismatch:
    input = context.open_file("capture.csv")
```
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from loguru import logger

from sigscope._version import __version__
from sigscope.device import Driver, get_drivers
from sigscope.formats import (
    Input,
    InputFormat,
    OutputFormat,
    get_input_formats,
    get_output_formats,
    load_srzip,
)
from sigscope.session.session import Session
from sigscope.types.errors import DeviceNotFound, FormatMismatch, UnknownFormat
from sigscope.util.defaults import BLOCK_SIZE


class Context:
    """Registries plus session and file entry points.

    Parameters
    ----------
    drivers, input_formats, output_formats : Mapping, optional
        Registries by name; the built-in ones when not given
    """

    def __init__(
        self,
        drivers: Optional[Mapping[str, Driver]] = None,
        input_formats: Optional[Mapping[str, InputFormat]] = None,
        output_formats: Optional[Mapping[str, OutputFormat]] = None,
    ):
        self.drivers = dict(drivers if drivers is not None else get_drivers())
        self.input_formats = dict(
            input_formats if input_formats is not None else get_input_formats()
        )
        self.output_formats = dict(
            output_formats if output_formats is not None else get_output_formats()
        )

    @classmethod
    def create(cls) -> Context:
        return cls()

    @property
    def package_version(self) -> str:
        return __version__

    def driver(self, name: str) -> Driver:
        """Look up a driver by name.

        Raises
        ------
        DeviceNotFound
            If no driver has that name.
        """
        try:
            return self.drivers[name]
        except KeyError:
            raise DeviceNotFound(f"Driver {name} not found") from None

    def input_format(self, name: str) -> InputFormat:
        try:
            return self.input_formats[name]
        except KeyError:
            raise UnknownFormat(f"Unknown input format {name}") from None

    def create_session(self) -> Session:
        return Session()

    def load_session(self, path: str | Path) -> Session:
        """Load a session file into a new idle session holding its device.

        Raises
        ------
        FormatMismatch
            If `path` is not a session file.
        """
        device = load_srzip(path)
        session = self.create_session()
        session.add_device(device)
        return session

    def open_file(self, path: str | Path) -> Input:
        """Identify a raw file's format from its first block.

        Raises
        ------
        FormatMismatch
            If no input format recognises the file.
        OSError
            If the file cannot be read.
        """
        with open(path, "rb") as f:
            header = f.read(BLOCK_SIZE)
        for fmt in self.input_formats.values():
            if fmt.format_match(header, str(path)):
                logger.info("{} looks like {}", path, fmt.name)
                return fmt.create_input()
        raise FormatMismatch(f"Unknown input file format for {path}")
