"""Feeding a raw file through an input format.

`replay_file()` reads the file in `BLOCK_SIZE` chunks and sends each to the
input. Inputs learn what device the file describes only after enough data,
so the device is probed after every chunk; as soon as it is known, the
channel selection is applied and the device joins a fresh session carrying
the sink. Packets the input produced before that are held by the device and
delivered on registration, so none are lost.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from loguru import logger

from sigscope.device.config import select_channels
from sigscope.session.session import Session
from sigscope.util.defaults import BLOCK_SIZE

if TYPE_CHECKING:
    from sigscope.formats.base import Input
    from sigscope.session.session import DatafeedCallback


def replay_file(
    path: str | Path,
    input: Input,
    callback: DatafeedCallback,
    channels: Optional[str | Sequence[str]] = None,
    block_size: int = BLOCK_SIZE,
) -> Optional[Session]:
    """Decode `path` with `input`, delivering every packet to `callback`.

    Parameters
    ----------
    path : str | Path
        File to read
    input : Input
        Fresh decoder for the file's format
    callback : DatafeedCallback
        Session callback receiving the packets, typically a `DatafeedSink`
    channels : str | Sequence[str], optional
        Channel selection applied once the device is known
    block_size : int
        Bytes read per chunk

    Returns
    -------
    Session | None
        The stopped session, or None if the input never found a device.

    Raises
    ------
    OSError
        If the file cannot be read.
    SigscopeError
        From the input, or from the channel selection. The input is ended
        either way.
    """
    session = None
    chunks = 0
    try:
        with open(path, "rb") as f:
            while True:
                data = f.read(block_size)
                if not data:
                    break
                input.send(data)
                chunks += 1
                if session is None:
                    session = _register(input, callback, channels)
    finally:
        input.end()
    if session is None:
        # the device may only show up when the input is flushed
        session = _register(input, callback, channels)
    logger.info("Replayed {} chunk(s) of {}", chunks, path)

    if session is None:
        logger.warning("No device found in {}", path)
        return None
    session.start()
    session.run()
    return session


def _register(input, callback, channels) -> Optional[Session]:
    device = input.probe_device()
    if device is None:
        return None
    select_channels(device, channels)
    session = Session()
    session.add_datafeed_callback(callback)
    session.add_device(device)
    return session
