"""Devices that come from files rather than from a driver scan.

Input formats create a `VirtualDevice` once they know what the file holds
and push decoded packets into it. Packets pushed before the device joins a
session are held back and delivered, in order, when it does.

Session files (srzip) load into a `SessionFileDevice`, whose acquisition
replays the stored samples.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Sequence

import numpy as np
from loguru import logger

from sigscope.device.device import ChannelType, Device
from sigscope.device.driver import Driver
from sigscope.types.keys import CAPTUREFILE, GET_SET, SAMPLERATE, Capability
from sigscope.types.packets import (
    Packet,
    end_packet,
    header_packet,
    logic_packet,
    meta_packet,
)

if TYPE_CHECKING:
    from sigscope.session.session import Session

REPLAY_CHUNK_SAMPLES = 4096


class VirtualDriver(Driver):
    """Owner of file-backed devices. Never finds anything when scanned."""

    name = "virtual-session"
    long_name = "Session files and file inputs"

    def _scan(self, options):
        return []


VIRTUAL_DRIVER = VirtualDriver()


class VirtualDevice(Device):
    """Device fed with packets by an input format."""

    def __init__(
        self,
        logic_names: Sequence[str] = (),
        analog_names: Sequence[str] = (),
        samplerate: int = 0,
        model: str = "",
    ):
        super().__init__(VIRTUAL_DRIVER, model=model)
        self.declare(SAMPLERATE, GET_SET, samplerate)
        for name in logic_names:
            self.add_channel(ChannelType.LOGIC, name)
        for name in analog_names:
            self.add_channel(ChannelType.ANALOG, name)
        self._backlog: list[Packet] = []
        # file devices need no hardware handshake
        self._connected = True

    def __str__(self):
        return f"{self.model or 'virtual'} device"

    def push(self, packet: Packet) -> None:
        """Deliver a packet to the session, or hold it until there is one."""
        if self.session is None:
            self._backlog.append(packet)
        else:
            self.session.send(self, packet)

    def attach(self, session: Session) -> None:
        super().attach(session)
        backlog, self._backlog = self._backlog, []
        if backlog:
            logger.debug("Delivering {} held packet(s) from {}", len(backlog), self)
        for packet in backlog:
            session.send(self, packet)

    def acquisition(self) -> Iterator[Packet]:
        # data arrives through push()
        return iter(())


class SessionFileDevice(VirtualDevice):
    """Device replaying logic data loaded from a session file."""

    def __init__(
        self,
        logic_names: Sequence[str],
        samplerate: int,
        unit_size: int,
        data: bytes,
        capturefile: str = "",
        enabled: Sequence[bool] = (),
    ):
        super().__init__(logic_names, samplerate=samplerate, model="Session file")
        self.declare(CAPTUREFILE, Capability.GET, capturefile)
        for channel, on in zip(self.channels, enabled):
            channel.enabled = on
        self._unit_size = unit_size
        self._data = data

    @property
    def unit_size(self) -> int:
        return self._unit_size

    def acquisition(self) -> Iterator[Packet]:
        yield header_packet()
        yield meta_packet({SAMPLERATE: self.config_get(SAMPLERATE)})
        samples = np.frombuffer(self._data, dtype=np.uint8)
        samples = samples[: len(samples) - len(samples) % self._unit_size]
        samples = samples.reshape(-1, self._unit_size)
        for start in range(0, len(samples), REPLAY_CHUNK_SAMPLES):
            chunk = samples[start : start + REPLAY_CHUNK_SAMPLES].copy()
            yield logic_packet(chunk, self._unit_size)
        yield end_packet()
