"""Datafeed packets.

A `Packet` is one unit of the datafeed: a kind tag plus a payload. Packets
are immutable once built and are passed by reference to every datafeed
callback, in registration order.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from sigscope.device.device import Channel
    from sigscope.types.keys import ConfigKey


class PacketType(enum.Enum):
    HEADER = "header"
    END = "end"
    META = "meta"
    TRIGGER = "trigger"
    LOGIC = "logic"
    ANALOG = "analog"
    FRAME_BEGIN = "frame-begin"
    FRAME_END = "frame-end"


@dataclass(frozen=True)
class Header:
    feed_version: int = 1
    start_time: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Meta:
    config: Mapping[ConfigKey, Any]


@dataclass(frozen=True, eq=False)
class Logic:
    """Logic samples.

    `data` is a 2D `uint8` array of shape `(num_samples, unit_size)`; bit `n`
    of a sample (little endian across the unit) is logic channel index `n`.
    """

    data: np.ndarray
    unit_size: int

    def __post_init__(self):
        self.data.setflags(write=False)

    @property
    def num_samples(self) -> int:
        return self.data.shape[0]

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def channel_bits(self, index: int) -> np.ndarray:
        """Return the 0/1 values of logic channel `index` for every sample."""
        byte, bit = divmod(index, 8)
        return (self.data[:, byte] >> bit) & 1


@dataclass(frozen=True, eq=False)
class Analog:
    """Analog samples for one or more channels.

    `data` has shape `(num_samples, len(channels))`.
    """

    channels: Sequence[Channel]
    data: np.ndarray
    mq: str = "voltage"
    unit: str = "V"

    def __post_init__(self):
        self.data.setflags(write=False)

    @property
    def num_samples(self) -> int:
        return self.data.shape[0]


@dataclass(frozen=True, eq=False)
class Packet:
    type: PacketType
    payload: Optional[Header | Meta | Logic | Analog] = None

    def __repr__(self):
        if isinstance(self.payload, (Logic, Analog)):
            return f"Packet({self.type.name}, {self.payload.num_samples} samples)"
        return f"Packet({self.type.name})"


def header_packet() -> Packet:
    return Packet(PacketType.HEADER, Header())


def end_packet() -> Packet:
    return Packet(PacketType.END)


def meta_packet(config: Mapping[ConfigKey, Any]) -> Packet:
    return Packet(PacketType.META, Meta(dict(config)))


def logic_packet(data: np.ndarray | bytes, unit_size: int) -> Packet:
    if isinstance(data, (bytes, bytearray)):
        data = np.frombuffer(data, dtype=np.uint8).copy()
    data = np.asarray(data, dtype=np.uint8)
    if data.ndim == 1:
        data = data.reshape(-1, unit_size)
    return Packet(PacketType.LOGIC, Logic(data, unit_size))


def analog_packet(channels: Sequence[Channel], data: np.ndarray, **kwargs) -> Packet:
    data = np.asarray(data, dtype=np.float32)
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    return Packet(PacketType.ANALOG, Analog(tuple(channels), data, **kwargs))
