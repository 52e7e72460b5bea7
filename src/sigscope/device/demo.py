"""Simulated logic analyzer / oscilloscope.

The `demo` driver always finds one device (unless asked for zero channels)
and generates data with numpy: logic patterns on the `Logic` channel group
and one waveform per analog channel group.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

import numpy as np
from loguru import logger

from sigscope.device.device import ChannelGroup, ChannelType, Device
from sigscope.device.driver import Driver
from sigscope.types.errors import InvalidValue
from sigscope.types.keys import (
    AMPLITUDE,
    AVERAGING,
    AVG_SAMPLES,
    CONTINUOUS,
    DEMO_DEV,
    GET_SET,
    GET_SET_LIST,
    LIMIT_FRAMES,
    LIMIT_MSEC,
    LIMIT_SAMPLES,
    LOGIC_ANALYZER,
    NUM_ANALOG_CHANNELS,
    NUM_LOGIC_CHANNELS,
    OFFSET,
    OSCILLOSCOPE,
    PATTERN_MODE,
    SAMPLERATE,
    ConfigKey,
)
from sigscope.types.packets import (
    Packet,
    PacketType,
    analog_packet,
    end_packet,
    header_packet,
    logic_packet,
    meta_packet,
)

DEFAULT_LOGIC_CHANNELS = 8
DEFAULT_ANALOG_CHANNELS = 4
DEFAULT_SAMPLERATE = 200_000
CHUNK_SAMPLES = 4096
FRAME_SAMPLES = 1000  # per frame when only a frame limit is set
SQUARE_HALF_PERIOD = 8
ANALOG_PERIOD = 50  # samples per waveform period
DEFAULT_AMPLITUDE = 10.0

SAMPLERATES = [
    1_000,
    10_000,
    100_000,
    200_000,
    500_000,
    1_000_000,
    10_000_000,
    50_000_000,
]
LOGIC_PATTERNS = ["incremental", "random", "square", "all-low", "all-high"]
ANALOG_PATTERNS = ["sine", "square", "triangle", "sawtooth"]


class DemoGroup(ChannelGroup):
    """Channel group whose `pattern` must be one of its listed patterns."""

    def _config_set(self, key: ConfigKey, value: Any) -> None:
        if key is PATTERN_MODE and value not in self._config_list(key):
            raise InvalidValue(
                f"Unknown pattern {value!r} for {self}, "
                f"expected one of {', '.join(self._config_list(key))}"
            )
        super()._config_set(key, value)


class DemoDevice(Device):
    """Device generating logic patterns and analog waveforms."""

    def __init__(self, driver: DemoDriver, num_logic: int, num_analog: int):
        super().__init__(driver, vendor="", model="Demo device")
        self.declare(SAMPLERATE, GET_SET_LIST, DEFAULT_SAMPLERATE, values=SAMPLERATES)
        self.declare(LIMIT_SAMPLES, GET_SET, 0)
        self.declare(LIMIT_MSEC, GET_SET, 0)
        self.declare(LIMIT_FRAMES, GET_SET, 0)
        self.declare(AVERAGING, GET_SET, False)
        self.declare(AVG_SAMPLES, GET_SET, 0)
        self.declare(CONTINUOUS, GET_SET, False)

        logic = [
            self.add_channel(ChannelType.LOGIC, f"D{i}") for i in range(num_logic)
        ]
        if logic:
            group = DemoGroup(self, "Logic", logic)
            group.declare(PATTERN_MODE, GET_SET_LIST, "incremental", LOGIC_PATTERNS)
            self.channel_groups[group.name] = group
        for i in range(num_analog):
            channel = self.add_channel(ChannelType.ANALOG, f"A{i}")
            group = DemoGroup(self, channel.name, [channel])
            group.declare(
                PATTERN_MODE, GET_SET_LIST, ANALOG_PATTERNS[i % 4], ANALOG_PATTERNS
            )
            group.declare(AMPLITUDE, GET_SET, DEFAULT_AMPLITUDE)
            group.declare(OFFSET, GET_SET, 0.0)
            self.channel_groups[group.name] = group

        self._rng = np.random.default_rng()
        self._stopped = False

    def _config_set(self, key: ConfigKey, value: Any) -> None:
        if key is SAMPLERATE and value <= 0:
            raise InvalidValue("Sample rate must be positive")
        super()._config_set(key, value)

    def sample_limit(self) -> Optional[int]:
        """Samples per run implied by the sample and time limits, if any."""
        limits = []
        if self._values[LIMIT_SAMPLES]:
            limits.append(self._values[LIMIT_SAMPLES])
        if self._values[LIMIT_MSEC]:
            limits.append(self._values[SAMPLERATE] * self._values[LIMIT_MSEC] // 1000)
        return min(limits) if limits else None

    def acquisition(self) -> Iterator[Packet]:
        self._require_open("start acquisition")
        self._stopped = False
        limit = self.sample_limit()
        frames = self._values[LIMIT_FRAMES] or None
        if frames and limit is None:
            limit = FRAME_SAMPLES
        if self._values[CONTINUOUS]:
            # runs until stop_acquisition(), whatever the limits say
            limit = frames = None
        logger.info(
            "Demo acquisition: samplerate {}, sample limit {}, frames {}",
            self._values[SAMPLERATE],
            limit,
            frames,
        )

        yield header_packet()
        yield meta_packet({SAMPLERATE: self._values[SAMPLERATE]})
        position = 0
        for _ in range(frames or 1):
            if frames:
                yield Packet(PacketType.FRAME_BEGIN)
            sent = 0
            while (limit is None or sent < limit) and not self._stopped:
                count = CHUNK_SAMPLES
                if limit is not None:
                    count = min(CHUNK_SAMPLES, limit - sent)
                yield from self._chunk(position, count)
                position += count
                sent += count
            if frames:
                yield Packet(PacketType.FRAME_END)
            if self._stopped:
                break
        yield end_packet()

    def stop_acquisition(self) -> None:
        self._stopped = True

    def _chunk(self, position: int, count: int) -> Iterator[Packet]:
        if any(c.enabled for c in self.logic_channels):
            pattern = self.channel_groups["Logic"].config_get(PATTERN_MODE)
            data = self.logic_data(pattern, position, count)
            yield logic_packet(data, self.unit_size)
        for channel in self.analog_channels:
            if not channel.enabled:
                continue
            group = self.channel_groups[channel.name]
            data = analog_waveform(
                group.config_get(PATTERN_MODE),
                position,
                count,
                group.config_get(AMPLITUDE),
                group.config_get(OFFSET),
            )
            avg = self._values[AVG_SAMPLES]
            if self._values[AVERAGING] and avg > 1:
                data = data[: len(data) - len(data) % avg].reshape(-1, avg).mean(axis=1)
            yield analog_packet([channel], data)

    def logic_data(self, pattern: str, position: int, count: int) -> np.ndarray:
        """Return `(count, unit_size)` logic samples starting at `position`."""
        size = self.unit_size
        if pattern == "incremental":
            counter = np.arange(position, position + count, dtype="<u8")
            data = np.zeros((count, size), dtype=np.uint8)
            width = min(size, 8)
            data[:, :width] = counter.view(np.uint8).reshape(count, 8)[:, :width]
            return data
        if pattern == "random":
            return self._rng.integers(0, 256, (count, size), dtype=np.uint8)
        if pattern == "square":
            high = (np.arange(position, position + count) // SQUARE_HALF_PERIOD) % 2
            return np.repeat((high * 0xFF).astype(np.uint8)[:, None], size, axis=1)
        if pattern == "all-high":
            return np.full((count, size), 0xFF, dtype=np.uint8)
        return np.zeros((count, size), dtype=np.uint8)


def analog_waveform(
    pattern: str, position: int, count: int, amplitude: float, offset: float
) -> np.ndarray:
    phase = (np.arange(position, position + count) % ANALOG_PERIOD) / ANALOG_PERIOD
    if pattern == "sine":
        wave = np.sin(2 * np.pi * phase)
    elif pattern == "square":
        wave = np.where(phase < 0.5, 1.0, -1.0)
    elif pattern == "triangle":
        wave = 4 * np.abs(phase - 0.5) - 1
    else:
        wave = 2 * phase - 1
    return (amplitude * wave + offset).astype(np.float32)


class DemoDriver(Driver):
    name = "demo"
    long_name = "Demo driver and pattern generator"
    config_keys = (LOGIC_ANALYZER, OSCILLOSCOPE, DEMO_DEV)
    scan_options = (NUM_LOGIC_CHANNELS, NUM_ANALOG_CHANNELS)

    def _scan(self, options: dict[ConfigKey, Any]) -> list[Device]:
        num_logic = options.get(NUM_LOGIC_CHANNELS, DEFAULT_LOGIC_CHANNELS)
        num_analog = options.get(NUM_ANALOG_CHANNELS, DEFAULT_ANALOG_CHANNELS)
        if num_logic == 0 and num_analog == 0:
            return []
        return [DemoDevice(self, num_logic, num_analog)]
