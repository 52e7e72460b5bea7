"""Typed configuration keys.

A `ConfigKey` couples a human readable identifier (`"samplerate"`) with the
native type of its values and knows how to turn a raw command-line string
into such a value. Keys are registered once, at import time, in
`KEY_REGISTRY`; drivers, devices, channel groups and format plugins all refer
to the same key objects.

Examples
--------
```python
from sigscope.types.keys import ConfigKey, SAMPLERATE

key = ConfigKey.get_by_identifier("samplerate")
assert key is SAMPLERATE
key.parse_string("250k")  # -> 250000
```
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from sigscope.types.errors import InvalidValue, UnknownKey
from sigscope.util.units import (
    format_bool,
    format_samplerate,
    parse_boolstring,
    parse_sizestring,
    parse_timestring,
)


class DataType(enum.Enum):
    """Native type of a config key's values."""

    INT = "integer"
    UINT = "unsigned integer"
    FLOAT = "float"
    BOOL = "boolean"
    STRING = "string"


class Capability(enum.Flag):
    """What a configurable supports for one key."""

    GET = enum.auto()
    SET = enum.auto()
    LIST = enum.auto()


GET_SET = Capability.GET | Capability.SET
GET_SET_LIST = Capability.GET | Capability.SET | Capability.LIST


class ParseHint(enum.Enum):
    PLAIN = "plain"
    SIZE = "size"  # SI multipliers, optional Hz
    TIME = "time"  # unit suffix, milliseconds


KEY_REGISTRY: dict[str, ConfigKey] = {}


@dataclass(frozen=True)
class ConfigKey:
    """A typed, named configuration option.

    Attributes
    ----------
    identifier : str
        Name used on the command line and in option strings.
    datatype : DataType
        Native type of values for this key.
    description : str
        Human readable description, shown by `--show`.
    hint : ParseHint
        How raw strings are interpreted for integer keys.
    """

    identifier: str
    datatype: DataType
    description: str
    hint: ParseHint = ParseHint.PLAIN

    def __str__(self):
        return self.identifier

    @staticmethod
    def get_by_identifier(identifier: str) -> ConfigKey:
        return lookup(identifier)

    def parse_string(self, raw: str) -> Any:
        """Parse a raw string into this key's native value.

        Raises
        ------
        InvalidValue
            If the string cannot be coerced to the key's type.
        """
        if raw is None:
            raw = ""
        try:
            if self.datatype is DataType.BOOL:
                return parse_boolstring(raw)
            if self.datatype is DataType.FLOAT:
                return float(raw)
            if self.datatype is DataType.STRING:
                return raw
            if self.hint is ParseHint.SIZE:
                value = parse_sizestring(raw)
            elif self.hint is ParseHint.TIME:
                value = parse_timestring(raw)
            else:
                value = int(raw.strip())
        except ValueError as e:
            raise InvalidValue(
                f"Invalid value {raw!r} for {self.identifier} "
                f"(expected {self.datatype.value}): {e}"
            ) from e
        if self.datatype is DataType.UINT and value < 0:
            raise InvalidValue(
                f"Invalid value {raw!r} for {self.identifier}: must not be negative"
            )
        return value

    def format_value(self, value: Any) -> str:
        """Render a value as a string that `parse_string` maps back to it."""
        if self.datatype is DataType.BOOL:
            return format_bool(value)
        if self.datatype is DataType.FLOAT:
            return repr(float(value))
        return str(value)

    def display_value(self, value: Any) -> str:
        """Render a value for humans; not necessarily parseable."""
        if self.hint is ParseHint.SIZE and self is SAMPLERATE:
            return format_samplerate(value)
        return self.format_value(value)


def register(
    identifier: str,
    datatype: DataType,
    description: str,
    hint: ParseHint = ParseHint.PLAIN,
) -> ConfigKey:
    """Create a key and add it to the registry.

    Raises
    ------
    ValueError
        If the identifier is already registered.
    """
    if identifier in KEY_REGISTRY:
        raise ValueError(f"Config key {identifier} already registered")
    key = ConfigKey(identifier, datatype, description, hint)
    KEY_REGISTRY[identifier] = key
    return key


def lookup(identifier: str) -> ConfigKey:
    """Resolve an identifier to its key, raising `UnknownKey` if absent."""
    try:
        return KEY_REGISTRY[identifier]
    except KeyError:
        raise UnknownKey(identifier) from None


# Connection and scan options
CONN = register("conn", DataType.STRING, "Connection")
SERIALCOMM = register("serialcomm", DataType.STRING, "Serial communication")
NUM_LOGIC_CHANNELS = register(
    "logic_channels", DataType.UINT, "Number of logic channels"
)
NUM_ANALOG_CHANNELS = register(
    "analog_channels", DataType.UINT, "Number of analog channels"
)

# Device class functions
LOGIC_ANALYZER = register("logic_analyzer", DataType.BOOL, "Logic analyzer")
OSCILLOSCOPE = register("oscilloscope", DataType.BOOL, "Oscilloscope")
DEMO_DEV = register("demo_device", DataType.BOOL, "Demo device")

# Acquisition settings
SAMPLERATE = register("samplerate", DataType.UINT, "Sample rate", ParseHint.SIZE)
LIMIT_SAMPLES = register(
    "limit_samples", DataType.UINT, "Sample limit", ParseHint.SIZE
)
LIMIT_MSEC = register("limit_msec", DataType.UINT, "Time limit", ParseHint.TIME)
LIMIT_FRAMES = register("limit_frames", DataType.UINT, "Frame limit")
CONTINUOUS = register("continuous", DataType.BOOL, "Continuous sampling")
TRIGGER_SOURCE = register("triggersource", DataType.STRING, "Trigger source")
AVERAGING = register("averaging", DataType.BOOL, "Averaging")
AVG_SAMPLES = register("avg_samples", DataType.UINT, "Number of samples to average")

# Signal generation
PATTERN_MODE = register("pattern", DataType.STRING, "Pattern")
AMPLITUDE = register("amplitude", DataType.FLOAT, "Amplitude")
OFFSET = register("offset", DataType.FLOAT, "Offset")

# Session files
CAPTUREFILE = register("capturefile", DataType.STRING, "Capture file")
