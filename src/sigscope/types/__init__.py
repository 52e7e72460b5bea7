"""
Types shared by every layer of sigscope.

1. Config keys (keys.py)
    - `ConfigKey`, the global key registry and value parsing
    - `Capability` flags gating get/set/list
2. Packets (packets.py)
    - The datafeed unit: a `PacketType` tag and an immutable payload
3. Errors (errors.py)
    - `SigscopeError` and its subclasses

Examples
--------
```python
from sigscope.types import lookup

key = lookup("limit_msec")
key.parse_string("2s")  # -> 2000
```
"""

from .errors import (
    DeviceError,
    DeviceNotFound,
    FormatMismatch,
    InvalidValue,
    SessionStateError,
    SigscopeError,
    TransientDeviceUnknown,
    UnknownChannel,
    UnknownFormat,
    UnknownKey,
    UnsupportedCapability,
    UnsupportedOption,
)
from .keys import (
    GET_SET,
    GET_SET_LIST,
    KEY_REGISTRY,
    Capability,
    ConfigKey,
    DataType,
    ParseHint,
    lookup,
)
from .packets import Packet, PacketType

__all__ = [
    "GET_SET",
    "GET_SET_LIST",
    "KEY_REGISTRY",
    "Capability",
    "ConfigKey",
    "DataType",
    "DeviceError",
    "DeviceNotFound",
    "FormatMismatch",
    "InvalidValue",
    "Packet",
    "PacketType",
    "ParseHint",
    "SessionStateError",
    "SigscopeError",
    "TransientDeviceUnknown",
    "UnknownChannel",
    "UnknownFormat",
    "UnknownKey",
    "UnsupportedCapability",
    "UnsupportedOption",
    "lookup",
]
