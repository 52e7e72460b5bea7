"""Device base class and the channel model.

This module defines the objects every part of sigscope hands around:

1. `Configurable` - anything with per-key get/set/list configuration, gated
   by `Capability` flags
2. `Device` - one instrument (scanned by a driver, or created from a file)
3. `Channel` - one probe of a device, renamable and enable-able
4. `ChannelGroup` - a named subset of channels with its own, narrower,
   configuration scope

Devices and channel groups each keep their own backing store; drivers
declare which keys live where when they build a device.

Examples
--------
Declaring a key and reading it back:

```python
device = Device(driver, vendor="Acme", model="LA-8")
device.declare(SAMPLERATE, GET_SET_LIST, 1_000_000, values=[1_000_000, 2_000_000])
device.open()
device.config_set(SAMPLERATE, 2_000_000)
device.config_get(SAMPLERATE)  # -> 2000000
```

See Also
--------
sigscope.device.driver : Driver base class and scanning
sigscope.device.config : Channel selection and option strings
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Iterator, Optional, Sequence

from loguru import logger

from sigscope.types.errors import DeviceError, UnsupportedCapability
from sigscope.types.keys import Capability, ConfigKey

if TYPE_CHECKING:
    from sigscope.device.driver import Driver
    from sigscope.session.session import Session
    from sigscope.types.packets import Packet


class Configurable:
    """Base class for objects with capability-gated configuration.

    Subclasses declare keys with `declare()`; the stored values and value lists
    form the default backing store. Subclasses with live state override
    `_config_get`, `_config_set` or `_config_list`.
    """

    def __init__(self):
        self._capabilities: dict[ConfigKey, Capability] = {}
        self._values: dict[ConfigKey, Any] = {}
        self._value_lists: dict[ConfigKey, Sequence[Any]] = {}

    def declare(
        self,
        key: ConfigKey,
        capabilities: Capability,
        value: Any = None,
        values: Optional[Sequence[Any]] = None,
    ) -> None:
        self._capabilities[key] = capabilities
        self._values[key] = value
        if values is not None:
            self._value_lists[key] = tuple(values)

    def config_keys(self) -> list[ConfigKey]:
        return list(self._capabilities)

    def config_check(self, key: ConfigKey, capability: Capability) -> bool:
        return capability in self._capabilities.get(key, Capability(0))

    def config_get(self, key: ConfigKey) -> Any:
        self._require(key, Capability.GET, "get")
        return self._config_get(key)

    def config_set(self, key: ConfigKey, value: Any) -> None:
        self._require(key, Capability.SET, "set")
        self._config_set(key, value)
        logger.debug("Set {} = {} on {}", key, value, self)

    def config_list(self, key: ConfigKey) -> list[Any]:
        self._require(key, Capability.LIST, "list")
        return list(self._config_list(key))

    def _require(self, key: ConfigKey, capability: Capability, verb: str) -> None:
        if not self.config_check(key, capability):
            raise UnsupportedCapability(f"Cannot {verb} {key} on {self}")

    # default backing store
    def _config_get(self, key: ConfigKey) -> Any:
        return self._values.get(key)

    def _config_set(self, key: ConfigKey, value: Any) -> None:
        self._values[key] = value

    def _config_list(self, key: ConfigKey) -> Sequence[Any]:
        return self._value_lists.get(key, ())


class ChannelType(enum.Enum):
    LOGIC = "logic"
    ANALOG = "analog"


class Channel:
    """One probe of a device.

    `index` is the position among channels of the same type; for logic
    channels it is the bit number within a logic sample.
    """

    def __init__(
        self,
        device: Device,
        index: int,
        type: ChannelType,
        name: str,
        enabled: bool = True,
    ):
        self.device = device
        self.index = index
        self.type = type
        self.name = name
        self.enabled = enabled

    def __repr__(self):
        state = "on" if self.enabled else "off"
        return f"Channel({self.name}, {self.type.value}, {state})"


class ChannelGroup(Configurable):
    """Named subset of a device's channels with its own configuration."""

    def __init__(self, device: Device, name: str, channels: Sequence[Channel]):
        super().__init__()
        self.device = device
        self.name = name
        self.channels = list(channels)

    def __str__(self):
        return f"channel group {self.name}"

    def _require(self, key: ConfigKey, capability: Capability, verb: str) -> None:
        super()._require(key, capability, verb)
        if capability is Capability.SET:
            self.device._require_open(f"set {key}")


class Device(Configurable):
    """Base class for every device, scanned or virtual.

    A device is created closed. It must be opened before configuration
    changes or acquisition, and closed exactly once afterwards.

    Subclasses that acquire data implement `acquisition()`, a generator of
    packets that ends with the END packet. Devices that receive their data
    from elsewhere (file inputs) push packets with `Session.send()` instead.

    Attributes
    ----------
    driver : Driver
        Driver that created this device
    vendor, model, version : str
        Identity strings, any of which may be empty
    channels : list[Channel]
        All channels, logic first, in index order
    channel_groups : dict[str, ChannelGroup]
        Channel groups by name, in declaration order
    session : Optional[Session]
        Session this device was added to, if any
    """

    def __init__(
        self,
        driver: Driver,
        vendor: str = "",
        model: str = "",
        version: str = "",
        connection_id: str = "",
    ):
        super().__init__()
        self.driver = driver
        self.vendor = vendor
        self.model = model
        self.version = version
        self.connection_id = connection_id
        self.channels: list[Channel] = []
        self.channel_groups: dict[str, ChannelGroup] = {}
        self.session: Optional[Session] = None
        self._connected = False

    def __str__(self):
        return f"{self.driver.name} device"

    def add_channel(
        self, type: ChannelType, name: str, enabled: bool = True
    ) -> Channel:
        index = sum(1 for c in self.channels if c.type is type)
        channel = Channel(self, index, type, name, enabled)
        self.channels.append(channel)
        return channel

    def add_channel_group(self, name: str, channels: Sequence[Channel]) -> ChannelGroup:
        group = ChannelGroup(self, name, channels)
        self.channel_groups[name] = group
        return group

    def channel_by_name(self, name: str) -> Optional[Channel]:
        for channel in self.channels:
            if channel.name == name:
                return channel
        return None

    @property
    def logic_channels(self) -> list[Channel]:
        return [c for c in self.channels if c.type is ChannelType.LOGIC]

    @property
    def analog_channels(self) -> list[Channel]:
        return [c for c in self.channels if c.type is ChannelType.ANALOG]

    @property
    def unit_size(self) -> int:
        """Bytes per logic sample."""
        return max(1, (len(self.logic_channels) + 7) // 8)

    # lifecycle
    def open(self) -> tuple[bool, str]:
        if self._connected:
            return True, f"{self} already open"
        self._connected = True
        logger.info("Opened {}", self)
        return True, f"{self} opened"

    def close(self):
        if not self._connected:
            logger.warning("{} closed while not open", self)
            return
        self._connected = False
        logger.info("Closed {}", self)

    def is_connected(self) -> bool:
        return self._connected

    def _require_open(self, action: str) -> None:
        if not self._connected:
            raise DeviceError(f"Cannot {action}: {self} is not open")

    def _require(self, key: ConfigKey, capability: Capability, verb: str) -> None:
        super()._require(key, capability, verb)
        if capability is Capability.SET:
            self._require_open(f"set {key}")

    # acquisition
    def attach(self, session: Session) -> None:
        """Called by `Session.add_device()`."""
        self.session = session

    def acquisition(self) -> Iterator[Packet]:
        """Yield the packets of one acquisition run."""
        raise NotImplementedError()

    def stop_acquisition(self) -> None:
        """Called by the session when it stops before the data ran out."""
        pass
