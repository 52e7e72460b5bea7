# -*- coding: utf-8 -*-
"""
Device model and hardware drivers for sigscope.

This module provides the classes describing instruments and the drivers that
find them:

- `Device`, `Channel`, `ChannelGroup` and the `Configurable` base
- `Driver`, the scanning interface, and the built-in `demo` driver
- Virtual devices created from input files and session files
- Channel selection, option strings and the `--show` report

Examples
--------
Scanning and configuring the demo device:
```python
from sigscope.device import get_drivers
from sigscope.device.config import apply_config, select_channels

device = get_drivers()["demo"].scan({"logic_channels": 4})[0]
device.open()
select_channels(device, "D0,D1=clk")
apply_config(device, "samplerate=1M:limit_samples=1000")
```

See Also
--------
sigscope.types.keys : Config key registry
sigscope.session : Running acquisitions
"""

from loguru import logger

from .demo import DemoDevice, DemoDriver
from .device import Channel, ChannelGroup, ChannelType, Configurable, Device
from .driver import Driver
from .virtual import VIRTUAL_DRIVER, SessionFileDevice, VirtualDevice

# Populated on first access via get_drivers()
DRIVERS: dict[str, Driver] = {}


def get_drivers() -> dict[str, Driver]:
    """Get mapping of driver names to driver instances.

    Returns
    -------
    dict[str, Driver]
        Available drivers, by name
    """
    global DRIVERS

    if not DRIVERS:
        for driver in (DemoDriver(),):
            DRIVERS[driver.name] = driver
        logger.debug("Registered drivers: {}", ", ".join(DRIVERS))
    return DRIVERS


__all__ = [
    "Channel",
    "ChannelGroup",
    "ChannelType",
    "Configurable",
    "DemoDevice",
    "DemoDriver",
    "Device",
    "Driver",
    "SessionFileDevice",
    "VIRTUAL_DRIVER",
    "VirtualDevice",
    "get_drivers",
]
